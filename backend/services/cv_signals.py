"""Structured résumé signals: experience durations, education level, free text.

Works on the parsed CV structure rather than raw text, so the date ranges
come straight from each role's start/end fields.
"""

import re
from datetime import date

from models.requests import CategorizedSkills, Education, Experience, ParsedCV

# ---------------------------------------------------------------------------
# Date parsing
# ---------------------------------------------------------------------------

_MONTH_MAP = {
    "jan": 1, "january": 1, "feb": 2, "february": 2, "mar": 3, "march": 3,
    "apr": 4, "april": 4, "may": 5, "jun": 6, "june": 6,
    "jul": 7, "july": 7, "aug": 8, "august": 8, "sep": 9, "sept": 9,
    "september": 9, "oct": 10, "october": 10, "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

_CURRENT_MARKERS = {"", "present", "current", "now", "today", "ongoing"}

# 2020-01, 2020-01-15, 2020/01
_ISO_RE = re.compile(r"^(\d{4})[-/](\d{1,2})(?:[-/]\d{1,2})?")
# 01/2020, 1-2020
_MONTH_YEAR_RE = re.compile(r"^(\d{1,2})[-/](\d{4})$")
# Jan 2020, January 2020, Sept. 2019
_NAMED_MONTH_RE = re.compile(r"^([A-Za-z]+)\.?,?\s+(\d{4})$")
_YEAR_RE = re.compile(r"^(\d{4})$")


def parse_cv_date(value: str, today: date | None = None) -> tuple[int, int] | None:
    """Parse a CV date string into (year, month).

    Empty strings and "Present"-style markers resolve to today. Returns None
    when the string is not a recognizable date.
    """
    today = today or date.today()
    text = (value or "").strip()
    if text.lower() in _CURRENT_MARKERS:
        return today.year, today.month

    m = _ISO_RE.match(text)
    if m:
        year, month = int(m.group(1)), int(m.group(2))
        return (year, month) if 1 <= month <= 12 else (year, 1)

    m = _MONTH_YEAR_RE.match(text)
    if m:
        month, year = int(m.group(1)), int(m.group(2))
        return (year, month) if 1 <= month <= 12 else (year, 1)

    m = _NAMED_MONTH_RE.match(text)
    if m and m.group(1).lower() in _MONTH_MAP:
        return int(m.group(2)), _MONTH_MAP[m.group(1).lower()]

    m = _YEAR_RE.match(text)
    if m and 1950 <= int(m.group(1)) <= 2100:
        return int(m.group(1)), 1

    return None


def role_months(role: Experience, today: date | None = None) -> int:
    """Months spent in a single role; 0 when the start date is unknown."""
    if not role.start_date.strip():
        return 0
    start = parse_cv_date(role.start_date, today)
    end = parse_cv_date(role.end_date, today)
    if start is None or end is None:
        return 0
    months = (end[0] - start[0]) * 12 + (end[1] - start[1])
    return max(0, months)


def total_experience_years(experience: list[Experience], today: date | None = None) -> float:
    """Sum of all role durations in years, rounded to one decimal."""
    total_months = sum(role_months(role, today) for role in experience)
    return round(total_months / 12, 1)


def roles_chronological(experience: list[Experience], today: date | None = None) -> list[Experience]:
    """Roles ordered oldest first; undated roles keep their relative order at the front."""
    def sort_key(role: Experience) -> tuple[int, int]:
        parsed = parse_cv_date(role.start_date, today) if role.start_date.strip() else None
        return parsed or (0, 0)

    return sorted(experience, key=sort_key)


# ---------------------------------------------------------------------------
# Education level detection
# ---------------------------------------------------------------------------

DEGREE_PATTERNS: dict[int, list[str]] = {
    5: [r"ph\.?d", r"doctorate", r"doctoral", r"doctor of philosophy"],
    4: [r"m\.?sc\.?", r"m\.?s\.?", r"m\.?tech", r"mba", r"master(?:'?s)?"],
    3: [r"b\.?sc\.?", r"b\.?s\.?", r"b\.?a\.?", r"b\.?tech", r"b\.?eng", r"bachelor(?:'?s)?"],
    2: [r"associate(?:'?s)?"],
}

_DEGREE_COMPILED: dict[int, re.Pattern] = {
    level: re.compile(rf"\b(?:{'|'.join(patterns)})(?=\W|$)", re.IGNORECASE)
    for level, patterns in DEGREE_PATTERNS.items()
}

EDUCATION_LEVEL_NAMES = {1: "none", 2: "associate", 3: "bachelor", 4: "master", 5: "phd"}


def degree_level(text: str) -> int:
    """Ordinal level (2-5) of the highest degree named in text, 1 if none."""
    for level in (5, 4, 3, 2):
        if _DEGREE_COMPILED[level].search(text):
            return level
    return 1


def education_level(education: list[Education]) -> int:
    """Highest education level across entries: 1 none/high school .. 5 PhD."""
    if not education:
        return 1
    return max(degree_level(f"{e.degree} {e.field}") for e in education)


# Abbreviations like "MS" collide with units in JD prose ("10 ms"), so JDs
# are only checked for spelled-out degree names.
_JD_DEGREE_RE: dict[int, re.Pattern] = {
    5: re.compile(r"\b(?:ph\.?d|doctorate|doctoral)\b", re.IGNORECASE),
    4: re.compile(r"\b(?:master(?:'?s)?|mba)\b", re.IGNORECASE),
    3: re.compile(r"\bbachelor(?:'?s)?\b", re.IGNORECASE),
    2: re.compile(r"\bassociate(?:'?s)?\s+degree\b", re.IGNORECASE),
}


def required_education_level(job_description: str) -> int:
    """Lowest degree level a JD asks for, 0 when no degree is mentioned.

    "Bachelor's or Master's" demands a bachelor (3), the lowest acceptable.
    """
    levels = [level for level, pattern in _JD_DEGREE_RE.items() if pattern.search(job_description)]
    if levels:
        return min(levels)
    return 3 if re.search(r"\bdegree\b", job_description, re.IGNORECASE) else 0


# ---------------------------------------------------------------------------
# Job description requirements
# ---------------------------------------------------------------------------

# "5+ years of experience" or "3 years experience in Python"
EXP_YEARS_RE = re.compile(
    r"(\d+)\+?\s*(?:years?|yrs?)\s*(?:of\s+)?(?:\w+\s+)?(?:experience|exp\b)",
    re.IGNORECASE,
)


def extract_required_years(job_description: str, default: float = 2.0) -> float:
    """Highest "N years experience" figure in a JD, or `default` when absent."""
    years = [float(m.group(1)) for m in EXP_YEARS_RE.finditer(job_description)]
    years = [y for y in years if 0 < y < 40]
    return max(years) if years else default


def job_title_line(job_description: str) -> str:
    """First non-empty line of a JD, conventionally the job title."""
    for line in job_description.splitlines():
        if line.strip():
            return line.strip()
    return ""


# ---------------------------------------------------------------------------
# CV content helpers
# ---------------------------------------------------------------------------

def flatten_skills(skills: list[str] | CategorizedSkills) -> list[str]:
    """Skills as one flat list regardless of how the parser grouped them."""
    if isinstance(skills, CategorizedSkills):
        return [*skills.technical, *skills.soft, *skills.languages, *skills.tools]
    return list(skills)


def experience_text(cv: ParsedCV) -> str:
    return "\n".join(
        f"{role.position} {role.company} {role.description} {' '.join(role.achievements)}"
        for role in cv.experience
    )


def cv_text(cv: ParsedCV) -> str:
    """All free text in the CV, used for word counts and keyword density."""
    parts = [cv.personal_info.title, cv.personal_info.summary, experience_text(cv)]
    parts.extend(f"{e.degree} {e.field} {e.institution}" for e in cv.education)
    parts.extend(flatten_skills(cv.skills))
    parts.extend(cv.certifications)
    parts.extend(f"{p.name} {p.description} {' '.join(p.technologies)}" for p in cv.projects)
    parts.extend(cv.achievements)
    return "\n".join(p for p in parts if p)


def achievement_count(cv: ParsedCV) -> int:
    return len(cv.achievements) + sum(len(role.achievements) for role in cv.experience)
