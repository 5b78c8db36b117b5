"""CV content features: counts, keyword density, readability, formatting."""

import re

from models.requests import ParsedCV
from models.schemas import CVFeatures
from services.cv_signals import (
    achievement_count,
    cv_text,
    education_level,
    flatten_skills,
    total_experience_years,
)
from services.ml_pipeline.base import BaseFeatureService
from services.similarity import term_coverage

_SENTENCE_SPLIT_RE = re.compile(r"[.!?\n]+")

# Sentence length (words) that reads best on a resume
IDEAL_SENTENCE_LENGTH = 16


def count_sections(cv: ParsedCV) -> int:
    info = cv.personal_info
    present = [
        bool(info.name or info.email or info.summary),
        bool(cv.experience),
        bool(cv.education),
        bool(flatten_skills(cv.skills)),
        bool(cv.certifications),
        bool(cv.projects),
        bool(cv.achievements),
    ]
    return sum(present)


def readability_score(text: str) -> float:
    """1.0 at the ideal mean sentence length, falling off linearly either side."""
    sentences = [s.split() for s in _SENTENCE_SPLIT_RE.split(text)]
    sentences = [s for s in sentences if s]
    if not sentences:
        return 0.0
    mean_length = sum(len(s) for s in sentences) / len(sentences)
    score = 1.0 - abs(mean_length - IDEAL_SENTENCE_LENGTH) / (IDEAL_SENTENCE_LENGTH * 1.5)
    return round(max(0.0, min(1.0, score)), 3)


def formatting_score(cv: ParsedCV) -> float:
    """Completeness of contact details and of each experience entry."""
    contact = 0.5 * bool(cv.personal_info.name) + 0.5 * bool(cv.personal_info.email)
    if cv.experience:
        filled = [
            sum(bool(v.strip()) for v in (role.position, role.company, role.start_date, role.description)) / 4
            for role in cv.experience
        ]
        entries = sum(filled) / len(filled)
    else:
        entries = 0.0
    return round(0.3 * contact + 0.7 * entries, 3)


class CVFeatureService(BaseFeatureService):
    service_name = "cv"

    async def extract_features(self, cv: ParsedCV, job_description: str = "") -> CVFeatures:
        text = cv_text(cv)
        return CVFeatures(
            word_count=len(text.split()),
            sections_count=count_sections(cv),
            skills_count=len([s for s in flatten_skills(cv.skills) if s.strip()]),
            experience_years=total_experience_years(cv.experience),
            education_level=education_level(cv.education),
            certifications_count=len(cv.certifications),
            projects_count=len(cv.projects),
            achievements_count=achievement_count(cv),
            keyword_density=round(term_coverage(text, job_description), 4),
            readability_score=readability_score(text),
            formatting_score=formatting_score(cv),
        )
