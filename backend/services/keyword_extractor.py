"""Skill keyword extraction from job descriptions and matching against CV skills.

A curated technical vocabulary finds the skills a JD asks for; CV skills are
resolved through a synonym table and compared with exact, containment and
fuzzy (Levenshtein) matching.
"""

import logging
import re

from rapidfuzz import fuzz

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Skill synonym mapping: aliases -> canonical form
# Applied BEFORE matching so "K8s" and "Kubernetes" both resolve to "kubernetes"
# ---------------------------------------------------------------------------
SKILL_SYNONYMS: dict[str, str] = {
    "js": "javascript", "es6": "javascript",
    "ts": "typescript",
    "react.js": "react", "reactjs": "react",
    "vue.js": "vue", "vuejs": "vue",
    "angular.js": "angular", "angularjs": "angular",
    "node": "node.js", "nodejs": "node.js",
    "express.js": "express", "expressjs": "express",
    "py": "python", "python3": "python",
    "sklearn": "scikit-learn",
    "torch": "pytorch",
    "k8s": "kubernetes", "kube": "kubernetes",
    "amazon web services": "aws",
    "google cloud": "gcp", "google cloud platform": "gcp",
    "microsoft azure": "azure",
    "cicd": "ci/cd",
    "postgres": "postgresql",
    "mongo": "mongodb",
    "c sharp": "c#", "csharp": "c#",
    "cpp": "c++",
    "golang": "go",
    "ml": "machine learning",
    "nlp": "natural language processing",
    "restful": "rest", "rest api": "rest", "rest apis": "rest",
    "agile/scrum": "agile",
}

# Technical vocabulary searched for in job descriptions
TECH_KEYWORDS: frozenset[str] = frozenset({
    # Languages
    "python", "javascript", "typescript", "java", "c++", "c#", "go", "rust",
    "ruby", "php", "swift", "kotlin", "scala", "sql",
    # Frontend / backend frameworks
    "react", "angular", "vue", "node.js", "express", "django", "flask",
    "fastapi", "spring", "rails", ".net", "graphql", "rest", "api",
    # Cloud & DevOps
    "aws", "azure", "gcp", "docker", "kubernetes", "terraform", "jenkins",
    "ci/cd", "linux", "git",
    # Data
    "postgresql", "mysql", "mongodb", "redis", "elasticsearch", "kafka",
    "spark", "snowflake", "pandas", "numpy",
    # ML/AI
    "machine learning", "deep learning", "tensorflow", "pytorch",
    "natural language processing", "scikit-learn", "llm",
    # Methodologies
    "agile", "scrum", "microservices",
})

# Fuzzy match threshold (0-100). 85+ catches "Postgres SQL" -> "postgresql" etc.
FUZZY_THRESHOLD = 85

_TERM_RE = re.compile(r"[a-z0-9][a-z0-9.#+/-]*")


def canonicalize(term: str) -> str:
    """Resolve a term to its canonical form via the synonym dictionary."""
    lower = term.lower().strip()
    return SKILL_SYNONYMS.get(lower, lower)


def _terms(text: str) -> set[str]:
    """Unigrams, bigrams and trigrams of normalized text, canonicalized."""
    # Strip sentence-ending periods but keep dots in tech terms like "node.js"
    normalized = re.sub(r"\.(\s|$)", " ", text.lower())
    words = _TERM_RE.findall(normalized)
    grams = set(words)
    grams.update(f"{a} {b}" for a, b in zip(words, words[1:]))
    grams.update(f"{a} {b} {c}" for a, b, c in zip(words, words[1:], words[2:]))
    return grams | {canonicalize(g) for g in grams}


def extract_job_skills(job_description: str) -> set[str]:
    """Known technical skills mentioned in a job description."""
    if not job_description.strip():
        return set()
    terms = _terms(job_description)
    return {kw for kw in TECH_KEYWORDS if kw in terms}


def skill_matches(skill: str, cv_skills: set[str]) -> bool:
    """True when a JD skill is covered by any CV skill.

    Checks canonical equality, containment in either direction and, for
    terms of three or more characters, fuzzy similarity.
    """
    canon = canonicalize(skill)
    if canon in cv_skills:
        return True
    for cv_skill in cv_skills:
        if len(cv_skill) >= 3 and len(canon) >= 3 and (canon in cv_skill or cv_skill in canon):
            return True
        if len(cv_skill) >= 3 and len(canon) >= 3 and fuzz.ratio(canon, cv_skill) >= FUZZY_THRESHOLD:
            return True
    return False


def match_skills(cv_skills: list[str], job_skills: set[str]) -> tuple[list[str], list[str]]:
    """Split JD skills into (matched, missing) against the candidate's skills."""
    canonical_cv = {canonicalize(s) for s in cv_skills if s.strip()}
    matched: list[str] = []
    missing: list[str] = []
    for skill in sorted(job_skills):
        if skill_matches(skill, canonical_cv):
            matched.append(skill)
        else:
            missing.append(skill)
    return matched, missing


def skill_match_ratio(cv_skills: list[str], job_description: str) -> float:
    """Share of JD skills the candidate covers, 0.0 when either side is empty."""
    job_skills = extract_job_skills(job_description)
    if not job_skills or not cv_skills:
        return 0.0
    matched, _ = match_skills(cv_skills, job_skills)
    return len(matched) / len(job_skills)
