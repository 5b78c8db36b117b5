"""Candidate/job fit features.

Skill matching reuses the keyword extractor's synonym table and fuzzy
comparison; experience relevance and company fit use TF-IDF cosine between
CV text and the job description.
"""

import logging
import re

from rapidfuzz import fuzz

from models.requests import ParsedCV
from models.schemas import MatchingFeatures
from services import keyword_extractor
from services.cv_signals import (
    education_level,
    experience_text,
    extract_required_years,
    flatten_skills,
    job_title_line,
    required_education_level,
    total_experience_years,
)
from services.ml_pipeline.base import BaseFeatureService
from services.ml_pipeline.coefficients import normalize_industry
from services.similarity import tfidf_cosine_similarity

logger = logging.getLogger(__name__)

# TF-IDF cosine between a CV and a JD rarely exceeds 0.5, so scores are doubled
COSINE_SCALE = 2.0
NEUTRAL_SALARY_ALIGNMENT = 0.7
NEUTRAL_LOCATION_MATCH = 0.8

# $120,000 / $120k / 120K USD
_SALARY_RE = re.compile(r"\$\s?(\d{2,3})(?:,(\d{3})|\s?[kK]\b)")


def _clamp(value: float) -> float:
    return round(max(0.0, min(1.0, value)), 4)


def parse_salary_range(job_description: str) -> tuple[int, int] | None:
    """(min, max) annual salary advertised in a JD, None when absent."""
    amounts = []
    for m in _SALARY_RE.finditer(job_description):
        thousands = int(m.group(1))
        amounts.append(thousands * 1000 + int(m.group(2)) if m.group(2) else thousands * 1000)
    if not amounts:
        return None
    return min(amounts), max(amounts)


class MatchingFeatureService(BaseFeatureService):
    service_name = "matching"

    async def extract_features(
        self,
        cv: ParsedCV,
        job_description: str,
        target_role: str | None = None,
        industry: str | None = None,
        location: str | None = None,
    ) -> MatchingFeatures:
        return MatchingFeatures(
            skill_match_percentage=self._skill_match(cv, job_description),
            experience_relevance=self._experience_relevance(cv, job_description),
            education_match=self._education_match(cv, job_description),
            industry_experience=self._industry_experience(cv, industry),
            location_match=self._location_match(cv, location),
            salary_alignment=self._salary_alignment(cv, job_description),
            title_similarity=self._title_similarity(cv, job_description, target_role),
            company_fit=self._company_fit(cv, job_description),
        )

    def _skill_match(self, cv: ParsedCV, job_description: str) -> float:
        cv_skills = flatten_skills(cv.skills)
        cv_skills.extend(tech for project in cv.projects for tech in project.technologies)
        return _clamp(keyword_extractor.skill_match_ratio(cv_skills, job_description))

    def _experience_relevance(self, cv: ParsedCV, job_description: str) -> float:
        if not cv.experience:
            return 0.0
        cosine = tfidf_cosine_similarity(experience_text(cv), job_description)
        years = total_experience_years(cv.experience)
        required = extract_required_years(job_description)
        years_ratio = min(1.0, years / required) if required > 0 else 1.0
        return _clamp(min(1.0, cosine * COSINE_SCALE) * 0.6 + years_ratio * 0.4)

    def _education_match(self, cv: ParsedCV, job_description: str) -> float:
        required = required_education_level(job_description)
        if required == 0:
            return 1.0
        level = education_level(cv.education)
        if level >= required:
            return 1.0
        return _clamp(1.0 - 0.3 * (required - level))

    def _industry_experience(self, cv: ParsedCV, industry: str | None) -> float:
        if not cv.experience:
            return 0.0
        if not industry:
            return 0.5
        terms = {industry.lower().strip(), normalize_industry(industry)}
        hits = 0
        for role in cv.experience:
            text = f"{role.company} {role.position} {role.description}".lower()
            if any(term and term in text for term in terms):
                hits += 1
        return _clamp(hits / len(cv.experience))

    def _location_match(self, cv: ParsedCV, location: str | None) -> float:
        job_location = (location or "").lower().strip()
        cv_location = cv.personal_info.location.lower().strip()
        if "remote" in job_location:
            return 1.0
        if not job_location or not cv_location:
            return NEUTRAL_LOCATION_MATCH
        if fuzz.partial_ratio(cv_location, job_location) >= 80:
            return 1.0
        return 0.3

    def _salary_alignment(self, cv: ParsedCV, job_description: str) -> float:
        desired = cv.personal_info.desired_salary
        advertised = parse_salary_range(job_description)
        if not desired or advertised is None:
            return NEUTRAL_SALARY_ALIGNMENT
        low, high = advertised
        if low <= desired <= high:
            return 1.0
        if desired < low:
            return 0.9
        return _clamp(1.0 - 2 * (desired - high) / high)

    def _title_similarity(self, cv: ParsedCV, job_description: str, target_role: str | None) -> float:
        target = (target_role or job_title_line(job_description)).lower()
        if not target:
            return 0.0
        titles = [cv.personal_info.title] + [role.position for role in cv.experience]
        titles = [t.lower() for t in titles if t.strip()]
        if not titles:
            return 0.0
        best = max(fuzz.token_set_ratio(title, target) for title in titles)
        return _clamp(best / 100)

    def _company_fit(self, cv: ParsedCV, job_description: str) -> float:
        profile = f"{cv.personal_info.title} {cv.personal_info.summary}".strip()
        if not profile:
            return 0.5
        cosine = tfidf_cosine_similarity(profile, job_description)
        return _clamp(min(1.0, cosine * COSINE_SCALE))
