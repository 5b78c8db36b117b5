"""Composite features derived from the CV, the JD and the other feature groups."""

import re

import numpy as np

from models.requests import ParsedCV
from models.schemas import CVFeatures, DerivedFeatures, MarketFeatures, MatchingFeatures
from services.cv_signals import (
    extract_required_years,
    flatten_skills,
    required_education_level,
    role_months,
    roles_chronological,
)
from services.ml_pipeline.base import BaseFeatureService

# Seniority rank by title keyword, checked highest first
SENIORITY_RANKS: list[tuple[int, re.Pattern]] = [
    (7, re.compile(r"\b(?:chief|cto|ceo|cfo|coo|founder)\b", re.I)),
    (6, re.compile(r"\b(?:vp|vice president|head of)\b", re.I)),
    (5, re.compile(r"\bdirector\b", re.I)),
    (4, re.compile(r"\b(?:lead|staff|principal|manager|architect)\b", re.I)),
    (3, re.compile(r"\b(?:senior|sr\.?)\b", re.I)),
    (1, re.compile(r"\b(?:junior|jr\.?|associate|graduate|entry)\b", re.I)),
    (0, re.compile(r"\b(?:intern|trainee|apprentice)\b", re.I)),
]
DEFAULT_RANK = 2

LEADERSHIP_TITLE_RE = re.compile(r"\b(?:lead|manager|head|director|principal|chief|vp|supervisor)\b", re.I)
LEADERSHIP_VERB_RE = re.compile(r"\b(?:led|managed|mentored|supervised|coached|team of|hired)\b", re.I)
INNOVATION_VERB_RE = re.compile(
    r"\b(?:built|created|designed|launched|invented|patent(?:ed)?|founded|pioneered|introduced|automated|architected)\b",
    re.I,
)


def _clamp(value: float) -> float:
    return round(max(0.0, min(1.0, value)), 4)


def seniority_rank(title: str) -> int:
    for rank, pattern in SENIORITY_RANKS:
        if pattern.search(title):
            return rank
    return DEFAULT_RANK


class DerivedFeatureService(BaseFeatureService):
    service_name = "derived"

    async def extract_features(
        self,
        cv: ParsedCV,
        job_description: str,
        cv_features: CVFeatures,
        matching_features: MatchingFeatures,
        market_features: MarketFeatures,
    ) -> DerivedFeatures:
        required_years = extract_required_years(job_description)
        required_edu = required_education_level(job_description)
        return DerivedFeatures(
            overqualification_score=self._overqualification(cv_features, required_years, required_edu),
            underqualification_score=self._underqualification(
                cv_features, matching_features, required_years, required_edu
            ),
            career_progression_score=self._career_progression(cv),
            stability_score=self._stability(cv),
            adaptability_score=self._adaptability(cv, cv_features),
            leadership_potential=self._leadership(cv),
            innovation_indicator=self._innovation(cv, cv_features),
        )

    def _overqualification(self, cv_features: CVFeatures, required_years: float, required_edu: int) -> float:
        excess_years = max(0.0, cv_features.experience_years - required_years * 1.5)
        years_part = min(1.0, excess_years / max(required_years * 2, 1.0))
        edu_part = max(0, cv_features.education_level - required_edu) / 3 if required_edu else 0.0
        return _clamp(years_part * 0.6 + min(1.0, edu_part) * 0.4)

    def _underqualification(
        self,
        cv_features: CVFeatures,
        matching_features: MatchingFeatures,
        required_years: float,
        required_edu: int,
    ) -> float:
        shortfall = max(0.0, required_years - cv_features.experience_years) / required_years if required_years else 0.0
        edu_gap = max(0, required_edu - cv_features.education_level) / 3
        skill_gap = 1.0 - matching_features.skill_match_percentage
        return _clamp(min(1.0, shortfall) * 0.5 + skill_gap * 0.3 + min(1.0, edu_gap) * 0.2)

    def _career_progression(self, cv: ParsedCV) -> float:
        roles = roles_chronological(cv.experience)
        if len(roles) < 2:
            return 0.5
        first, last = seniority_rank(roles[0].position), seniority_rank(roles[-1].position)
        return _clamp(0.5 + (last - first) / 6)

    def _stability(self, cv: ParsedCV) -> float:
        tenures = [m for m in (role_months(role) for role in cv.experience) if m > 0]
        if not tenures:
            return 0.5
        return _clamp(float(np.mean(tenures)) / 36)

    def _adaptability(self, cv: ParsedCV, cv_features: CVFeatures) -> float:
        companies = {role.company.lower().strip() for role in cv.experience if role.company.strip()}
        technologies = {t.lower() for p in cv.projects for t in p.technologies}
        technologies.update(s.lower() for s in flatten_skills(cv.skills))
        return _clamp(
            min(1.0, cv_features.skills_count / 15) * 0.5
            + min(1.0, len(companies) / 4) * 0.3
            + min(1.0, len(technologies) / 20) * 0.2
        )

    def _leadership(self, cv: ParsedCV) -> float:
        title_hits = sum(1 for role in cv.experience if LEADERSHIP_TITLE_RE.search(role.position))
        text = " ".join(
            f"{role.description} {' '.join(role.achievements)}" for role in cv.experience
        )
        verb_hits = len(LEADERSHIP_VERB_RE.findall(text))
        return _clamp(title_hits * 0.25 + verb_hits * 0.1)

    def _innovation(self, cv: ParsedCV, cv_features: CVFeatures) -> float:
        text = " ".join(
            [*cv.achievements]
            + [f"{role.description} {' '.join(role.achievements)}" for role in cv.experience]
            + [p.description for p in cv.projects]
        )
        verb_hits = len(INNOVATION_VERB_RE.findall(text))
        return _clamp(verb_hits * 0.1 + cv_features.projects_count * 0.1)
