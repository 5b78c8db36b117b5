"""Feature extractor: fans out to the sub-extractors and assembles a FeatureVector.

Flow:
    request
      ├─ feature cache hit?  → return cached vector
      ├─ CV ┐
      ├─ Matching ├─ concurrently
      ├─ Market ┘
      │        ↓
      └─ Derived (needs the three groups above)
               ↓
         FeatureVector → feature cache

Behavior features are not extracted here; the vector carries the neutral
defaults and higher-level callers merge per-user behavior in themselves.
Any failure yields the fixed fallback vector, so this never raises.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone

from models.requests import PredictionRequest
from models.schemas import (
    BehaviorFeatures,
    CVFeatures,
    DerivedFeatures,
    FeatureValidation,
    FeatureVector,
    MarketFeatures,
    MatchingFeatures,
)
from services.ml_pipeline.cache import PredictionCache
from services.ml_pipeline.features.cv_features import CVFeatureService
from services.ml_pipeline.features.derived_features import DerivedFeatureService
from services.ml_pipeline.features.market_features import MarketFeatureService
from services.ml_pipeline.features.matching_features import MatchingFeatureService

logger = logging.getLogger(__name__)

FEATURE_GROUP_COUNT = 5

# Static weights used for explanations and recommendations, not by predictors
FEATURE_IMPORTANCE: dict[str, float] = {
    "cv_features.experience_years": 0.15,
    "cv_features.skills_count": 0.10,
    "cv_features.education_level": 0.08,
    "cv_features.readability_score": 0.07,
    "matching_features.skill_match_percentage": 0.20,
    "matching_features.experience_relevance": 0.10,
    "matching_features.title_similarity": 0.05,
    "market_features.demand_supply_ratio": 0.08,
    "market_features.industry_growth": 0.04,
    "market_features.location_competitiveness": 0.03,
    "behavior_features.platform_engagement": 0.03,
    "behavior_features.application_timing": 0.02,
    "derived_features.career_progression_score": 0.02,
    "derived_features.leadership_potential": 0.02,
    "derived_features.adaptability_score": 0.01,
}


def fallback_features(request: PredictionRequest) -> FeatureVector:
    """Fixed median-ish vector used when extraction fails."""
    return FeatureVector(
        user_id=request.user_id,
        job_id=request.job_id,
        extraction_date=datetime.now(timezone.utc),
        cv_features=CVFeatures(
            word_count=150,
            sections_count=3,
            skills_count=5,
            experience_years=2,
            education_level=2,
            certifications_count=0,
            projects_count=1,
            achievements_count=1,
            keyword_density=0.5,
            readability_score=0.6,
            formatting_score=0.5,
        ),
        matching_features=MatchingFeatures(
            skill_match_percentage=0.3,
            experience_relevance=0.4,
            education_match=0.5,
            industry_experience=0.3,
            location_match=0.8,
            salary_alignment=0.7,
            title_similarity=0.2,
            company_fit=0.5,
        ),
        market_features=MarketFeatures(
            industry_growth=0.1,
            location_competitiveness=0.7,
            salary_competitiveness=0.8,
            demand_supply_ratio=1.0,
            seasonality=1.0,
            economic_indicators=0.8,
        ),
        behavior_features=BehaviorFeatures(),
        derived_features=DerivedFeatures(
            overqualification_score=0.3,
            underqualification_score=0.4,
            career_progression_score=0.5,
            stability_score=0.6,
            adaptability_score=0.5,
            leadership_potential=0.4,
            innovation_indicator=0.3,
        ),
    )


class FeatureExtractor:
    def __init__(
        self,
        cache: PredictionCache | None = None,
        cv_service: CVFeatureService | None = None,
        matching_service: MatchingFeatureService | None = None,
        market_service: MarketFeatureService | None = None,
        derived_service: DerivedFeatureService | None = None,
    ) -> None:
        self.cache = cache if cache is not None else PredictionCache()
        self.cv_service = cv_service if cv_service is not None else CVFeatureService()
        self.matching_service = matching_service if matching_service is not None else MatchingFeatureService()
        self.market_service = market_service if market_service is not None else MarketFeatureService()
        self.derived_service = derived_service if derived_service is not None else DerivedFeatureService()

    async def extract_features(self, request: PredictionRequest) -> FeatureVector:
        try:
            cached = self.cache.get_features(request)
            if cached is not None:
                logger.debug("Feature cache hit for job %s", request.job_id)
                return cached

            start = time.perf_counter()
            cv_features, matching_features, market_features = await asyncio.gather(
                self.cv_service.extract_features(request.cv, request.job_description),
                self.matching_service.extract_features(
                    request.cv,
                    request.job_description,
                    target_role=request.target_role,
                    industry=request.industry,
                    location=request.location,
                ),
                self.market_service.extract_features(
                    request.industry, request.location, request.market_context
                ),
            )
            derived_features = await self.derived_service.extract_features(
                request.cv,
                request.job_description,
                cv_features,
                matching_features,
                market_features,
            )

            features = FeatureVector(
                user_id=request.user_id,
                job_id=request.job_id,
                extraction_date=datetime.now(timezone.utc),
                cv_features=cv_features,
                matching_features=matching_features,
                market_features=market_features,
                behavior_features=BehaviorFeatures(),
                derived_features=derived_features,
            )
            self.cache.set_features(request, features)
            logger.debug("Extracted features for job %s in %.3fs", request.job_id, time.perf_counter() - start)
            return features
        except Exception as e:
            logger.warning("Feature extraction failed, using fallback vector: %s", e)
            return fallback_features(request)

    def validate_features(self, features: FeatureVector) -> FeatureValidation:
        """Score completeness (populated groups / 5) and content quality."""
        cv = features.cv_features
        matching = features.matching_features
        issues: list[str] = []
        missing: list[str] = []

        if cv.word_count < 50:
            issues.append("CV word count is too low")
            missing.append("sufficient CV content")
        if cv.experience_years == 0:
            issues.append("No work experience detected")
            missing.append("work experience")
        if cv.skills_count == 0:
            issues.append("No skills detected")
            missing.append("skills information")
        if matching.skill_match_percentage < 0.1:
            issues.append("Very low skill matching with job")

        groups = [
            features.cv_features,
            features.matching_features,
            features.market_features,
            features.behavior_features,
            features.derived_features,
        ]
        populated = sum(1 for g in groups if any(float(v) != 0 for v in g.model_dump().values()))
        completeness = populated / FEATURE_GROUP_COUNT

        quality = 0.5
        if cv.word_count > 200:
            quality += 0.1
        if cv.experience_years > 2:
            quality += 0.1
        if cv.skills_count > 5:
            quality += 0.1
        if matching.skill_match_percentage > 0.5:
            quality += 0.1
        if cv.education_level > 2:
            quality += 0.1
        if cv.readability_score > 0.7:
            quality += 0.1
        quality = min(1.0, quality)

        return FeatureValidation(
            is_valid=completeness >= 0.6 and quality >= 0.5 and len(issues) < 3,
            completeness=completeness,
            quality_score=round(quality, 2),
            missing_features=missing,
            issues=issues,
        )

    def get_feature_importance(self, features: FeatureVector | None = None) -> dict[str, float]:
        return dict(FEATURE_IMPORTANCE)

    async def health_check(self) -> bool:
        try:
            checks = await asyncio.gather(
                self.cv_service.health_check(),
                self.matching_service.health_check(),
                self.market_service.health_check(),
                self.derived_service.health_check(),
            )
            return all(checks)
        except Exception as e:
            logger.warning("Feature extractor health check failed: %s", e)
            return False
