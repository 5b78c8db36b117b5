"""Tests for FeatureExtractor assembly, caching, fallback and validation."""

from datetime import date, datetime, timezone

import pytest

from models.schemas import BehaviorFeatures, CVFeatures, DerivedFeatures, FeatureVector, MarketFeatures, MatchingFeatures
from services.ml_pipeline.cache import PredictionCache
from services.ml_pipeline.features.cv_features import CVFeatureService
from services.ml_pipeline.features.extractor import FEATURE_IMPORTANCE, FeatureExtractor, fallback_features
from services.ml_pipeline.features.market_features import MarketFeatureService


class BrokenCVService(CVFeatureService):
    async def extract_features(self, cv, job_description=""):
        raise RuntimeError("parser exploded")


@pytest.fixture
def extractor(test_settings, clock):
    return FeatureExtractor(
        cache=PredictionCache(test_settings, clock=clock),
        market_service=MarketFeatureService(test_settings, today=lambda: date(2024, 4, 15), clock=clock),
    )


class TestExtraction:
    @pytest.mark.asyncio
    async def test_assembles_all_groups(self, extractor, request_factory):
        vector = await extractor.extract_features(request_factory())

        assert vector.user_id == "u1"
        assert vector.job_id == "j1"
        assert vector.cv_features.skills_count == 7
        assert vector.matching_features.skill_match_percentage > 0.8
        assert vector.market_features.industry_growth == 0.18
        assert vector.behavior_features == BehaviorFeatures()
        assert vector.derived_features.leadership_potential > 0

    @pytest.mark.asyncio
    async def test_sub_extractor_failure_returns_fallback(self, extractor, request_factory):
        extractor.cv_service = BrokenCVService()
        vector = await extractor.extract_features(request_factory())

        expected = fallback_features(request_factory())
        assert vector.cv_features == expected.cv_features
        assert vector.matching_features == expected.matching_features
        assert vector.market_features == expected.market_features
        assert vector.behavior_features == expected.behavior_features
        assert vector.derived_features == expected.derived_features
        assert vector.cv_features.education_level == 2

    @pytest.mark.asyncio
    async def test_fallback_is_not_cached(self, extractor, request_factory):
        extractor.cv_service = BrokenCVService()
        await extractor.extract_features(request_factory())
        assert extractor.cache.get_features(request_factory()) is None

    @pytest.mark.asyncio
    async def test_cache_hit_skips_extraction(self, extractor, request_factory):
        first = await extractor.extract_features(request_factory())
        extractor.cv_service = BrokenCVService()
        second = await extractor.extract_features(request_factory())
        assert second == first

    @pytest.mark.asyncio
    async def test_health_check(self, extractor):
        assert await extractor.health_check() is True


class TestValidation:
    def test_fallback_vector_is_valid(self, extractor, request_factory):
        validation = extractor.validate_features(fallback_features(request_factory()))
        assert validation.is_valid is True
        assert validation.completeness == 1.0
        assert validation.quality_score == 0.5
        assert validation.issues == []

    def test_empty_vector_is_invalid(self, extractor):
        vector = FeatureVector(
            user_id="u1",
            job_id="j1",
            extraction_date=datetime(2024, 5, 1, tzinfo=timezone.utc),
            cv_features=CVFeatures(),
            matching_features=MatchingFeatures(),
            market_features=MarketFeatures(),
            derived_features=DerivedFeatures(),
        )
        validation = extractor.validate_features(vector)

        assert validation.is_valid is False
        # cv (education level 1), market and behavior carry non-zero defaults
        assert validation.completeness == pytest.approx(0.6)
        assert "No skills detected" in validation.issues
        assert "work experience" in validation.missing_features
        assert len(validation.issues) == 4

    def test_feature_importance(self, extractor):
        importance = extractor.get_feature_importance()
        assert importance == FEATURE_IMPORTANCE
        assert importance is not FEATURE_IMPORTANCE
        assert max(importance, key=importance.get) == "matching_features.skill_match_percentage"
        assert sum(importance.values()) == pytest.approx(1.0)
