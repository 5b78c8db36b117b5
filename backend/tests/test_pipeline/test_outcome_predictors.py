"""Tests for the interview, offer, salary and time-to-hire predictors."""

import asyncio
from datetime import date, datetime, timezone

import aiohttp
import pytest

from config import Settings
from models.schemas import (
    BehaviorFeatures,
    CVFeatures,
    DerivedFeatures,
    FeatureValidation,
    FeatureVector,
    MarketFeatures,
    MatchingFeatures,
)
from services.ml_pipeline.base import SOURCE_HEURISTIC, SOURCE_REMOTE
from services.ml_pipeline.predictors.competitiveness import CompetitivenessAnalyzer
from services.ml_pipeline.predictors.interview import InterviewPredictor
from services.ml_pipeline.predictors.offer import OfferPredictor
from services.ml_pipeline.predictors.recommendations import RecommendationEngine
from services.ml_pipeline.predictors.salary import SalaryPredictor, percentile_rank
from services.ml_pipeline.predictors.time_to_hire import TimeToHirePredictor, split_phases
from services.ml_pipeline.remote import ScoringClient


def make_vector(cv=None, matching=None, market=None, behavior=None, derived=None) -> FeatureVector:
    return FeatureVector(
        user_id="u1",
        job_id="j1",
        extraction_date=datetime(2024, 5, 1, tzinfo=timezone.utc),
        cv_features=cv or CVFeatures(),
        matching_features=matching or MatchingFeatures(),
        market_features=market or MarketFeatures(economic_indicators=0.0),
        behavior_features=behavior or BehaviorFeatures(),
        derived_features=derived or DerivedFeatures(),
    )


def best_vector() -> FeatureVector:
    return make_vector(
        cv=CVFeatures(word_count=800, sections_count=7, skills_count=30, experience_years=12,
                      education_level=5, achievements_count=10, readability_score=1.0, formatting_score=1.0),
        matching=MatchingFeatures(**{f: 1.0 for f in MatchingFeatures.model_fields}),
        market=MarketFeatures(industry_growth=0.3, location_competitiveness=0.2, demand_supply_ratio=3.0,
                              seasonality=2.0, economic_indicators=1.0),
        behavior=BehaviorFeatures(application_timing=0, cv_optimization_level=1.0, platform_engagement=1.0),
        derived=DerivedFeatures(career_progression_score=1.0, stability_score=0.8, adaptability_score=1.0,
                                leadership_potential=1.0, innovation_indicator=1.0),
    )


def worst_vector() -> FeatureVector:
    return make_vector(
        behavior=BehaviorFeatures(application_timing=60, weekday_application=False, cv_optimization_level=0.0,
                                  platform_engagement=0.0),
        market=MarketFeatures(location_competitiveness=1.0, demand_supply_ratio=0.1, seasonality=0.0,
                              economic_indicators=0.0),
        derived=DerivedFeatures(overqualification_score=1.0, underqualification_score=1.0, stability_score=0.0),
    )


def offline_client() -> ScoringClient:
    return ScoringClient(Settings(ml_api_key=""))


def online_client(response=None, exc=None, delay=0.0, timeout=10.0) -> ScoringClient:
    client = ScoringClient(Settings(ml_api_key="secret", ml_api_timeout_seconds=timeout))
    client.calls = []

    async def fake_post(url, payload):
        client.calls.append((url, payload))
        if delay:
            await asyncio.sleep(delay)
        if exc is not None:
            raise exc
        return response

    client._post = fake_post
    return client


class TestInterviewHeuristic:
    def setup_method(self):
        self.predictor = InterviewPredictor(offline_client())

    def test_empty_profile_scores_base_rate(self):
        assert self.predictor.base_score(make_vector()) == pytest.approx(0.15)

    def test_strong_profile_exceeds_threshold_before_modifiers(self):
        vector = make_vector(
            cv=CVFeatures(word_count=250, readability_score=1.0, formatting_score=1.0),
            matching=MatchingFeatures(skill_match_percentage=0.80, experience_relevance=0.85,
                                      title_similarity=0.75, education_match=0.90),
            market=MarketFeatures(demand_supply_ratio=1.3, industry_growth=0.05, economic_indicators=0.5),
        )
        assert self.predictor.base_score(vector) > 0.55

    @pytest.mark.asyncio
    async def test_bounds(self):
        for vector in (make_vector(), best_vector(), worst_vector()):
            value = await self.predictor.predict(vector)
            assert 0.01 <= value <= 0.95
        assert await self.predictor.predict(best_vector()) == pytest.approx(0.95)

    @pytest.mark.asyncio
    async def test_underqualification_lowers_score(self):
        base = make_vector(matching=MatchingFeatures(skill_match_percentage=0.5))
        penalized = base.model_copy(update={"derived_features": DerivedFeatures(underqualification_score=0.9)})
        assert await self.predictor.predict(penalized) < await self.predictor.predict(base)


class TestOfferHeuristic:
    def setup_method(self):
        self.predictor = OfferPredictor(offline_client())

    @pytest.mark.asyncio
    async def test_bounds(self):
        for vector in (make_vector(), best_vector(), worst_vector()):
            value = await self.predictor.predict(vector)
            assert 0.005 <= value <= 0.85
        assert await self.predictor.predict(worst_vector()) < await self.predictor.predict(make_vector())

    def test_skill_match_is_quadratic(self):
        half = self.predictor.base_score(make_vector(matching=MatchingFeatures(skill_match_percentage=0.5)))
        full = self.predictor.base_score(make_vector(matching=MatchingFeatures(skill_match_percentage=1.0)))
        assert half == pytest.approx(0.08 + 0.25 * 0.30)
        assert full == pytest.approx(0.08 + 0.30)

    @pytest.mark.asyncio
    async def test_salary_alignment_scales_result(self):
        aligned = make_vector(matching=MatchingFeatures(skill_match_percentage=0.6, salary_alignment=1.0))
        misaligned = make_vector(matching=MatchingFeatures(skill_match_percentage=0.6, salary_alignment=0.0))
        assert await self.predictor.predict(misaligned) == pytest.approx(
            await self.predictor.predict(aligned) * 0.5
        )


class TestRemoteScoring:
    @pytest.mark.asyncio
    async def test_no_credential_makes_no_call(self):
        client = offline_client()

        async def forbidden(url, payload):
            raise AssertionError("network call without credential")

        client._post = forbidden
        predictor = InterviewPredictor(client)
        value, source = await predictor.predict_with_source(best_vector())

        assert source == SOURCE_HEURISTIC
        assert value == predictor._heuristic(best_vector())
        assert client._session is None

    @pytest.mark.asyncio
    async def test_remote_probability_is_clamped(self):
        client = online_client(response=(200, {"probability": 1.7}))
        value, source = await InterviewPredictor(client).predict_with_source(make_vector())
        assert source == SOURCE_REMOTE
        assert value == 0.95
        url, payload = client.calls[0]
        assert url == f"{client.endpoint}/predict/interview"
        assert payload["features"]["user_id"] == "u1"

    @pytest.mark.asyncio
    async def test_offer_uses_offer_endpoint(self):
        client = online_client(response=(200, {"probability": 0.3}))
        assert await OfferPredictor(client).predict(make_vector()) == pytest.approx(0.3)
        assert client.calls[0][0].endswith("/predict/offer")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "client_kwargs",
        [
            {"response": (500, None)},
            {"response": (200, {"probability": "high"})},
            {"response": (200, {"score": 0.4})},
            {"response": (200, ["not", "a", "dict"])},
            {"response": (200, {"probability": True})},
            {"exc": aiohttp.ClientError("connection refused")},
            {"exc": ValueError("bad json")},
            {"response": (200, {"probability": 0.5}), "delay": 0.2, "timeout": 0.01},
        ],
    )
    async def test_soft_failures_fall_back_to_heuristic(self, client_kwargs):
        predictor = InterviewPredictor(online_client(**client_kwargs))
        vector = make_vector()
        value, source = await predictor.predict_with_source(vector)
        assert source == SOURCE_HEURISTIC
        assert value == pytest.approx(predictor._heuristic(vector))

    @pytest.mark.asyncio
    async def test_remote_salary_and_time_to_hire(self):
        salary = await SalaryPredictor(
            online_client(response=(200, {"median": 100000, "min": 90000, "max": 120000}))
        ).predict(make_vector())
        assert salary.predicted_range.median == 100000
        assert salary.predicted_range.min == 90000
        assert salary.predicted_range.max == 120000

        timeline = await TimeToHirePredictor(online_client(response=(200, {"median_days": 20}))).predict(make_vector())
        assert timeline.estimated_days.median == 20
        assert timeline.phase_breakdown.total() == 20
        assert timeline.confidence == 0.75

    @pytest.mark.asyncio
    async def test_remote_salary_uses_request_industry_and_location(self, request_factory):
        request = request_factory(industry="software", location="New York")
        salary, source = await SalaryPredictor(
            online_client(response=(200, {"median": 100000}))
        ).predict_with_source(make_vector(), request)

        assert source == SOURCE_REMOTE
        assert salary.industry_benchmark.industry_median == 90000
        assert salary.industry_benchmark.percentile_rank == 60
        assert salary.regional_adjustment.base_location == "New York"
        assert salary.regional_adjustment.adjustment_factor == 1.3
        assert salary.regional_adjustment.cost_of_living_index == 130

    @pytest.mark.asyncio
    async def test_remote_salary_without_median_falls_back(self):
        salary, source = await SalaryPredictor(
            online_client(response=(200, {"min": 1}))
        ).predict_with_source(make_vector())
        assert source == SOURCE_HEURISTIC
        assert salary.predicted_range.median > 0


class TestSalaryHeuristic:
    @pytest.mark.asyncio
    async def test_formula(self, request_factory):
        vector = make_vector(cv=CVFeatures(experience_years=5, education_level=3, skills_count=10))
        salary = await SalaryPredictor(offline_client()).predict(vector, request_factory(industry="software"))

        # 90000 * (1 + 5*0.08) * 1.0 * (1 + 0.2)
        assert salary.predicted_range.median == 151200
        assert salary.predicted_range.min == round(151200 * 0.85)
        assert salary.predicted_range.max == round(151200 * 1.2)
        assert salary.confidence_interval.lower < salary.predicted_range.min
        assert salary.confidence_interval.upper > salary.predicted_range.max
        assert salary.industry_benchmark.industry_median == 90000

    @pytest.mark.asyncio
    async def test_skill_premium_is_capped(self):
        predictor = SalaryPredictor(offline_client())
        many = await predictor.predict(make_vector(cv=CVFeatures(education_level=3, skills_count=50)))
        assert many.predicted_range.median == round(70000 * 1.3)

    def test_percentile_bands(self):
        assert percentile_rank(150000, 100000) == 90
        assert percentile_rank(100000, 100000) == 60
        assert percentile_rank(50000, 100000) == 20


class TestTimeToHireHeuristic:
    @pytest.mark.asyncio
    async def test_startup_is_faster(self, request_factory):
        predictor = TimeToHirePredictor(offline_client(), today=lambda: date(2024, 4, 15))
        request = request_factory(industry="technology", job_description="Senior engineer at a startup")
        result = await predictor.predict(make_vector(), request)

        # 18 days * (0.8 + 0.2 * 0.4) * 0.7
        assert result.estimated_days.median == 11
        assert result.estimated_days.min <= 11 <= result.estimated_days.max
        assert result.phase_breakdown.total() == 11
        assert result.current_season == "spring"
        assert result.confidence == 0.6

    def test_phases_sum_to_median(self):
        shares = {"application": 0.15, "screening": 0.25, "interviews": 0.35, "decision": 0.15, "negotiation": 0.10}
        for days in (1, 3, 7, 21, 45, 100):
            assert split_phases(days, shares).total() == days


class TestCompetitivenessAndRecommendations:
    def test_competitiveness(self):
        vector = make_vector(
            cv=CVFeatures(experience_years=2, education_level=2, readability_score=0.6, formatting_score=0.5),
            matching=MatchingFeatures(skill_match_percentage=0.3),
            market=MarketFeatures(demand_supply_ratio=1.0),
        )
        assert CompetitivenessAnalyzer().analyze(vector) == 55
        assert CompetitivenessAnalyzer().analyze(best_vector()) == 95

    def test_recommendations_ordered_and_deduplicated(self):
        validation = FeatureValidation(issues=["No skills detected", "CV word count is too low"])
        recs = RecommendationEngine().generate(make_vector(), validation)

        assert [r.priority for r in recs] == sorted(r.priority for r in recs)
        types = [r.type for r in recs]
        assert len(types) == len(set(types))
        assert recs[0].recommendation_id == "improve_skills"
        assert "content" in types

    def test_strong_candidate_gets_no_gap_recommendations(self):
        vector = best_vector().model_copy(
            update={"cv_features": CVFeatures(keyword_density=0.9, word_count=500)}
        )
        assert RecommendationEngine().generate(vector) == []


class TestPredictorHealth:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("predictor_cls", [InterviewPredictor, OfferPredictor, SalaryPredictor, TimeToHirePredictor])
    async def test_healthy_predictors(self, predictor_cls):
        assert await predictor_cls(offline_client()).health_check() is True

    @pytest.mark.asyncio
    async def test_out_of_range_result_is_unhealthy(self, monkeypatch):
        predictor = InterviewPredictor(offline_client())
        monkeypatch.setattr(predictor, "_heuristic", lambda features, request=None: 1.5)
        assert await predictor.health_check() is False

    @pytest.mark.asyncio
    async def test_heuristic_error_is_unhealthy(self, monkeypatch):
        predictor = SalaryPredictor(offline_client())

        def broken(features, request=None):
            raise ValueError("bad coefficient table")

        monkeypatch.setattr(predictor, "_heuristic", broken)
        assert await predictor.health_check() is False
