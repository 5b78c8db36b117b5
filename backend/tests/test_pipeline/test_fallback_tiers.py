"""Tests for the strategy chain and the heuristic and minimal prediction tiers."""

from datetime import date

import pytest

from models.requests import Education, Experience, ParsedCV
from services.ml_pipeline.base import MODEL_VERSION
from services.ml_pipeline.fallback import (
    STRATEGY_FAILED,
    FallbackManager,
    HeuristicPredictor,
    PredictionPipelineError,
    PredictionTier,
    StrategyChain,
    minimal_prediction,
)


async def _failed(request):
    return STRATEGY_FAILED


async def _raises(request):
    raise RuntimeError("boom")


def _returns(value):
    async def strategy(request):
        return value
    return strategy


class TestStrategyChain:
    @pytest.mark.asyncio
    async def test_first_success_wins(self, request_factory):
        chain = StrategyChain([
            (PredictionTier.REMOTE, _returns("remote")),
            (PredictionTier.HEURISTIC_FULL, _returns("heuristic")),
        ])
        assert await chain.run(request_factory()) == (PredictionTier.REMOTE, "remote")

    @pytest.mark.asyncio
    async def test_sentinel_and_exceptions_fall_through(self, request_factory):
        chain = StrategyChain([
            (PredictionTier.REMOTE, _raises),
            (PredictionTier.HEURISTIC_FULL, _failed),
            (PredictionTier.HEURISTIC_MINIMAL, _returns("minimal")),
        ])
        assert await chain.run(request_factory()) == (PredictionTier.HEURISTIC_MINIMAL, "minimal")

    @pytest.mark.asyncio
    async def test_falsy_result_is_still_a_result(self, request_factory):
        chain = StrategyChain([(PredictionTier.REMOTE, _returns(None))])
        assert await chain.run(request_factory()) == (PredictionTier.REMOTE, None)

    @pytest.mark.asyncio
    async def test_all_failed_raises(self, request_factory):
        chain = StrategyChain([(PredictionTier.REMOTE, _raises), (PredictionTier.HEURISTIC_FULL, _failed)])
        with pytest.raises(PredictionPipelineError, match="failed"):
            await chain.run(request_factory())


class TestHeuristicPredictor:
    def setup_method(self):
        self.predictor = HeuristicPredictor(today=lambda: date(2024, 7, 1))

    def test_signals(self, request_factory):
        request = request_factory()
        # python, django, postgresql, docker, kubernetes covered; "api" is not
        assert self.predictor.skill_match(request.cv, request.job_description) == pytest.approx(5 / 6)
        assert self.predictor.required_years(request.job_description) == 5
        assert self.predictor.required_years("3 years experience in Go") == 3
        assert self.predictor.cv_quality(request.cv) == pytest.approx(1.0)
        assert self.predictor.title_match(request.cv, request.job_description) == pytest.approx(1 / 3)
        assert self.predictor.education_match(request.cv, request.job_description) == 1.0
        assert self.predictor.education_match(ParsedCV(), request.job_description) == 0.5

    def test_full_prediction(self, request_factory):
        prediction = self.predictor.predict(request_factory())

        assert 0.02 <= prediction.interview_probability <= 0.85
        assert 0.01 <= prediction.offer_probability <= 0.70
        assert prediction.offer_probability < prediction.interview_probability
        assert prediction.hire_probability == pytest.approx(prediction.offer_probability * 0.8)
        assert prediction.confidence.overall == 0.6
        assert prediction.confidence.salary_confidence == 0.5
        assert prediction.model_metadata.model_version == MODEL_VERSION
        assert prediction.time_to_hire.current_season == "summer"
        assert prediction.time_to_hire.phase_breakdown.total() == prediction.time_to_hire.estimated_days.median
        assert prediction.prediction_id.startswith("pred_")

    def test_salary_uses_location_multiplier(self, request_factory):
        local = self.predictor.predict_salary(request_factory(location=None))
        sf = self.predictor.predict_salary(request_factory(location="San Francisco"))
        assert sf.predicted_range.median > local.predicted_range.median
        assert sf.regional_adjustment.adjustment_factor > 1.0
        assert local.predicted_range.min == round(local.predicted_range.median * 0.8)
        assert local.predicted_range.max == round(local.predicted_range.median * 1.25)
        assert local.industry_benchmark.industry_median == 95000

    def test_missing_industry_defaults_to_technology(self, request_factory):
        salary = self.predictor.predict_salary(request_factory(industry=None))
        assert salary.industry_benchmark.industry_median == 85000

    def test_weak_candidate_gets_basic_recommendations(self, request_factory):
        request = request_factory(cv=ParsedCV(skills=["Excel"]))
        ids = [r.recommendation_id for r in self.predictor.basic_recommendations(request)]
        assert ids == ["improve_skills", "highlight_experience"]

    def test_health_check(self):
        assert self.predictor.health_check() is True


class TestMinimalPrediction:
    def test_empty_cv(self, request_factory):
        prediction = minimal_prediction(request_factory(cv=ParsedCV()))

        assert prediction.interview_probability == pytest.approx(0.12)
        assert prediction.offer_probability == pytest.approx(0.04)
        assert prediction.salary_prediction.predicted_range.median == 65000
        assert prediction.time_to_hire.estimated_days.median == 30
        assert prediction.time_to_hire.phase_breakdown.total() == 30
        assert prediction.confidence.overall == 0.3
        assert prediction.recommendations == []

    def test_signals_raise_the_floor(self, request_factory):
        cv = ParsedCV(
            experience=[Experience(position="Engineer", start_date="2015-01", end_date="2021-01")],
            skills=[f"skill{i}" for i in range(10)],
            education=[Education(degree="BSc")],
        )
        prediction = minimal_prediction(request_factory(cv=cv))

        assert prediction.interview_probability == pytest.approx(0.12 + 0.10 + 0.06 + 0.03)
        assert prediction.offer_probability == pytest.approx(0.04 + 0.19 * 0.4)
        assert prediction.hire_probability == pytest.approx(prediction.offer_probability * 0.8)
        assert prediction.salary_prediction.predicted_range.median == round(65000 * 1.18)


class TestFallbackManager:
    @pytest.mark.asyncio
    async def test_heuristic_tier_first(self, request_factory):
        prediction = await FallbackManager(HeuristicPredictor()).generate(request_factory())
        assert prediction.confidence.overall == 0.6

    @pytest.mark.asyncio
    async def test_minimal_when_heuristic_raises(self, request_factory, monkeypatch):
        heuristic = HeuristicPredictor()

        def broken(request):
            raise ValueError("bad coefficients")

        monkeypatch.setattr(heuristic, "predict", broken)
        prediction = await FallbackManager(heuristic).generate(request_factory())
        assert prediction.confidence.overall == 0.3

    def test_tier_order(self):
        tiers = [tier for tier, _ in FallbackManager().strategies()]
        assert tiers == [PredictionTier.HEURISTIC_FULL, PredictionTier.HEURISTIC_MINIMAL]
