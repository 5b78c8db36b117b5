"""Salary range predictor."""

import logging

from models.requests import PredictionRequest
from models.responses import (
    ConfidenceInterval,
    IndustryBenchmark,
    RegionalAdjustment,
    SalaryFactor,
    SalaryPrediction,
    SalaryRange,
)
from models.schemas import FeatureVector
from services.ml_pipeline.base import BaseOutcomePredictor
from services.ml_pipeline.coefficients import lookup, normalize_industry
from services.ml_pipeline.remote import number_field

logger = logging.getLogger(__name__)

RANGE_LOW, RANGE_HIGH = 0.85, 1.2
INTERVAL_LOW, INTERVAL_HIGH = 0.75, 1.35

# (median / industry median ratio floor, percentile)
PERCENTILE_BANDS = [(1.5, 90), (1.3, 80), (1.15, 70), (1.0, 60), (0.9, 40), (0.8, 30)]


def percentile_rank(median: float, industry_median: float) -> int:
    ratio = median / industry_median if industry_median else 1.0
    for floor, percentile in PERCENTILE_BANDS:
        if ratio >= floor:
            return percentile
    return 20


class SalaryPredictor(BaseOutcomePredictor[SalaryPrediction]):
    outcome = "salary"

    def industry_base(self, industry: str | None) -> int:
        table = self.coefficients.salary
        return table.industry_base.get(normalize_industry(industry), table.default_base)

    def _build(
        self,
        median: float,
        request: PredictionRequest | None,
        factors: list[SalaryFactor],
        low: float | None = None,
        high: float | None = None,
    ) -> SalaryPrediction:
        industry = request.industry if request else None
        location = request.location if request else None
        median = round(median)
        low = round(low) if low is not None else round(median * RANGE_LOW)
        high = round(high) if high is not None else round(median * RANGE_HIGH)
        industry_median = self.industry_base(industry)
        location_factor = lookup(self.coefficients.salary.location_multipliers, location, 1.0)
        return SalaryPrediction(
            predicted_range=SalaryRange(min=low, max=high, median=median),
            confidence_interval=ConfidenceInterval(
                lower=round(median * INTERVAL_LOW), upper=round(median * INTERVAL_HIGH)
            ),
            industry_benchmark=IndustryBenchmark(
                industry_median=industry_median,
                percentile_rank=percentile_rank(median, industry_median),
            ),
            regional_adjustment=RegionalAdjustment(
                base_location=location or "US",
                adjustment_factor=location_factor,
                cost_of_living_index=round(100 * location_factor),
            ),
            factors=factors,
        )

    async def _remote(
        self, features: FeatureVector, request: PredictionRequest | None = None
    ) -> SalaryPrediction | None:
        body = await self._client.score(self.outcome, features)
        if body is None:
            return None
        median = number_field(body, "median")
        if median is None or median <= 0:
            logger.warning("Remote salary body has no usable median")
            return None
        low = number_field(body, "min")
        high = number_field(body, "max")
        if low is None or high is None or not low <= median <= high:
            low = high = None
        return self._build(median, request, [], low, high)

    def _is_valid(self, value: SalaryPrediction) -> bool:
        salary_range = value.predicted_range
        return 0 < salary_range.min <= salary_range.median <= salary_range.max

    def _heuristic(self, features: FeatureVector, request: PredictionRequest | None = None) -> SalaryPrediction:
        cv = features.cv_features
        table = self.coefficients.salary
        base = self.industry_base(request.industry if request else None)

        experience_multiplier = 1 + cv.experience_years * table.experience_rate
        level_index = max(1, min(len(table.education_multipliers), cv.education_level)) - 1
        education_multiplier = table.education_multipliers[level_index]
        skills_multiplier = 1 + min(table.skill_cap, cv.skills_count * table.skill_rate)

        median = base * experience_multiplier * education_multiplier * skills_multiplier
        factors = [
            SalaryFactor(
                factor="experience",
                impact=round(experience_multiplier - 1, 3),
                description="Years of relevant experience",
            ),
            SalaryFactor(
                factor="education",
                impact=round(education_multiplier - 1, 3),
                description="Highest education level",
            ),
            SalaryFactor(
                factor="skills",
                impact=round(skills_multiplier - 1, 3),
                description="Breadth of listed skills",
            ),
        ]
        return self._build(median, request, factors)
