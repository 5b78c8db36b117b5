"""Time-to-hire predictor with a five-phase breakdown."""

import logging
from collections.abc import Callable
from datetime import date

from models.requests import PredictionRequest
from models.responses import DayRange, PhaseBreakdown, TimeToHirePrediction
from models.schemas import FeatureVector
from services.ml_pipeline.base import BaseOutcomePredictor
from services.ml_pipeline.coefficients import DEFAULT_COEFFICIENTS, CoefficientTable, normalize_industry
from services.ml_pipeline.remote import ScoringClient, number_field

logger = logging.getLogger(__name__)

RANGE_LOW, RANGE_HIGH = 0.8, 1.3
HEURISTIC_CONFIDENCE = 0.6
REMOTE_CONFIDENCE = 0.75
NEUTRAL_COMPLEXITY = 0.5


def season_for(month: int) -> str:
    if month == 12 or month <= 2:
        return "winter"
    if month <= 5:
        return "spring"
    if month <= 8:
        return "summer"
    return "fall"


def split_phases(median_days: int, shares: dict[str, float]) -> PhaseBreakdown:
    """Proportional phases; negotiation absorbs rounding so the total equals median_days."""
    application = round(median_days * shares["application"])
    screening = round(median_days * shares["screening"])
    interviews = round(median_days * shares["interviews"])
    decision = round(median_days * shares["decision"])
    negotiation = max(0, median_days - application - screening - interviews - decision)
    return PhaseBreakdown(
        application=application,
        screening=screening,
        interviews=interviews,
        decision=decision,
        negotiation=negotiation,
    )


class TimeToHirePredictor(BaseOutcomePredictor[TimeToHirePrediction]):
    outcome = "time-to-hire"

    def __init__(
        self,
        client: ScoringClient | None = None,
        coefficients: CoefficientTable = DEFAULT_COEFFICIENTS,
        today: Callable[[], date] = date.today,
    ) -> None:
        super().__init__(client, coefficients)
        self._today = today

    def role_complexity(self, job_description: str) -> float:
        lower = job_description.lower()
        indicators = self.coefficients.time_to_hire.complexity_indicators
        matches = sum(1 for indicator in indicators if indicator in lower)
        return min(1.0, matches / 5)

    def company_size_factor(self, job_description: str) -> float:
        table = self.coefficients.time_to_hire
        lower = job_description.lower()
        if any(marker in lower for marker in table.startup_markers):
            return table.startup_factor
        if any(marker in lower for marker in table.large_company_markers):
            return table.large_company_factor
        return 1.0

    def _build(self, median_days: float, confidence: float) -> TimeToHirePrediction:
        median = max(1, round(median_days))
        return TimeToHirePrediction(
            estimated_days=DayRange(
                min=max(1, round(median * RANGE_LOW)),
                median=median,
                max=round(median * RANGE_HIGH),
            ),
            phase_breakdown=split_phases(median, self.coefficients.time_to_hire.phase_shares),
            current_season=season_for(self._today().month),
            confidence=confidence,
        )

    async def _remote(
        self, features: FeatureVector, request: PredictionRequest | None = None
    ) -> TimeToHirePrediction | None:
        body = await self._client.score(self.outcome, features)
        if body is None:
            return None
        median_days = number_field(body, "median_days")
        if median_days is None or median_days <= 0:
            logger.warning("Remote time-to-hire body has no usable median_days")
            return None
        return self._build(median_days, REMOTE_CONFIDENCE)

    def _is_valid(self, value: TimeToHirePrediction) -> bool:
        days = value.estimated_days
        return 0 < days.min <= days.median <= days.max and value.phase_breakdown.total() == days.median

    def _heuristic(
        self, features: FeatureVector, request: PredictionRequest | None = None
    ) -> TimeToHirePrediction:
        table = self.coefficients.time_to_hire
        industry = normalize_industry(request.industry if request else None)
        base_days = table.industry_base_days.get(industry, table.default_days)

        if request is not None:
            complexity = self.role_complexity(request.job_description)
            size_factor = self.company_size_factor(request.job_description)
        else:
            complexity, size_factor = NEUTRAL_COMPLEXITY, 1.0

        median_days = base_days * (0.8 + complexity * 0.4) * size_factor
        return self._build(median_days, HEURISTIC_CONFIDENCE)
