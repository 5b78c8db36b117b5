"""Interview probability predictor.

Remote score when the scoring service is configured and answers; otherwise a
weighted heuristic: additive match score, then derived-feature and behavior
modifiers, then qualification penalties, clamped to [0.01, 0.95].
"""

import logging

from models.requests import PredictionRequest
from models.schemas import BehaviorFeatures, CVFeatures, DerivedFeatures, FeatureVector, MarketFeatures
from services.ml_pipeline.base import BaseOutcomePredictor

logger = logging.getLogger(__name__)

MIN_PROBABILITY = 0.01
MAX_PROBABILITY = 0.95
BASE_RATE = 0.15  # industry average interview rate


def cv_quality_score(cv: CVFeatures) -> float:
    score = cv.readability_score * 0.4 + cv.formatting_score * 0.3
    if cv.word_count >= 200:
        score += 0.1
    if cv.achievements_count > 0:
        score += 0.1
    if cv.sections_count >= 4:
        score += 0.1
    return min(1.0, score)


def market_bonus(market: MarketFeatures) -> float:
    bonus = 0.0
    if market.demand_supply_ratio > 1.5:
        bonus += 0.3
    elif market.demand_supply_ratio > 1.2:
        bonus += 0.2
    elif market.demand_supply_ratio > 1.0:
        bonus += 0.1

    if market.industry_growth > 0.15:
        bonus += 0.2
    elif market.industry_growth > 0.08:
        bonus += 0.1

    bonus += market.economic_indicators * 0.2
    bonus *= market.seasonality
    return min(1.0, bonus)


def derived_modifier(derived: DerivedFeatures) -> float:
    multiplier = 1.0
    if derived.career_progression_score > 0.8:
        multiplier *= 1.15
    elif derived.career_progression_score > 0.6:
        multiplier *= 1.08
    if 0.7 < derived.stability_score < 0.95:
        multiplier *= 1.05
    if derived.adaptability_score > 0.8:
        multiplier *= 1.10
    if derived.innovation_indicator > 0.7:
        multiplier *= 1.05
    return multiplier


def behavior_modifier(behavior: BehaviorFeatures) -> float:
    multiplier = 1.0
    if behavior.application_timing <= 2:
        multiplier *= 1.10
    elif behavior.application_timing <= 7:
        multiplier *= 1.05
    elif behavior.application_timing > 30:
        multiplier *= 0.90
    if behavior.weekday_application:
        multiplier *= 1.03
    if behavior.cv_optimization_level > 0.8:
        multiplier *= 1.08
    elif behavior.cv_optimization_level > 0.6:
        multiplier *= 1.03
    if behavior.platform_engagement > 0.8:
        multiplier *= 1.05
    return multiplier


def qualification_penalty(derived: DerivedFeatures) -> float:
    multiplier = 1.0
    if derived.overqualification_score > 0.7:
        multiplier *= 0.85
    elif derived.overqualification_score > 0.5:
        multiplier *= 0.92
    if derived.underqualification_score > 0.7:
        multiplier *= 0.70
    elif derived.underqualification_score > 0.5:
        multiplier *= 0.85
    elif derived.underqualification_score > 0.3:
        multiplier *= 0.95
    return multiplier


class InterviewPredictor(BaseOutcomePredictor[float]):
    outcome = "interview"

    async def _remote(
        self, features: FeatureVector, request: PredictionRequest | None = None
    ) -> float | None:
        return await self._client.probability(self.outcome, features, MIN_PROBABILITY, MAX_PROBABILITY)

    def _is_valid(self, value: float) -> bool:
        return MIN_PROBABILITY <= value <= MAX_PROBABILITY

    def base_score(self, features: FeatureVector) -> float:
        """Additive weighted score before any modifier or penalty."""
        m = features.matching_features
        return (
            BASE_RATE
            + m.skill_match_percentage * 0.40
            + m.experience_relevance * 0.25
            + m.title_similarity * 0.15
            + m.education_match * 0.10
            + cv_quality_score(features.cv_features) * 0.05
            + market_bonus(features.market_features) * 0.05
        )

    def _heuristic(self, features: FeatureVector, request: PredictionRequest | None = None) -> float:
        score = self.base_score(features)
        score *= derived_modifier(features.derived_features)
        score *= behavior_modifier(features.behavior_features)
        score *= qualification_penalty(features.derived_features)
        return max(MIN_PROBABILITY, min(MAX_PROBABILITY, score))
