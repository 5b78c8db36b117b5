"""Offer probability predictor, clamped to [0.005, 0.85]."""

from models.requests import PredictionRequest
from models.schemas import DerivedFeatures, FeatureVector, MarketFeatures
from services.ml_pipeline.base import BaseOutcomePredictor

MIN_PROBABILITY = 0.005
MAX_PROBABILITY = 0.85
BASE_RATE = 0.08


def offer_market_bonus(market: MarketFeatures) -> float:
    bonus = 0.0
    if market.demand_supply_ratio > 2.0:
        bonus += 0.4
    elif market.demand_supply_ratio > 1.5:
        bonus += 0.3
    elif market.demand_supply_ratio > 1.2:
        bonus += 0.2
    elif market.demand_supply_ratio > 1.0:
        bonus += 0.1

    if market.industry_growth > 0.20:
        bonus += 0.3
    elif market.industry_growth > 0.15:
        bonus += 0.2
    elif market.industry_growth > 0.10:
        bonus += 0.1

    bonus += market.economic_indicators * 0.3
    return min(1.0, bonus)


def strength_modifier(derived: DerivedFeatures) -> float:
    multiplier = 1.0
    if derived.leadership_potential > 0.8:
        multiplier *= 1.25
    elif derived.leadership_potential > 0.6:
        multiplier *= 1.15
    if derived.innovation_indicator > 0.8:
        multiplier *= 1.20
    elif derived.innovation_indicator > 0.6:
        multiplier *= 1.10
    if derived.career_progression_score > 0.8:
        multiplier *= 1.18
    elif derived.career_progression_score > 0.6:
        multiplier *= 1.10
    if derived.adaptability_score > 0.8:
        multiplier *= 1.15
    elif derived.adaptability_score > 0.6:
        multiplier *= 1.08
    if derived.stability_score < 0.3:
        multiplier *= 0.80
    elif derived.stability_score > 0.9:
        multiplier *= 0.95
    return multiplier


def qualification_penalty(derived: DerivedFeatures) -> float:
    multiplier = 1.0
    if derived.underqualification_score > 0.8:
        multiplier *= 0.40
    elif derived.underqualification_score > 0.6:
        multiplier *= 0.65
    elif derived.underqualification_score > 0.4:
        multiplier *= 0.80
    if derived.overqualification_score > 0.8:
        multiplier *= 0.75
    elif derived.overqualification_score > 0.6:
        multiplier *= 0.88
    return multiplier


def competition_adjustment(market: MarketFeatures) -> float:
    if market.location_competitiveness > 0.9:
        return 0.85
    if market.location_competitiveness > 0.8:
        return 0.92
    if market.location_competitiveness < 0.4:
        return 1.10
    return 1.0


class OfferPredictor(BaseOutcomePredictor[float]):
    outcome = "offer"

    async def _remote(
        self, features: FeatureVector, request: PredictionRequest | None = None
    ) -> float | None:
        return await self._client.probability(self.outcome, features, MIN_PROBABILITY, MAX_PROBABILITY)

    def _is_valid(self, value: float) -> bool:
        return MIN_PROBABILITY <= value <= MAX_PROBABILITY

    def base_score(self, features: FeatureVector) -> float:
        m = features.matching_features
        # quadratic skill term rewards strong matches disproportionately
        return (
            BASE_RATE
            + m.skill_match_percentage ** 2 * 0.30
            + m.experience_relevance * 0.25
            + m.education_match * 0.15
            + m.title_similarity * 0.10
            + m.company_fit * 0.10
            + offer_market_bonus(features.market_features) * 0.10
        )

    def _heuristic(self, features: FeatureVector, request: PredictionRequest | None = None) -> float:
        score = self.base_score(features)
        score *= strength_modifier(features.derived_features)
        score *= qualification_penalty(features.derived_features)
        score *= competition_adjustment(features.market_features)
        score *= 0.5 + features.matching_features.salary_alignment * 0.5
        return max(MIN_PROBABILITY, min(MAX_PROBABILITY, score))
