"""Market intelligence features from static industry/location tables.

Lookups are cached for 24 hours. Tables live in `coefficients.py`.
"""

import logging
import time
from collections.abc import Callable
from datetime import date

from config import Settings, settings
from models.requests import MarketContext
from models.schemas import MarketFeatures
from services.ml_pipeline.base import BaseFeatureService
from services.ml_pipeline.cache import TTLCache
from services.ml_pipeline.coefficients import (
    DEFAULT_COEFFICIENTS,
    CoefficientTable,
    lookup,
    normalize_industry,
)

logger = logging.getLogger(__name__)

DEFAULT_INDUSTRY_GROWTH = 0.05
DEFAULT_LOCATION_COMPETITIVENESS = 0.5
MARKET_CACHE_MAX_ENTRIES = 1000


class MarketFeatureService(BaseFeatureService):
    service_name = "market"

    def __init__(
        self,
        config: Settings = settings,
        coefficients: CoefficientTable = DEFAULT_COEFFICIENTS,
        today: Callable[[], date] = date.today,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._tables = coefficients.market
        self._today = today
        self._cache = TTLCache(
            ttl_seconds=config.market_cache_ttl_hours * 3600,
            max_size=MARKET_CACHE_MAX_ENTRIES,
            clock=clock,
            name="market",
        )

    async def extract_features(
        self,
        industry: str | None = None,
        location: str | None = None,
        market_context: MarketContext | None = None,
    ) -> MarketFeatures:
        growth = self.industry_growth(industry)
        competitiveness = self.location_competitiveness(location)
        seasonality = self.seasonality()

        if market_context is not None:
            if market_context.competition_level is not None:
                competitiveness = self._tables.competition_levels[market_context.competition_level]
            if market_context.seasonality is not None:
                seasonality = market_context.seasonality

        return MarketFeatures(
            industry_growth=growth,
            location_competitiveness=competitiveness,
            salary_competitiveness=self.salary_competitiveness(industry, location),
            demand_supply_ratio=self.demand_supply_ratio(industry, location),
            seasonality=seasonality,
            economic_indicators=self.economic_indicators(),
        )

    def _cached(self, key: str, compute: Callable[[], float]) -> float:
        value = self._cache.get(key)
        if value is None:
            value = compute()
            self._cache.set(key, value)
        return value

    def industry_growth(self, industry: str | None) -> float:
        if not industry:
            return DEFAULT_INDUSTRY_GROWTH
        normalized = normalize_industry(industry)
        return self._cached(
            f"industry_growth_{normalized}",
            lambda: lookup(self._tables.industry_growth, normalized, DEFAULT_INDUSTRY_GROWTH),
        )

    def location_competitiveness(self, location: str | None) -> float:
        if not location:
            return DEFAULT_LOCATION_COMPETITIVENESS
        return self._cached(
            f"location_comp_{location.lower().strip()}",
            lambda: lookup(self._tables.location_competitiveness, location, DEFAULT_LOCATION_COMPETITIVENESS),
        )

    def salary_competitiveness(self, industry: str | None, location: str | None) -> float:
        value = (self.industry_growth(industry) * 2 + self.location_competitiveness(location)) / 3
        return max(0.1, min(1.0, value))

    def demand_supply_ratio(self, industry: str | None, location: str | None) -> float:
        month = self._today().month

        def compute() -> float:
            ratio = self._tables.industry_demand_supply.get(normalize_industry(industry), 1.0)
            ratio *= lookup(self._tables.location_demand_multipliers, location, 1.0)
            ratio *= self._tables.monthly_demand_adjustment[month - 1]
            return max(0.1, min(3.0, ratio))

        return self._cached(f"demand_supply_{industry}_{location}_{month}", compute)

    def seasonality(self) -> float:
        quarter = (self._today().month - 1) // 3
        return self._tables.quarterly_seasonality[quarter]

    def economic_indicators(self) -> float:
        def compute() -> float:
            f = self._tables.economic_factors
            health = (
                (1 - f["unemployment_rate"]) * 0.3
                + f["gdp_growth"] * 5 * 0.25
                + max(0.0, 0.1 - f["inflation_rate"]) * 5 * 0.2
                + f["stock_market_performance"] * 2.5 * 0.25
            )
            return max(0.0, min(1.0, health))

        return self._cached("economic_indicators", compute)

    async def health_check(self) -> bool:
        try:
            features = await self.extract_features("technology", "San Francisco")
            return (
                features.industry_growth >= 0
                and features.location_competitiveness >= 0
                and features.demand_supply_ratio >= 0
            )
        except Exception as e:
            logger.warning("Market feature health check failed: %s", e)
            return False
