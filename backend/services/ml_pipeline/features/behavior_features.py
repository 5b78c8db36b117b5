"""User behavior features from platform usage history.

Each signal is read independently; if the store fails for one signal, that
signal alone falls back to its documented default. Results are cached per
user for 30 minutes.
"""

import asyncio
import logging
import math
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import numpy as np

from config import Settings, settings
from models.schemas import BehaviorFeatures
from services.ml_pipeline.base import BaseFeatureService
from services.ml_pipeline.cache import TTLCache
from services.ml_pipeline.features.usage_store import InMemoryUsageHistoryStore, UsageHistoryStore

logger = logging.getLogger(__name__)

BEHAVIOR_CACHE_MAX_ENTRIES = 500
ACTIVITY_WINDOW_DAYS = 30

# Method codes
METHOD_DIRECT = 1
METHOD_PLATFORM = 2
METHOD_REFERRAL = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BehaviorFeatureService(BaseFeatureService):
    service_name = "behavior"

    def __init__(
        self,
        store: UsageHistoryStore | None = None,
        config: Settings = settings,
        now: Callable[[], datetime] = _utcnow,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store if store is not None else InMemoryUsageHistoryStore()
        self._now = now
        self._cache = TTLCache(
            ttl_seconds=config.behavior_cache_ttl_minutes * 60,
            max_size=BEHAVIOR_CACHE_MAX_ENTRIES,
            clock=clock,
            name="behavior",
        )

    async def extract_features(self, user_id: str) -> BehaviorFeatures:
        cache_key = f"behavior_{user_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached.model_copy()

        features = BehaviorFeatures(
            application_timing=await self._application_timing(user_id),
            weekday_application=await self._weekday_application(user_id),
            time_of_day=await self._time_of_day(user_id),
            application_method=await self._application_method(user_id),
            cv_optimization_level=await self._cv_optimization_level(user_id),
            platform_engagement=await self._platform_engagement(user_id),
            previous_applications=await self._previous_applications(user_id),
        )
        self._cache.set(cache_key, features)
        return features

    async def _application_timing(self, user_id: str) -> float:
        """Mean days between job posting and application."""
        try:
            applications = await self._store.recent_applications(user_id, limit=10)
            gaps = [
                max(0, math.ceil((a.applied_date - a.job_posted_date).total_seconds() / 86400))
                for a in applications
                if a.job_posted_date and a.applied_date
            ]
        except Exception as e:
            logger.warning("Application timing unavailable for %s: %s", user_id, e)
            return 1.0
        return float(np.mean(gaps)) if gaps else 1.0

    async def _weekday_application(self, user_id: str) -> bool:
        try:
            applications = await self._store.recent_applications(user_id, limit=5)
            weekdays = sum(1 for a in applications if (a.applied_date or a.created_at).weekday() < 5)
        except Exception as e:
            logger.warning("Application weekdays unavailable for %s: %s", user_id, e)
            return True
        if not applications:
            return True
        return weekdays / len(applications) > 0.5

    async def _time_of_day(self, user_id: str) -> int:
        try:
            applications = await self._store.recent_applications(user_id, limit=10)
            hours = [a.created_at.hour for a in applications]
        except Exception as e:
            logger.warning("Application hours unavailable for %s: %s", user_id, e)
            return 14
        if not hours:
            return 14
        return round(sum(hours) / len(hours))

    async def _application_method(self, user_id: str) -> int:
        try:
            profile = await self._store.user_profile(user_id)
        except Exception as e:
            logger.warning("User profile unavailable for %s: %s", user_id, e)
            return METHOD_DIRECT
        if profile is None:
            return METHOD_DIRECT
        if profile.referral_count > 0:
            return METHOD_REFERRAL
        if profile.platform_applications > profile.direct_applications:
            return METHOD_PLATFORM
        return METHOD_DIRECT

    async def _cv_optimization_level(self, user_id: str) -> float:
        try:
            versions = await self._store.cv_versions(user_id, limit=10)
            if not versions:
                return 0.3
            cutoff = self._now() - timedelta(days=ACTIVITY_WINDOW_DAYS)
            recent = sum(1 for created in versions if created > cutoff)

            score = 0.3
            if len(versions) > 5:
                score += 0.2
            if recent > 2:
                score += 0.3
            if await self._store.optimization_activity_count(user_id, limit=5) > 0:
                score += 0.2
            return min(1.0, score)
        except Exception as e:
            logger.warning("CV optimization history unavailable for %s: %s", user_id, e)
            return 0.5

    async def _platform_engagement(self, user_id: str) -> float:
        since = self._now() - timedelta(days=ACTIVITY_WINDOW_DAYS)
        try:
            logins, duration, features_used = await asyncio.gather(
                self._login_count(user_id, since),
                self._average_session_minutes(user_id, since),
                self._distinct_features_used(user_id, since),
            )
        except Exception as e:
            logger.warning("Engagement data unavailable for %s: %s", user_id, e)
            return 0.5
        score = (
            min(0.3, logins / 30 * 0.3)
            + min(0.3, duration / 30 * 0.3)
            + min(0.4, features_used / 10 * 0.4)
        )
        return min(1.0, score)

    async def _login_count(self, user_id: str, since: datetime) -> int:
        try:
            return len(await self._store.sessions(user_id, since))
        except Exception as e:
            logger.warning("Login count unavailable for %s: %s", user_id, e)
            return 10

    async def _average_session_minutes(self, user_id: str, since: datetime) -> float:
        try:
            sessions = await self._store.sessions(user_id, since)
            durations = []
            for s in sessions:
                if s.duration_minutes is not None:
                    durations.append(s.duration_minutes)
                elif s.logout_time is not None:
                    durations.append((s.logout_time - s.login_time).total_seconds() / 60)
        except Exception as e:
            logger.warning("Session durations unavailable for %s: %s", user_id, e)
            return 15.0
        return float(np.mean(durations)) if durations else 15.0

    async def _distinct_features_used(self, user_id: str, since: datetime) -> int:
        try:
            used = await self._store.feature_usage(user_id, since)
        except Exception as e:
            logger.warning("Feature usage unavailable for %s: %s", user_id, e)
            return 3
        return len(set(used)) if used else 3

    async def _previous_applications(self, user_id: str) -> int:
        try:
            return await self._store.application_count(user_id)
        except Exception as e:
            logger.warning("Application count unavailable for %s: %s", user_id, e)
            return 0

    def invalidate(self, user_id: str) -> None:
        self._cache.delete(f"behavior_{user_id}")

    async def health_check(self) -> bool:
        try:
            features = await self.extract_features("health_check_user")
            self.invalidate("health_check_user")
            return isinstance(features.weekday_application, bool)
        except Exception as e:
            logger.warning("Behavior feature health check failed: %s", e)
            return False
