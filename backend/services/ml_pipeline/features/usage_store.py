"""Read-only access to a user's platform usage history."""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime

from models.schemas import ApplicationRecord, SessionRecord, UserProfile


class UsageHistoryStore(ABC):
    """Datastore interface consumed by the behavior extractor. Never written to."""

    @abstractmethod
    async def recent_applications(self, user_id: str, limit: int) -> list[ApplicationRecord]:
        """Most recent applications first."""

    @abstractmethod
    async def application_count(self, user_id: str) -> int: ...

    @abstractmethod
    async def cv_versions(self, user_id: str, limit: int) -> list[datetime]:
        """Creation times of saved CV versions, newest first."""

    @abstractmethod
    async def optimization_activity_count(self, user_id: str, limit: int) -> int: ...

    @abstractmethod
    async def sessions(self, user_id: str, since: datetime) -> list[SessionRecord]: ...

    @abstractmethod
    async def feature_usage(self, user_id: str, since: datetime) -> list[str]:
        """Names of platform features used since the given time (may repeat)."""

    @abstractmethod
    async def user_profile(self, user_id: str) -> UserProfile | None: ...


class InMemoryUsageHistoryStore(UsageHistoryStore):
    """Dictionary-backed store for tests and single-process deployments."""

    def __init__(self) -> None:
        self._applications: dict[str, list[ApplicationRecord]] = defaultdict(list)
        self._cv_versions: dict[str, list[datetime]] = defaultdict(list)
        self._optimizations: dict[str, int] = defaultdict(int)
        self._sessions: dict[str, list[SessionRecord]] = defaultdict(list)
        self._feature_usage: dict[str, list[tuple[datetime, str]]] = defaultdict(list)
        self._profiles: dict[str, UserProfile] = {}

    # --- seeding ---

    def add_application(self, user_id: str, record: ApplicationRecord) -> None:
        self._applications[user_id].append(record)

    def add_cv_version(self, user_id: str, created_at: datetime) -> None:
        self._cv_versions[user_id].append(created_at)

    def add_optimization_activity(self, user_id: str) -> None:
        self._optimizations[user_id] += 1

    def add_session(self, user_id: str, record: SessionRecord) -> None:
        self._sessions[user_id].append(record)

    def add_feature_usage(self, user_id: str, feature_name: str, timestamp: datetime) -> None:
        self._feature_usage[user_id].append((timestamp, feature_name))

    def set_profile(self, user_id: str, profile: UserProfile) -> None:
        self._profiles[user_id] = profile

    # --- UsageHistoryStore ---

    async def recent_applications(self, user_id: str, limit: int) -> list[ApplicationRecord]:
        records = sorted(self._applications.get(user_id, []), key=lambda r: r.created_at, reverse=True)
        return records[:limit]

    async def application_count(self, user_id: str) -> int:
        return len(self._applications.get(user_id, []))

    async def cv_versions(self, user_id: str, limit: int) -> list[datetime]:
        return sorted(self._cv_versions.get(user_id, []), reverse=True)[:limit]

    async def optimization_activity_count(self, user_id: str, limit: int) -> int:
        return min(self._optimizations.get(user_id, 0), limit)

    async def sessions(self, user_id: str, since: datetime) -> list[SessionRecord]:
        return [s for s in self._sessions.get(user_id, []) if s.login_time >= since]

    async def feature_usage(self, user_id: str, since: datetime) -> list[str]:
        return [name for ts, name in self._feature_usage.get(user_id, []) if ts >= since]

    async def user_profile(self, user_id: str) -> UserProfile | None:
        return self._profiles.get(user_id)
