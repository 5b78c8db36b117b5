"""Two-tier TTL cache for predictions and feature vectors.

Entries expire lazily on read and are also swept by a periodic asyncio task.
Each tier is bounded: once a write pushes it past `max_cache_size`, the
oldest entries (by write time, not access time) are dropped until the tier
is back to 80% of the bound.

The backing store is pluggable. `InMemoryCacheStore` is per-process; a shared
store can be substituted by implementing `CacheStore`.
"""

import asyncio
import contextlib
import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from config import Settings, settings
from models.requests import CategorizedSkills, ParsedCV, PredictionRequest
from models.responses import SuccessPrediction
from models.schemas import FeatureVector

logger = logging.getLogger(__name__)

EVICTION_TARGET_RATIO = 0.8


@dataclass
class CacheEntry:
    data: Any
    timestamp: float  # epoch seconds at write time
    expires_at: float


class CacheStore(ABC):
    """Key/value storage behind a TTLCache."""

    @abstractmethod
    def get(self, key: str) -> CacheEntry | None: ...

    @abstractmethod
    def set(self, key: str, entry: CacheEntry) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def items(self) -> Iterator[tuple[str, CacheEntry]]: ...

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def __len__(self) -> int: ...


class InMemoryCacheStore(CacheStore):
    def __init__(self) -> None:
        self._data: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        return self._data.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        self._data[key] = entry

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self) -> Iterator[tuple[str, CacheEntry]]:
        # snapshot so callers may delete while iterating
        return iter(list(self._data.items()))

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


class TTLCache:
    """Size-bounded cache with per-entry expiry."""

    def __init__(
        self,
        ttl_seconds: float,
        max_size: int,
        store: CacheStore | None = None,
        clock: Callable[[], float] = time.time,
        name: str = "cache",
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.name = name
        self._store = store if store is not None else InMemoryCacheStore()
        self._clock = clock

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            self._store.delete(key)
            return None
        return entry.data

    def set(self, key: str, data: Any) -> None:
        now = self._clock()
        self._store.set(key, CacheEntry(data=data, timestamp=now, expires_at=now + self.ttl_seconds))
        if len(self._store) > self.max_size:
            self._evict_oldest()

    def delete(self, key: str) -> None:
        self._store.delete(key)

    def _evict_oldest(self) -> int:
        target = int(self.max_size * EVICTION_TARGET_RATIO)
        # sorted() is stable, so equal timestamps keep insertion order
        by_age = sorted(self._store.items(), key=lambda item: item[1].timestamp)
        excess = len(by_age) - target
        for key, _ in by_age[:excess]:
            self._store.delete(key)
        logger.info("Evicted %d entries from %s cache", max(excess, 0), self.name)
        return max(excess, 0)

    def cleanup_expired(self) -> int:
        now = self._clock()
        removed = 0
        for key, entry in self._store.items():
            if now > entry.expires_at:
                self._store.delete(key)
                removed += 1
        return removed

    def remove_where(self, predicate: Callable[[Any], bool]) -> int:
        removed = 0
        for key, entry in self._store.items():
            if predicate(entry.data):
                self._store.delete(key)
                removed += 1
        return removed

    def values(self) -> list[Any]:
        return [entry.data for _, entry in self._store.items()]

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


# ---------------------------------------------------------------------------
# Cache fingerprints
# ---------------------------------------------------------------------------

def cv_signature(cv: ParsedCV) -> dict:
    """Low-cardinality CV summary. Distinct CVs may share a signature."""
    skills = cv.skills.model_dump() if isinstance(cv.skills, CategorizedSkills) else list(cv.skills)
    return {
        "experience": len(cv.experience),
        "skills": skills,
        "education": len(cv.education),
        "summary": cv.personal_info.summary[:100],
    }


def cv_hash(cv: ParsedCV) -> str:
    raw = json.dumps(cv_signature(cv), separators=(",", ":"))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]


def prediction_key(request: PredictionRequest) -> str:
    return f"pred_{request.user_id}_{request.job_id}_{cv_hash(request.cv)}_{request.target_role or 'default'}"


def feature_key(request: PredictionRequest) -> str:
    return f"feat_{request.job_id}_{cv_hash(request.cv)}_{request.industry or 'default'}"


class PredictionCache:
    """Prediction (24h) and feature (6h) caches owned by one orchestrator."""

    def __init__(
        self,
        config: Settings = settings,
        prediction_store: CacheStore | None = None,
        feature_store: CacheStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self.predictions = TTLCache(
            ttl_seconds=config.prediction_cache_ttl_hours * 3600,
            max_size=config.max_cache_size,
            store=prediction_store,
            clock=clock,
            name="prediction",
        )
        self.features = TTLCache(
            ttl_seconds=config.feature_cache_ttl_hours * 3600,
            max_size=config.max_cache_size,
            store=feature_store,
            clock=clock,
            name="feature",
        )
        self._cleanup_task: asyncio.Task | None = None

    def get(self, request: PredictionRequest) -> SuccessPrediction | None:
        key = prediction_key(request)
        cached = self.predictions.get(key)
        if cached is None:
            logger.debug("Prediction cache miss: %s", key)
            return None
        logger.info("Prediction cache hit: %s", key)
        return cached.model_copy(deep=True)

    def set(self, request: PredictionRequest, prediction: SuccessPrediction) -> None:
        self.predictions.set(prediction_key(request), prediction.model_copy(deep=True))

    def get_features(self, request: PredictionRequest) -> FeatureVector | None:
        cached = self.features.get(feature_key(request))
        return cached.model_copy(deep=True) if cached is not None else None

    def set_features(self, request: PredictionRequest, features: FeatureVector) -> None:
        self.features.set(feature_key(request), features.model_copy(deep=True))

    def invalidate_user(self, user_id: str) -> int:
        """Drop every entry, in both tiers, whose payload belongs to user_id."""
        def belongs(data: Any) -> bool:
            return getattr(data, "user_id", None) == user_id

        removed = self.predictions.remove_where(belongs) + self.features.remove_where(belongs)
        logger.info("Invalidated %d cache entries for user %s", removed, user_id)
        return removed

    def clear(self) -> None:
        self.predictions.clear()
        self.features.clear()

    def cleanup_expired(self) -> int:
        removed = self.predictions.cleanup_expired() + self.features.cleanup_expired()
        if removed:
            logger.info("Cache cleanup removed %d expired entries", removed)
        return removed

    def start_cleanup(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cleanup(self) -> None:
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._cleanup_task
        self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.cache_cleanup_interval_seconds)
            try:
                self.cleanup_expired()
            except Exception as e:
                logger.warning("Cache cleanup failed: %s", e)

    def get_stats(self) -> dict:
        memory = sum(len(v.model_dump_json()) for v in self.predictions.values())
        memory += sum(len(v.model_dump_json()) for v in self.features.values())
        return {
            "prediction_cache_size": len(self.predictions),
            "feature_cache_size": len(self.features),
            "max_cache_size": self._config.max_cache_size,
            "memory_usage_bytes": memory,
        }

    def health_check(self) -> bool:
        try:
            self.get_stats()
            return True
        except Exception as e:
            logger.warning("Cache health check failed: %s", e)
            return False
