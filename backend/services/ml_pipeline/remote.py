"""HTTP client for the remote outcome-scoring service.

Every failure mode (no credential, network error, timeout, non-2xx status,
malformed body) comes back as None so predictors can fall through to their
heuristic. Nothing here raises to the caller and nothing is retried.
"""

import asyncio
import logging
import math
from typing import Any

import aiohttp

from config import Settings, settings
from models.schemas import FeatureVector

logger = logging.getLogger(__name__)


class ScoringClient:
    def __init__(self, config: Settings = settings) -> None:
        self.endpoint = config.ml_api_endpoint.rstrip("/")
        self._api_key = config.ml_api_key
        self.timeout_seconds = config.ml_api_timeout_seconds
        self._session: aiohttp.ClientSession | None = None

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Service": "success-prediction",
        }

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
        return self._session

    async def _post(self, url: str, payload: dict) -> tuple[int, Any]:
        """POST JSON and return (status, decoded body or None)."""
        session = await self._get_session()
        async with session.post(url, headers=self._headers(), json=payload) as resp:
            if not 200 <= resp.status < 300:
                return resp.status, None
            return resp.status, await resp.json(content_type=None)

    async def score(self, outcome: str, features: FeatureVector) -> dict | None:
        """POST the feature vector to /predict/{outcome}; None on any failure."""
        if not self.configured:
            return None

        url = f"{self.endpoint}/predict/{outcome}"
        payload = {"features": features.model_dump(mode="json")}
        try:
            status, body = await asyncio.wait_for(self._post(url, payload), self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Remote %s scoring timed out after %.1fs", outcome, self.timeout_seconds)
            return None
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning("Remote %s scoring failed: %s", outcome, e)
            return None
        except Exception as e:
            logger.warning("Remote %s scoring raised unexpectedly: %s", outcome, e)
            return None

        if not 200 <= status < 300:
            logger.warning("Remote %s scoring returned status %d", outcome, status)
            return None
        if not isinstance(body, dict):
            logger.warning("Remote %s scoring returned malformed body", outcome)
            return None
        return body

    async def probability(
        self, outcome: str, features: FeatureVector, low: float, high: float
    ) -> float | None:
        """Remote probability clamped to [low, high], or None."""
        body = await self.score(outcome, features)
        if body is None:
            return None
        value = number_field(body, "probability")
        if value is None:
            logger.warning("Remote %s scoring body has no usable probability", outcome)
            return None
        return max(low, min(high, value))

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def number_field(body: dict, name: str) -> float | None:
    """A finite numeric field from a response body; bools and strings are rejected."""
    value = body.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)
