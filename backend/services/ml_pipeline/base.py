"""Abstract base classes for feature services and outcome predictors."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar
import logging
import uuid

from models.requests import PredictionRequest
from models.schemas import CVFeatures, DerivedFeatures, FeatureVector, MarketFeatures, MatchingFeatures
from services.ml_pipeline.coefficients import DEFAULT_COEFFICIENTS, CoefficientTable
from services.ml_pipeline.remote import ScoringClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

MODEL_VERSION = "success-predictor-2.0"
# hire probability = offer probability * acceptance rate
HIRE_CONVERSION = 0.8

SOURCE_REMOTE = "remote"
SOURCE_HEURISTIC = "heuristic"


def new_prediction_id() -> str:
    return f"pred_{uuid.uuid4().hex}"


def health_check_vector() -> FeatureVector:
    """Mid-range candidate used to smoke-test the local scoring paths."""
    return FeatureVector(
        user_id="health_check",
        job_id="health_check",
        extraction_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        cv_features=CVFeatures(
            word_count=400, sections_count=5, skills_count=10, experience_years=5,
            education_level=3, projects_count=2, achievements_count=3,
            keyword_density=0.5, readability_score=0.7, formatting_score=0.8,
        ),
        matching_features=MatchingFeatures(
            skill_match_percentage=0.7, experience_relevance=0.8, education_match=0.9,
            industry_experience=0.6, location_match=1.0, salary_alignment=0.8,
            title_similarity=0.7, company_fit=0.6,
        ),
        market_features=MarketFeatures(),
        derived_features=DerivedFeatures(
            career_progression_score=0.6, stability_score=0.7, adaptability_score=0.5,
            leadership_potential=0.4, innovation_indicator=0.3,
        ),
    )


class BaseFeatureService(ABC):
    """Computes one named group of the feature vector.

    Subclasses must implement:
        - service_name: identifier used in logs and health reports
        - extract_features(...): return the group's Pydantic model
    """

    service_name: str = ""

    @abstractmethod
    async def extract_features(self, *args: Any, **kwargs: Any) -> Any:
        """Extract this service's feature group."""

    async def health_check(self) -> bool:
        return True


class BaseOutcomePredictor(ABC, Generic[T]):
    """Remote-first predictor with a deterministic heuristic fallback.

    Subclasses must implement:
        - outcome: path segment of the remote endpoint (/predict/{outcome})
        - _remote(features, request): remote value or None
        - _heuristic(features, request): local value, never None
        - _is_valid(value): bounds check used by health_check
    """

    outcome: str = ""

    def __init__(
        self,
        client: ScoringClient | None = None,
        coefficients: CoefficientTable = DEFAULT_COEFFICIENTS,
    ) -> None:
        self._client = client if client is not None else ScoringClient()
        self.coefficients = coefficients

    @property
    def _use_fallback(self) -> bool:
        return not self._client.configured

    @abstractmethod
    async def _remote(
        self, features: FeatureVector, request: PredictionRequest | None = None
    ) -> T | None:
        """Remote scoring result, None on any failure."""

    @abstractmethod
    def _heuristic(self, features: FeatureVector, request: PredictionRequest | None = None) -> T:
        """Weighted-heuristic result computed locally."""

    @abstractmethod
    def _is_valid(self, value: T) -> bool:
        """Range check applied to the health-check result."""

    async def predict_with_source(
        self, features: FeatureVector, request: PredictionRequest | None = None
    ) -> tuple[T, str]:
        if not self._use_fallback:
            remote = await self._remote(features, request)
            if remote is not None:
                logger.debug("%s prediction from remote service", self.outcome)
                return remote, SOURCE_REMOTE
        logger.debug("%s prediction from heuristic", self.outcome)
        return self._heuristic(features, request), SOURCE_HEURISTIC

    async def predict(self, features: FeatureVector, request: PredictionRequest | None = None) -> T:
        value, _ = await self.predict_with_source(features, request)
        return value

    async def health_check(self) -> bool:
        """Score a fixed mid-range vector locally and range-check the result."""
        try:
            return self._is_valid(self._heuristic(health_check_vector()))
        except Exception as e:
            logger.warning("%s predictor health check failed: %s", self.outcome, e)
            return False
