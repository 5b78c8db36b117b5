"""Prediction orchestrator: wires cache, features and predictors together.

Flow:
    request
      ├─ prediction cache hit?               → SuccessPrediction
      ├─ FeatureExtractor.extract_features   → FeatureVector (never raises)
      ├─ BehaviorFeatureService(user_id)     → merged into the vector
      ├─ Interview ┐
      ├─ Offer     ├─ concurrently, each remote-first with heuristic fallback
      ├─ Salary    │
      ├─ TimeToHire┘
      ├─ competitiveness + recommendations
      └─ SuccessPrediction → prediction cache

Any exception in that path hands the request to the fallback tiers
(heuristic, then minimal). Fallback results are not cached.
"""

import asyncio
import logging
from datetime import datetime, timezone

from config import Settings, settings
from models.requests import PredictionRequest
from models.responses import ModelMetadata, PredictionConfidence, SuccessPrediction
from models.schemas import FeatureVector
from services.ml_pipeline.base import (
    HIRE_CONVERSION,
    MODEL_VERSION,
    SOURCE_REMOTE,
    new_prediction_id,
)
from services.ml_pipeline.cache import PredictionCache
from services.ml_pipeline.coefficients import DEFAULT_COEFFICIENTS, CoefficientTable
from services.ml_pipeline.fallback import FallbackManager, PredictionTier, StrategyChain
from services.ml_pipeline.features.behavior_features import BehaviorFeatureService
from services.ml_pipeline.features.extractor import FeatureExtractor
from services.ml_pipeline.predictors.competitiveness import CompetitivenessAnalyzer
from services.ml_pipeline.predictors.interview import InterviewPredictor
from services.ml_pipeline.predictors.offer import OfferPredictor
from services.ml_pipeline.predictors.recommendations import RecommendationEngine
from services.ml_pipeline.predictors.salary import SalaryPredictor
from services.ml_pipeline.predictors.time_to_hire import TimeToHirePredictor
from services.ml_pipeline.remote import ScoringClient

logger = logging.getLogger(__name__)

# Per-facet confidence by the source that produced the value
REMOTE_FACET_CONFIDENCE = 0.85
HEURISTIC_FACET_CONFIDENCE = 0.65


def _facet_confidence(source: str) -> float:
    return REMOTE_FACET_CONFIDENCE if source == SOURCE_REMOTE else HEURISTIC_FACET_CONFIDENCE


class PredictionOrchestrator:
    def __init__(
        self,
        config: Settings = settings,
        cache: PredictionCache | None = None,
        client: ScoringClient | None = None,
        feature_extractor: FeatureExtractor | None = None,
        behavior_service: BehaviorFeatureService | None = None,
        fallback_manager: FallbackManager | None = None,
        coefficients: CoefficientTable = DEFAULT_COEFFICIENTS,
    ) -> None:
        self.config = config
        self.cache = cache if cache is not None else PredictionCache(config)
        self.client = client if client is not None else ScoringClient(config)
        self.coefficients = coefficients
        self.feature_extractor = feature_extractor if feature_extractor is not None else FeatureExtractor(cache=self.cache)
        self.behavior_service = behavior_service if behavior_service is not None else BehaviorFeatureService(config=config)
        self.interview_predictor = InterviewPredictor(self.client, coefficients)
        self.offer_predictor = OfferPredictor(self.client, coefficients)
        self.salary_predictor = SalaryPredictor(self.client, coefficients)
        self.time_to_hire_predictor = TimeToHirePredictor(self.client, coefficients)
        self.competitiveness = CompetitivenessAnalyzer()
        self.recommendations = RecommendationEngine()
        self.fallback_manager = fallback_manager if fallback_manager is not None else FallbackManager()

    async def predict_success(self, request: PredictionRequest) -> SuccessPrediction:
        chain = StrategyChain(
            [(PredictionTier.REMOTE, self._primary)] + self.fallback_manager.strategies()
        )
        tier, prediction = await chain.run(request)
        logger.debug("Prediction %s produced by %s tier", prediction.prediction_id, tier.value)
        return prediction

    async def _primary(self, request: PredictionRequest) -> SuccessPrediction:
        cached = self.cache.get(request)
        if cached is not None:
            return cached

        features = await self.extract_features(request)
        (
            (interview, interview_source),
            (offer, offer_source),
            (salary, salary_source),
            (time_to_hire, time_source),
        ) = await asyncio.gather(
            self.interview_predictor.predict_with_source(features, request),
            self.offer_predictor.predict_with_source(features, request),
            self.salary_predictor.predict_with_source(features, request),
            self.time_to_hire_predictor.predict_with_source(features, request),
        )

        validation = self.feature_extractor.validate_features(features)
        importance = self.feature_extractor.get_feature_importance(features)
        facets = [
            _facet_confidence(interview_source),
            _facet_confidence(offer_source),
            _facet_confidence(salary_source),
            _facet_confidence(time_source),
        ]
        overall = round(sum(facets) / len(facets) * (0.7 + 0.3 * validation.completeness), 3)

        prediction = SuccessPrediction(
            prediction_id=new_prediction_id(),
            user_id=request.user_id,
            job_id=request.job_id,
            timestamp=datetime.now(timezone.utc),
            interview_probability=interview,
            offer_probability=offer,
            hire_probability=offer * HIRE_CONVERSION,
            salary_prediction=salary,
            time_to_hire=time_to_hire,
            competitiveness_score=self.competitiveness.analyze(features),
            confidence=PredictionConfidence(
                overall=overall,
                interview_confidence=facets[0],
                offer_confidence=facets[1],
                salary_confidence=facets[2],
                time_to_hire_confidence=facets[3],
            ),
            recommendations=self.recommendations.generate(features, validation, importance),
            model_metadata=ModelMetadata(
                model_version=MODEL_VERSION,
                coefficients_version=self.coefficients.version,
                features_used=sorted(features.flatten()),
            ),
        )
        self.cache.set(request, prediction)
        return prediction

    async def extract_features(self, request: PredictionRequest) -> FeatureVector:
        """Feature vector with this user's behavior features merged in."""
        features = await self.feature_extractor.extract_features(request)
        behavior = await self.behavior_service.extract_features(request.user_id)
        return features.model_copy(update={"user_id": request.user_id, "behavior_features": behavior})

    def invalidate_user(self, user_id: str) -> int:
        self.behavior_service.invalidate(user_id)
        return self.cache.invalidate_user(user_id)

    async def get_health_status(self) -> dict:
        extractor_ok, behavior_ok, predictors_ok = await asyncio.gather(
            self.feature_extractor.health_check(),
            self.behavior_service.health_check(),
            self._predictors_healthy(),
        )
        components = {
            "cache": self.cache.health_check(),
            "feature_extractor": extractor_ok,
            "behavior_features": behavior_ok,
            "predictors": predictors_ok,
            "heuristic_fallback": self.fallback_manager.heuristic.health_check(),
        }
        return {
            "status": "healthy" if all(components.values()) else "degraded",
            "components": components,
            "remote_scoring_configured": self.client.configured,
            "cache": self.cache.get_stats(),
            "model_version": MODEL_VERSION,
            "coefficients_version": self.coefficients.version,
        }

    async def _predictors_healthy(self) -> bool:
        checks = await asyncio.gather(
            self.interview_predictor.health_check(),
            self.offer_predictor.health_check(),
            self.salary_predictor.health_check(),
            self.time_to_hire_predictor.health_check(),
        )
        return all(checks)

    def start(self) -> None:
        self.cache.start_cleanup()

    async def close(self) -> None:
        await self.cache.stop_cleanup()
        await self.client.close()
