from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from api.dependencies import get_orchestrator
from config import settings
from models.requests import PredictionRequest
from models.responses import CacheInvalidationResponse, FeatureExtractionResponse, SuccessPrediction
from services.ml_pipeline.orchestrator import PredictionOrchestrator

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


def _check_job_description(body: PredictionRequest) -> None:
    if not body.job_description.strip():
        raise HTTPException(status_code=400, detail="Job description is required")
    if len(body.job_description) > settings.max_job_description_chars:
        raise HTTPException(
            status_code=400,
            detail=f"Job description too long (max {settings.max_job_description_chars} chars)",
        )


@router.get("/health")
async def health(orchestrator: PredictionOrchestrator = Depends(get_orchestrator)):
    return {
        "status": "ok",
        "remote_scoring_configured": orchestrator.client.configured,
        "pipeline": await orchestrator.get_health_status(),
    }


@router.post("/predict", response_model=SuccessPrediction)
@limiter.limit("30/minute")
async def predict(
    request: Request,
    body: PredictionRequest,
    orchestrator: PredictionOrchestrator = Depends(get_orchestrator),
):
    _check_job_description(body)
    return await orchestrator.predict_success(body)


@router.post("/features", response_model=FeatureExtractionResponse)
@limiter.limit("30/minute")
async def features(
    request: Request,
    body: PredictionRequest,
    orchestrator: PredictionOrchestrator = Depends(get_orchestrator),
):
    _check_job_description(body)
    vector = await orchestrator.extract_features(body)
    extractor = orchestrator.feature_extractor
    return FeatureExtractionResponse(
        features=vector,
        validation=extractor.validate_features(vector),
        importance=extractor.get_feature_importance(vector),
    )


@router.delete("/cache/users/{user_id}", response_model=CacheInvalidationResponse)
async def invalidate_user_cache(
    user_id: str,
    orchestrator: PredictionOrchestrator = Depends(get_orchestrator),
):
    removed = orchestrator.invalidate_user(user_id)
    return CacheInvalidationResponse(user_id=user_id, removed=removed)


@router.get("/cache/stats")
async def cache_stats(orchestrator: PredictionOrchestrator = Depends(get_orchestrator)):
    return orchestrator.cache.get_stats()
