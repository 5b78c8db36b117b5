import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_orchestrator
from config import Settings
from conftest import make_request
from main import app
from models.responses import ModelMetadata, SuccessPrediction
from services.ml_pipeline.orchestrator import PredictionOrchestrator

_settings = Settings(ml_api_key="", max_cache_size=100)
_orchestrator = PredictionOrchestrator(config=_settings)


@pytest.fixture(autouse=True)
def _override_orchestrator():
    app.dependency_overrides[get_orchestrator] = lambda: _orchestrator
    _orchestrator.cache.clear()
    yield
    app.dependency_overrides.clear()


client = TestClient(app)


def _payload(**overrides) -> dict:
    return make_request(**overrides).model_dump(mode="json")


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["remote_scoring_configured"] is False
    assert data["pipeline"]["status"] == "healthy"


def test_predict():
    response = client.post("/predict", json=_payload())
    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == "u1"
    assert data["prediction_id"].startswith("pred_")
    assert 0 <= data["interview_probability"] <= 1
    assert data["hire_probability"] == pytest.approx(data["offer_probability"] * 0.8)
    assert data["salary_prediction"]["predicted_range"]["median"] > 0
    assert "phase_breakdown" in data["time_to_hire"]
    assert isinstance(data["recommendations"], list)


def test_predict_rejects_blank_job_description():
    response = client.post("/predict", json=_payload(job_description="   "))
    assert response.status_code == 400


def test_predict_rejects_long_job_description():
    response = client.post("/predict", json=_payload(job_description="x" * 10_001))
    assert response.status_code == 400
    assert "too long" in response.json()["detail"]


def test_predict_requires_identifiers():
    payload = _payload()
    del payload["user_id"]
    response = client.post("/predict", json=payload)
    assert response.status_code == 422


def test_features():
    response = client.post("/features", json=_payload())
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"features", "validation", "importance"}
    assert data["features"]["cv_features"]["skills_count"] == 7
    assert data["validation"]["completeness"] == 1.0
    assert "matching_features.skill_match_percentage" in data["importance"]


def test_cache_endpoints():
    assert client.post("/predict", json=_payload(user_id="cache-user")).status_code == 200
    assert client.get("/cache/stats").json()["prediction_cache_size"] == 1

    response = client.delete("/cache/users/cache-user")
    assert response.status_code == 200
    assert response.json() == {"user_id": "cache-user", "removed": 2}
    assert client.get("/cache/stats").json()["prediction_cache_size"] == 0


def test_model_prefixed_fields_are_allowed():
    assert ModelMetadata.model_config["protected_namespaces"] == ()
    assert SuccessPrediction.model_config["protected_namespaces"] == ()

    data = client.post("/predict", json=_payload()).json()
    assert data["model_metadata"]["model_version"] == "success-predictor-2.0"
