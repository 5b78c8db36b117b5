import os
from pydantic_settings import BaseSettings


def _parse_cors_origins() -> list[str] | None:
    """Parse CORS_ORIGINS env var as comma-separated string or JSON list."""
    raw = os.environ.get("CORS_ORIGINS")
    if not raw:
        return None
    if raw.startswith("["):
        import json
        return json.loads(raw)
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseSettings):
    # Remote scoring service
    ml_api_endpoint: str = "http://localhost:8080/v1"
    ml_api_key: str = ""  # empty -> heuristic predictions only, no network calls
    ml_api_timeout_seconds: float = 10.0

    # Prediction / feature caches
    prediction_cache_ttl_hours: float = 24
    feature_cache_ttl_hours: float = 6
    behavior_cache_ttl_minutes: float = 30
    market_cache_ttl_hours: float = 24
    max_cache_size: int = 10000
    cache_cleanup_interval_seconds: int = 3600

    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    max_job_description_chars: int = 10000
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


_cors_override = _parse_cors_origins()
settings = Settings(**{"cors_origins": _cors_override} if _cors_override else {})
