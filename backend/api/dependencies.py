"""Shared dependencies for API routes."""

from services.ml_pipeline.orchestrator import PredictionOrchestrator

_orchestrator: PredictionOrchestrator | None = None


def get_orchestrator() -> PredictionOrchestrator:
    """Process-wide orchestrator, created on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = PredictionOrchestrator()
    return _orchestrator


async def shutdown_orchestrator() -> None:
    global _orchestrator
    if _orchestrator is not None:
        await _orchestrator.close()
        _orchestrator = None
