from fastapi import APIRouter, Depends

from ....core.config import Settings, get_settings
from ....managers.analysis import AnalysisOrchestrator
from ..dependencies import get_orchestrator

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings),
                       orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "app_name": settings.APP_NAME,
        "cache_size": len(orchestrator.cache),
        "queue_depth": len(orchestrator.queue),
    }
