import structlog
from fastapi import APIRouter, Depends

from ....application.analysis import AnalysisStage
from ....application.tasks import Priority
from ....core.exceptions import ScoringFailure
from ....managers.analysis import AnalysisOrchestrator
from ..dependencies import get_orchestrator
from ..schemas import ScoreRequest, SpeechRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("/score")
async def score_response(body: ScoreRequest,
                         orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Full comprehensive analysis, computed inline."""
    try:
        return orchestrator.score_response(body.response, body.question)
    except Exception as exc:
        raise ScoringFailure(AnalysisStage.COMPREHENSIVE.value, body.response.id, exc) from exc


@router.post("/speech")
async def score_speech(body: SpeechRequest,
                       orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Speech metrics; without volume samples the text-only estimate is returned."""
    return orchestrator.score_speech(
        body.transcript,
        body.volume_samples,
        body.duration_seconds,
        body.response_time,
    )


@router.post("/submit")
async def submit_response(body: ScoreRequest,
                          priority: Priority = Priority.NORMAL,
                          orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """
    Submit a response for analysis.

    Returns the preliminary (or cached) analysis; the comprehensive result
    is delivered on the analysis event stream.
    """
    analysis = await orchestrator.submit(body.response, body.question, priority)
    return {
        "response_id": body.response.id,
        "state": orchestrator.state_of(body.response.id),
        "analysis": analysis,
    }
