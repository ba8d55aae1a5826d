from fastapi import APIRouter, Depends

from ....managers.analysis import AnalysisOrchestrator
from ..dependencies import get_orchestrator
from ..schemas import SessionRequest

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("/analyze")
async def analyze_session(body: SessionRequest,
                          orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return await orchestrator.analyze_session(body.session)
