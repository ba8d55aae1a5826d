import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ...core.config import get_settings
from ...core.exceptions import AnalysisError, RecordingError
from ...core.logging import setup_logging
from ...managers.analysis import AnalysisOrchestrator
from ...managers.events import AnalysisEvent
from .dependencies import get_orchestrator
from .routers import analysis, health, sessions

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, error_code: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": str(exc),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def analysis_error_handler(request: Request, exc: AnalysisError):
    logger.warning("analysis_error", path=request.url.path, error=str(exc))
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "ANALYSIS_ERROR", exc)


async def recording_error_handler(request: Request, exc: RecordingError):
    logger.warning("recording_error", path=request.url.path, error=str(exc))
    return _error_response(status.HTTP_409_CONFLICT, "RECORDING_ERROR", exc)


def event_message(event: AnalysisEvent) -> dict:
    return jsonable_encoder(event)


async def stream_events(websocket: WebSocket,
                        subject_id: str,
                        orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Forward lifecycle events for one response or session id to the client."""
    await websocket.accept()
    pending: "asyncio.Queue[AnalysisEvent]" = asyncio.Queue()
    orchestrator.events.subscribe_subject(subject_id, pending.put_nowait)
    log = logger.bind(subject_id=subject_id)
    log.info("event_stream_opened")

    async def forward():
        while True:
            event = await pending.get()
            await websocket.send_json(event_message(event))

    sender = asyncio.get_running_loop().create_task(forward())
    try:
        await websocket.send_json({"type": "connection_established", "subject_id": subject_id})
        while True:
            message = await websocket.receive_json()
            if message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        log.info("event_stream_closed")
    finally:
        sender.cancel()
        orchestrator.events.unsubscribe(pending.put_nowait, subject_id=subject_id)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.orchestrator.close()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.orchestrator = AnalysisOrchestrator(settings=settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RecordingError, recording_error_handler)
    app.add_exception_handler(AnalysisError, analysis_error_handler)

    app.include_router(health.router, prefix=settings.API_PREFIX)
    app.include_router(analysis.router, prefix=settings.API_PREFIX)
    app.include_router(sessions.router, prefix=settings.API_PREFIX)
    app.add_api_websocket_route(f"{settings.WEBSOCKET_PATH}/analysis/{{subject_id}}", stream_events)

    logger.info("app_created", environment=settings.ENVIRONMENT.value, api_prefix=settings.API_PREFIX)
    return app
