"""
Typed lifecycle event channel for the analysis pipeline.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

import structlog

from ..application.analysis import ResponseAnalysis, SessionAnalysis

logger = structlog.get_logger(__name__)


class AnalysisEventType(str, Enum):
    START = "start"
    PRELIMINARY = "preliminary"
    COMPLETE = "complete"
    ERROR = "error"
    PROGRESS = "progress"


@dataclass(frozen=True)
class AnalysisEvent:
    """One lifecycle notification, keyed by a response id or a session id."""
    type: AnalysisEventType
    subject_id: str
    timestamp: float = field(default_factory=time.time)
    analysis: Optional[ResponseAnalysis] = None
    session_analysis: Optional[SessionAnalysis] = None
    message: Optional[str] = None
    progress: Optional[float] = None
    error: Optional[str] = None


EventHandler = Callable[[AnalysisEvent], None]


class AnalysisEventBus:
    """Synchronous pub/sub; a failing handler is logged and never affects the emitter."""

    def __init__(self):
        self._handlers: Dict[AnalysisEventType, List[EventHandler]] = {}
        self._subject_handlers: Dict[str, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: AnalysisEventType, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("handler_subscribed", event_type=event_type.value)

    def subscribe_all(self, handler: EventHandler) -> None:
        self._global_handlers.append(handler)

    def subscribe_subject(self, subject_id: str, handler: EventHandler) -> None:
        """Receive every event for one response or session id."""
        self._subject_handlers.setdefault(subject_id, []).append(handler)
        logger.debug("subject_subscribed", subject_id=subject_id)

    def unsubscribe(self, handler: EventHandler,
                    event_type: Optional[AnalysisEventType] = None,
                    subject_id: Optional[str] = None) -> None:
        """
        Remove a handler.

        With ``event_type`` or ``subject_id`` only that registration is
        removed; with neither the handler is removed from the global list.
        """
        if event_type is not None:
            registry = self._handlers.get(event_type, [])
        elif subject_id is not None:
            registry = self._subject_handlers.get(subject_id, [])
        else:
            registry = self._global_handlers

        if handler in registry:
            registry.remove(handler)
        else:
            logger.warning("handler_not_found", event_type=event_type, subject_id=subject_id)

        if subject_id is not None and not registry:
            self._subject_handlers.pop(subject_id, None)

    def emit(self, event: AnalysisEvent) -> None:
        logger.debug("event_emitted", event_type=event.type.value, subject_id=event.subject_id)

        handlers = (
            list(self._handlers.get(event.type, []))
            + list(self._subject_handlers.get(event.subject_id, []))
            + list(self._global_handlers)
        )
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("event_handler_failed", event_type=event.type.value, subject_id=event.subject_id)

    def clear_handlers(self) -> None:
        self._handlers.clear()
        self._subject_handlers.clear()
        self._global_handlers.clear()


class EventRecorder:
    """Keeps an ordered in-memory log of every event it receives."""

    def __init__(self):
        self.events: List[AnalysisEvent] = []

    def __call__(self, event: AnalysisEvent) -> None:
        self.events.append(event)

    def for_subject(self, subject_id: str) -> List[AnalysisEvent]:
        return [e for e in self.events if e.subject_id == subject_id]

    def types(self, subject_id: Optional[str] = None) -> List[AnalysisEventType]:
        events = self.for_subject(subject_id) if subject_id else self.events
        return [e.type for e in events]

    def clear(self) -> None:
        self.events.clear()
