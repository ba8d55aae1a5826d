import time
from dataclasses import dataclass, field
from enum import Enum

from .interview_session import Question, Response


class Priority(str, Enum):
    HIGH = "high"
    NORMAL = "normal"


class ResponseState(str, Enum):
    """Where a submitted response is in the analysis pipeline."""
    SUBMITTED = "submitted"
    PRELIMINARY_DELIVERED = "preliminary_delivered"
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPREHENSIVE_DELIVERED = "comprehensive_delivered"
    DELIVERED = "delivered"         # served straight from the cache
    FAILED = "failed"


@dataclass(frozen=True)
class AnalysisTask:
    response: Response
    question: Question
    priority: Priority = Priority.NORMAL
    enqueued_at: float = field(default_factory=time.time)

    @property
    def response_id(self) -> str:
        return self.response.id
