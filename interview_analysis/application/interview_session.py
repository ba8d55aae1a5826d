from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Dict, Optional

from .analysis import ResponseAnalysis


class QuestionType(str, Enum):
    BEHAVIORAL = "behavioral"
    TECHNICAL = "technical"
    SITUATIONAL = "situational"
    SYSTEM_DESIGN = "system-design"
    CASE_STUDY = "case-study"
    ROLE_SPECIFIC = "role-specific"
    FOLLOW_UP = "follow-up"


@dataclass(frozen=True)
class Question:
    """Read-only question descriptor supplied by question generation."""
    id: str
    text: str
    type: str = QuestionType.BEHAVIORAL.value
    category: str = "general"
    difficulty: str = "medium"
    expected_elements: List[str] = field(default_factory=list)
    follow_up_triggers: List[str] = field(default_factory=list)

    @property
    def is_technical(self) -> bool:
        return self.type in (QuestionType.TECHNICAL, QuestionType.SYSTEM_DESIGN)


@dataclass(frozen=True)
class AudioSignalBundle:
    """Volume samples (0-100) and final transcript captured for one recording."""
    volume_samples: List[float] = field(default_factory=list)
    started_at: float = 0.0
    transcript: str = ""
    duration_seconds: float = 0.0


@dataclass(frozen=True)
class Response:
    id: str
    session_id: str
    question_id: str
    text_content: str
    response_time: float = 0.0
    audio: Optional[AudioSignalBundle] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def has_audio(self) -> bool:
        return self.audio is not None

    @property
    def word_count(self) -> int:
        return len(self.text_content.split())


@dataclass
class InterviewSession:
    id: str
    user_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    difficulty: str = "medium"
    questions: List[Question] = field(default_factory=list)
    responses: List[Response] = field(default_factory=list)
    analyses: Dict[str, ResponseAnalysis] = field(default_factory=dict)

    def question_for(self, response: Response) -> Optional[Question]:
        for question in self.questions:
            if question.id == response.question_id:
                return question
        return None

    def analyzed_responses(self) -> List[Response]:
        """Responses with a stored analysis, in submission order."""
        return [r for r in self.responses if r.id in self.analyses]
