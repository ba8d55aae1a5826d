from abc import ABC, abstractmethod
from typing import Sequence

from ..application.analysis import PerformanceScore, ResponseAnalysis, SpeechAnalysis
from ..application.interview_session import InterviewSession, Question, Response


class ResponseScorer(ABC):
    @abstractmethod
    def score(self, response: Response, question: Question) -> ResponseAnalysis:
        """Score a response against its question. Must not block on I/O."""
        pass


class SpeechAnalyzer(ABC):
    @abstractmethod
    def score(self,
              transcript: str,
              volume_samples: Sequence[float],
              duration_seconds: float) -> SpeechAnalysis:
        """Score a finished recording from its transcript and volume samples."""
        pass

    @abstractmethod
    def score_text_only(self, text: str, response_time: float) -> SpeechAnalysis:
        """Estimate speech metrics when no audio signal was captured."""
        pass


class PerformanceScorer(ABC):
    @abstractmethod
    async def calculate_session_score(self, session: InterviewSession) -> PerformanceScore:
        """Aggregate per-response analyses into per-dimension session scores."""
        pass
