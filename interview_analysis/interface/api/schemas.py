from typing import List

from pydantic import BaseModel, Field

from ...application.interview_session import InterviewSession, Question, Response


class ScoreRequest(BaseModel):
    response: Response
    question: Question


class SpeechRequest(BaseModel):
    transcript: str
    volume_samples: List[float] = Field(default_factory=list)
    duration_seconds: float = Field(default=0.0, ge=0)
    response_time: float = Field(default=0.0, ge=0)


class SessionRequest(BaseModel):
    session: InterviewSession
