import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List


class AnalysisStage(str, Enum):
    PRELIMINARY = "preliminary"
    COMPREHENSIVE = "comprehensive"
    FALLBACK = "fallback"
    EMPTY = "empty"


class PauseType(str, Enum):
    NATURAL = "natural"
    HESITATION = "hesitation"
    THINKING = "thinking"


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True)
class ClarityScore:
    score: int
    grammar_issues: List[str] = field(default_factory=list)
    structure_rating: int = 0   # 0-10
    coherence_rating: int = 0   # 0-10


@dataclass(frozen=True)
class RelevanceScore:
    score: int
    keyword_match: int = 0
    topic_alignment: int = 0
    answer_completeness: int = 0


@dataclass(frozen=True)
class DepthScore:
    score: int
    technical_accuracy: int = 0
    example_quality: int = 0
    insight_level: int = 0


@dataclass(frozen=True)
class CompletenessScore:
    score: int
    expected_elements_covered: int = 0
    missing_elements: List[str] = field(default_factory=list)
    additional_value: int = 0


@dataclass(frozen=True)
class FillerWordCount:
    word: str
    count: int


@dataclass(frozen=True)
class CommunicationScore:
    score: int
    confidence: int = 0
    pace: int = 0               # words per minute
    filler_words: List[FillerWordCount] = field(default_factory=list)
    clarity: int = 0


@dataclass(frozen=True)
class PauseSegment:
    timestamp: float            # seconds from recording start
    duration: float
    type: PauseType

    @property
    def end(self) -> float:
        return self.timestamp + self.duration


@dataclass(frozen=True)
class SpeechAnalysis:
    pace: int
    filler_words: List[FillerWordCount] = field(default_factory=list)
    clarity: int = 0
    confidence: int = 0
    volume: int = 0
    pauses: List[PauseSegment] = field(default_factory=list)
    transcription: str = ""

    @property
    def total_fillers(self) -> int:
        return sum(fw.count for fw in self.filler_words)

    def communication_score(self) -> CommunicationScore:
        return CommunicationScore(
            score=int(math.floor((self.clarity + self.confidence) / 2 + 0.5)),
            confidence=self.confidence,
            pace=self.pace,
            filler_words=list(self.filler_words),
            clarity=self.clarity,
        )


@dataclass(frozen=True)
class ResponseAnalysis:
    clarity: ClarityScore
    relevance: RelevanceScore
    depth: DepthScore
    communication: CommunicationScore
    completeness: CompletenessScore
    overall_score: int
    improvement_suggestions: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    stage: AnalysisStage = AnalysisStage.COMPREHENSIVE

    def with_communication(self, communication: CommunicationScore) -> "ResponseAnalysis":
        return replace(self, communication=communication)

    def with_stage(self, stage: AnalysisStage) -> "ResponseAnalysis":
        return replace(self, stage=stage)

    def dimension_scores(self) -> dict:
        return {
            "clarity": self.clarity.score,
            "relevance": self.relevance.score,
            "depth": self.depth.score,
            "communication": self.communication.score,
            "completeness": self.completeness.score,
        }


@dataclass(frozen=True)
class DimensionScore:
    dimension: str
    score: int
    trend: Trend = Trend.STABLE


@dataclass(frozen=True)
class PerformanceScore:
    session_id: str
    user_id: str
    overall_score: int
    dimension_scores: List[DimensionScore] = field(default_factory=list)
    improvement: int = 0
    ranking: str = ""
    recommendations: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class SessionAnalysis:
    session_id: str
    overall_score: int = 0
    dimension_scores: List[DimensionScore] = field(default_factory=list)
    improvement: int = 0
    time_spent: int = 0         # minutes
    questions_answered: int = 0
    strengths: List[str] = field(default_factory=list)
    improvement_areas: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls, session_id: str) -> "SessionAnalysis":
        return cls(session_id=session_id)


@dataclass(frozen=True)
class ProgressAnalytics:
    total_sessions: int = 0
    average_score: int = 0
    highest_score: int = 0
    lowest_score: int = 0
    improvement_rate: int = 0
    consistency_score: int = 100
    dimension_trends: dict = field(default_factory=dict)
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    timeframe: str = "all"
