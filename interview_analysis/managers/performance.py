from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..application.analysis import DimensionScore, PerformanceScore, ProgressAnalytics, ResponseAnalysis, Trend
from ..application.interview_session import InterviewSession, Question
from ..core.interfaces import PerformanceScorer
from ..processors.rules import round_half_up

logger = structlog.get_logger(__name__)

DIMENSIONS = (
    "clarity",
    "relevance",
    "depth",
    "communication",
    "completeness",
    "technical_accuracy",
    "behavioral_competency",
    "problem_solving",
)
CORE_DIMENSIONS = DIMENSIONS[:5]

DIMENSION_WEIGHTS = {
    "clarity": 0.15,
    "relevance": 0.20,
    "depth": 0.15,
    "communication": 0.15,
    "completeness": 0.15,
    "technical_accuracy": 0.10,
    "behavioral_competency": 0.05,
    "problem_solving": 0.05,
}
DEFAULT_DIMENSION_WEIGHT = 0.05

RECENCY_BASE = 1.1
HISTORY_LIMIT = 100
IMPROVEMENT_WINDOW = 3
TREND_WINDOW = 5
TREND_THRESHOLD = 2
MAX_RECOMMENDATIONS = 5

# (excellent, good, average, below average) per difficulty
BENCHMARKS = {
    "easy": (85, 75, 65, 50),
    "medium": (80, 70, 60, 45),
    "hard": (75, 65, 55, 40),
    "adaptive": (80, 70, 60, 45),
}
PERCENTILES = ("90th percentile", "75th percentile", "50th percentile", "25th percentile")
BOTTOM_PERCENTILE = "10th percentile"

TIMEFRAMES = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}

# dimension -> (score below 40, score 40-59); only dimensions under 60 get one
DIMENSION_RECOMMENDATIONS = {
    "clarity": (
        "Practice structuring your responses with clear beginning, middle, and end",
        "Work on using transition words to improve flow between ideas",
    ),
    "relevance": (
        "Make sure to directly answer the question before adding additional context",
        "Include more specific examples that directly relate to the question",
    ),
    "depth": (
        "Provide more detailed examples and explanations in your responses",
        "Include specific metrics and outcomes when describing your experiences",
    ),
    "communication": (
        "Practice speaking at a steady pace and projecting confidence",
        "Work on reducing filler words and improving vocal clarity",
    ),
    "completeness": (
        "Use the STAR method (Situation, Task, Action, Result) for behavioral questions",
        "Ensure you address all parts of multi-part questions",
    ),
    "technical_accuracy": (
        "Review fundamental concepts in your target technology stack",
        "Practice explaining technical concepts in simple terms",
    ),
    "behavioral_competency": (
        "Prepare more diverse examples that showcase different competencies",
        "Practice the STAR method to structure behavioral responses",
    ),
    "problem_solving": (
        "Practice breaking down complex problems into smaller components",
        "Explain your thought process step-by-step when solving problems",
    ),
}


def weighted_recent_average(scores: Sequence[float]) -> int:
    """Mean with weight ``1.1 ** i``, so later responses count more."""
    if not scores:
        return 0
    weights = RECENCY_BASE ** np.arange(len(scores))
    return round_half_up(float(np.average(scores, weights=weights)))


def linear_trend(scores: Sequence[float]) -> float:
    """Least-squares slope of ``scores`` against their index."""
    if len(scores) < 2:
        return 0.0
    slope, _ = np.polyfit(np.arange(len(scores)), np.asarray(scores, dtype=float), 1)
    return float(slope)


def dimension_value(dimension: str, analysis: ResponseAnalysis, question: Question) -> float:
    if dimension in CORE_DIMENSIONS:
        return analysis.dimension_scores()[dimension]

    if dimension == "technical_accuracy":
        if question.is_technical:
            return analysis.depth.technical_accuracy
        return analysis.depth.score * 0.8

    if dimension == "behavioral_competency":
        if question.type in ("behavioral", "situational"):
            return round_half_up((
                analysis.clarity.structure_rating * 10
                + analysis.depth.example_quality
                + analysis.completeness.score
            ) / 3)
        return analysis.relevance.score * 0.7

    if dimension == "problem_solving":
        if question.type in ("case-study", "system-design"):
            return round_half_up(
                analysis.depth.insight_level * 0.4
                + analysis.depth.score * 0.4
                + analysis.clarity.score * 0.2
            )
        return analysis.depth.insight_level

    raise ValueError(f"Unknown dimension: {dimension}")


class WeightedPerformanceScorer(PerformanceScorer):
    """
    Session scoring over eight dimensions with an in-memory history per user.

    The history drives improvement, per-dimension trends and the progress
    analytics; nothing is persisted.
    """

    def __init__(self, history_limit: int = HISTORY_LIMIT):
        self.history_limit = history_limit
        self._history: Dict[str, List[PerformanceScore]] = {}

    def history(self, user_id: str) -> List[PerformanceScore]:
        """Stored scores for ``user_id``, oldest first."""
        return list(self._history.get(user_id, []))

    async def calculate_session_score(self, session: InterviewSession) -> PerformanceScore:
        previous = self.history(session.user_id)

        dimension_scores = self._dimension_scores(session, previous)
        overall = self._overall_score(dimension_scores)

        score = PerformanceScore(
            session_id=session.id,
            user_id=session.user_id,
            overall_score=overall,
            dimension_scores=dimension_scores,
            improvement=self._improvement(previous, overall),
            ranking=self._ranking(overall, session.difficulty),
            recommendations=self._recommendations(dimension_scores, session),
        )
        self._store(score)

        logger.info(
            "session_scored",
            session_id=session.id,
            overall_score=overall,
            improvement=score.improvement,
            ranking=score.ranking,
        )
        return score

    def _dimension_scores(self,
                          session: InterviewSession,
                          previous: List[PerformanceScore]) -> List[DimensionScore]:
        scored: List[Tuple[ResponseAnalysis, Question]] = []
        for response in session.analyzed_responses():
            question = session.question_for(response)
            if question is not None:
                scored.append((session.analyses[response.id], question))

        if not scored:
            return [DimensionScore(dimension=d, score=0) for d in DIMENSIONS]

        result = []
        for dimension in DIMENSIONS:
            value = weighted_recent_average([dimension_value(dimension, a, q) for a, q in scored])
            result.append(DimensionScore(
                dimension=dimension,
                score=value,
                trend=self._trend(dimension, value, previous),
            ))
        return result

    @staticmethod
    def _overall_score(dimension_scores: List[DimensionScore]) -> int:
        weighted = 0.0
        total = 0.0
        for ds in dimension_scores:
            weight = DIMENSION_WEIGHTS.get(ds.dimension, DEFAULT_DIMENSION_WEIGHT)
            weighted += ds.score * weight
            total += weight
        return round_half_up(weighted / total) if total else 0

    @staticmethod
    def _improvement(previous: List[PerformanceScore], current: int) -> int:
        if not previous:
            return 0
        recent = previous[-IMPROVEMENT_WINDOW:]
        baseline = sum(p.overall_score for p in recent) / len(recent)
        return round_half_up(current - baseline)

    @staticmethod
    def _ranking(score: int, difficulty: str) -> str:
        thresholds = BENCHMARKS.get(difficulty, BENCHMARKS["medium"])
        for threshold, label in zip(thresholds, PERCENTILES):
            if score >= threshold:
                return label
        return BOTTOM_PERCENTILE

    @staticmethod
    def _trend(dimension: str, current: int, previous: List[PerformanceScore]) -> Trend:
        window = previous[-TREND_WINDOW:]
        if len(window) < 2:
            return Trend.STABLE

        past = [
            s for s in (_score_for(p, dimension) for p in window)
            if s > 0
        ]
        if len(past) < 2:
            return Trend.STABLE

        # chronological, current session last
        slope = linear_trend(past + [current])
        if slope > TREND_THRESHOLD:
            return Trend.IMPROVING
        if slope < -TREND_THRESHOLD:
            return Trend.DECLINING
        return Trend.STABLE

    def _recommendations(self,
                         dimension_scores: List[DimensionScore],
                         session: InterviewSession) -> List[str]:
        recommendations = []

        weakest = sorted((ds for ds in dimension_scores if ds.score < 60), key=lambda ds: ds.score)
        for ds in weakest[:3]:
            severe, moderate = DIMENSION_RECOMMENDATIONS[ds.dimension]
            recommendations.append(severe if ds.score < 40 else moderate)

        question_types = {q.type for q in session.questions}
        if "behavioral" in question_types and session.responses:
            for response in session.analyzed_responses():
                question = session.question_for(response)
                if question and question.type == "behavioral" \
                        and session.analyses[response.id].completeness.score < 60:
                    recommendations.append(
                        "For behavioral questions, ensure you include the outcome and impact of your actions"
                    )
                    break
        if "technical" in question_types:
            recommendations.append("Consider practicing more technical questions in your focus area")

        declining = [ds for ds in dimension_scores if ds.trend == Trend.DECLINING]
        improving = [ds for ds in dimension_scores if ds.trend == Trend.IMPROVING]
        if declining:
            recommendations.append(
                f"Focus on {declining[0].dimension} - your performance in this area has been declining"
            )
        if len(improving) > 2:
            recommendations.append("Great progress! Continue practicing to maintain your improvement momentum")

        return recommendations[:MAX_RECOMMENDATIONS]

    def _store(self, score: PerformanceScore) -> None:
        history = self._history.setdefault(score.user_id, [])
        history.append(score)
        if len(history) > self.history_limit:
            del history[:len(history) - self.history_limit]

    def progress_analytics(self,
                           user_id: str,
                           timeframe: str = "all",
                           now: Optional[datetime] = None) -> ProgressAnalytics:
        history = self.history(user_id)
        if not history:
            return ProgressAnalytics()

        if timeframe in TIMEFRAMES:
            cutoff = (now or datetime.now()) - TIMEFRAMES[timeframe]
            history = [p for p in history if p.created_at >= cutoff]
        if not history:
            return ProgressAnalytics(timeframe=timeframe)

        overall = [p.overall_score for p in history]
        strengths, weaknesses = _strengths_and_weaknesses(history)

        return ProgressAnalytics(
            total_sessions=len(history),
            average_score=round_half_up(float(np.mean(overall))),
            highest_score=max(overall),
            lowest_score=min(overall),
            improvement_rate=_improvement_rate(overall),
            consistency_score=_consistency(overall),
            dimension_trends={
                d: linear_trend([s for s in (_score_for(p, d) for p in history) if s > 0])
                for d in CORE_DIMENSIONS
            },
            strengths=strengths,
            weaknesses=weaknesses,
            timeframe=timeframe,
        )


def _score_for(score: PerformanceScore, dimension: str) -> int:
    for ds in score.dimension_scores:
        if ds.dimension == dimension:
            return ds.score
    return 0


def _improvement_rate(scores: List[int]) -> int:
    """Percent change from first to last session, per session."""
    if len(scores) < 2 or scores[0] == 0:
        return 0
    return round_half_up((scores[-1] - scores[0]) / scores[0] * 100 / (len(scores) - 1))


def _consistency(scores: List[int]) -> int:
    if len(scores) < 2:
        return 100
    return round_half_up(max(0.0, 100 - float(np.std(scores)) * 2))


def _strengths_and_weaknesses(history: List[PerformanceScore]) -> Tuple[List[str], List[str]]:
    averages = {}
    for dimension in CORE_DIMENSIONS:
        scores = [ds.score for p in history for ds in p.dimension_scores if ds.dimension == dimension]
        if scores:
            averages[dimension] = float(np.mean(scores))

    ranked = sorted(averages.items(), key=lambda item: item[1], reverse=True)
    strengths = [d for d, s in ranked if s >= 70][:3]
    weaknesses = [d for d, s in ranked if s < 60][-3:]
    return strengths, weaknesses
