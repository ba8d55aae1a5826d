"""
Reduced-signal scoring used for immediate feedback on submission.

Works from word and sentence counts plus a handful of phrase checks so a
preliminary ``ResponseAnalysis`` is always available at low latency; the
full ``TextScorer`` pass later supersedes it.
"""
import re
from typing import List

from ..application.analysis import (
    AnalysisStage,
    ClarityScore,
    CommunicationScore,
    CompletenessScore,
    DepthScore,
    RelevanceScore,
    ResponseAnalysis,
)
from ..application.interview_session import Question, Response
from .rules import STOP_WORDS, clamp, round_half_up, split_sentences
from .text import create_empty_analysis

# Word-count (minimum, ideal) per question type
QUICK_LENGTH_RANGES = {
    "behavioral": (50, 150),
    "technical": (40, 120),
    "situational": (45, 130),
    "system-design": (80, 200),
    "case-study": (60, 180),
}
DEFAULT_QUICK_LENGTH = (40, 120)

QUICK_MAX_SUGGESTIONS = 2
QUICK_MAX_WEAKNESSES = 2

FALLBACK_SUGGESTION = "Analysis temporarily unavailable. Please try again."

_STRUCTURE_RE = re.compile(r"\b(first|second|then|finally|however|therefore)\b", re.IGNORECASE)
_EXAMPLES_RE = re.compile(r"\b(for example|for instance|such as|like when|in my experience)\b", re.IGNORECASE)
_INSIGHTS_RE = re.compile(r"\b(i learned|i realized|the key insight|what i discovered|i believe)\b", re.IGNORECASE)
_DETAILS_RE = re.compile(r"\d+%|\b\d+\s*(days?|weeks?|months?|years?|users?)\b|\bversion\s*\d+", re.IGNORECASE)
_TECH_TERMS_RE = re.compile(
    r"\b(algorithm|database|api|framework|library|architecture|performance|scalability)\b",
    re.IGNORECASE,
)
_NON_WORD_RE = re.compile(r"[^\w\s]")


def quick_clarity(text: str, words: int, sentences: int) -> int:
    score = 70
    if words < 10:
        score -= 30
    elif words < 20:
        score -= 15

    if sentences > 1 and 5 < words / sentences < 25:
        score += 15
    if any(mark in text for mark in ".!?"):
        score += 5
    if _STRUCTURE_RE.search(text):
        score += 10
    return int(clamp(score))


def quick_relevance(text: str, question: Question) -> int:
    text_lower = text.lower()
    question_words = [
        w for w in _NON_WORD_RE.sub("", question.text.lower()).split()
        if len(w) > 3 and w not in STOP_WORDS
    ]
    matched = sum(1 for w in question_words if w in text_lower)
    ratio = matched / len(question_words) if question_words else 0
    return min(100, round_half_up(ratio * 80 + 20))


def quick_completeness(words: int, question_type: str) -> int:
    minimum, ideal = QUICK_LENGTH_RANGES.get(str(question_type), DEFAULT_QUICK_LENGTH)
    if words < minimum * 0.5:
        return 20
    if words < minimum:
        return 50
    if words <= ideal:
        return 90
    if words <= ideal * 1.5:
        return 75
    return 60


def quick_depth(text: str, question: Question) -> int:
    score = 50
    if _EXAMPLES_RE.search(text):
        score += 20
    if _INSIGHTS_RE.search(text):
        score += 15
    if _DETAILS_RE.search(text):
        score += 10
    if question.type == "technical" and _TECH_TERMS_RE.search(text):
        score += 15
    return min(100, score)


def quick_keyword_match(text: str, expected_elements: List[str]) -> int:
    if not expected_elements:
        return 80
    text_lower = text.lower()
    matched = sum(1 for element in expected_elements if element.lower() in text_lower)
    return round_half_up(matched / len(expected_elements) * 100)


class PreliminaryScorer:
    """Fast approximation of ``TextScorer``; results carry ``AnalysisStage.PRELIMINARY``."""

    def score(self, response: Response, question: Question) -> ResponseAnalysis:
        text = response.text_content
        if not text.strip():
            return create_empty_analysis()

        words = len(text.split())
        sentences = len(split_sentences(text))

        clarity = quick_clarity(text, words, sentences)
        relevance = quick_relevance(text, question)
        completeness = quick_completeness(words, question.type)
        depth = quick_depth(text, question)
        keyword_match = quick_keyword_match(text, question.expected_elements)

        overall = round_half_up((clarity + relevance + completeness + depth) / 4)

        return ResponseAnalysis(
            clarity=ClarityScore(
                score=clarity,
                grammar_issues=[],
                structure_rating=min(10, max(1, sentences)),
                coherence_rating=7 if words > 20 else 5,
            ),
            relevance=RelevanceScore(
                score=relevance,
                keyword_match=keyword_match,
                topic_alignment=relevance,
                answer_completeness=completeness,
            ),
            depth=DepthScore(
                score=depth,
                technical_accuracy=depth,
                example_quality=80 if _EXAMPLES_RE.search(text) else 50,
                insight_level=75 if _INSIGHTS_RE.search(text) else 45,
            ),
            communication=CommunicationScore(score=clarity, confidence=70, pace=0, clarity=clarity),
            completeness=CompletenessScore(
                score=completeness,
                expected_elements_covered=keyword_match,
                missing_elements=[],
                additional_value=70 if words > 100 else 50,
            ),
            overall_score=int(clamp(overall)),
            improvement_suggestions=self._suggestions(clarity, relevance, completeness),
            strengths=self._strengths(clarity, relevance, depth, completeness),
            weaknesses=self._weaknesses(clarity, relevance, depth, completeness),
            stage=AnalysisStage.PRELIMINARY,
        )

    @staticmethod
    def _suggestions(clarity: int, relevance: int, completeness: int) -> List[str]:
        suggestions = []
        if clarity < 60:
            suggestions.append("Try to structure your response more clearly")
        if relevance < 60:
            suggestions.append("Make sure to directly address the question")
        if completeness < 60:
            suggestions.append("Consider providing more detail and examples")
        return suggestions[:QUICK_MAX_SUGGESTIONS]

    @staticmethod
    def _strengths(clarity: int, relevance: int, depth: int, completeness: int) -> List[str]:
        strengths = []
        if clarity >= 75:
            strengths.append("Clear communication")
        if relevance >= 75:
            strengths.append("Relevant response")
        if depth >= 75:
            strengths.append("Good depth of detail")
        if completeness >= 75:
            strengths.append("Comprehensive answer")
        return strengths

    @staticmethod
    def _weaknesses(clarity: int, relevance: int, depth: int, completeness: int) -> List[str]:
        weaknesses = []
        if clarity < 50:
            weaknesses.append("Could be clearer")
        if relevance < 50:
            weaknesses.append("Not fully relevant")
        if depth < 50:
            weaknesses.append("Needs more detail")
        if completeness < 50:
            weaknesses.append("Incomplete response")
        return weaknesses[:QUICK_MAX_WEAKNESSES]


def create_fallback_analysis(response: Response) -> ResponseAnalysis:
    """Length-only estimate used when the preliminary pass itself fails."""
    words = len(response.text_content.split())
    base = int(clamp(words * 2, 30, 70))

    return ResponseAnalysis(
        clarity=ClarityScore(score=base, structure_rating=5, coherence_rating=5),
        relevance=RelevanceScore(score=base, keyword_match=50, topic_alignment=50, answer_completeness=50),
        depth=DepthScore(score=base, technical_accuracy=50, example_quality=50, insight_level=50),
        communication=CommunicationScore(score=base, confidence=60, pace=0, clarity=base),
        completeness=CompletenessScore(score=base, expected_elements_covered=50, additional_value=50),
        overall_score=base,
        improvement_suggestions=[FALLBACK_SUGGESTION],
        strengths=["Provided a substantial response"] if words > 20 else [],
        weaknesses=["Response could be more detailed"] if words < 10 else [],
        stage=AnalysisStage.FALLBACK,
    )
