import re
from typing import Dict, List, Tuple

import structlog

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
from ..core.interfaces import ResponseScorer
from . import rules
from .rules import clamp, round_half_up

logger = structlog.get_logger(__name__)

# Overall score weights; communication is reported but not weighted
SCORE_WEIGHTS = {
    "clarity": 0.20,
    "relevance": 0.30,
    "depth": 0.25,
    "completeness": 0.25,
}

class TextScorer(ResponseScorer):
    """
    Full heuristic scoring of a written (or transcribed) response.

    Produces clarity, relevance, depth and completeness sub-scores from the
    static rule tables in ``rules``, a text-derived communication estimate,
    and threshold-based strengths, weaknesses and suggestions. Pure and
    deterministic: the same response and question always give the same result.
    """

    def score(self, response: Response, question: Question) -> ResponseAnalysis:
        text = response.text_content.strip()
        if not text:
            return create_empty_analysis()

        clarity = self.score_clarity(text)
        relevance = self.score_relevance(text, question)
        depth = self.score_depth(text, question)
        completeness = self.score_completeness(text, question)

        overall = round_half_up(
            clarity.score * SCORE_WEIGHTS["clarity"]
            + relevance.score * SCORE_WEIGHTS["relevance"]
            + depth.score * SCORE_WEIGHTS["depth"]
            + completeness.score * SCORE_WEIGHTS["completeness"]
        )
        strengths, weaknesses, suggestions = generate_feedback(clarity, relevance, depth, completeness)

        communication = CommunicationScore(
            score=clarity.score,
            confidence=estimate_text_confidence(text),
            pace=reading_pace(text, response.response_time),
            filler_words=[],
            clarity=clarity.score,
        )

        return ResponseAnalysis(
            clarity=clarity,
            relevance=relevance,
            depth=depth,
            communication=communication,
            completeness=completeness,
            overall_score=int(clamp(overall)),
            improvement_suggestions=suggestions,
            strengths=strengths,
            weaknesses=weaknesses,
            stage=AnalysisStage.COMPREHENSIVE,
        )

    # Clarity

    def score_clarity(self, text: str) -> ClarityScore:
        grammar_issues = check_grammar(text)
        structure = evaluate_structure(text)
        coherence = evaluate_coherence(text)

        grammar_score = max(0, 100 - len(grammar_issues) * 10)
        score = (grammar_score + structure * 10 + coherence * 10) / 3

        return ClarityScore(
            score=int(clamp(round_half_up(score))),
            grammar_issues=grammar_issues,
            structure_rating=structure,
            coherence_rating=coherence,
        )

    # Relevance

    def score_relevance(self, text: str, question: Question) -> RelevanceScore:
        keyword_match = keyword_match_score(text, question.expected_elements)
        topic_alignment = topic_alignment_score(text, question.text)
        answer_completeness = answer_length_score(rules.word_count(text), question.type)

        score = round_half_up((keyword_match + topic_alignment + answer_completeness) / 3)
        return RelevanceScore(
            score=int(clamp(score)),
            keyword_match=keyword_match,
            topic_alignment=topic_alignment,
            answer_completeness=answer_completeness,
        )

    # Depth

    def score_depth(self, text: str, question: Question) -> DepthScore:
        text_lower = text.lower()
        technical = technical_accuracy_score(text_lower, question)
        examples = example_quality_score(text_lower)
        insight = insight_level_score(text_lower)

        score = round_half_up((technical + examples + insight) / 3)
        return DepthScore(
            score=int(clamp(score)),
            technical_accuracy=technical,
            example_quality=examples,
            insight_level=insight,
        )

    # Completeness

    def score_completeness(self, text: str, question: Question) -> CompletenessScore:
        text_lower = text.lower()
        missing = find_missing_elements(text_lower, question.expected_elements)
        if question.expected_elements:
            covered = len(question.expected_elements) - len(missing)
            coverage = round_half_up(covered / len(question.expected_elements) * 100)
        else:
            coverage = 85
        additional = additional_value_score(text_lower)

        score = round_half_up((coverage + additional) / 2)
        return CompletenessScore(
            score=int(clamp(score)),
            expected_elements_covered=coverage,
            missing_elements=missing,
            additional_value=additional,
        )


def check_grammar(text: str) -> List[str]:
    """Distinct rule messages triggered anywhere in the text, in rule order."""
    return [message for pattern, message in rules.GRAMMAR_RULES if pattern.search(text)]


def evaluate_structure(text: str) -> int:
    sentences = rules.split_sentences(text)
    if not sentences:
        return 0
    if len(sentences) == 1:
        return 3
    if len(sentences) == 2:
        return 5

    score = 5
    if rules.contains_any(sentences[0].lower(), rules.INTRODUCTORY_PHRASES):
        score += 2
    if rules.contains_any(sentences[-1].lower(), rules.CONCLUSIVE_PHRASES):
        score += 2
    if rules.count_words_present(text.lower(), rules.LOGICAL_FLOW_WORDS):
        score += 1
    return min(10, score)


def evaluate_coherence(text: str) -> int:
    sentences = rules.split_sentences(text)
    if len(sentences) <= 1:
        return 8 if sentences else 0

    score = 5
    score += min(3, rules.count_words_present(text.lower(), rules.TRANSITION_WORDS))
    back_references = sum(
        1 for sentence in sentences[1:]
        if rules.BACK_REFERENCE_RE.search(sentence.lower())
    )
    score += min(2, back_references)
    return min(10, score)


def keyword_match_score(text: str, expected_elements: List[str]) -> int:
    if not expected_elements:
        return 80
    text_lower = text.lower()
    matched = sum(1 for element in expected_elements if rules.matches_element(text_lower, element))
    return round_half_up(matched / len(expected_elements) * 100)


def topic_alignment_score(text: str, question_text: str) -> int:
    question_keywords = rules.extract_keywords(question_text, limit=10)
    if not question_keywords:
        return 70
    response_keywords = set(rules.extract_keywords(text, limit=10))
    overlap = sum(1 for keyword in question_keywords if keyword in response_keywords)
    return int(min(100, round_half_up(overlap / len(question_keywords) * 100) + 20))


def answer_length_score(words: int, question_type: str) -> int:
    minimum, maximum = rules.ANSWER_LENGTH_RANGES.get(str(question_type), rules.DEFAULT_ANSWER_LENGTH)
    if words < minimum * 0.5:
        return 20
    if words < minimum:
        return 50
    if words <= maximum:
        return 90
    if words <= maximum * 1.5:
        return 75
    return 60


def technical_accuracy_score(text_lower: str, question: Question) -> int:
    if not question.is_technical:
        return 80

    terms = rules.count_matches(text_lower, rules.TECHNICAL_TERM_PATTERNS)
    examples = rules.count_matches(text_lower, rules.SPECIFIC_EXAMPLE_PATTERNS)
    methodologies = len(set(rules.METHODOLOGY_RE.findall(text_lower)))

    score = 50
    score += min(20, terms * 5)
    score += min(15, examples * 7)
    score += min(15, methodologies * 8)
    return min(100, score)


def example_quality_score(text_lower: str) -> int:
    score = 40
    if rules.contains_any(text_lower, rules.EXAMPLE_PHRASES):
        score += 25
    if rules.SPECIFIC_DETAIL_RE.search(text_lower):
        score += 20
    if any(p.search(text_lower) for p in rules.QUANTIFIED_RESULT_PATTERNS):
        score += 15
    return min(100, score)


def insight_level_score(text_lower: str) -> int:
    score = 50
    if rules.contains_any(text_lower, rules.INSIGHT_PHRASES):
        score += 20
    if rules.contains_any(text_lower, rules.REFLECTIVE_PHRASES):
        score += 15
    if rules.contains_any(text_lower, rules.LESSON_PHRASES):
        score += 15
    return min(100, score)


def _overlaps_by_word(text_lower: str, element: str) -> bool:
    tokens = set(re.findall(r"[\w']+", text_lower))
    words = [w for w in re.findall(r"[\w']+", element.lower()) if len(w) > 2 and w not in rules.STOP_WORDS]
    return any(w in tokens for w in words)


def find_missing_elements(text_lower: str, expected_elements: List[str]) -> List[str]:
    return [
        element for element in expected_elements
        if not rules.matches_element(text_lower, element) and not _overlaps_by_word(text_lower, element)
    ]


def additional_value_score(text_lower: str) -> int:
    score = 60
    for phrases in (
        rules.PERSONAL_EXPERIENCE_PHRASES,
        rules.INNOVATION_PHRASES,
        rules.PERSPECTIVE_PHRASES,
        rules.ACTIONABLE_PHRASES,
    ):
        if rules.contains_any(text_lower, phrases):
            score += 10
    return min(100, score)


def estimate_text_confidence(text: str) -> int:
    text_lower = text.lower()
    score = 70
    score += rules.count_present(text_lower, rules.CONFIDENCE_PHRASES) * 10
    score -= rules.count_present(text_lower, rules.UNCERTAINTY_PHRASES) * 8
    return int(clamp(score, 20, 100))


def reading_pace(text: str, response_time_seconds: float) -> int:
    """Typing/thinking pace in words per minute; 0 when no time was recorded."""
    minutes = response_time_seconds / 60
    if minutes <= 0:
        return 0
    return round_half_up(rules.word_count(text) / minutes)


def generate_feedback(
    clarity: ClarityScore,
    relevance: RelevanceScore,
    depth: DepthScore,
    completeness: CompletenessScore,
) -> Tuple[List[str], List[str], List[str]]:
    strengths: List[str] = []
    weaknesses: List[str] = []
    suggestions: List[str] = []

    if clarity.score >= 80:
        strengths.append("Clear and well-structured response")
    if relevance.score >= 80:
        strengths.append("Highly relevant to the question asked")
    if depth.score >= 80:
        strengths.append("Demonstrates deep understanding")
    if completeness.score >= 80:
        strengths.append("Comprehensive coverage of key points")

    if clarity.score < 60:
        weaknesses.append("Response could be clearer and better structured")
        suggestions.append("Try organizing your response with a clear beginning, middle, and end")
    if relevance.score < 60:
        weaknesses.append("Response doesn't fully address the question")
        suggestions.append("Make sure to directly answer what's being asked before adding additional context")
    if depth.score < 60:
        weaknesses.append("Could provide more detailed examples and insights")
        suggestions.append("Include specific examples from your experience to demonstrate your points")
    if completeness.score < 60:
        weaknesses.append("Missing some key elements expected in the response")
        suggestions.append("Consider the STAR method (Situation, Task, Action, Result) for behavioral questions")

    if clarity.grammar_issues:
        suggestions.append("Review your response for grammar and clarity before submitting")

    return strengths, weaknesses, suggestions


def create_empty_analysis() -> ResponseAnalysis:
    """Canonical all-zero analysis for a blank response."""
    return ResponseAnalysis(
        clarity=ClarityScore(score=0, grammar_issues=["No response provided"]),
        relevance=RelevanceScore(score=0),
        depth=DepthScore(score=0),
        communication=CommunicationScore(score=0),
        completeness=CompletenessScore(score=0),
        overall_score=0,
        improvement_suggestions=["Please provide a response to receive analysis"],
        strengths=[],
        weaknesses=["No response provided"],
        stage=AnalysisStage.EMPTY,
    )


def flesch_reading_ease(text: str) -> float:
    sentences = len(rules.split_sentences(text))
    words = rules.word_count(text)
    if sentences == 0 or words == 0:
        return 0.0
    syllables = sum(
        max(1, len(re.findall(r"[aeiouy]+", word)))
        for word in re.findall(r"[a-z]+", text.lower())
    ) or 1
    return 206.835 - 1.015 * (words / sentences) - 84.6 * (syllables / words)


def sentiment(text: str) -> Dict[str, object]:
    """Lexicon sentiment: score 0-100 (50 neutral) and a coarse label."""
    text_lower = text.lower()
    positive = rules.count_present(text_lower, rules.POSITIVE_WORDS)
    negative = rules.count_present(text_lower, rules.NEGATIVE_WORDS)
    polarity = (positive - negative) / max(1, positive + negative)

    label = "neutral"
    if polarity > 0.2:
        label = "positive"
    elif polarity < -0.2:
        label = "negative"
    return {"score": round_half_up((polarity + 1) * 50), "label": label}
