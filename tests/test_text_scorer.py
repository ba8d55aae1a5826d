import pytest

from interview_analysis.application.analysis import AnalysisStage
from interview_analysis.application.interview_session import Question
from interview_analysis.processors import text
from interview_analysis.processors.text import TextScorer

from conftest import LEADERSHIP_ANSWER, make_response

LONG_BEHAVIORAL_ANSWER = (
    "First, in my experience the situation was difficult because our release kept slipping. "
    "However, I decided to meet every engineer and map the blockers together. "
    "For example, the deployment pipeline took 3 hours, so we rebuilt it and reduced build time by 40%. "
    "I learned that visible progress keeps a team motivated. "
    "In conclusion, the result was a stable release every two weeks."
)


@pytest.fixture
def scorer():
    return TextScorer()


def test_blank_response_returns_canonical_empty_analysis(scorer, technical_question):
    analysis = scorer.score(make_response("   \n "), technical_question)

    assert analysis.overall_score == 0
    assert analysis.weaknesses == ["No response provided"]
    assert analysis.stage == AnalysisStage.EMPTY
    assert analysis.clarity.score == 0


def test_leadership_example_matches_expected_elements(scorer, technical_question):
    analysis = scorer.score(make_response(LEADERSHIP_ANSWER), technical_question)

    assert analysis.relevance.keyword_match == 100
    assert analysis.depth.example_quality >= 80
    assert analysis.completeness.missing_elements == []
    assert analysis.completeness.expected_elements_covered == 100


def test_short_uncertain_answer_scores_low(scorer, technical_question):
    analysis = scorer.score(make_response("I don't know"), technical_question)

    assert analysis.clarity.score == 70
    assert analysis.clarity.structure_rating == 3
    assert analysis.clarity.coherence_rating == 8
    assert analysis.completeness.score <= 50
    assert analysis.overall_score < 40
    assert "Missing some key elements expected in the response" in analysis.weaknesses


def test_defaults_without_expected_elements(scorer):
    question = Question(id="q-open", text="Why do you want this role?", type="behavioral")
    analysis = scorer.score(make_response("Because I enjoy building products.", question_id="q-open"), question)

    assert analysis.relevance.keyword_match == 80
    assert analysis.completeness.expected_elements_covered == 85
    assert analysis.completeness.missing_elements == []


@pytest.mark.parametrize("answer", [
    LEADERSHIP_ANSWER,
    LONG_BEHAVIORAL_ANSWER,
    "um",
    "Their going to the store.. alot!!",
    "word " * 600,
])
def test_all_scores_are_integers_in_range(scorer, behavioral_question, answer):
    analysis = scorer.score(make_response(answer, question_id="q-beh"), behavioral_question)

    scores = list(analysis.dimension_scores().values()) + [analysis.overall_score]
    for value in scores:
        assert isinstance(value, int)
        assert 0 <= value <= 100


def test_overall_is_weighted_sum(scorer, behavioral_question):
    analysis = scorer.score(make_response(LONG_BEHAVIORAL_ANSWER, question_id="q-beh"), behavioral_question)

    expected = (
        analysis.clarity.score * 0.20
        + analysis.relevance.score * 0.30
        + analysis.depth.score * 0.25
        + analysis.completeness.score * 0.25
    )
    assert abs(analysis.overall_score - expected) <= 0.5
    assert analysis.stage == AnalysisStage.COMPREHENSIVE


def test_scoring_is_deterministic(scorer, behavioral_question):
    response = make_response(LONG_BEHAVIORAL_ANSWER, question_id="q-beh")
    assert scorer.score(response, behavioral_question) == scorer.score(response, behavioral_question)


def test_missing_elements_are_reported(scorer):
    question = Question(
        id="q-star",
        text="Tell me about a failure.",
        expected_elements=["stakeholder management", "budget"],
    )
    analysis = scorer.score(make_response("We missed the deadline on the budget.", question_id="q-star"), question)

    assert analysis.completeness.missing_elements == ["stakeholder management"]
    assert analysis.completeness.expected_elements_covered == 50


def test_check_grammar_reports_each_rule_once():
    issues = text.check_grammar("Their going to the store.. alot and their  car")

    assert issues == [
        "Check usage of there/their/they're",
        "Multiple spaces detected",
        "Multiple punctuation marks",
        'Consider using "a lot" or "all right"',
    ]


def test_structure_and_coherence_ratings():
    answer = "First, I gathered requirements. Then I built it. In conclusion, it worked."

    assert text.evaluate_structure(answer) == 9
    assert text.evaluate_coherence(answer) == 9
    assert text.evaluate_structure("Just one sentence") == 3
    assert text.evaluate_coherence("Just one sentence") == 8
    assert text.evaluate_structure("") == 0
    assert text.evaluate_coherence("") == 0


@pytest.mark.parametrize("words, expected", [(30, 20), (60, 50), (100, 90), (300, 75), (400, 60)])
def test_answer_length_score_for_behavioral(words, expected):
    assert text.answer_length_score(words, "behavioral") == expected


def test_answer_length_uses_default_range_for_unknown_type():
    assert text.answer_length_score(50, "role-specific") == 90
    assert text.answer_length_score(24, "role-specific") == 20


def test_technical_accuracy_defaults_for_non_technical(behavioral_question):
    assert text.technical_accuracy_score("anything at all", behavioral_question) == 80


def test_technical_accuracy_rewards_terms_and_methodologies(technical_question):
    answer = "we used agile and tdd to improve api performance and database security"
    assert text.technical_accuracy_score(answer, technical_question) == 85


def test_insight_level():
    assert text.insight_level_score("nothing reflective here") == 50
    assert text.insight_level_score("looking back, i learned that it taught me patience") == 100


def test_topic_alignment_default_when_question_has_no_keywords():
    assert text.topic_alignment_score("any answer", "Is it?") == 70


def test_topic_alignment_only_reads_the_first_ten_response_keywords():
    question = "Explain how caching works"
    filler = "alpha bravo charlie delta echo foxtrot golf hotel india juliet kilo lima"

    assert text.topic_alignment_score(f"Explain caching works. {filler}", question) == 95
    assert text.topic_alignment_score(f"{filler} explain caching works", question) == 20


def test_sentiment_and_readability_helpers():
    assert text.sentiment("This was a great and successful project")["label"] == "positive"
    assert text.sentiment("It failed and had many problems")["label"] == "negative"
    assert text.sentiment("The meeting is at noon")["label"] == "neutral"
    assert text.flesch_reading_ease("") == 0.0
    assert text.flesch_reading_ease("The cat sat. The dog ran.") > 80
