from datetime import datetime, timedelta

import pytest

from interview_analysis.application.analysis import (
    ClarityScore,
    CommunicationScore,
    CompletenessScore,
    DepthScore,
    RelevanceScore,
    ResponseAnalysis,
    Trend,
)
from interview_analysis.application.interview_session import InterviewSession
from interview_analysis.managers.performance import (
    DIMENSIONS,
    WeightedPerformanceScorer,
    linear_trend,
    weighted_recent_average,
)

from conftest import make_response


def uniform_analysis(score):
    return ResponseAnalysis(
        clarity=ClarityScore(score=score, structure_rating=score // 10),
        relevance=RelevanceScore(score=score),
        depth=DepthScore(score=score, technical_accuracy=score, example_quality=score, insight_level=score),
        communication=CommunicationScore(score=score),
        completeness=CompletenessScore(score=score),
        overall_score=score,
    )


def session_with(score, behavioral_question, session_id="s-1", difficulty="medium"):
    response = make_response("answer", question_id=behavioral_question.id)
    return InterviewSession(
        id=session_id,
        user_id="u-1",
        start_time=datetime(2024, 5, 1, 9, 0),
        difficulty=difficulty,
        questions=[behavioral_question],
        responses=[response],
        analyses={response.id: uniform_analysis(score)},
    )


@pytest.fixture
def scorer():
    return WeightedPerformanceScorer()


def test_recency_weighted_average():
    assert weighted_recent_average([]) == 0
    assert weighted_recent_average([64]) == 64
    assert weighted_recent_average([50, 100]) == 76


def test_linear_trend():
    assert linear_trend([10, 20, 30]) == pytest.approx(10)
    assert linear_trend([50]) == 0


@pytest.mark.asyncio
async def test_session_score_dimensions_and_overall(scorer, behavioral_question):
    score = await scorer.calculate_session_score(session_with(70, behavioral_question))

    assert [ds.dimension for ds in score.dimension_scores] == list(DIMENSIONS)
    by_dimension = {ds.dimension: ds.score for ds in score.dimension_scores}
    assert by_dimension["technical_accuracy"] == 56
    assert by_dimension["behavioral_competency"] == 70
    assert by_dimension["problem_solving"] == 70
    assert score.overall_score == 69
    assert score.improvement == 0
    assert score.ranking == "50th percentile"


@pytest.mark.asyncio
async def test_ranking_depends_on_difficulty(scorer, behavioral_question):
    score = await scorer.calculate_session_score(session_with(70, behavioral_question, difficulty="hard"))
    assert score.ranking == "75th percentile"


@pytest.mark.asyncio
async def test_empty_session_scores_zero(scorer):
    session = InterviewSession(id="s-0", user_id="u-1", start_time=datetime(2024, 5, 1, 9, 0))
    score = await scorer.calculate_session_score(session)

    assert score.overall_score == 0
    assert all(ds.score == 0 and ds.trend == Trend.STABLE for ds in score.dimension_scores)
    assert score.ranking == "10th percentile"


@pytest.mark.asyncio
async def test_improvement_against_recent_sessions(scorer, behavioral_question):
    await scorer.calculate_session_score(session_with(70, behavioral_question, "s-1"))
    second = await scorer.calculate_session_score(session_with(80, behavioral_question, "s-2"))

    assert second.overall_score == 78
    assert second.improvement == 9


@pytest.mark.asyncio
async def test_trend_detection(scorer, behavioral_question):
    for index, value in enumerate((50, 60)):
        first = await scorer.calculate_session_score(session_with(value, behavioral_question, f"s-{index}"))
        assert all(ds.trend == Trend.STABLE for ds in first.dimension_scores)

    third = await scorer.calculate_session_score(session_with(70, behavioral_question, "s-3"))
    clarity = next(ds for ds in third.dimension_scores if ds.dimension == "clarity")
    assert clarity.trend == Trend.IMPROVING

    fourth = await scorer.calculate_session_score(session_with(20, behavioral_question, "s-4"))
    clarity = next(ds for ds in fourth.dimension_scores if ds.dimension == "clarity")
    assert clarity.trend == Trend.DECLINING


@pytest.mark.asyncio
async def test_recommendations_target_weakest_dimensions(scorer, behavioral_question):
    score = await scorer.calculate_session_score(session_with(50, behavioral_question))

    assert score.recommendations[0] == "Practice explaining technical concepts in simple terms"
    assert "For behavioral questions, ensure you include the outcome and impact of your actions" \
        in score.recommendations
    assert len(score.recommendations) <= 5


@pytest.mark.asyncio
async def test_very_weak_dimensions_get_foundational_recommendations(scorer, behavioral_question):
    score = await scorer.calculate_session_score(session_with(30, behavioral_question))

    assert score.recommendations[0] == "Review fundamental concepts in your target technology stack"
    assert "Practice explaining technical concepts in simple terms" not in score.recommendations


@pytest.mark.asyncio
async def test_history_is_capped_per_user(behavioral_question):
    scorer = WeightedPerformanceScorer(history_limit=3)
    for index in range(5):
        await scorer.calculate_session_score(session_with(60, behavioral_question, f"s-{index}"))

    assert [p.session_id for p in scorer.history("u-1")] == ["s-2", "s-3", "s-4"]


@pytest.mark.asyncio
async def test_progress_analytics(scorer, behavioral_question):
    await scorer.calculate_session_score(session_with(70, behavioral_question, "s-1"))
    await scorer.calculate_session_score(session_with(80, behavioral_question, "s-2"))

    progress = scorer.progress_analytics("u-1")

    assert progress.total_sessions == 2
    assert progress.average_score == 74
    assert (progress.highest_score, progress.lowest_score) == (78, 69)
    assert progress.improvement_rate == 13
    assert progress.consistency_score == 91
    assert progress.strengths == ["clarity", "relevance", "depth"]
    assert progress.weaknesses == []
    assert progress.dimension_trends["clarity"] == pytest.approx(10)


def test_progress_analytics_for_unknown_user(scorer):
    progress = scorer.progress_analytics("nobody")
    assert progress.total_sessions == 0
    assert progress.consistency_score == 100


@pytest.mark.asyncio
async def test_progress_analytics_timeframe(scorer, behavioral_question):
    await scorer.calculate_session_score(session_with(70, behavioral_question))

    later = datetime.now() + timedelta(days=10)
    assert scorer.progress_analytics("u-1", "week", now=later).total_sessions == 0
    assert scorer.progress_analytics("u-1", "month", now=later).total_sessions == 1
