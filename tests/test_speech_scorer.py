import pytest

from interview_analysis.application.analysis import FillerWordCount, PauseType
from interview_analysis.processors.audio import (
    PauseDetector,
    SpeechScorer,
    calculate_pace,
    detect_filler_words,
    frequency_to_volume,
)

CONFIDENT_TRANSCRIPT = (
    "I am confident this design will definitely scale because we measured it carefully in production."
)


@pytest.fixture
def scorer():
    return SpeechScorer()


def test_filler_words_sorted_by_count_then_word():
    fillers = detect_filler_words("Um, so I think, like, um you know it was like fine")

    assert fillers == [
        FillerWordCount(word="like", count=2),
        FillerWordCount(word="um", count=2),
        FillerWordCount(word="so", count=1),
        FillerWordCount(word="you know", count=1),
    ]


def test_filler_guards_avoid_over_matching():
    # "so" and "well" need trailing context, "right" needs a following separator
    assert detect_filler_words("I did it well") == []
    assert detect_filler_words("Turn right") == []
    assert detect_filler_words("Hmmm, mmm, oh I see") == [
        FillerWordCount(word="hmm", count=1),
        FillerWordCount(word="mmm", count=1),
        FillerWordCount(word="oh", count=1),
    ]


def test_filler_detection_is_deterministic():
    transcript = "Basically, um, I mean, it was kind of, uh, literally fine, right?"
    assert detect_filler_words(transcript) == detect_filler_words(transcript)


def test_pace_counts_words_longer_than_one_character():
    assert calculate_pace("Hello world, this is a test", 6) == 50


def test_pace_edge_cases():
    assert calculate_pace("", 10) == 0
    assert calculate_pace("some words here", 0) == 0
    assert calculate_pace("word " * 100, 1) == 500


def test_pause_detection_leading_and_trailing_silence():
    # each pause spans 1.5s, so the <3s rule makes it a hesitation rather than natural
    pauses = PauseDetector().detect([5, 5, 5, 60, 60, 5, 5, 5], 4)

    assert [(p.timestamp, p.duration) for p in pauses] == [(0.0, 1.5), (2.5, 1.5)]
    assert all(p.type == PauseType.HESITATION for p in pauses)


def test_short_pauses_are_discarded():
    assert PauseDetector().detect([5, 60, 60, 60, 60, 60, 60, 60], 2) == []


def test_pause_classification():
    natural = PauseDetector().detect([5, 60, 60, 60], 2)
    assert [p.type for p in natural] == [PauseType.NATURAL]

    thinking = PauseDetector().detect([0] * 8 + [50], 4)
    assert [p.type for p in thinking] == [PauseType.THINKING]


def test_pauses_never_overlap_and_respect_minimum():
    samples = [5, 5, 50, 5, 5, 5, 50, 50, 5, 5, 5, 5]
    pauses = PauseDetector().detect(samples, 6)

    assert all(p.duration >= 0.5 for p in pauses)
    for earlier, later in zip(pauses, pauses[1:]):
        assert earlier.end <= later.timestamp


def test_pause_detection_without_signal():
    assert PauseDetector().detect([], 5) == []
    assert PauseDetector().detect([5, 5], 0) == []


def test_confident_steady_speech(scorer):
    analysis = scorer.score(CONFIDENT_TRANSCRIPT, [50] * 10, 6)

    assert analysis.pace == 140
    assert analysis.clarity == 90
    assert analysis.confidence == 100
    assert analysis.volume == 50
    assert analysis.pauses == []
    assert analysis.communication_score().score == 95


def test_hesitant_quiet_speech(scorer):
    analysis = scorer.score("um I guess maybe", [5, 5], 2)

    assert analysis.clarity == 54
    assert analysis.confidence == 20
    assert analysis.filler_words == [FillerWordCount(word="um", count=1)]


def test_text_only_fallback(scorer):
    analysis = scorer.score_text_only("I think this works well", 30)

    assert analysis.pace == 10
    assert (analysis.clarity, analysis.confidence, analysis.volume) == (75, 70, 50)
    assert analysis.pauses == []
    assert analysis.communication_score().score == 73


@pytest.mark.parametrize("bins, expected", [
    ([0, 0, 128, 128], 100),
    ([64, 0, 64], 50),
    ([0, 0, 0], 0),
    ([], 0),
    ([255] * 4, 100),
])
def test_frequency_frames_to_volume(bins, expected):
    assert frequency_to_volume(bins) == expected
