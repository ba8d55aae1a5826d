import re
import time
from enum import Enum
from typing import Callable, List, Optional, Sequence

import numpy as np
import structlog

from ..application.analysis import FillerWordCount, PauseSegment, PauseType, SpeechAnalysis
from ..application.interview_session import AudioSignalBundle
from ..core.exceptions import NoActiveRecording, RecordingInProgress, TranscriptionFailed
from ..core.interfaces import SpeechAnalyzer
from .rules import clamp, round_half_up, split_sentences

logger = structlog.get_logger(__name__)

# Ordered (pattern, reported word); matched case-insensitively against the whole transcript
FILLER_PATTERNS = [
    # simple fillers
    (re.compile(r"\bum\b"), "um"),
    (re.compile(r"\buh\b"), "uh"),
    (re.compile(r"\ber\b"), "er"),
    (re.compile(r"\bah\b"), "ah"),
    (re.compile(r"\behm\b"), "ehm"),
    # verbal fillers, guarded by trailing context
    (re.compile(r"\blike\b"), "like"),
    (re.compile(r"\bso\b(?=\s)"), "so"),
    (re.compile(r"\bwell\b(?=\s|,)"), "well"),
    (re.compile(r"\bokay\b"), "okay"),
    (re.compile(r"\byeah\b"), "yeah"),
    (re.compile(r"\bright\b(?=\s|,|\?)"), "right"),
    # intensifiers
    (re.compile(r"\bactually\b"), "actually"),
    (re.compile(r"\bbasically\b"), "basically"),
    (re.compile(r"\bliterally\b"), "literally"),
    (re.compile(r"\bobviously\b"), "obviously"),
    (re.compile(r"\bclearly\b"), "clearly"),
    # phrases
    (re.compile(r"\byou know\b"), "you know"),
    (re.compile(r"\bi mean\b"), "i mean"),
    (re.compile(r"\bkind of\b"), "kind of"),
    (re.compile(r"\bsort of\b"), "sort of"),
    (re.compile(r"\blet me see\b"), "let me see"),
    (re.compile(r"\blet me think\b"), "let me think"),
    # hesitation sounds
    (re.compile(r"\bhm+\b"), "hmm"),
    (re.compile(r"\bmm+\b"), "mmm"),
    (re.compile(r"\boh\b(?=\s)"), "oh"),
]

STRONG_CONFIDENCE = (
    "definitely", "certainly", "absolutely", "clearly", "obviously",
    "confident", "sure", "positive", "know for sure", "without doubt",
)
MODERATE_CONFIDENCE = ("believe", "think", "feel", "expect", "understand", "realize")
STRONG_UNCERTAINTY = ("not sure", "uncertain", "confused", "don't know", "no idea")
MODERATE_UNCERTAINTY = (
    "maybe", "perhaps", "possibly", "might", "could be", "probably",
    "i think", "i guess", "i suppose", "seems like",
)

# Defaults reported for text-only submissions
FALLBACK_CLARITY = 75
FALLBACK_CONFIDENCE = 70
FALLBACK_VOLUME = 50

MAX_PACE_WPM = 500


def detect_filler_words(transcript: str) -> List[FillerWordCount]:
    """Per-pattern filler counts, sorted by count descending then word."""
    lowered = transcript.lower()
    counts = [
        FillerWordCount(word=word, count=len(pattern.findall(lowered)))
        for pattern, word in FILLER_PATTERNS
    ]
    return sorted((c for c in counts if c.count > 0), key=lambda c: (-c.count, c.word))


def calculate_pace(transcript: str, duration_seconds: float) -> int:
    if duration_seconds <= 0 or not transcript.strip():
        return 0
    cleaned = re.sub(r"[^\w\s]", " ", transcript.lower())
    words = [w for w in cleaned.split() if len(w) > 1]
    if not words:
        return 0
    pace = len(words) / (duration_seconds / 60)
    return round_half_up(clamp(pace, 0, MAX_PACE_WPM))


def volume_stats(volume_samples: Sequence[float]) -> tuple:
    """Mean and population standard deviation of the samples; (0, 0) when empty."""
    if len(volume_samples) == 0:
        return 0.0, 0.0
    samples = np.asarray(volume_samples, dtype=float)
    return float(samples.mean()), float(samples.std())


def frequency_to_volume(frequency_bins: Sequence[int]) -> int:
    """Convert one analyser frame of byte frequency magnitudes to a 0-100 volume."""
    bins = np.asarray(frequency_bins, dtype=float)
    active = bins[bins > 0]
    if active.size == 0:
        return 0
    rms = float(np.sqrt(np.mean(active ** 2)))
    return int(clamp(round_half_up(rms / 128 * 100)))


class PauseDetector:
    """Segments silences out of a volume-sample sequence."""

    def __init__(self, silence_threshold: float = 10, min_pause_seconds: float = 0.5):
        self.silence_threshold = silence_threshold
        self.min_pause_seconds = min_pause_seconds

    def detect(self, volume_samples: Sequence[float], total_duration: float) -> List[PauseSegment]:
        if not len(volume_samples) or total_duration <= 0:
            return []

        samples_per_second = len(volume_samples) / total_duration
        pauses: List[PauseSegment] = []
        pause_start: Optional[float] = None

        for index, volume in enumerate(volume_samples):
            timestamp = index / samples_per_second
            if volume <= self.silence_threshold:
                if pause_start is None:
                    pause_start = timestamp
            elif pause_start is not None:
                self._close(pauses, pause_start, timestamp)
                pause_start = None

        # a silence still open at the last sample runs to the end of the recording
        if pause_start is not None:
            self._close(pauses, pause_start, total_duration)

        return pauses

    def _close(self, pauses: List[PauseSegment], start: float, end: float) -> None:
        duration = end - start
        if duration >= self.min_pause_seconds:
            pauses.append(PauseSegment(
                timestamp=round(start, 3),
                duration=round(duration, 3),
                type=self.classify(duration),
            ))

    @staticmethod
    def classify(duration: float) -> PauseType:
        if duration < 1:
            return PauseType.NATURAL
        if duration < 3:
            return PauseType.HESITATION
        return PauseType.THINKING


class SpeechScorer(SpeechAnalyzer):
    """
    Scores a finished recording: pace, filler words, clarity, confidence,
    average volume and pauses. Independent of how the transcript and the
    volume samples were captured.
    """

    def __init__(self, pause_detector: Optional[PauseDetector] = None):
        self.pause_detector = pause_detector or PauseDetector()

    def score(self,
              transcript: str,
              volume_samples: Sequence[float],
              duration_seconds: float) -> SpeechAnalysis:
        fillers = detect_filler_words(transcript)
        pace = calculate_pace(transcript, duration_seconds)
        mean_volume, _ = volume_stats(volume_samples)

        analysis = SpeechAnalysis(
            pace=pace,
            filler_words=fillers,
            clarity=self._clarity(transcript, fillers, volume_samples),
            confidence=self._confidence(transcript, fillers, volume_samples, pace),
            volume=round_half_up(mean_volume),
            pauses=self.pause_detector.detect(volume_samples, duration_seconds),
            transcription=transcript,
        )
        logger.debug(
            "speech_scored",
            pace=analysis.pace,
            fillers=analysis.total_fillers,
            pauses=len(analysis.pauses),
            samples=len(volume_samples),
        )
        return analysis

    def score_text_only(self, text: str, response_time: float) -> SpeechAnalysis:
        """Fallback for text submissions: no volume signal, so no pauses."""
        words = len(text.split())
        pace = round_half_up(words / (response_time / 60)) if response_time > 0 else 0
        return SpeechAnalysis(
            pace=pace,
            filler_words=detect_filler_words(text),
            clarity=FALLBACK_CLARITY,
            confidence=FALLBACK_CONFIDENCE,
            volume=FALLBACK_VOLUME,
            pauses=[],
            transcription=text,
        )

    def _clarity(self,
                 transcript: str,
                 fillers: List[FillerWordCount],
                 volume_samples: Sequence[float]) -> int:
        words = len(transcript.split())
        total_fillers = sum(f.count for f in fillers)
        filler_ratio = total_fillers / words if words else 0

        clarity = 80 - min(30, filler_ratio * 100)
        if len(volume_samples) > 0:
            _, stddev = volume_stats(volume_samples)
            consistency = max(0.0, 100 - stddev)
            clarity = (clarity + consistency) / 2
        if words < 10:
            clarity *= 0.7

        return int(clamp(round_half_up(clarity)))

    def _confidence(self,
                    transcript: str,
                    fillers: List[FillerWordCount],
                    volume_samples: Sequence[float],
                    pace: int) -> int:
        lowered = transcript.lower()
        words = len(transcript.split())
        score = 70

        score += 12 * sum(1 for p in STRONG_CONFIDENCE if p in lowered)
        score += 6 * sum(1 for p in MODERATE_CONFIDENCE if p in lowered)
        score -= 15 * sum(1 for p in STRONG_UNCERTAINTY if p in lowered)
        score -= 8 * sum(1 for p in MODERATE_UNCERTAINTY if p in lowered)

        # filler density reads as nervousness
        density = sum(f.count for f in fillers) / words if words else 0
        if density > 0.15:
            score -= 20
        elif density > 0.08:
            score -= 10

        if len(volume_samples) > 0:
            mean, stddev = volume_stats(volume_samples)
            if 40 <= mean <= 80:
                score += 8
            elif mean < 25:
                score -= 12
            elif mean > 90:
                score -= 5

            if stddev < 15:
                score += 5
            elif stddev > 30:
                score -= 8

        if 120 <= pace <= 180:
            score += 5
        elif pace < 80:
            score -= 8
        elif pace > 220:
            score -= 12

        if words < 5:
            score -= 15
        elif 20 <= words <= 100:
            score += 5

        sentences = split_sentences(transcript)
        if sentences and 8 <= words / len(sentences) <= 20:
            score += 3

        return int(clamp(round_half_up(score), 20, 100))


class RecognitionState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    INTERRUPTED = "interrupted"
    FAILED = "failed"
    STOPPED = "stopped"


TranscriptCallback = Callable[[str], None]


class LiveTranscriptionSession:
    """
    Acquisition side of a spoken answer.

    Collects interim/final transcript fragments from a recognizer and
    volume samples from analyser frames while a recording is active, and
    tracks the recognizer lifecycle as a bounded retry state machine:
    ``LISTENING -> INTERRUPTED(retry_count) -> LISTENING | FAILED``.
    ``stop()`` yields the ``AudioSignalBundle`` handed to the pipeline.
    """

    def __init__(self,
                 scorer: Optional[SpeechAnalyzer] = None,
                 max_retries: int = 3,
                 on_interim: Optional[TranscriptCallback] = None,
                 on_final: Optional[TranscriptCallback] = None,
                 on_error: Optional[TranscriptCallback] = None,
                 clock: Callable[[], float] = time.time):
        self.scorer = scorer or SpeechScorer()
        self.max_retries = max_retries
        self.on_interim = on_interim
        self.on_final = on_final
        self.on_error = on_error
        self._clock = clock

        self.state = RecognitionState.IDLE
        self.retry_count = 0
        self.started_at = 0.0
        self._final_fragments: List[str] = []
        self._volume_samples: List[float] = []

    @property
    def is_recording(self) -> bool:
        return self.state in (RecognitionState.LISTENING, RecognitionState.INTERRUPTED)

    @property
    def current_volume(self) -> float:
        if not self.is_recording or not self._volume_samples:
            return 0
        return self._volume_samples[-1]

    @property
    def elapsed(self) -> float:
        if not self.is_recording:
            return 0.0
        return self._clock() - self.started_at

    def start(self) -> None:
        if self.is_recording:
            raise RecordingInProgress()
        self._final_fragments = []
        self._volume_samples = []
        self.retry_count = 0
        self.started_at = self._clock()
        self.state = RecognitionState.LISTENING
        logger.info("recording_started", started_at=self.started_at)

    def add_frequency_frame(self, frequency_bins: Sequence[int]) -> int:
        volume = frequency_to_volume(frequency_bins)
        self.add_volume_sample(volume)
        return volume

    def add_volume_sample(self, volume: float) -> None:
        if not self.is_recording:
            raise NoActiveRecording()
        self._volume_samples.append(float(clamp(volume)))

    def handle_result(self, transcript: str, is_final: bool) -> None:
        if not self.is_recording:
            raise NoActiveRecording()
        if is_final:
            self._final_fragments.append(transcript)
            if self.on_final:
                self.on_final(transcript)
        elif self.on_interim:
            self.on_interim(transcript)

    def handle_error(self, message: str) -> None:
        logger.warning("recognition_error", error=message)
        if self.on_error:
            self.on_error(f"Speech recognition error: {message}")

    def handle_recognizer_end(self) -> RecognitionState:
        """
        React to the recognizer stopping on its own while recording.

        Moves to INTERRUPTED while retries remain (the caller restarts the
        recognizer and calls ``resume()``), otherwise to FAILED.
        """
        if self.state != RecognitionState.LISTENING:
            return self.state

        if self.retry_count < self.max_retries:
            self.retry_count += 1
            self.state = RecognitionState.INTERRUPTED
            logger.info("recognition_interrupted", attempt=self.retry_count, max_retries=self.max_retries)
        else:
            self.state = RecognitionState.FAILED
            error = TranscriptionFailed(self.retry_count)
            logger.error("recognition_failed", attempts=self.retry_count)
            if self.on_error:
                self.on_error(str(error))
        return self.state

    def resume(self) -> None:
        if self.state != RecognitionState.INTERRUPTED:
            raise NoActiveRecording()
        self.state = RecognitionState.LISTENING

    def stop(self) -> AudioSignalBundle:
        if self.state not in (RecognitionState.LISTENING,
                              RecognitionState.INTERRUPTED,
                              RecognitionState.FAILED):
            raise NoActiveRecording()

        duration = self._clock() - self.started_at
        bundle = AudioSignalBundle(
            volume_samples=list(self._volume_samples),
            started_at=self.started_at,
            transcript=" ".join(self._final_fragments).strip(),
            duration_seconds=max(0.0, duration),
        )
        self.state = RecognitionState.STOPPED
        self.retry_count = 0
        logger.info("recording_stopped", duration=bundle.duration_seconds, samples=len(bundle.volume_samples))
        return bundle

    def analyze(self, bundle: AudioSignalBundle) -> SpeechAnalysis:
        return self.scorer.score(bundle.transcript, bundle.volume_samples, bundle.duration_seconds)
