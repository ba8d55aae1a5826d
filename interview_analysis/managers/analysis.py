import asyncio
from collections import OrderedDict
from typing import List, Optional, Sequence, Set

import structlog

from ..application.analysis import AnalysisStage, DimensionScore, ResponseAnalysis, SessionAnalysis, SpeechAnalysis
from ..application.interview_session import InterviewSession, Question, Response
from ..application.tasks import AnalysisTask, Priority, ResponseState
from ..core.config import Settings, get_settings
from ..core.exceptions import ScoringFailure
from ..core.interfaces import PerformanceScorer, ResponseScorer, SpeechAnalyzer
from ..processors.audio import LiveTranscriptionSession, PauseDetector, SpeechScorer
from ..processors.preliminary import PreliminaryScorer, create_fallback_analysis
from ..processors.rules import round_half_up
from ..processors.text import TextScorer
from .events import AnalysisEvent, AnalysisEventBus, AnalysisEventType
from .performance import WeightedPerformanceScorer
from .state import AnalysisCache, AnalysisQueue, content_digest

logger = structlog.get_logger(__name__)

PROGRESS_MESSAGES = (
    "Analyzing response structure...",
    "Checking relevance and completeness...",
    "Evaluating depth and insights...",
    "Generating personalized feedback...",
)

SESSION_STRENGTH_THRESHOLD = 70
SESSION_IMPROVEMENT_THRESHOLD = 60
SESSION_TOP_N = 3

FINISHED_STATES = frozenset({
    ResponseState.DELIVERED,
    ResponseState.COMPREHENSIVE_DELIVERED,
    ResponseState.FAILED,
})


class AnalysisOrchestrator:
    """
    Sequences the preliminary and comprehensive passes for submitted responses.

    A submission is answered from the cache when possible; otherwise a fast
    preliminary analysis is returned straight away and a comprehensive
    re-score is queued for a single background drain loop. Lifecycle events
    go out on ``events`` keyed by response id (or session id for session
    aggregation). "preliminary" always precedes "complete" for a response id
    and "complete" is emitted at most once per response id.

    All cache/queue mutation happens on the event loop thread.
    """

    def __init__(self,
                 text_scorer: Optional[ResponseScorer] = None,
                 speech_scorer: Optional[SpeechAnalyzer] = None,
                 preliminary_scorer: Optional[PreliminaryScorer] = None,
                 performance_scorer: Optional[PerformanceScorer] = None,
                 events: Optional[AnalysisEventBus] = None,
                 settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.text_scorer = text_scorer or TextScorer()
        self.speech_scorer = speech_scorer or SpeechScorer(
            PauseDetector(self.settings.SILENCE_THRESHOLD, self.settings.MIN_PAUSE_SECONDS)
        )
        self.preliminary_scorer = preliminary_scorer or PreliminaryScorer()
        self.performance_scorer = performance_scorer or WeightedPerformanceScorer()
        self.events = events or AnalysisEventBus()

        self.cache = AnalysisCache(self.settings.CACHE_MAX_ENTRIES)
        self.queue = AnalysisQueue(self.settings.QUEUE_CAPACITY)
        self.states: "OrderedDict[str, ResponseState]" = OrderedDict()

        self._completed: Set[str] = set()
        self._drain_task: Optional[asyncio.Task] = None
        self._progress_tasks: List[asyncio.Task] = []

    @property
    def is_processing(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    def state_of(self, response_id: str) -> Optional[ResponseState]:
        return self.states.get(response_id)

    # Direct scoring

    def score_response(self, response: Response, question: Question) -> ResponseAnalysis:
        """Full comprehensive pass, merging speech metrics when the response carries audio."""
        analysis = self.text_scorer.score(response, question)
        if response.has_audio and analysis.stage != AnalysisStage.EMPTY:
            speech = self.speech_scorer.score(
                response.audio.transcript or response.text_content,
                response.audio.volume_samples,
                response.audio.duration_seconds or response.response_time,
            )
            analysis = analysis.with_communication(speech.communication_score())
        return analysis

    def score_speech(self,
                     transcript: str,
                     volume_samples: Optional[Sequence[float]] = None,
                     duration_seconds: float = 0.0,
                     response_time: float = 0.0) -> SpeechAnalysis:
        """Speech metrics for a recording, or the text-only fallback when no samples exist."""
        if not volume_samples:
            return self.speech_scorer.score_text_only(transcript, response_time or duration_seconds)
        return self.speech_scorer.score(transcript, volume_samples, duration_seconds)

    def transcription_session(self, **callbacks) -> LiveTranscriptionSession:
        """New live recording scored by this orchestrator's speech scorer."""
        return LiveTranscriptionSession(
            self.speech_scorer,
            max_retries=self.settings.MAX_RECOGNITION_RETRIES,
            **callbacks,
        )

    def score_preliminary(self, response: Response, question: Question) -> ResponseAnalysis:
        analysis = self.preliminary_scorer.score(response, question)
        if response.has_audio and analysis.stage != AnalysisStage.EMPTY:
            speech = self.speech_scorer.score_text_only(response.text_content, response.response_time)
            analysis = analysis.with_communication(speech.communication_score())
        return analysis

    # Submission pipeline

    async def submit(self,
                     response: Response,
                     question: Question,
                     priority: Priority = Priority.NORMAL) -> ResponseAnalysis:
        log = logger.bind(response_id=response.id, priority=Priority(priority).value)
        key = content_digest(response, question)

        cached = self.cache.get(key)
        if cached is not None:
            if response.id not in self._completed:
                self._completed.add(response.id)
                self._set_state(response.id, ResponseState.DELIVERED)
                self._emit(AnalysisEventType.COMPLETE, response.id, analysis=cached)
            log.info("cache_hit", cache_size=len(self.cache))
            return cached

        if response.id in self._completed:
            # a delivered response id is final; score inline without further events
            log.warning("response_already_delivered")
            analysis = self.score_response(response, question)
            self.cache.put(key, analysis)
            return analysis

        self._set_state(response.id, ResponseState.SUBMITTED)
        self._emit(AnalysisEventType.START, response.id)
        if self.settings.PROGRESSIVE_FEEDBACK:
            self.start_progress_feedback(response.id)

        try:
            preliminary = self.score_preliminary(response, question)
        except Exception as exc:
            failure = ScoringFailure(AnalysisStage.PRELIMINARY.value, response.id, exc)
            log.exception("preliminary_failed", error=str(failure))
            preliminary = create_fallback_analysis(response)

        self._set_state(response.id, ResponseState.PRELIMINARY_DELIVERED)
        self._emit(AnalysisEventType.PRELIMINARY, response.id, analysis=preliminary)

        dropped = self.queue.push(AnalysisTask(response=response, question=question, priority=Priority(priority)))
        self._set_state(response.id, ResponseState.QUEUED)
        for task in dropped:
            self._set_state(task.response_id, ResponseState.PRELIMINARY_DELIVERED)

        log.info("analysis_queued", queue_depth=len(self.queue), overall_score=preliminary.overall_score)
        self._ensure_draining()
        return preliminary

    def _ensure_draining(self) -> None:
        if not self.is_processing and len(self.queue):
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        logger.debug("drain_started", queue_depth=len(self.queue))
        while len(self.queue):
            task = self.queue.pop()
            self._process(task)
            await asyncio.sleep(self.settings.DRAIN_DELAY_MS / 1000)
        logger.debug("drain_idle", cache_size=len(self.cache))

    def _process(self, task: AnalysisTask) -> None:
        response_id = task.response_id
        with structlog.contextvars.bound_contextvars(response_id=response_id):
            self._set_state(response_id, ResponseState.PROCESSING)
            try:
                analysis = self.score_response(task.response, task.question)
            except Exception as exc:
                failure = ScoringFailure(AnalysisStage.COMPREHENSIVE.value, response_id, exc)
                logger.exception("comprehensive_failed", error=str(failure))
                self._set_state(response_id, ResponseState.FAILED)
                self._emit(AnalysisEventType.ERROR, response_id, error=str(failure))
                return

            self.cache.put(content_digest(task.response, task.question), analysis)
            if response_id in self._completed:
                logger.debug("completion_suppressed")
                return

            self._completed.add(response_id)
            self._set_state(response_id, ResponseState.COMPREHENSIVE_DELIVERED)
            self._emit(AnalysisEventType.COMPLETE, response_id, analysis=analysis)
            logger.info("analysis_complete", overall_score=analysis.overall_score, cache_size=len(self.cache))

    async def wait_idle(self) -> None:
        """Wait until the drain loop has emptied the queue."""
        while self.is_processing:
            await self._drain_task

    # Progressive feedback

    def start_progress_feedback(self, response_id: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._progress(response_id))
        self._progress_tasks = [t for t in self._progress_tasks if not t.done()] + [task]
        return task

    async def _progress(self, response_id: str) -> None:
        step = self.settings.PROGRESS_STEP_MS / 1000
        total = len(PROGRESS_MESSAGES)
        for index, message in enumerate(PROGRESS_MESSAGES, start=1):
            await asyncio.sleep(step)
            self._emit(AnalysisEventType.PROGRESS, response_id, message=message, progress=index / total)

    # Session aggregation

    async def analyze_session(self, session: InterviewSession) -> SessionAnalysis:
        log = logger.bind(session_id=session.id)
        self._emit(AnalysisEventType.START, session.id)
        try:
            performance = await self.performance_scorer.calculate_session_score(session)
            analysis = SessionAnalysis(
                session_id=session.id,
                overall_score=performance.overall_score,
                dimension_scores=performance.dimension_scores,
                improvement=performance.improvement,
                time_spent=session_minutes(session),
                questions_answered=len(session.responses),
                strengths=top_dimensions(performance.dimension_scores, lambda s: s >= SESSION_STRENGTH_THRESHOLD),
                improvement_areas=top_dimensions(
                    performance.dimension_scores, lambda s: s < SESSION_IMPROVEMENT_THRESHOLD
                ),
                recommendations=performance.recommendations,
            )
        except Exception as exc:
            failure = ScoringFailure("session", session.id, exc)
            log.exception("session_analysis_failed", error=str(failure))
            self._emit(AnalysisEventType.ERROR, session.id, error=str(failure))
            return SessionAnalysis.empty(session.id)

        self._emit(AnalysisEventType.COMPLETE, session.id, session_analysis=analysis)
        log.info("session_analyzed", overall_score=analysis.overall_score, questions=analysis.questions_answered)
        return analysis

    async def close(self) -> None:
        """Cancel background work and drop all state."""
        for task in self._progress_tasks + ([self._drain_task] if self._drain_task else []):
            task.cancel()
        await asyncio.gather(*self._progress_tasks, return_exceptions=True)
        if self._drain_task is not None:
            await asyncio.gather(self._drain_task, return_exceptions=True)
        self._progress_tasks = []
        self._drain_task = None
        self.cache.clear()
        self.queue.clear()
        self.states.clear()
        self._completed.clear()

    def _set_state(self, response_id: str, state: ResponseState) -> None:
        """Record a state change, then forget the oldest settled ids beyond the cache bound."""
        self.states[response_id] = state
        self.states.move_to_end(response_id)
        excess = len(self.states) - self.settings.CACHE_MAX_ENTRIES
        if excess <= 0:
            return
        stale = [rid for rid, current in self.states.items()
                 if rid != response_id and self._is_settled(rid, current)][:excess]
        for rid in stale:
            del self.states[rid]
            self._completed.discard(rid)

    def _is_settled(self, response_id: str, state: ResponseState) -> bool:
        # a preliminary-only id whose task was dropped from the queue never progresses
        if state == ResponseState.PRELIMINARY_DELIVERED:
            return response_id not in self.queue
        return state in FINISHED_STATES

    def _emit(self, event_type: AnalysisEventType, subject_id: str, **payload) -> None:
        self.events.emit(AnalysisEvent(type=event_type, subject_id=subject_id, **payload))


def session_minutes(session: InterviewSession) -> int:
    if session.end_time is None:
        return 0
    return round_half_up((session.end_time - session.start_time).total_seconds() / 60)


def top_dimensions(dimension_scores: List[DimensionScore], predicate) -> List[str]:
    return [ds.dimension for ds in dimension_scores if predicate(ds.score)][:SESSION_TOP_N]
