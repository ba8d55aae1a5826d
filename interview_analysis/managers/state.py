"""
Owned mutable state of the orchestrator: the bounded result cache and the
pending comprehensive-analysis queue.
"""
import hashlib
from collections import OrderedDict, deque
from typing import Deque, Iterator, List, Optional

import structlog

from ..application.analysis import ResponseAnalysis
from ..application.interview_session import Question, Response
from ..application.tasks import AnalysisTask, Priority

logger = structlog.get_logger(__name__)

DEFAULT_CACHE_ENTRIES = 100
DEFAULT_QUEUE_CAPACITY = 10


def content_digest(response: Response, question: Question) -> str:
    """Cache key derived from the response text and the question identity."""
    content = f"{response.text_content}_{question.id}_{question.text}"
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class AnalysisCache:
    """
    Comprehensive results keyed by content digest.

    Bounded to ``max_entries``; the oldest-inserted entries are evicted
    first. Reads do not refresh an entry's position, and re-writing an
    existing key keeps its original insertion slot.
    """

    def __init__(self, max_entries: int = DEFAULT_CACHE_ENTRIES):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, ResponseAnalysis]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[ResponseAnalysis]:
        return self._entries.get(key)

    def put(self, key: str, analysis: ResponseAnalysis) -> None:
        self._entries[key] = analysis
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("cache_evicted", key=evicted[:12], size=len(self._entries))

    def keys(self) -> List[str]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class AnalysisQueue:
    """
    Pending comprehensive-analysis tasks, at most one per response id.

    ``high`` priority tasks go to the head, ``normal`` to the tail; beyond
    ``capacity`` the tail is dropped.
    """

    def __init__(self, capacity: int = DEFAULT_QUEUE_CAPACITY):
        self.capacity = capacity
        self._tasks: Deque[AnalysisTask] = deque()

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[AnalysisTask]:
        return iter(list(self._tasks))

    def __contains__(self, response_id: str) -> bool:
        return any(t.response_id == response_id for t in self._tasks)

    def push(self, task: AnalysisTask) -> List[AnalysisTask]:
        """Enqueue ``task``; returns the tasks dropped off the tail by the capacity bound."""
        replaced = [t for t in self._tasks if t.response_id == task.response_id]
        for stale in replaced:
            self._tasks.remove(stale)
        if replaced:
            logger.debug("task_replaced", response_id=task.response_id)

        if task.priority == Priority.HIGH:
            self._tasks.appendleft(task)
        else:
            self._tasks.append(task)

        dropped = []
        while len(self._tasks) > self.capacity:
            dropped.append(self._tasks.pop())
        for task_dropped in dropped:
            logger.warning("task_dropped", response_id=task_dropped.response_id, capacity=self.capacity)
        return dropped

    def pop(self) -> Optional[AnalysisTask]:
        return self._tasks.popleft() if self._tasks else None

    def pending_ids(self) -> List[str]:
        return [t.response_id for t in self._tasks]

    def clear(self) -> None:
        self._tasks.clear()
