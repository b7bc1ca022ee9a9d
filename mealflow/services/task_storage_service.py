"""
In-memory registry of asynchronous analysis tasks.

Tasks are kept as frozen AsyncTaskInfo snapshots. Every state change builds
a new snapshot and swaps it into the registry under a short lock, so a poller
never sees a status that disagrees with result / error_message. The lock is
only held for the swap itself, never while a handler is working.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Optional

from pydantic import ConfigDict

from mealflow.config import settings
from mealflow.services.nutrition_schemas import CamelModel

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED})

# Forward-only: work starts RUNNING, a refused submission may fail straight
# from PENDING, and a terminal task never changes again.
ALLOWED_TRANSITIONS = {
    TaskStatus.PENDING: frozenset({TaskStatus.RUNNING, TaskStatus.FAILED}),
    TaskStatus.RUNNING: TERMINAL_STATUSES,
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


class TaskType(str, Enum):
    """Async AI analysis kinds; the value is the stable code clients key on."""

    GLUCOSE_TREND = "glucoseTrend"
    EATING_ORDER = "eatingOrder"
    HEALTH_SCORE = "healthScore"

    @property
    def code(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return TASK_DISPLAY_NAMES[self]


TASK_DISPLAY_NAMES = {
    TaskType.GLUCOSE_TREND: "Glucose trend prediction",
    TaskType.EATING_ORDER: "Eating order advice",
    TaskType.HEALTH_SCORE: "Health score analysis",
}


class AsyncTaskInfo(CamelModel):
    model_config = ConfigDict(frozen=True)

    task_id: str
    task_type: TaskType
    status: TaskStatus
    result: Optional[Any] = None  # set only when COMPLETED
    error_message: Optional[str] = None  # set only when FAILED
    user_id: Optional[str] = None
    record_id: Optional[int] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class AsyncTaskStorageService:
    """
    Thread-safe task registry keyed by task id.

    Constructed once at application start and shared by the HTTP layer
    (readers), the task executor (writers) and the TTL sweeper (deleter).
    """

    def __init__(
        self,
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.ttl = ttl if ttl is not None else timedelta(hours=settings.task_ttl_hours)
        self._clock = clock
        self._tasks: Dict[str, AsyncTaskInfo] = {}
        self._lock = threading.Lock()

    def create_task(
        self, task_type: TaskType, user_id: Optional[str], record_id: Optional[int]
    ) -> AsyncTaskInfo:
        """
        Register a new PENDING task.

        Args:
            task_type: Analysis kind
            user_id: Owning user
            record_id: Related meal record ID

        Returns:
            The created task snapshot (carries the new task_id)
        """
        task = AsyncTaskInfo(
            task_id=str(uuid.uuid4()),
            task_type=task_type,
            status=TaskStatus.PENDING,
            user_id=user_id,
            record_id=record_id,
            created_at=self._clock(),
        )
        with self._lock:
            self._tasks[task.task_id] = task

        logger.info(
            "Created async task: task_id=%s, type=%s, user_id=%s",
            task.task_id,
            task_type.code,
            user_id,
        )
        return task

    def get_task(self, task_id: str) -> Optional[AsyncTaskInfo]:
        """Current snapshot of a task, or None if unknown or expired."""
        return self._tasks.get(task_id)

    def mark_running(self, task_id: str) -> None:
        if self._transition(task_id, TaskStatus.RUNNING):
            logger.debug("Task status -> RUNNING: task_id=%s", task_id)

    def mark_completed(self, task_id: str, result: Any) -> None:
        task = self._transition(
            task_id, TaskStatus.COMPLETED, result=result, completed_at=self._clock()
        )
        if task:
            logger.info("Task completed: task_id=%s, type=%s", task_id, task.task_type.code)

    def mark_failed(self, task_id: str, error_message: str) -> None:
        task = self._transition(
            task_id,
            TaskStatus.FAILED,
            error_message=error_message,
            completed_at=self._clock(),
        )
        if task:
            logger.error("Task failed: task_id=%s, error=%s", task_id, error_message)

    def remove_task(self, task_id: str) -> None:
        with self._lock:
            self._tasks.pop(task_id, None)
        logger.debug("Task removed: task_id=%s", task_id)

    def get_task_count(self) -> int:
        return len(self._tasks)

    def cleanup_expired_tasks(self, ttl: Optional[timedelta] = None) -> int:
        """
        Remove every task created more than ttl ago.

        Args:
            ttl: Retention window (defaults to the store's ttl)

        Returns:
            Number of tasks removed
        """
        expiry_time = self._clock() - (ttl if ttl is not None else self.ttl)

        with self._lock:
            expired = [
                task_id
                for task_id, task in self._tasks.items()
                if task.created_at < expiry_time
            ]
            for task_id in expired:
                del self._tasks[task_id]
            remaining = len(self._tasks)

        if expired:
            logger.info(
                "Cleaned up expired tasks: removed=%d, remaining=%d", len(expired), remaining
            )
        return len(expired)

    def _transition(
        self, task_id: str, new_status: TaskStatus, **changes
    ) -> Optional[AsyncTaskInfo]:
        """
        Swap in a new snapshot if the transition is legal.

        Unknown ids and illegal transitions (e.g. leaving a terminal state)
        are ignored. Returns the new snapshot, or None if nothing changed.
        """
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None
            if new_status not in ALLOWED_TRANSITIONS[task.status]:
                logger.warning(
                    "Ignored task transition %s -> %s: task_id=%s",
                    task.status.value,
                    new_status.value,
                    task_id,
                )
                return None
            updated = task.model_copy(update={"status": new_status, **changes})
            self._tasks[task_id] = updated
        return updated
