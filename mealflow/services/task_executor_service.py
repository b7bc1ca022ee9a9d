"""
Launches the async AI analysis tasks for a logged meal.

Creates one task per TaskType in the registry, hands each handler to the
worker pool and returns the task ids right away. Handlers report back
through the registry only; whatever they raise, or a missing result, ends
as a FAILED task.
"""

import logging
from concurrent.futures import Executor
from typing import Any, Callable, Dict, Mapping, Optional

from mealflow.services.nutrition_schemas import FoodAnalysis
from mealflow.services.task_storage_service import AsyncTaskStorageService, TaskType
from mealflow.workers import analysis_handlers

logger = logging.getLogger(__name__)

TaskHandler = Callable[[FoodAnalysis], Any]

DEFAULT_HANDLERS: Dict[TaskType, TaskHandler] = {
    TaskType.GLUCOSE_TREND: analysis_handlers.glucose_trend,
    TaskType.EATING_ORDER: analysis_handlers.eating_order,
    TaskType.HEALTH_SCORE: analysis_handlers.health_score,
}


class AsyncTaskExecutorService:
    """Orchestrates async analysis tasks on a worker pool."""

    def __init__(
        self,
        storage: AsyncTaskStorageService,
        executor: Executor,
        handlers: Optional[Mapping[TaskType, TaskHandler]] = None,
    ):
        self.storage = storage
        self.executor = executor
        self.handlers = dict(handlers if handlers is not None else DEFAULT_HANDLERS)

    def start_async_tasks(
        self, analysis: FoodAnalysis, user_id: Optional[str], record_id: Optional[int]
    ) -> Dict[str, str]:
        """
        Start every analysis task for a meal without waiting for results.

        Args:
            analysis: Food analysis result (input of every handler)
            user_id: User ID
            record_id: Meal record ID the tasks belong to

        Returns:
            Mapping of task type code -> task id
        """
        task_map: Dict[str, str] = {}

        for task_type, handler in self.handlers.items():
            task = self.storage.create_task(task_type, user_id, record_id)
            task_map[task_type.code] = task.task_id
            self._submit(task.task_id, task_type, handler, analysis)

        logger.info(
            "Started %d async tasks: user_id=%s, record_id=%s",
            len(task_map),
            user_id,
            record_id,
        )
        return task_map

    def _submit(
        self, task_id: str, task_type: TaskType, handler: TaskHandler, analysis: FoodAnalysis
    ) -> None:
        try:
            self.executor.submit(self._run_task, task_id, task_type, handler, analysis)
        except RuntimeError as e:
            # Pool already shut down; the task would otherwise stay PENDING
            logger.error("Could not schedule task: task_id=%s, error=%s", task_id, e)
            self.storage.mark_failed(task_id, f"Task could not be scheduled: {e}")

    def _run_task(
        self, task_id: str, task_type: TaskType, handler: TaskHandler, analysis: FoodAnalysis
    ) -> None:
        """Handler body wrapper run on a worker thread."""
        logger.info("Running task: task_id=%s, type=%s", task_id, task_type.code)
        self.storage.mark_running(task_id)

        try:
            result = handler(analysis)
        except Exception as e:
            logger.exception("Task handler failed: task_id=%s, type=%s", task_id, task_type.code)
            self.storage.mark_failed(task_id, str(e) or type(e).__name__)
            return

        if result is None:
            # COMPLETED always carries a result
            logger.error(
                "Task handler returned no result: task_id=%s, type=%s", task_id, task_type.code
            )
            self.storage.mark_failed(task_id, "Handler returned no result")
            return

        self.storage.mark_completed(task_id, result)
