"""
Worker infrastructure for async analysis tasks.

Handlers run on a process-local thread pool so they can update the
in-memory task registry directly.
"""
from concurrent.futures import ThreadPoolExecutor

from mealflow.config import settings

THREAD_NAME_PREFIX = "async-task"


def create_task_executor(max_workers: int | None = None) -> ThreadPoolExecutor:
    """Build the pool that runs analysis handlers."""
    return ThreadPoolExecutor(
        max_workers=max_workers or settings.task_worker_count,
        thread_name_prefix=THREAD_NAME_PREFIX,
    )
