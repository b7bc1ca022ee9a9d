"""
Periodic TTL sweep of the async task registry.

Runs AsyncTaskStorageService.cleanup_expired_tasks on an APScheduler
background thread, off the request path.
"""

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from mealflow.config import settings
from mealflow.services.task_storage_service import AsyncTaskStorageService

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "async_task_ttl_sweep"


class TaskSweeper:
    """Owns the scheduler that evicts expired tasks."""

    def __init__(
        self,
        storage: AsyncTaskStorageService,
        interval_seconds: Optional[int] = None,
    ) -> None:
        self.storage = storage
        self.interval_seconds = interval_seconds or settings.task_sweep_interval_seconds
        self.scheduler: Optional[BackgroundScheduler] = None

    def start(self) -> None:
        """Create the scheduler, register the sweep job and start it."""
        if self.scheduler is not None and self.scheduler.running:
            logger.warning("Task sweeper already running")
            return

        self.scheduler = BackgroundScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,  # Combine missed runs
                "max_instances": 1,
            },
        )
        self.scheduler.add_job(
            self.sweep,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=SWEEP_JOB_ID,
            name="Async task TTL sweep",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Task sweeper started: interval=%ss", self.interval_seconds)

    def sweep(self) -> int:
        return self.storage.cleanup_expired_tasks()

    def shutdown(self, wait: bool = False) -> None:
        if self.scheduler is None or not self.scheduler.running:
            logger.warning("Task sweeper not running")
            return

        self.scheduler.shutdown(wait=wait)
        logger.info("Task sweeper shutdown (wait=%s)", wait)
