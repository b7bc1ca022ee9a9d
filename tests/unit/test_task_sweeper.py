"""Unit tests for the scheduled TTL sweep."""
from apscheduler.triggers.interval import IntervalTrigger

from mealflow.services.task_storage_service import AsyncTaskStorageService, TaskType
from mealflow.workers.task_sweeper import SWEEP_JOB_ID, TaskSweeper


class TestTaskSweeper:
    def test_sweep_removes_expired_tasks(self, task_storage: AsyncTaskStorageService, clock):
        task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1)
        clock.advance(hours=25)
        task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 2)

        assert TaskSweeper(task_storage).sweep() == 1
        assert task_storage.get_task_count() == 1

    def test_start_registers_interval_job(self, task_storage: AsyncTaskStorageService):
        sweeper = TaskSweeper(task_storage, interval_seconds=600)
        sweeper.start()
        try:
            job = sweeper.scheduler.get_job(SWEEP_JOB_ID)
            assert job is not None
            assert isinstance(job.trigger, IntervalTrigger)
            assert job.trigger.interval.total_seconds() == 600
        finally:
            sweeper.shutdown()

        assert not sweeper.scheduler.running

    def test_default_interval_is_hourly(self, task_storage: AsyncTaskStorageService):
        assert TaskSweeper(task_storage).interval_seconds == 3600

    def test_start_twice_keeps_one_scheduler(self, task_storage: AsyncTaskStorageService):
        sweeper = TaskSweeper(task_storage)
        sweeper.start()
        scheduler = sweeper.scheduler
        try:
            sweeper.start()
            assert sweeper.scheduler is scheduler
        finally:
            sweeper.shutdown()

    def test_shutdown_without_start(self, task_storage: AsyncTaskStorageService):
        TaskSweeper(task_storage).shutdown()
