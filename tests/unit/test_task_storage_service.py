"""
Unit tests for the in-memory async task registry.

Tests lifecycle transitions, unknown-id handling, TTL sweep and
concurrent access.
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from pydantic import ValidationError

from mealflow.services.task_storage_service import (
    AsyncTaskStorageService,
    TaskStatus,
    TaskType,
)


# =============================================================================
# Lifecycle
# =============================================================================


class TestTaskLifecycle:
    def test_create_task_is_pending(self, task_storage: AsyncTaskStorageService, clock):
        task = task_storage.create_task(TaskType.GLUCOSE_TREND, "user_a", 7)

        assert task.status == TaskStatus.PENDING
        assert task.task_type == TaskType.GLUCOSE_TREND
        assert task.user_id == "user_a"
        assert task.record_id == 7
        assert task.created_at == clock.now
        assert task.result is None
        assert task.error_message is None
        assert task.completed_at is None
        assert task_storage.get_task(task.task_id) == task

    def test_task_ids_are_unique(self, task_storage: AsyncTaskStorageService):
        ids = {task_storage.create_task(TaskType.EATING_ORDER, "u", 1).task_id for _ in range(50)}

        assert len(ids) == 50

    def test_running_then_completed(self, task_storage: AsyncTaskStorageService, clock):
        task_id = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1).task_id

        task_storage.mark_running(task_id)
        assert task_storage.get_task(task_id).status == TaskStatus.RUNNING

        clock.advance(seconds=2)
        task_storage.mark_completed(task_id, {"peakValue": 7.8})

        task = task_storage.get_task(task_id)
        assert task.status == TaskStatus.COMPLETED
        assert task.result == {"peakValue": 7.8}
        assert task.completed_at == clock.now
        assert task.error_message is None
        assert task.is_terminal

    def test_running_then_failed(self, task_storage: AsyncTaskStorageService):
        task_id = task_storage.create_task(TaskType.HEALTH_SCORE, "u", 1).task_id

        task_storage.mark_running(task_id)
        task_storage.mark_failed(task_id, "model timeout")

        task = task_storage.get_task(task_id)
        assert task.status == TaskStatus.FAILED
        assert task.error_message == "model timeout"
        assert task.result is None
        assert task.completed_at is not None

    def test_pending_cannot_complete_directly(self, task_storage: AsyncTaskStorageService):
        task = task_storage.create_task(TaskType.EATING_ORDER, "u", 1)

        task_storage.mark_completed(task.task_id, {"tips": []})

        assert task_storage.get_task(task.task_id) == task

    def test_pending_can_fail_directly(self, task_storage: AsyncTaskStorageService):
        task_id = task_storage.create_task(TaskType.EATING_ORDER, "u", 1).task_id

        task_storage.mark_failed(task_id, "Failed to schedule task")

        task = task_storage.get_task(task_id)
        assert task.status == TaskStatus.FAILED
        assert task.error_message == "Failed to schedule task"

    def test_snapshots_are_immutable(self, task_storage: AsyncTaskStorageService):
        task = task_storage.create_task(TaskType.EATING_ORDER, "u", 1)

        with pytest.raises(ValidationError):
            task.status = TaskStatus.COMPLETED

    def test_earlier_snapshot_is_not_changed_by_transitions(
        self, task_storage: AsyncTaskStorageService
    ):
        task = task_storage.create_task(TaskType.EATING_ORDER, "u", 1)

        task_storage.mark_running(task.task_id)
        task_storage.mark_completed(task.task_id, {"tips": []})

        assert task.status == TaskStatus.PENDING
        assert task.result is None


# =============================================================================
# Terminal states
# =============================================================================


class TestTerminalStates:
    def test_completing_failed_task_changes_nothing(self, task_storage: AsyncTaskStorageService):
        task_id = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1).task_id
        task_storage.mark_failed(task_id, "boom")
        failed = task_storage.get_task(task_id)

        task_storage.mark_completed(task_id, {"late": True})

        assert task_storage.get_task(task_id) == failed

    def test_failing_completed_task_changes_nothing(self, task_storage: AsyncTaskStorageService):
        task_id = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1).task_id
        task_storage.mark_running(task_id)
        task_storage.mark_completed(task_id, {"ok": True})
        completed = task_storage.get_task(task_id)

        task_storage.mark_failed(task_id, "late failure")
        task_storage.mark_running(task_id)

        assert task_storage.get_task(task_id) == completed

    def test_running_twice_is_ignored(self, task_storage: AsyncTaskStorageService):
        task_id = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1).task_id
        task_storage.mark_running(task_id)
        running = task_storage.get_task(task_id)

        task_storage.mark_running(task_id)

        assert task_storage.get_task(task_id) == running


# =============================================================================
# Unknown ids
# =============================================================================


class TestUnknownTasks:
    def test_get_unknown_task(self, task_storage: AsyncTaskStorageService):
        assert task_storage.get_task("missing") is None

    def test_mutations_on_unknown_id_are_noops(self, task_storage: AsyncTaskStorageService):
        task_storage.mark_running("missing")
        task_storage.mark_completed("missing", {"x": 1})
        task_storage.mark_failed("missing", "boom")
        task_storage.remove_task("missing")

        assert task_storage.get_task("missing") is None
        assert task_storage.get_task_count() == 0

    def test_remove_task(self, task_storage: AsyncTaskStorageService):
        task_id = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1).task_id

        task_storage.remove_task(task_id)

        assert task_storage.get_task(task_id) is None
        assert task_storage.get_task_count() == 0


# =============================================================================
# TTL sweep
# =============================================================================


class TestCleanupExpiredTasks:
    def test_task_older_than_ttl_is_removed(self, task_storage: AsyncTaskStorageService, clock):
        task_id = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1).task_id

        clock.advance(hours=24, seconds=1)

        assert task_storage.cleanup_expired_tasks() == 1
        assert task_storage.get_task(task_id) is None

    def test_task_younger_than_ttl_is_kept(self, task_storage: AsyncTaskStorageService, clock):
        task_id = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1).task_id

        clock.advance(hours=23, minutes=59, seconds=59)

        assert task_storage.cleanup_expired_tasks() == 0
        assert task_storage.get_task(task_id) is not None

    def test_task_exactly_at_ttl_is_kept(self, task_storage: AsyncTaskStorageService, clock):
        task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1)

        clock.advance(hours=24)

        assert task_storage.cleanup_expired_tasks() == 0

    def test_sweep_removes_any_status(self, task_storage: AsyncTaskStorageService, clock):
        pending = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1).task_id
        running = task_storage.create_task(TaskType.EATING_ORDER, "u", 1).task_id
        done = task_storage.create_task(TaskType.HEALTH_SCORE, "u", 1).task_id
        task_storage.mark_running(running)
        task_storage.mark_running(done)
        task_storage.mark_completed(done, {})

        clock.advance(days=2)

        assert task_storage.cleanup_expired_tasks() == 3
        for task_id in (pending, running, done):
            assert task_storage.get_task(task_id) is None

    def test_sweep_only_removes_old_tasks(self, task_storage: AsyncTaskStorageService, clock):
        old = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1).task_id
        clock.advance(hours=12)
        young = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 2).task_id
        clock.advance(hours=13)

        assert task_storage.cleanup_expired_tasks() == 1
        assert task_storage.get_task(old) is None
        assert task_storage.get_task(young) is not None
        assert task_storage.get_task_count() == 1

    def test_explicit_ttl_overrides_default(self, task_storage: AsyncTaskStorageService, clock):
        task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1)
        clock.advance(minutes=10)

        assert task_storage.cleanup_expired_tasks(ttl=timedelta(minutes=5)) == 1

    def test_default_ttl_comes_from_settings(self):
        assert AsyncTaskStorageService().ttl == timedelta(hours=24)


# =============================================================================
# Concurrency
# =============================================================================


class TestConcurrentAccess:
    def test_concurrent_creates_are_all_registered(self, task_storage: AsyncTaskStorageService):
        def create(i):
            return task_storage.create_task(TaskType.GLUCOSE_TREND, f"user_{i}", i).task_id

        with ThreadPoolExecutor(max_workers=8) as executor:
            ids = list(executor.map(create, range(200)))

        assert len(set(ids)) == 200
        assert task_storage.get_task_count() == 200

    def test_racing_completions_settle_on_one_terminal_state(
        self, task_storage: AsyncTaskStorageService
    ):
        task_id = task_storage.create_task(TaskType.GLUCOSE_TREND, "u", 1).task_id
        task_storage.mark_running(task_id)
        start = threading.Barrier(2)

        def complete():
            start.wait()
            task_storage.mark_completed(task_id, {"winner": "completed"})

        def fail():
            start.wait()
            task_storage.mark_failed(task_id, "failed")

        threads = [threading.Thread(target=complete), threading.Thread(target=fail)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        task = task_storage.get_task(task_id)
        if task.status == TaskStatus.COMPLETED:
            assert task.result == {"winner": "completed"}
            assert task.error_message is None
        else:
            assert task.status == TaskStatus.FAILED
            assert task.error_message == "failed"
            assert task.result is None

    def test_sweep_while_writers_run(self, task_storage: AsyncTaskStorageService, clock):
        old_ids = [task_storage.create_task(TaskType.EATING_ORDER, "u", i).task_id for i in range(50)]
        for task_id in old_ids:
            task_storage.mark_running(task_id)
        clock.advance(hours=25)

        def complete(task_id):
            task_storage.mark_completed(task_id, {})

        with ThreadPoolExecutor(max_workers=4) as executor:
            futures = [executor.submit(complete, task_id) for task_id in old_ids]
            removed = task_storage.cleanup_expired_tasks()
            for future in futures:
                future.result()

        assert removed == 50
        assert task_storage.get_task_count() == 0


class TestTaskType:
    def test_codes_and_display_names(self):
        assert [t.code for t in TaskType] == ["glucoseTrend", "eatingOrder", "healthScore"]
        assert TaskType.GLUCOSE_TREND.display_name == "Glucose trend prediction"
