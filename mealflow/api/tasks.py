"""Async task polling endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from mealflow.api.dependencies import get_task_storage
from mealflow.services.task_storage_service import AsyncTaskInfo, AsyncTaskStorageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/task", tags=["tasks"])


@router.get("/batch", response_model=List[AsyncTaskInfo])
def get_task_status_batch(
    task_ids: str = Query(..., alias="taskIds", description="Comma-separated task IDs"),
    storage: AsyncTaskStorageService = Depends(get_task_storage),
):
    """
    Poll several tasks in one request.

    Unknown or expired ids are skipped.
    """
    ids = [task_id.strip() for task_id in task_ids.split(",") if task_id.strip()]
    tasks = [task for task in (storage.get_task(task_id) for task_id in ids) if task]

    logger.debug("Batch task poll: requested=%d, found=%d", len(ids), len(tasks))
    return tasks


@router.get("/{task_id}", response_model=AsyncTaskInfo)
def get_task_status(
    task_id: str,
    storage: AsyncTaskStorageService = Depends(get_task_storage),
):
    """
    Poll a single task.

    Status is PENDING, RUNNING, COMPLETED (result holds the data) or
    FAILED (errorMessage explains why). Poll every 1-2 seconds.
    """
    task = storage.get_task(task_id)
    if task is None:
        logger.warning("Task not found: task_id=%s", task_id)
        raise HTTPException(status_code=404, detail="Task not found or expired")

    return task
