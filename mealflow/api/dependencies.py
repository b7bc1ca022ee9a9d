"""FastAPI dependencies exposing the application-scoped task components."""

from fastapi import Request

from mealflow.services.task_executor_service import AsyncTaskExecutorService
from mealflow.services.task_storage_service import AsyncTaskStorageService


def get_task_storage(request: Request) -> AsyncTaskStorageService:
    return request.app.state.task_storage


def get_task_executor(request: Request) -> AsyncTaskExecutorService:
    return request.app.state.task_executor
