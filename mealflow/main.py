import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from mealflow.api import health_stress, home, records, summary, tasks
from mealflow.config import settings
from mealflow.services.task_executor_service import AsyncTaskExecutorService
from mealflow.services.task_storage_service import AsyncTaskStorageService
from mealflow.workers import create_task_executor
from mealflow.workers.task_sweeper import TaskSweeper

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the task registry, worker pool and TTL sweeper for the app's lifetime."""
    storage = AsyncTaskStorageService()
    pool = create_task_executor()
    sweeper = TaskSweeper(storage)

    app.state.task_storage = storage
    app.state.task_executor = AsyncTaskExecutorService(storage, pool)
    sweeper.start()

    yield

    sweeper.shutdown()
    pool.shutdown(wait=False)
    logger.info("Async task infrastructure stopped")


app = FastAPI(title="MealFlow", version="0.1.0", lifespan=lifespan)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Database error, please retry"})


# Include routers
app.include_router(records.router)
app.include_router(tasks.router)
app.include_router(health_stress.router)
app.include_router(home.router)
app.include_router(summary.router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
