"""
Test configuration and fixtures for MealFlow.

- Function-scoped in-memory SQLite engine (tables created per test)
- Database session fixture
- TestClient with database dependency override; its lifespan builds a
  fresh task registry and worker pool for every test
- Zero simulated AI latency for the analysis handlers
"""

import os
from datetime import datetime, timedelta
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mealflow.config import settings
from mealflow.database import Base, get_db
from mealflow.main import app
from mealflow.services.task_storage_service import AsyncTaskStorageService
from mealflow.workers import create_task_executor


# =============================================================================
# Database Fixtures
# =============================================================================


def get_test_database_url() -> str:
    """TEST_DATABASE_URL if set, otherwise a private in-memory SQLite database."""
    return os.environ.get("TEST_DATABASE_URL", "sqlite://")


@pytest.fixture
def test_engine():
    """
    Create a test engine with all tables.

    In-memory SQLite lives as long as its single pooled connection, so each
    test starts from an empty database.
    """
    database_url = get_test_database_url()
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_url)

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(test_engine) -> Generator[Session, None, None]:
    """Database session bound to the per-test engine."""
    TestingSessionLocal = sessionmaker(bind=test_engine)
    session = TestingSessionLocal()

    yield session

    session.close()


# =============================================================================
# Async Task Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def no_handler_latency(monkeypatch):
    """Analysis handlers return immediately unless a test says otherwise."""
    monkeypatch.setattr(settings, "glucose_trend_latency_seconds", 0.0)
    monkeypatch.setattr(settings, "eating_order_latency_seconds", 0.0)
    monkeypatch.setattr(settings, "health_score_latency_seconds", 0.0)


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def task_storage(clock: FakeClock) -> AsyncTaskStorageService:
    """Task registry with a 24h TTL driven by the fake clock."""
    return AsyncTaskStorageService(ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def worker_pool():
    pool = create_task_executor(max_workers=5)
    yield pool
    pool.shutdown(wait=True)


# =============================================================================
# TestClient Fixtures
# =============================================================================


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """
    TestClient with database dependency override.

    The database session is injected into the app's get_db dependency.
    """

    def override_get_db():
        try:
            yield db
        finally:
            pass  # Don't close - managed by db fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# pytest markers
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m not slow')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
