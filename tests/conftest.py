"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["VIDEO_PROVIDER"] = "stub"
os.environ["TEXT_PROVIDER"] = "stub"
os.environ["AUDIO_PROVIDER"] = "stub"
os.environ["FRONTEND_URL"] = ""
for _key in (
    "OPENAI_API_KEY",
    "HAILUOAI_API_KEY",
    "MINIMAX_API_KEY",
    "STRIPE_SECRET_KEY",
    "SUPABASE_URL",
):
    os.environ[_key] = ""


@pytest.fixture(autouse=True)
def clean_database() -> Generator[None, None, None]:
    """Give every test empty tables."""
    from burstlet.db.models import Base
    from burstlet.db.session import engine

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session() -> Generator:
    from burstlet.db.session import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def dispatched() -> list[str]:
    """Job ids handed to the queue by the API during a test."""
    return []


@pytest.fixture
def test_client(dispatched: list[str]) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app with a recording dispatcher."""
    from burstlet.api.deps import get_dispatcher
    from burstlet.main import app

    def record(job_id: str) -> str:
        dispatched.append(job_id)
        return f"task-{job_id}"

    app.dependency_overrides[get_dispatcher] = lambda: record
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def stub_provider():
    """Get a stub provider that finishes video jobs on the second status check."""
    from burstlet.adapters.stub import StubProvider

    return StubProvider(steps_to_complete=2)
