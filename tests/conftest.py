"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from contextlib import AbstractContextManager, contextmanager
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_BROKER_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_RESULT_BACKEND"] = "redis://localhost:6379/1"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DIRECTORY_PROVIDER"] = "stub"
os.environ["STORAGE_PROVIDER"] = "stub"
os.environ["NOTIFIER_PROVIDER"] = "stub"
os.environ["SYNC_API_KEY"] = "test-sync-key"

API_KEY = "test-sync-key"
MATCH_START = datetime(2024, 6, 15, 18, 0, tzinfo=UTC)


class FakeClock:
    """Monotonic clock advanced only by the paired sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with the full schema."""
    from recording_sync.db.models import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> Callable[[], AbstractContextManager[Session]]:
    """Transactional session context bound to the test engine."""
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    @contextmanager
    def session_context() -> Generator[Session, None, None]:
        session = factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return session_context


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """A session for arranging and asserting on rows."""
    with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def directory():
    """Get a stub session directory."""
    from recording_sync.adapters.directory.stub import StubSessionDirectory

    return StubSessionDirectory()


@pytest.fixture
def store():
    """Get a stub object store."""
    from recording_sync.adapters.storage.stub import StubObjectStore

    return StubObjectStore()


@pytest.fixture
def notifier():
    """Get a stub notifier."""
    from recording_sync.adapters.notifier.stub import StubNotifier

    return StubNotifier()


@pytest.fixture
def reconciler(directory, store, notifier, session_factory, clock):
    """Reconciler wired to stubs, SQLite and a fake clock."""
    from recording_sync.services.reconciler import RecordingReconciler

    return RecordingReconciler(
        directory=directory,
        store=store,
        notifier=notifier,
        session_factory=session_factory,
        poll_interval=5,
        max_wait=600,
        sleep=clock.sleep,
        clock=clock,
    )


@pytest.fixture
def api_client(reconciler) -> Generator[TestClient, None, None]:
    """Test client whose routes use the stub-backed reconciler."""
    from recording_sync.api.deps import get_reconciler
    from recording_sync.main import app

    async def override() -> object:
        return reconciler

    app.dependency_overrides[get_reconciler] = override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from recording_sync.main import app

    with TestClient(app) as client:
        yield client
