"""Integration test fixtures for database and HTTP client operations.

Each test gets its own SQLite database file so that separate sessions use
separate connections, which is what the concurrency tests rely on.
"""

from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import src.staffing.models  # noqa: F401 - registers tables on the metadata
from src.staffing.api.dependencies import (
    get_candidate_directory,
    get_db_session,
    get_notifier,
    get_staffing_cache,
)
from src.staffing.core import redis as redis_core
from src.staffing.core.cache import StaffingCache
from src.staffing.core.config import Settings
from src.staffing.core.db import get_session_factory
from src.staffing.main import create_app
from src.staffing.services import BookingService, InMemoryCandidateDirectory, ProjectService
from tests.helpers import FakeClock, RecordingNotifier, build_booking_service, build_project_service


@pytest.fixture(autouse=True)
async def _reset_redis_between_tests() -> AsyncGenerator[None]:
    """Reset Redis state between tests to prevent event loop issues."""
    redis_core.reset_redis_state()
    yield
    await redis_core.close_redis()


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine]:
    """Create a file-backed SQLite engine with every table created."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'staffing.db'}",
        connect_args={"timeout": 30},
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return get_session_factory(engine)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Provide an async session for database operations.

    The session does not auto-commit; services commit their own work.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def directory() -> InMemoryCandidateDirectory:
    return InMemoryCandidateDirectory()


@pytest.fixture
def staffing_cache(clock: FakeClock, settings: Settings) -> StaffingCache:
    return StaffingCache.from_settings(settings, clock=clock)


@pytest.fixture
def booking_service(
    db_session: AsyncSession,
    notifier: RecordingNotifier,
    settings: Settings,
    clock: FakeClock,
    directory: InMemoryCandidateDirectory,
    staffing_cache: StaffingCache,
) -> BookingService:
    return build_booking_service(
        db_session, notifier, settings, clock, directory=directory, cache=staffing_cache
    )


@pytest.fixture
def project_service(booking_service: BookingService, staffing_cache: StaffingCache) -> ProjectService:
    return build_project_service(booking_service, cache=staffing_cache)


@pytest.fixture
def service_factory(
    notifier: RecordingNotifier,
    settings: Settings,
    clock: FakeClock,
) -> Callable[..., BookingService]:
    """Build extra booking services on their own sessions (one per actor)."""

    def _build(session: AsyncSession, **overrides) -> BookingService:
        return build_booking_service(
            session,
            overrides.pop("notifier", notifier),
            overrides.pop("settings", settings),
            overrides.pop("clock", clock),
            **overrides,
        )

    return _build


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    notifier: RecordingNotifier,
    directory: InMemoryCandidateDirectory,
    mock_redis_unavailable: None,
) -> AsyncGenerator[AsyncClient]:
    """HTTP client against the app with storage and collaborators overridden."""
    app = create_app()

    async def _get_test_session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _get_test_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_candidate_directory] = lambda: directory
    app.dependency_overrides[get_staffing_cache] = lambda: StaffingCache.from_settings()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
