"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-backed fixtures are in tests/integration/conftest.py.
"""

import os

# Set APP_ENV to testing before any app imports
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_SSL_MODE", "disable")
os.environ.setdefault("NOTIFIER_BACKEND", "log")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator

import pytest
from fakeredis import aioredis as fakeredis_aio
from redis.asyncio import Redis

from src.staffing.core import redis as redis_core
from src.staffing.core.config import Settings, get_settings
from tests.helpers import FailingNotifier, FakeClock, RecordingNotifier

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


# --- Clock and settings ---


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Settings with the default reopen policy and a 48h search window."""
    return Settings(
        app_env="testing",
        search_window_hours=48,
        expiry_policy="reopen",
        expiry_sweep_batch_size=100,
        event_redelivery_after_seconds=60,
        staffing_cache_ttl_seconds=30,
        project_cache_ttl_seconds=300,
    )


@pytest.fixture
def terminal_settings(settings: Settings) -> Settings:
    """Settings where expired assignments stay expired."""
    return settings.model_copy(update={"expiry_policy": "terminal"})


# --- Notifiers ---


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Notifier that keeps every published envelope in memory."""
    return RecordingNotifier()


@pytest.fixture
def failing_notifier() -> FailingNotifier:
    """Notifier whose publish always raises."""
    return FailingNotifier()


# --- Redis Test Fixtures (shared) ---


@pytest.fixture
async def fake_redis() -> AsyncGenerator[Redis]:
    """Provides a fakeredis client for testing.

    Returns an in-memory Redis implementation that behaves like
    a real Redis server but doesn't require external dependencies.
    """
    client = fakeredis_aio.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
async def mock_redis(fake_redis: Redis, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[Redis]:
    """Patches get_redis() to return fakeredis client.

    Patches every module that imports get_redis so the cache and the
    stream notifier both see the fake.
    """
    redis_core.reset_redis_state()

    async def _get_fake_redis() -> Redis:
        return fake_redis

    monkeypatch.setattr("src.staffing.core.redis.get_redis", _get_fake_redis)
    monkeypatch.setattr("src.staffing.core.cache.get_redis", _get_fake_redis)
    monkeypatch.setattr("src.staffing.core.notifications.notifier.get_redis", _get_fake_redis)
    yield fake_redis
    redis_core.reset_redis_state()


@pytest.fixture
async def mock_redis_unavailable(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[None]:
    """Patches get_redis() to return None (simulates Redis unavailable).

    Use this fixture when testing graceful degradation when
    Redis is not available.
    """
    redis_core.reset_redis_state()

    async def _get_none() -> None:
        return None

    monkeypatch.setattr("src.staffing.core.redis.get_redis", _get_none)
    monkeypatch.setattr("src.staffing.core.cache.get_redis", _get_none)
    monkeypatch.setattr("src.staffing.core.notifications.notifier.get_redis", _get_none)
    yield
    redis_core.reset_redis_state()
