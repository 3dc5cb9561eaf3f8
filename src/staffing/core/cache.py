"""Staffing read cache with Redis backend and graceful fallback.

Entries live under ``{namespace}:{key}``. Each namespace has its own TTL
policy and expiry is judged against an injected clock, so a stale read can
never outlive what the clock says. The Booking Service invalidates a
project's entries explicitly after every mutation; TTL is only a backstop.
When Redis is unavailable every read is a miss and writes are dropped.
"""

import json
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from src.staffing.core.config import Settings, get_settings
from src.staffing.core.logging import get_logger
from src.staffing.core.redis import get_redis
from src.staffing.models.base import utc_now

logger = get_logger(__name__)

NAMESPACE_STAFFING_SUMMARY = "staffing_summary"
NAMESPACE_PROJECT = "project"

Clock = Callable[[], datetime]


class StaffingCache:
    """TTL cache keyed by namespace, invalidated by booking mutations."""

    def __init__(self, ttl_policy: Mapping[str, int], clock: Clock = utc_now):
        self._ttl_policy = dict(ttl_policy)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings | None = None, clock: Clock = utc_now) -> "StaffingCache":
        settings = settings or get_settings()
        return cls(
            {
                NAMESPACE_STAFFING_SUMMARY: settings.staffing_cache_ttl_seconds,
                NAMESPACE_PROJECT: settings.project_cache_ttl_seconds,
            },
            clock=clock,
        )

    def ttl_for(self, namespace: str) -> int:
        try:
            return self._ttl_policy[namespace]
        except KeyError:
            raise ValueError(f"No TTL policy for cache namespace '{namespace}'") from None

    @staticmethod
    def key(namespace: str, key: UUID | str) -> str:
        return f"{namespace}:{key}"

    async def get(self, namespace: str, key: UUID | str) -> dict[str, Any] | None:
        """Return the cached value, or None on miss, expiry or Redis unavailable."""
        redis = await get_redis()
        if not redis:
            return None

        cache_key = self.key(namespace, key)
        raw = await redis.get(cache_key)
        if raw is None:
            return None

        entry = json.loads(raw)
        if self._clock() >= datetime.fromisoformat(entry["expires_at"]):
            await redis.delete(cache_key)
            return None
        return entry["value"]

    async def set(self, namespace: str, key: UUID | str, value: dict[str, Any]) -> bool:
        """Store a JSON-serializable value.

        Returns:
            True if stored, False if Redis unavailable
        """
        ttl = self.ttl_for(namespace)
        redis = await get_redis()
        if not redis:
            return False

        entry = {
            "value": value,
            "expires_at": (self._clock() + timedelta(seconds=ttl)).isoformat(),
        }
        await redis.set(self.key(namespace, key), json.dumps(entry, default=str), ex=ttl)
        return True

    async def invalidate(self, namespace: str, key: UUID | str) -> bool:
        redis = await get_redis()
        if not redis:
            return False
        await redis.delete(self.key(namespace, key))
        return True

    async def invalidate_project(self, project_id: UUID) -> int:
        """Drop every cached view derived from a project's assignments.

        Returns:
            Number of namespaces invalidated (0 if Redis unavailable)
        """
        redis = await get_redis()
        if not redis:
            return 0

        namespaces = list(self._ttl_policy)
        pipe = redis.pipeline()
        for namespace in namespaces:
            pipe.delete(self.key(namespace, project_id))
        await pipe.execute()
        logger.debug("Project cache invalidated", project_id=str(project_id))
        return len(namespaces)
