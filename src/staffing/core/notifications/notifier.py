"""Notifier backends for booking events.

The notifier is fire-and-forget from the booking core's point of view:
``publish`` raising only means the event stays in the outbox and is
redelivered later.
"""

from typing import Protocol

from src.staffing.core.config import Settings, get_settings
from src.staffing.core.logging import get_logger
from src.staffing.core.notifications.envelope import EventEnvelope
from src.staffing.core.redis import get_redis

logger = get_logger(__name__)


class NotifierUnavailable(Exception):
    """Backend could not accept the event."""


class Notifier(Protocol):
    async def publish(self, envelope: EventEnvelope) -> None: ...


class LoggingNotifier:
    """Writes events to the structured log. Default for development."""

    async def publish(self, envelope: EventEnvelope) -> None:
        logger.info(
            "Booking event",
            event_id=str(envelope.event_id),
            event_type=envelope.type.value,
            project_id=str(envelope.project_id),
            assignment_id=str(envelope.assignment_id) if envelope.assignment_id else None,
            candidate_id=str(envelope.candidate_id) if envelope.candidate_id else None,
        )


class RedisStreamNotifier:
    """Appends events to a Redis stream for downstream consumers.

    Raises NotifierUnavailable when Redis is not reachable so the dispatcher
    leaves the event pending.
    """

    def __init__(self, stream: str, maxlen: int | None = None):
        self.stream = stream
        self.maxlen = maxlen

    async def publish(self, envelope: EventEnvelope) -> None:
        redis = await get_redis()
        if not redis:
            raise NotifierUnavailable("Redis is not available")

        await redis.xadd(
            self.stream,
            {"event_id": str(envelope.event_id), "data": envelope.model_dump_json()},
            maxlen=self.maxlen,
            approximate=True,
        )


def get_notifier(settings: Settings | None = None) -> Notifier:
    """Build the notifier configured by NOTIFIER_BACKEND."""
    settings = settings or get_settings()
    if settings.notifier_backend == "redis":
        return RedisStreamNotifier(settings.notifier_stream, settings.notifier_stream_maxlen)
    return LoggingNotifier()
