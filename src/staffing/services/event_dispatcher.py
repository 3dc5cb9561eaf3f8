"""Delivery of outbox events to the notifier."""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.staffing.core.logging import get_logger
from src.staffing.core.notifications import EventEnvelope, Notifier
from src.staffing.models import BookingEvent
from src.staffing.models.base import utc_now
from src.staffing.repositories import BookingEventRepository

logger = get_logger(__name__)


class EventDispatcher:
    """Publishes committed outbox events and stamps them as dispatched.

    A failed publish is logged and recorded on the row; the event stays
    pending and the expiry sweeper redelivers it. Nothing here raises into
    the booking operation that produced the event.
    """

    def __init__(
        self,
        event_repo: BookingEventRepository,
        session: AsyncSession,
        notifier: Notifier,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.event_repo = event_repo
        self.session = session
        self.notifier = notifier
        self.clock = clock

    async def dispatch(self, events: Iterable[BookingEvent]) -> int:
        """Publish events in order.

        Returns:
            Number of events delivered
        """
        # Snapshot first: a rollback below would expire the ORM rows
        envelopes = [EventEnvelope.from_event(event) for event in events]
        delivered = 0
        for envelope in envelopes:
            if await self._dispatch_one(envelope):
                delivered += 1
        return delivered

    async def redeliver_pending(self, older_than: timedelta, limit: int = 500) -> int:
        """Retry events still pending after ``older_than``.

        Returns:
            Number of events delivered
        """
        pending = await self.event_repo.list_pending(self.clock() - older_than, limit)
        if not pending:
            return 0
        delivered = await self.dispatch(pending)
        logger.info("Redelivered pending booking events", pending=len(pending), delivered=delivered)
        return delivered

    async def _dispatch_one(self, envelope: EventEnvelope) -> bool:
        log = logger.bind(event_id=str(envelope.event_id), event_type=envelope.type.value)
        try:
            await self.notifier.publish(envelope)
        except Exception as e:
            log.warning("Booking event delivery failed", error=str(e))
            await self._record_failure(envelope.event_id, str(e) or e.__class__.__name__)
            return False

        try:
            await self.event_repo.mark_dispatched(envelope.event_id, self.clock())
            await self.session.commit()
        except Exception as e:
            # Delivered but not stamped: the sweeper will send it again
            await self.session.rollback()
            log.warning("Failed to mark booking event dispatched", error=str(e))
        return True

    async def _record_failure(self, event_id: UUID, error: str) -> None:
        try:
            await self.event_repo.record_failure(event_id, error)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.warning("Failed to record event delivery failure", event_id=str(event_id), error=str(e))
