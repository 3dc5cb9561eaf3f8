"""Repository for the booking event outbox."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import update
from sqlmodel import col, select

from src.staffing.models import BookingEvent
from src.staffing.repositories.base import BaseRepository


class BookingEventRepository(BaseRepository[BookingEvent]):
    """Repository for outbox rows awaiting or past dispatch."""

    model = BookingEvent

    async def list_pending(self, occurred_before: datetime, limit: int = 500) -> list[BookingEvent]:
        """Undispatched events that occurred before the given time, oldest first."""
        result = await self.session.execute(
            select(BookingEvent)
            .where(col(BookingEvent.dispatched_at).is_(None))
            .where(col(BookingEvent.occurred_at) <= occurred_before)
            .order_by(col(BookingEvent.occurred_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_assignment(self, assignment_id: UUID) -> list[BookingEvent]:
        result = await self.session.execute(
            select(BookingEvent)
            .where(BookingEvent.assignment_id == assignment_id)
            .order_by(col(BookingEvent.occurred_at))
        )
        return list(result.scalars().all())

    async def mark_dispatched(self, event_id: UUID, dispatched_at: datetime) -> int:
        """Stamp an event as delivered. Already-stamped rows are left alone."""
        stmt = (
            update(BookingEvent)
            .where(col(BookingEvent.id) == event_id)
            .where(col(BookingEvent.dispatched_at).is_(None))
            .values(dispatched_at=dispatched_at, attempts=BookingEvent.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def record_failure(self, event_id: UUID, error: str) -> None:
        stmt = (
            update(BookingEvent)
            .where(col(BookingEvent.id) == event_id)
            .values(attempts=BookingEvent.attempts + 1, last_error=error[:1000])
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
