"""Booking event outbox model."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.staffing.models.base import utc_now
from src.staffing.models.enums import BookingEventType


class BookingEvent(SQLModel, table=True):
    """Domain event written in the same transaction as the change it reports.

    ``id`` doubles as the event id consumers deduplicate on. Rows with
    ``dispatched_at`` unset are redelivered by the expiry sweeper.
    """

    __tablename__ = "booking_events"
    __table_args__ = (Index("ix_booking_events_pending", "dispatched_at", "occurred_at"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    event_type: str = Field(max_length=50)
    project_id: UUID = Field(index=True)
    assignment_id: UUID | None = Field(default=None, index=True)
    candidate_id: UUID | None = Field(default=None)
    payload: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False),
    )
    occurred_at: datetime = Field(default_factory=utc_now)
    dispatched_at: datetime | None = Field(default=None)
    attempts: int = Field(default=0)
    last_error: str | None = Field(default=None, max_length=1000)

    @property
    def type_enum(self) -> BookingEventType:
        return BookingEventType(self.event_type)
