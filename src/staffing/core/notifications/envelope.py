"""Wire format of booking events sent to the notifier."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from src.staffing.models import BookingEvent, BookingEventType


class EventEnvelope(BaseModel):
    """Booking event as delivered to consumers.

    Delivery is at-least-once; consumers deduplicate on ``event_id``.
    """

    event_id: UUID
    type: BookingEventType
    project_id: UUID
    assignment_id: UUID | None = None
    candidate_id: UUID | None = None
    timestamp: datetime
    payload: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @classmethod
    def from_event(cls, event: BookingEvent) -> "EventEnvelope":
        return cls(
            event_id=event.id,
            type=event.type_enum,
            project_id=event.project_id,
            assignment_id=event.assignment_id,
            candidate_id=event.candidate_id,
            timestamp=event.occurred_at,
            payload=event.payload,
        )
