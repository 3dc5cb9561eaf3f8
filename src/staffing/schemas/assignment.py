"""Assignment and booking action schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.staffing.models import BookingStatus, StaffingStatus


class AssignmentRead(BaseModel):
    """Schema for reading an assignment."""

    id: UUID
    project_id: UUID
    profile_id: UUID | None
    seniority: str | None
    languages: list[str]
    expertises: list[str]
    base_price: Decimal | None
    candidate_id: UUID | None
    offered_candidate_id: UUID | None
    calculated_price: Decimal | None
    booking_status: BookingStatus
    expires_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OfferRequest(BaseModel):
    candidate_id: UUID
    expires_at: datetime | None = Field(
        default=None, description="End of the search window. Defaults to now + SEARCH_WINDOW_HOURS."
    )
    actor_id: UUID | None = Field(default=None, description="Administrator placing the offer")


class OpenRequest(BaseModel):
    expires_at: datetime | None = None
    actor_id: UUID | None = None


class AcceptRequest(BaseModel):
    candidate_id: UUID


class DeclineRequest(BaseModel):
    candidate_id: UUID
    reason: str | None = Field(default=None, max_length=500)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v


class BookingResult(BaseModel):
    """Outcome of a booking action.

    ``changed`` is False when the request repeated an action that had
    already been applied.
    """

    assignment: AssignmentRead
    changed: bool
    event_id: UUID | None = None
    project_staffing_status: StaffingStatus | None = None


class DeclineRead(BaseModel):
    candidate_id: UUID
    reason: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TransitionRead(BaseModel):
    from_status: BookingStatus
    to_status: BookingStatus
    actor_id: UUID | None
    reason: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class CandidateRead(BaseModel):
    """Eligible candidate suggested for an assignment."""

    id: UUID
    profile_id: UUID
    seniority: str
    languages: list[str]
    expertises: list[str]
    base_price: Decimal | None

    model_config = {"from_attributes": True}

    @field_validator("languages", "expertises", mode="before")
    @classmethod
    def sort_tags(cls, v: object) -> object:
        if isinstance(v, (set, frozenset)):
            return sorted(v)
        return v


class SweepReportRead(BaseModel):
    scanned: int
    expired: int
    reopened: int
    skipped: int
    failed: int
    projects_refreshed: int
    events_redelivered: int
    failed_ids: list[str]

    model_config = {"from_attributes": True}
