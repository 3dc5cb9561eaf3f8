"""Assignment (resource slot) model with its history and decline log."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.staffing.models.base import utc_now
from src.staffing.models.enums import BookingStatus, Seniority

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONList = JSON().with_variant(JSONB(), "postgresql")


class Assignment(SQLModel, table=True):
    """One resource slot on one project.

    Status is only written by the Booking Service through conditional
    updates; ``candidate_id`` is set exactly while status is ``accepted``.
    """

    __tablename__ = "assignments"
    __table_args__ = (
        Index("ix_assignments_status_expires", "booking_status", "expires_at"),
        Index("ix_assignments_project_status", "project_id", "booking_status"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", ondelete="CASCADE", index=True)

    # Requirement
    profile_id: UUID | None = Field(default=None, index=True)  # Role/profile reference
    seniority: str | None = Field(default=None, max_length=20)  # Seniority value
    languages: list[str] = Field(default_factory=list, sa_column=Column(JSONList, nullable=False))
    expertises: list[str] = Field(default_factory=list, sa_column=Column(JSONList, nullable=False))
    base_price: Decimal | None = Field(default=None, max_digits=10, decimal_places=4)

    # Binding
    candidate_id: UUID | None = Field(default=None, index=True)
    offered_candidate_id: UUID | None = Field(default=None, index=True)
    calculated_price: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)

    booking_status: str = Field(default=BookingStatus.DRAFT.value, max_length=20)
    expires_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def status_enum(self) -> BookingStatus:
        """Get booking status as BookingStatus enum."""
        return BookingStatus(self.booking_status)

    @property
    def seniority_enum(self) -> Seniority | None:
        return Seniority(self.seniority) if self.seniority else None

    @property
    def requirements_complete(self) -> bool:
        """A slot can be matched once its role and seniority are known."""
        return self.profile_id is not None and self.seniority is not None


class AssignmentTransition(SQLModel, table=True):
    """Append-only record of every booking status change."""

    __tablename__ = "assignment_transitions"

    id: int | None = Field(default=None, primary_key=True)  # Insertion order
    assignment_id: UUID = Field(foreign_key="assignments.id", ondelete="CASCADE", index=True)
    project_id: UUID = Field(index=True)
    from_status: str = Field(max_length=20)
    to_status: str = Field(max_length=20)
    actor_id: UUID | None = Field(default=None)  # Candidate or admin; None for the sweeper
    reason: str | None = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utc_now)


class AssignmentDecline(SQLModel, table=True):
    """Append-only log of candidates who declined a slot."""

    __tablename__ = "assignment_declines"

    id: int | None = Field(default=None, primary_key=True)
    assignment_id: UUID = Field(foreign_key="assignments.id", ondelete="CASCADE", index=True)
    candidate_id: UUID = Field(index=True)
    reason: str | None = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utc_now)
