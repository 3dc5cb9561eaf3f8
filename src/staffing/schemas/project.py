"""Project schemas for API request/response."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.staffing.models import ProjectLifecycle, Seniority, StaffingStatus


def _clean_tags(values: list[str]) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping order."""
    seen: dict[str, None] = {}
    for value in values:
        value = value.strip()
        if value:
            seen.setdefault(value, None)
    return list(seen)


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    owner_id: UUID
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project title cannot be empty or whitespace only")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v


class ProjectRead(BaseModel):
    """Schema for reading a project."""

    id: UUID
    owner_id: UUID
    title: str
    description: str | None
    staffing_status: StaffingStatus
    lifecycle_status: ProjectLifecycle
    started_at: datetime | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StaffingSummaryRead(BaseModel):
    """Derived staffing view; ``status`` is the same value the project caches."""

    status: StaffingStatus
    total: int
    accepted: int
    counts: dict[str, int]
    progress_percent: int = Field(ge=0, le=100)


class RequirementCreate(BaseModel):
    """A resource slot to add to a project.

    Profile and seniority may be left empty while the requirement is being
    drafted; the slot cannot be opened for matching until both are set.
    """

    profile_id: UUID | None = None
    seniority: Seniority | None = None
    languages: list[str] = Field(default_factory=list, max_length=20)
    expertises: list[str] = Field(default_factory=list, max_length=50)
    base_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=4)

    @field_validator("languages", "expertises")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return _clean_tags(v)
