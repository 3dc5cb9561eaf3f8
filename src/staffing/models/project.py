"""Project model - client project carrying the cached staffing status."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.staffing.models.base import utc_now
from src.staffing.models.enums import ProjectLifecycle, StaffingStatus


class Project(SQLModel, table=True):
    """Client project.

    ``staffing_status`` is a cache of the aggregation over the project's
    assignments and is only written by the Project Status Aggregator.
    ``lifecycle_status`` is set by explicit client actions.
    """

    __tablename__ = "projects"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: UUID = Field(index=True)
    title: str = Field(max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    staffing_status: str = Field(default=StaffingStatus.NO_RESOURCES.value, max_length=30)
    lifecycle_status: str = Field(default=ProjectLifecycle.PLANNING.value, max_length=20)
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def staffing_enum(self) -> StaffingStatus:
        """Get staffing status as StaffingStatus enum."""
        return StaffingStatus(self.staffing_status)

    @property
    def lifecycle_enum(self) -> ProjectLifecycle:
        """Get lifecycle status as ProjectLifecycle enum."""
        return ProjectLifecycle(self.lifecycle_status)
