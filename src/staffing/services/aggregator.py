"""Project staffing aggregation.

``aggregate`` is the single rule deriving a project's staffing status from
its assignments. ``ProjectStatusAggregator.refresh`` persists it, locking only
the project row while it writes.
"""

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.staffing.core.exceptions import ProjectNotFound
from src.staffing.core.logging import get_logger
from src.staffing.models import (
    BookingEvent,
    BookingEventType,
    BookingStatus,
    Project,
    StaffingStatus,
)
from src.staffing.models.base import utc_now
from src.staffing.repositories import (
    AssignmentRepository,
    BookingEventRepository,
    ProjectRepository,
    translate_persistence_errors,
)

logger = get_logger(__name__)


def aggregate(statuses: Iterable[BookingStatus]) -> StaffingStatus:
    """Derive a project's staffing status from its assignment statuses.

    Empty -> no_resources; all accepted -> fully_staffed; some accepted ->
    partially_staffed; none accepted -> no_resources.
    """
    statuses = list(statuses)
    if not statuses:
        return StaffingStatus.NO_RESOURCES
    accepted = sum(1 for s in statuses if s == BookingStatus.ACCEPTED)
    if accepted == len(statuses):
        return StaffingStatus.FULLY_STAFFED
    if accepted > 0:
        return StaffingStatus.PARTIALLY_STAFFED
    return StaffingStatus.NO_RESOURCES


@dataclass(frozen=True)
class StaffingSummary:
    status: StaffingStatus
    total: int
    accepted: int
    counts: dict[str, int]

    @property
    def progress_percent(self) -> int:
        if self.total == 0:
            return 0
        return round(self.accepted * 100 / self.total)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "total": self.total,
            "accepted": self.accepted,
            "counts": self.counts,
            "progress_percent": self.progress_percent,
        }


def staffing_summary(statuses: Iterable[BookingStatus]) -> StaffingSummary:
    """Per-status counts and progress, consistent with ``aggregate``."""
    statuses = list(statuses)
    counter = Counter(s.value for s in statuses)
    return StaffingSummary(
        status=aggregate(statuses),
        total=len(statuses),
        accepted=counter[BookingStatus.ACCEPTED.value],
        counts={s.value: counter[s.value] for s in BookingStatus},
    )


@dataclass(frozen=True)
class AggregationResult:
    project_id: UUID
    previous: StaffingStatus
    current: StaffingStatus
    event: BookingEvent | None = None

    @property
    def changed(self) -> bool:
        return self.previous != self.current

    @property
    def became_fully_staffed(self) -> bool:
        return self.changed and self.current == StaffingStatus.FULLY_STAFFED


class ProjectStatusAggregator:
    """Keeps ``Project.staffing_status`` equal to ``aggregate`` of its assignments."""

    def __init__(
        self,
        project_repo: ProjectRepository,
        assignment_repo: AssignmentRepository,
        event_repo: BookingEventRepository,
        session: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.project_repo = project_repo
        self.assignment_repo = assignment_repo
        self.event_repo = event_repo
        self.session = session
        self.clock = clock

    async def refresh(self, project_id: UUID) -> AggregationResult:
        """Recompute and store the project's staffing status in its own transaction.

        Writes a ProjectFullyStaffed outbox event only on the transition into
        fully_staffed.

        Raises:
            ProjectNotFound: Project does not exist
            TransientPersistenceError: Storage unavailable
        """
        try:
            with translate_persistence_errors():
                project = await self.project_repo.get_for_update(project_id)
                if project is None:
                    raise ProjectNotFound(project_id)

                assignments = await self.assignment_repo.list_by_project(project_id)
                previous = project.staffing_enum
                current = aggregate(a.status_enum for a in assignments)

                event = None
                if current != previous:
                    now = self.clock()
                    project.staffing_status = current.value
                    project.updated_at = now
                    self.project_repo.add(project)
                    if current == StaffingStatus.FULLY_STAFFED:
                        event = self._fully_staffed_event(project, assignments, now)
                        self.event_repo.add(event)
                await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if current != previous:
            logger.info(
                "Project staffing status changed",
                project_id=str(project_id),
                previous=previous.value,
                current=current.value,
            )
        return AggregationResult(project_id, previous, current, event)

    @staticmethod
    def _fully_staffed_event(project: Project, assignments: list, now: datetime) -> BookingEvent:
        return BookingEvent(
            event_type=BookingEventType.PROJECT_FULLY_STAFFED.value,
            project_id=project.id,
            occurred_at=now,
            payload={
                "resource_count": len(assignments),
                "profile_ids": [str(a.profile_id) for a in assignments if a.profile_id],
                "candidate_ids": [str(a.candidate_id) for a in assignments if a.candidate_id],
            },
        )
