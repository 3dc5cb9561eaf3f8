"""Project and requirement management."""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.staffing.core.cache import NAMESPACE_PROJECT, NAMESPACE_STAFFING_SUMMARY, StaffingCache
from src.staffing.core.exceptions import AssignmentNotFound, ProjectNotFound, ProjectNotReady
from src.staffing.core.logging import bind_booking_context, get_logger
from src.staffing.models import (
    Assignment,
    BookingStatus,
    Project,
    ProjectLifecycle,
    Seniority,
    StaffingStatus,
)
from src.staffing.models.base import utc_now
from src.staffing.repositories import (
    AssignmentRepository,
    ProjectRepository,
    translate_persistence_errors,
)
from src.staffing.schemas import ProjectRead
from src.staffing.services.aggregator import staffing_summary
from src.staffing.services.booking_service import BookingService

logger = get_logger(__name__)


class ProjectService:
    """Project CRUD, resource requirements and the explicit lifecycle.

    Staffing status is never written here; requirement changes go through
    ``BookingService.refresh_project`` so the aggregator stays the only writer.
    """

    def __init__(
        self,
        project_repo: ProjectRepository,
        assignment_repo: AssignmentRepository,
        booking_service: BookingService,
        session: AsyncSession,
        cache: StaffingCache | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.project_repo = project_repo
        self.assignment_repo = assignment_repo
        self.booking_service = booking_service
        self.session = session
        self.cache = cache
        self.clock = clock

    async def create_project(self, owner_id: UUID, title: str, description: str | None = None) -> Project:
        now = self.clock()
        project = Project(
            owner_id=owner_id,
            title=title,
            description=description,
            created_at=now,
            updated_at=now,
        )
        try:
            with translate_persistence_errors():
                self.project_repo.add(project)
                await self.session.commit()
                await self.session.refresh(project)
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Project created", project_id=str(project.id), owner_id=str(owner_id))
        return project

    async def get_project(self, project_id: UUID) -> Project:
        """Get a project by id.

        Raises:
            ProjectNotFound: No such project
        """
        with translate_persistence_errors():
            project = await self.project_repo.get_by_id(project_id, fresh=True)
        if project is None:
            raise ProjectNotFound(project_id)
        return project

    async def get_project_view(self, project_id: UUID) -> ProjectRead:
        """Project as served to clients, cached until the next mutation or TTL.

        Raises:
            ProjectNotFound: No such project
        """
        if self.cache is not None:
            cached = await self.cache.get(NAMESPACE_PROJECT, project_id)
            if cached is not None:
                return ProjectRead.model_validate(cached)

        view = ProjectRead.model_validate(await self.get_project(project_id))
        if self.cache is not None:
            await self.cache.set(NAMESPACE_PROJECT, project_id, view.model_dump(mode="json"))
        return view

    async def list_projects(
        self, owner_id: UUID | None, cursor: str | None, limit: int
    ) -> tuple[list[Project], str | None, bool]:
        """List projects with cursor-based pagination.

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        return await self.project_repo.list_all(owner_id, cursor, limit)

    async def list_assignments(self, project_id: UUID) -> list[Assignment]:
        await self.get_project(project_id)
        return await self.assignment_repo.list_by_project(project_id)

    async def get_staffing_summary(self, project_id: UUID) -> dict[str, Any]:
        """Counts per status and progress, served from cache when fresh."""
        if self.cache is not None:
            cached = await self.cache.get(NAMESPACE_STAFFING_SUMMARY, project_id)
            if cached is not None:
                return cached

        await self.get_project(project_id)
        statuses = await self.assignment_repo.list_statuses_by_project(project_id)
        summary = staffing_summary(statuses).to_dict()
        if self.cache is not None:
            await self.cache.set(NAMESPACE_STAFFING_SUMMARY, project_id, summary)
        return summary

    async def add_requirement(
        self,
        project_id: UUID,
        profile_id: UUID | None,
        seniority: Seniority | None,
        languages: list[str] | None = None,
        expertises: list[str] | None = None,
        base_price: Decimal | None = None,
    ) -> Assignment:
        """Declare a resource slot on a project. It starts as a draft.

        Raises:
            ProjectNotFound: No such project
            ProjectNotReady: Project is already completed
        """
        project = await self.get_project(project_id)
        if project.lifecycle_enum == ProjectLifecycle.COMPLETED:
            raise ProjectNotReady("Cannot add resources to a completed project")

        now = self.clock()
        assignment = Assignment(
            project_id=project_id,
            profile_id=profile_id,
            seniority=seniority.value if seniority else None,
            languages=list(languages or []),
            expertises=list(expertises or []),
            base_price=base_price,
            booking_status=BookingStatus.DRAFT.value,
            created_at=now,
            updated_at=now,
        )
        try:
            with translate_persistence_errors():
                self.assignment_repo.add(assignment)
                await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        bind_booking_context(assignment_id=assignment.id, project_id=project_id)
        logger.info("Requirement added")
        await self.booking_service.refresh_project(project_id)
        return assignment

    async def remove_requirement(self, project_id: UUID, assignment_id: UUID) -> None:
        """Delete a resource slot together with its history and decline log.

        Raises:
            AssignmentNotFound: No such assignment on this project
        """
        assignment = await self.assignment_repo.get_by_id(assignment_id)
        if assignment is None or assignment.project_id != project_id:
            raise AssignmentNotFound(assignment_id)

        try:
            with translate_persistence_errors():
                await self.assignment_repo.delete(assignment)
                await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        bind_booking_context(assignment_id=assignment_id, project_id=project_id)
        logger.info("Requirement removed", status=assignment.booking_status)
        await self.booking_service.refresh_project(project_id)

    async def start_project(self, project_id: UUID) -> Project:
        """Client action moving a fully staffed project to active.

        Raises:
            ProjectNotFound: No such project
            ProjectNotReady: Not fully staffed or not in planning
        """
        return await self._change_lifecycle(
            project_id,
            expected=ProjectLifecycle.PLANNING,
            target=ProjectLifecycle.ACTIVE,
            require_fully_staffed=True,
        )

    async def complete_project(self, project_id: UUID) -> Project:
        """Raises ProjectNotReady unless the project is active."""
        return await self._change_lifecycle(
            project_id,
            expected=ProjectLifecycle.ACTIVE,
            target=ProjectLifecycle.COMPLETED,
        )

    async def list_candidate_missions(
        self, candidate_id: UUID, cursor: str | None, limit: int
    ) -> tuple[list[Assignment], str | None, bool]:
        """Assignments a candidate holds or is currently offered."""
        return await self.assignment_repo.list_for_candidate(candidate_id, cursor, limit)

    async def _change_lifecycle(
        self,
        project_id: UUID,
        expected: ProjectLifecycle,
        target: ProjectLifecycle,
        require_fully_staffed: bool = False,
    ) -> Project:
        try:
            with translate_persistence_errors():
                project = await self.project_repo.get_for_update(project_id)
                if project is None:
                    raise ProjectNotFound(project_id)
                if project.lifecycle_enum == target:
                    await self.session.commit()
                    return project
                if project.lifecycle_enum != expected:
                    raise ProjectNotReady(
                        f"Project is {project.lifecycle_status}, expected {expected.value}"
                    )
                if require_fully_staffed and project.staffing_enum != StaffingStatus.FULLY_STAFFED:
                    raise ProjectNotReady(
                        f"Project is {project.staffing_status}; every resource must be accepted first"
                    )

                now = self.clock()
                project.lifecycle_status = target.value
                project.updated_at = now
                if target == ProjectLifecycle.ACTIVE:
                    project.started_at = now
                else:
                    project.completed_at = now
                await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Project lifecycle changed", project_id=str(project_id), lifecycle=target.value)
        if self.cache is not None:
            await self.cache.invalidate_project(project_id)
        return project
