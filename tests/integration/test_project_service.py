"""Tests for projects, requirements, lifecycle and the cached staffing view."""

from decimal import Decimal
from uuid import uuid4

import pytest
from redis.asyncio import Redis
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.staffing.core.cache import NAMESPACE_PROJECT
from src.staffing.core.exceptions import AssignmentNotFound, ProjectNotFound, ProjectNotReady
from src.staffing.models import (
    Assignment,
    AssignmentDecline,
    AssignmentTransition,
    BookingEventType,
    BookingStatus,
    Project,
    ProjectLifecycle,
    Seniority,
    StaffingStatus,
)
from src.staffing.services import BookingService, ProjectService
from tests.helpers import FakeClock, RecordingNotifier, create_offered_assignment

pytestmark = pytest.mark.integration


async def _staffed_project(project_service: ProjectService, booking_service: BookingService):
    """Project whose only resource slot has been accepted."""
    project = await project_service.create_project(uuid4(), "Data platform")
    assignment, candidate_id = await create_offered_assignment(booking_service, project)
    await booking_service.accept(assignment.id, candidate_id)
    return project


class TestProjects:
    async def test_create_project(self, project_service: ProjectService, clock: FakeClock):
        owner_id = uuid4()

        project = await project_service.create_project(owner_id, "Data platform", "Migration")

        assert project.owner_id == owner_id
        assert project.staffing_enum == StaffingStatus.NO_RESOURCES
        assert project.lifecycle_enum == ProjectLifecycle.PLANNING
        assert project.created_at == clock.now

    async def test_get_unknown(self, project_service: ProjectService):
        with pytest.raises(ProjectNotFound):
            await project_service.get_project(uuid4())

    async def test_list_by_owner(self, project_service: ProjectService, clock: FakeClock):
        owner_id = uuid4()
        for i in range(3):
            clock.advance(minutes=1)
            await project_service.create_project(owner_id, f"Project {i}")
        await project_service.create_project(uuid4(), "Someone else's")

        page, next_cursor, has_more = await project_service.list_projects(owner_id, None, 2)
        assert [p.title for p in page] == ["Project 2", "Project 1"]
        assert has_more is True

        rest, _, has_more = await project_service.list_projects(owner_id, next_cursor, 2)
        assert [p.title for p in rest] == ["Project 0"]
        assert has_more is False


class TestRequirements:
    async def test_add_requirement_starts_as_draft(self, project_service: ProjectService):
        project = await project_service.create_project(uuid4(), "Data platform")

        assignment = await project_service.add_requirement(
            project.id,
            profile_id=uuid4(),
            seniority=Seniority.EXPERT,
            languages=["fr"],
            expertises=["python"],
            base_price=Decimal("1.25"),
        )

        assert assignment.status_enum == BookingStatus.DRAFT
        assert assignment.seniority == "expert"
        assert assignment.requirements_complete is True
        assert (await project_service.get_project(project.id)).staffing_enum == (
            StaffingStatus.NO_RESOURCES
        )

    async def test_add_incomplete_requirement(self, project_service: ProjectService):
        project = await project_service.create_project(uuid4(), "Data platform")

        assignment = await project_service.add_requirement(project.id, None, None)

        assert assignment.requirements_complete is False

    async def test_add_to_unknown_project(self, project_service: ProjectService):
        with pytest.raises(ProjectNotFound):
            await project_service.add_requirement(uuid4(), uuid4(), Seniority.JUNIOR)

    async def test_new_requirement_downgrades_fully_staffed(
        self, project_service: ProjectService, booking_service: BookingService
    ):
        project = await _staffed_project(project_service, booking_service)

        await project_service.add_requirement(project.id, uuid4(), Seniority.JUNIOR)

        refreshed = await project_service.get_project(project.id)
        assert refreshed.staffing_enum == StaffingStatus.PARTIALLY_STAFFED

    async def test_remove_last_open_slot_completes_staffing(
        self,
        project_service: ProjectService,
        booking_service: BookingService,
        notifier: RecordingNotifier,
    ):
        """Dropping the only unfilled slot makes the project fully staffed."""
        project = await project_service.create_project(uuid4(), "Data platform")
        accepted, candidate_id = await create_offered_assignment(booking_service, project)
        open_slot, _ = await create_offered_assignment(booking_service, project)
        await booking_service.accept(accepted.id, candidate_id)
        assert notifier.of_type(BookingEventType.PROJECT_FULLY_STAFFED) == []

        await project_service.remove_requirement(project.id, open_slot.id)

        refreshed = await project_service.get_project(project.id)
        assert refreshed.staffing_enum == StaffingStatus.FULLY_STAFFED
        assert len(notifier.of_type(BookingEventType.PROJECT_FULLY_STAFFED)) == 1

    async def test_remove_cascades_history_and_declines(
        self,
        project_service: ProjectService,
        booking_service: BookingService,
        db_session: AsyncSession,
    ):
        project = await project_service.create_project(uuid4(), "Data platform")
        assignment, candidate_id = await create_offered_assignment(booking_service, project)
        await booking_service.decline(assignment.id, candidate_id)

        await project_service.remove_requirement(project.id, assignment.id)

        for model in (Assignment, AssignmentTransition, AssignmentDecline):
            column = model.id if model is Assignment else model.assignment_id
            count = await db_session.scalar(
                select(func.count()).select_from(model).where(column == assignment.id)
            )
            assert count == 0

    async def test_remove_from_wrong_project(
        self, project_service: ProjectService, booking_service: BookingService
    ):
        project = await project_service.create_project(uuid4(), "Data platform")
        other = await project_service.create_project(uuid4(), "Other")
        assignment, _ = await create_offered_assignment(booking_service, project)

        with pytest.raises(AssignmentNotFound):
            await project_service.remove_requirement(other.id, assignment.id)

    async def test_add_to_completed_project(
        self, project_service: ProjectService, booking_service: BookingService
    ):
        project = await _staffed_project(project_service, booking_service)
        await project_service.start_project(project.id)
        await project_service.complete_project(project.id)

        with pytest.raises(ProjectNotReady):
            await project_service.add_requirement(project.id, uuid4(), Seniority.JUNIOR)


class TestLifecycle:
    async def test_start_requires_fully_staffed(
        self, project_service: ProjectService, booking_service: BookingService
    ):
        project = await project_service.create_project(uuid4(), "Data platform")
        await create_offered_assignment(booking_service, project)

        with pytest.raises(ProjectNotReady):
            await project_service.start_project(project.id)

    async def test_start_empty_project(self, project_service: ProjectService):
        project = await project_service.create_project(uuid4(), "Data platform")

        with pytest.raises(ProjectNotReady):
            await project_service.start_project(project.id)

    async def test_start_and_complete(
        self,
        project_service: ProjectService,
        booking_service: BookingService,
        clock: FakeClock,
    ):
        project = await _staffed_project(project_service, booking_service)

        started = await project_service.start_project(project.id)
        assert started.lifecycle_enum == ProjectLifecycle.ACTIVE
        assert started.started_at == clock.now

        clock.advance(days=30)
        completed = await project_service.complete_project(project.id)
        assert completed.lifecycle_enum == ProjectLifecycle.COMPLETED
        assert completed.completed_at == clock.now

    async def test_start_twice_is_noop(
        self,
        project_service: ProjectService,
        booking_service: BookingService,
        clock: FakeClock,
    ):
        project = await _staffed_project(project_service, booking_service)
        first = await project_service.start_project(project.id)
        started_at = first.started_at
        clock.advance(hours=1)

        again = await project_service.start_project(project.id)

        assert again.started_at == started_at

    async def test_complete_from_planning(self, project_service: ProjectService):
        project = await project_service.create_project(uuid4(), "Data platform")

        with pytest.raises(ProjectNotReady):
            await project_service.complete_project(project.id)

    async def test_staffing_unaffected_by_lifecycle(
        self, project_service: ProjectService, booking_service: BookingService
    ):
        project = await _staffed_project(project_service, booking_service)

        started = await project_service.start_project(project.id)

        assert started.staffing_enum == StaffingStatus.FULLY_STAFFED


class TestStaffingSummary:
    async def test_summary_counts(
        self, project_service: ProjectService, booking_service: BookingService
    ):
        project = await project_service.create_project(uuid4(), "Data platform")
        accepted, candidate_id = await create_offered_assignment(booking_service, project)
        await create_offered_assignment(booking_service, project)
        await project_service.add_requirement(project.id, None, None)
        await booking_service.accept(accepted.id, candidate_id)

        summary = await project_service.get_staffing_summary(project.id)

        assert summary["status"] == "partially_staffed"
        assert summary["total"] == 3
        assert summary["counts"]["accepted"] == 1
        assert summary["counts"]["searching"] == 1
        assert summary["counts"]["draft"] == 1
        assert summary["progress_percent"] == 33

    async def test_summary_invalidated_by_booking(
        self,
        project_service: ProjectService,
        booking_service: BookingService,
        mock_redis: Redis,
    ):
        project = await project_service.create_project(uuid4(), "Data platform")
        assignment, candidate_id = await create_offered_assignment(booking_service, project)
        before = await project_service.get_staffing_summary(project.id)
        assert before["status"] == "no_resources"

        await booking_service.accept(assignment.id, candidate_id)

        after = await project_service.get_staffing_summary(project.id)
        assert after["status"] == "fully_staffed"

    async def test_summary_served_from_cache_until_ttl(
        self,
        project_service: ProjectService,
        booking_service: BookingService,
        db_session: AsyncSession,
        clock: FakeClock,
        mock_redis: Redis,
    ):
        """Writes that bypass the booking service only show up once the entry ages out."""
        project = await project_service.create_project(uuid4(), "Data platform")
        assignment, _ = await create_offered_assignment(booking_service, project)
        await project_service.get_staffing_summary(project.id)

        await db_session.execute(
            update(Assignment)
            .where(Assignment.id == assignment.id)
            .values(booking_status=BookingStatus.DRAFT.value)
        )
        await db_session.commit()

        cached = await project_service.get_staffing_summary(project.id)
        assert cached["counts"]["searching"] == 1

        clock.advance(seconds=30)
        fresh = await project_service.get_staffing_summary(project.id)
        assert fresh["counts"]["draft"] == 1

    async def test_summary_without_redis(
        self,
        project_service: ProjectService,
        booking_service: BookingService,
        mock_redis_unavailable: None,
    ):
        project = await project_service.create_project(uuid4(), "Data platform")
        await create_offered_assignment(booking_service, project)

        summary = await project_service.get_staffing_summary(project.id)

        assert summary["total"] == 1


class TestProjectView:
    async def test_view_cached_until_ttl(
        self,
        project_service: ProjectService,
        db_session: AsyncSession,
        clock: FakeClock,
        mock_redis: Redis,
    ):
        project = await project_service.create_project(uuid4(), "Data platform")
        first = await project_service.get_project_view(project.id)
        assert first.title == "Data platform"

        await db_session.execute(
            update(Project).where(Project.id == project.id).values(title="Renamed")
        )
        await db_session.commit()

        assert (await project_service.get_project_view(project.id)).title == "Data platform"
        assert await mock_redis.exists(f"{NAMESPACE_PROJECT}:{project.id}") == 1

        clock.advance(seconds=300)
        assert (await project_service.get_project_view(project.id)).title == "Renamed"

    async def test_view_invalidated_by_staffing_change(
        self,
        project_service: ProjectService,
        booking_service: BookingService,
        mock_redis: Redis,
    ):
        project = await project_service.create_project(uuid4(), "Data platform")
        assignment, candidate_id = await create_offered_assignment(booking_service, project)
        before = await project_service.get_project_view(project.id)
        assert before.staffing_status == StaffingStatus.NO_RESOURCES

        await booking_service.accept(assignment.id, candidate_id)

        after = await project_service.get_project_view(project.id)
        assert after.staffing_status == StaffingStatus.FULLY_STAFFED

    async def test_view_invalidated_by_lifecycle_change(
        self,
        project_service: ProjectService,
        booking_service: BookingService,
        mock_redis: Redis,
    ):
        project = await _staffed_project(project_service, booking_service)
        await project_service.get_project_view(project.id)

        await project_service.start_project(project.id)

        view = await project_service.get_project_view(project.id)
        assert view.lifecycle_status == ProjectLifecycle.ACTIVE

    async def test_view_of_unknown_project(
        self, project_service: ProjectService, mock_redis: Redis
    ):
        with pytest.raises(ProjectNotFound):
            await project_service.get_project_view(uuid4())


class TestCandidateMissions:
    async def test_offered_and_accepted_listed(
        self,
        project_service: ProjectService,
        booking_service: BookingService,
        clock: FakeClock,
    ):
        project = await project_service.create_project(uuid4(), "Data platform")
        candidate_id = uuid4()
        offered, _ = await create_offered_assignment(booking_service, project, candidate_id)
        clock.advance(minutes=1)
        accepted, _ = await create_offered_assignment(booking_service, project, candidate_id)
        await booking_service.accept(accepted.id, candidate_id)
        await create_offered_assignment(booking_service, project)

        missions, _, has_more = await project_service.list_candidate_missions(candidate_id, None, 10)

        assert {m.id for m in missions} == {offered.id, accepted.id}
        assert has_more is False
