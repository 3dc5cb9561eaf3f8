"""Test helper functions for common data creation patterns."""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from src.staffing.core.cache import StaffingCache
from src.staffing.core.config import Settings
from src.staffing.core.notifications import EventEnvelope, NotifierUnavailable
from src.staffing.models import Assignment, BookingEventType, Project
from src.staffing.repositories import AssignmentRepository, ProjectRepository
from src.staffing.services import BookingService, CandidateDirectory, ProjectService
from tests.factories import AssignmentFactory, ProjectFactory

START = datetime(2026, 1, 5, 9, 0, 0)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingNotifier:
    """Notifier that records envelopes instead of sending them."""

    def __init__(self) -> None:
        self.published: list[EventEnvelope] = []

    async def publish(self, envelope: EventEnvelope) -> None:
        self.published.append(envelope)

    def types(self) -> list[BookingEventType]:
        return [e.type for e in self.published]

    def of_type(self, event_type: BookingEventType) -> list[EventEnvelope]:
        return [e for e in self.published if e.type == event_type]


class FailingNotifier:
    """Notifier that is always down."""

    def __init__(self) -> None:
        self.attempts = 0

    async def publish(self, envelope: EventEnvelope) -> None:
        self.attempts += 1
        raise NotifierUnavailable("stream down")


def build_booking_service(
    session: AsyncSession,
    notifier,
    settings: Settings,
    clock,
    directory: CandidateDirectory | None = None,
    cache: StaffingCache | None = None,
) -> BookingService:
    """Booking service wired around one session with a test clock."""
    return BookingService.from_session(
        session,
        notifier,
        cache=cache,
        directory=directory,
        settings=settings,
        clock=clock,
    )


def build_project_service(
    booking_service: BookingService,
    cache: StaffingCache | None = None,
) -> ProjectService:
    session = booking_service.session
    return ProjectService(
        ProjectRepository(session),
        AssignmentRepository(session),
        booking_service,
        session,
        cache=cache,
        clock=booking_service.clock,
    )


async def create_project(session: AsyncSession, **project_kwargs) -> Project:
    """Create and commit a project.

    Args:
        session: Database session
        **project_kwargs: Args passed to ProjectFactory

    Returns:
        Created project
    """
    project = ProjectFactory.build(**project_kwargs)
    session.add(project)
    await session.commit()
    return project


async def create_assignment(
    session: AsyncSession,
    project: Project,
    **assignment_kwargs,
) -> Assignment:
    """Create and commit an assignment on a project.

    Args:
        session: Database session
        project: Parent project
        **assignment_kwargs: Args passed to AssignmentFactory

    Returns:
        Created assignment (draft with complete requirements by default)
    """
    assignment = AssignmentFactory.build(project_id=project.id, **assignment_kwargs)
    session.add(assignment)
    await session.commit()
    return assignment


async def create_offered_assignment(
    service: BookingService,
    project: Project,
    candidate_id: UUID | None = None,
    **assignment_kwargs,
) -> tuple[Assignment, UUID]:
    """Create a draft assignment and offer it to a candidate.

    Returns:
        Tuple of (assignment after the offer, candidate_id)
    """
    candidate_id = candidate_id or uuid4()
    draft = await create_assignment(service.session, project, **assignment_kwargs)
    outcome = await service.offer(draft.id, candidate_id)
    return outcome.assignment, candidate_id


async def create_staffing_scenario(
    service: BookingService,
    resource_count: int = 2,
    base_price: Decimal = Decimal("1.00"),
) -> dict:
    """Create a project with ``resource_count`` offered assignments.

    Returns:
        Dict with keys: project, assignments, candidates
    """
    project = await create_project(service.session)
    assignments = []
    candidates = []
    for _ in range(resource_count):
        assignment, candidate_id = await create_offered_assignment(
            service, project, base_price=base_price
        )
        assignments.append(assignment)
        candidates.append(candidate_id)
    return {"project": project, "assignments": assignments, "candidates": candidates}
