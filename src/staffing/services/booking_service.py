"""Booking service - the only writer of assignment status.

Every status change is one conditional update keyed by assignment id and the
status the caller observed, plus history rows and an outbox event, committed
in a single transaction. After the commit the parent project is re-aggregated,
cached views are invalidated and the event is handed to the notifier.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col

from src.staffing.core.cache import StaffingCache
from src.staffing.core.config import Settings, get_settings
from src.staffing.core.exceptions import (
    AlreadyResolved,
    AssignmentNotFound,
    InvalidTransition,
    NotAuthorized,
    RequirementsIncomplete,
)
from src.staffing.core.logging import bind_booking_context, get_logger
from src.staffing.core.notifications import Notifier
from src.staffing.models import (
    Assignment,
    AssignmentDecline,
    AssignmentTransition,
    BookingEvent,
    BookingEventType,
    BookingStatus,
)
from src.staffing.models.base import utc_now
from src.staffing.repositories import (
    AssignmentDeclineRepository,
    AssignmentRepository,
    AssignmentTransitionRepository,
    BookingEventRepository,
    ProjectRepository,
    translate_persistence_errors,
)
from src.staffing.services.aggregator import AggregationResult, ProjectStatusAggregator
from src.staffing.services.event_dispatcher import EventDispatcher
from src.staffing.services.matching import (
    CandidateDirectory,
    CandidateProfile,
    find_eligible_candidates,
)
from src.staffing.services.pricing import calculate_price
from src.staffing.services.transitions import (
    RESOLVED_STATUSES,
    TransitionContext,
    validate_transition,
)

logger = get_logger(__name__)

Edge = tuple[BookingStatus, BookingStatus]


@dataclass(frozen=True)
class BookingOutcome:
    """Result of a booking operation.

    ``changed`` is False when the call was an idempotent retry of an effect
    that had already landed; no event is emitted in that case.
    """

    assignment: Assignment
    changed: bool
    event: BookingEvent | None = None
    staffing: AggregationResult | None = None


class BookingService:
    """Booking lifecycle operations on assignments."""

    def __init__(
        self,
        assignment_repo: AssignmentRepository,
        transition_repo: AssignmentTransitionRepository,
        decline_repo: AssignmentDeclineRepository,
        event_repo: BookingEventRepository,
        aggregator: ProjectStatusAggregator,
        dispatcher: EventDispatcher,
        session: AsyncSession,
        cache: StaffingCache | None = None,
        directory: CandidateDirectory | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.assignment_repo = assignment_repo
        self.transition_repo = transition_repo
        self.decline_repo = decline_repo
        self.event_repo = event_repo
        self.aggregator = aggregator
        self.dispatcher = dispatcher
        self.session = session
        self.cache = cache
        self.directory = directory
        self.settings = settings or get_settings()
        self.clock = clock

    @classmethod
    def from_session(
        cls,
        session: AsyncSession,
        notifier: Notifier,
        *,
        cache: StaffingCache | None = None,
        directory: CandidateDirectory | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> "BookingService":
        """Wire a service and its collaborators around one session."""
        assignment_repo = AssignmentRepository(session)
        event_repo = BookingEventRepository(session)
        return cls(
            assignment_repo=assignment_repo,
            transition_repo=AssignmentTransitionRepository(session),
            decline_repo=AssignmentDeclineRepository(session),
            event_repo=event_repo,
            aggregator=ProjectStatusAggregator(
                ProjectRepository(session), assignment_repo, event_repo, session, clock=clock
            ),
            dispatcher=EventDispatcher(event_repo, session, notifier, clock=clock),
            session=session,
            cache=cache,
            directory=directory,
            settings=settings,
            clock=clock,
        )

    # Reads

    async def get_assignment(self, assignment_id: UUID) -> Assignment:
        """Get an assignment by id.

        Raises:
            AssignmentNotFound: No such assignment
        """
        with translate_persistence_errors():
            assignment = await self.assignment_repo.get_by_id(assignment_id, fresh=True)
        if assignment is None:
            raise AssignmentNotFound(assignment_id)
        return assignment

    async def list_declines(self, assignment_id: UUID) -> list[AssignmentDecline]:
        """Candidates who declined this slot, newest first."""
        await self.get_assignment(assignment_id)
        return await self.decline_repo.list_for_assignment(assignment_id)

    async def list_history(self, assignment_id: UUID) -> list[AssignmentTransition]:
        await self.get_assignment(assignment_id)
        return await self.transition_repo.list_for_assignment(assignment_id)

    async def suggest_candidates(
        self, assignment_id: UUID, exclude_declined: bool = True
    ) -> list[CandidateProfile]:
        """Eligible candidates for a slot from the candidate directory.

        Previous decliners are skipped unless ``exclude_declined`` is False;
        the booking core itself never refuses to re-offer them.
        """
        assignment = await self.get_assignment(assignment_id)
        if self.directory is None:
            return []
        excluded: set[UUID] = set()
        if exclude_declined:
            excluded = await self.decline_repo.declined_candidate_ids(assignment_id)
        candidates = await self.directory.list_available()
        return find_eligible_candidates(assignment, candidates, excluded)

    # Transitions

    async def open_for_search(
        self,
        assignment_id: UUID,
        expires_at: datetime | None = None,
        actor_id: UUID | None = None,
    ) -> BookingOutcome:
        """Open a draft assignment for matching (draft -> searching).

        Raises:
            AssignmentNotFound: No such assignment
            RequirementsIncomplete: Profile or seniority missing
            InvalidTransition: Assignment is not a draft
        """
        assignment = await self.get_assignment(assignment_id)
        bind_booking_context(assignment_id=assignment.id, project_id=assignment.project_id)
        now = self.clock()
        current = assignment.status_enum

        if current == BookingStatus.DRAFT and not assignment.requirements_complete:
            raise RequirementsIncomplete(
                "Profile and seniority must be set before opening the assignment",
                assignment_id=assignment.id,
                current=current,
                requested=BookingStatus.SEARCHING,
            )
        ctx = TransitionContext(
            now=now,
            requirements_complete=assignment.requirements_complete,
            assignment_id=assignment.id,
        )
        if not validate_transition(current, BookingStatus.SEARCHING, ctx):
            return await self._unchanged(assignment)

        values = {
            "booking_status": BookingStatus.SEARCHING.value,
            "expires_at": expires_at or now + self.settings.search_window,
            "updated_at": now,
        }
        await self._apply(
            assignment,
            current,
            values,
            edges=[(current, BookingStatus.SEARCHING)],
            actor_id=actor_id,
        )
        logger.info("Assignment opened for search")
        return await self._after_commit(assignment, event=None)

    async def offer(
        self,
        assignment_id: UUID,
        candidate_id: UUID,
        expires_at: datetime | None = None,
        actor_id: UUID | None = None,
    ) -> BookingOutcome:
        """Offer a slot to a candidate, opening it first if it is still a draft.

        Raises:
            AssignmentNotFound: No such assignment
            RequirementsIncomplete: Draft with profile or seniority missing
            AlreadyResolved: Assignment is no longer searching
        """
        assignment = await self.get_assignment(assignment_id)
        bind_booking_context(assignment_id=assignment.id, project_id=assignment.project_id)
        now = self.clock()
        current = assignment.status_enum

        if current in RESOLVED_STATUSES:
            raise AlreadyResolved(current, BookingStatus.SEARCHING, assignment_id=assignment.id)
        if current == BookingStatus.SEARCHING and assignment.offered_candidate_id == candidate_id:
            return await self._unchanged(assignment)

        edges: list[Edge] = []
        if current == BookingStatus.DRAFT:
            if not assignment.requirements_complete:
                raise RequirementsIncomplete(
                    "Profile and seniority must be set before offering the assignment",
                    assignment_id=assignment.id,
                    current=current,
                    requested=BookingStatus.SEARCHING,
                )
            ctx = TransitionContext(
                now=now, requirements_complete=True, assignment_id=assignment.id
            )
            validate_transition(current, BookingStatus.SEARCHING, ctx)
            edges.append((current, BookingStatus.SEARCHING))

        new_expires_at = expires_at or now + self.settings.search_window
        event = self._event(
            BookingEventType.ASSIGNMENT_OFFERED,
            assignment,
            now,
            candidate_id=candidate_id,
            payload={"expires_at": new_expires_at.isoformat()},
        )
        values = {
            "booking_status": BookingStatus.SEARCHING.value,
            "offered_candidate_id": candidate_id,
            "expires_at": new_expires_at,
            "updated_at": now,
        }
        await self._apply(
            assignment,
            current,
            values,
            edges=edges,
            event=event,
            actor_id=actor_id,
            reason="offered",
        )
        logger.info("Assignment offered", candidate_id=str(candidate_id))
        return await self._after_commit(assignment, event=event)

    async def accept(self, assignment_id: UUID, candidate_id: UUID) -> BookingOutcome:
        """Bind a candidate to a searching slot.

        Exactly one of several concurrent accepts wins; the others get
        AlreadyResolved. Retrying with the winning candidate succeeds without
        emitting another event.

        Raises:
            AssignmentNotFound: No such assignment
            AlreadyResolved: Slot already resolved or its window elapsed
            InvalidTransition: Slot is still a draft
        """
        assignment = await self.get_assignment(assignment_id)
        bind_booking_context(assignment_id=assignment.id, project_id=assignment.project_id)
        now = self.clock()
        current = assignment.status_enum

        if current == BookingStatus.ACCEPTED and assignment.candidate_id == candidate_id:
            return await self._unchanged(assignment)
        if current in RESOLVED_STATUSES or (
            current == BookingStatus.SEARCHING
            and assignment.expires_at is not None
            and now >= assignment.expires_at
        ):
            logger.info("Accept rejected", candidate_id=str(candidate_id), status=current.value)
            raise AlreadyResolved(current, BookingStatus.ACCEPTED, assignment_id=assignment.id)

        ctx = TransitionContext(
            now=now,
            candidate_id=candidate_id,
            expires_at=assignment.expires_at,
            assignment_id=assignment.id,
        )
        validate_transition(current, BookingStatus.ACCEPTED, ctx)

        price = await self._price_for(assignment, candidate_id)
        event = self._event(
            BookingEventType.ASSIGNMENT_ACCEPTED,
            assignment,
            now,
            candidate_id=candidate_id,
            payload={"calculated_price": str(price) if price is not None else None},
        )
        values = {
            "booking_status": BookingStatus.ACCEPTED.value,
            "candidate_id": candidate_id,
            "offered_candidate_id": None,
            "calculated_price": price,
            "updated_at": now,
        }
        window_open = or_(
            col(Assignment.expires_at).is_(None),
            col(Assignment.expires_at) > now,
        )
        applied = await self._apply(
            assignment,
            current,
            values,
            window_open,
            edges=[(current, BookingStatus.ACCEPTED)],
            event=event,
            actor_id=candidate_id,
            raise_on_conflict=False,
        )
        if not applied:
            fresh = await self.get_assignment(assignment_id)
            if fresh.status_enum == BookingStatus.ACCEPTED and fresh.candidate_id == candidate_id:
                return await self._unchanged(fresh)
            logger.info("Accept lost race", candidate_id=str(candidate_id), status=fresh.booking_status)
            raise AlreadyResolved(fresh.status_enum, BookingStatus.ACCEPTED, assignment_id=assignment.id)

        logger.info("Assignment accepted", candidate_id=str(candidate_id))
        return await self._after_commit(assignment, event=event)

    async def decline(
        self, assignment_id: UUID, candidate_id: UUID, reason: str | None = None
    ) -> BookingOutcome:
        """Refuse an offer; the slot goes straight back to searching.

        Records the decline log entry and history
        ``searching -> declined -> searching`` and renews the window.

        Raises:
            AssignmentNotFound: No such assignment
            NotAuthorized: Candidate does not hold the current offer
            AlreadyResolved: Slot already resolved
            InvalidTransition: Slot is still a draft
        """
        assignment = await self.get_assignment(assignment_id)
        bind_booking_context(assignment_id=assignment.id, project_id=assignment.project_id)
        now = self.clock()
        current = assignment.status_enum

        if current in RESOLVED_STATUSES:
            raise AlreadyResolved(current, BookingStatus.DECLINED, assignment_id=assignment.id)
        if current == BookingStatus.SEARCHING and await self._decline_already_landed(
            assignment, candidate_id
        ):
            return await self._unchanged(assignment)

        ctx = TransitionContext(
            now=now,
            candidate_id=candidate_id,
            offered_candidate_id=assignment.offered_candidate_id,
            assignment_id=assignment.id,
        )
        try:
            validate_transition(current, BookingStatus.DECLINED, ctx)
        except NotAuthorized:
            logger.warning("Decline by candidate without offer", candidate_id=str(candidate_id))
            raise
        validate_transition(BookingStatus.DECLINED, BookingStatus.SEARCHING, ctx)

        new_expires_at = now + self.settings.search_window
        event = self._event(
            BookingEventType.ASSIGNMENT_DECLINED,
            assignment,
            now,
            candidate_id=candidate_id,
            payload={"reason": reason, "expires_at": new_expires_at.isoformat()},
        )
        values = {
            "booking_status": BookingStatus.SEARCHING.value,
            "offered_candidate_id": None,
            "expires_at": new_expires_at,
            "updated_at": now,
        }
        applied = await self._apply(
            assignment,
            current,
            values,
            col(Assignment.offered_candidate_id) == candidate_id,
            edges=[
                (BookingStatus.SEARCHING, BookingStatus.DECLINED),
                (BookingStatus.DECLINED, BookingStatus.SEARCHING),
            ],
            event=event,
            actor_id=candidate_id,
            reason=reason,
            extra=[
                AssignmentDecline(
                    assignment_id=assignment.id,
                    candidate_id=candidate_id,
                    reason=reason,
                    created_at=now,
                )
            ],
            raise_on_conflict=False,
        )
        if not applied:
            fresh = await self.get_assignment(assignment_id)
            if fresh.status_enum == BookingStatus.SEARCHING and await self._decline_already_landed(
                fresh, candidate_id
            ):
                return await self._unchanged(fresh)
            raise AlreadyResolved(fresh.status_enum, BookingStatus.DECLINED, assignment_id=assignment.id)

        logger.info("Assignment declined", candidate_id=str(candidate_id))
        return await self._after_commit(assignment, event=event)

    async def expire(self, assignment_id: UUID, refresh_project: bool = True) -> BookingOutcome:
        """Expire a searching slot whose window has elapsed.

        Under the ``reopen`` policy the slot goes back to searching with a new
        window in the same transaction; under ``terminal`` it stays expired.
        Either way exactly one AssignmentExpired event is emitted. Expiring an
        already expired slot is a no-op.

        Args:
            assignment_id: Assignment to expire
            refresh_project: Re-aggregate the project afterwards. The sweeper
                             passes False and refreshes each project once.

        Raises:
            AssignmentNotFound: No such assignment
            AlreadyResolved: Slot already moved on
            InvalidTransition: Window not elapsed, or slot is still a draft
        """
        assignment = await self.get_assignment(assignment_id)
        bind_booking_context(assignment_id=assignment.id, project_id=assignment.project_id)
        now = self.clock()
        current = assignment.status_enum

        if current == BookingStatus.EXPIRED:
            return await self._unchanged(assignment)
        if current in RESOLVED_STATUSES:
            raise AlreadyResolved(current, BookingStatus.EXPIRED, assignment_id=assignment.id)

        ctx = TransitionContext(
            now=now,
            expires_at=assignment.expires_at,
            administrative=True,
            assignment_id=assignment.id,
        )
        validate_transition(current, BookingStatus.EXPIRED, ctx)

        policy = self.settings.expiry_policy
        edges: list[Edge] = [(BookingStatus.SEARCHING, BookingStatus.EXPIRED)]
        values: dict[str, Any] = {"offered_candidate_id": None, "updated_at": now}
        if policy == "reopen":
            validate_transition(BookingStatus.EXPIRED, BookingStatus.SEARCHING, ctx)
            edges.append((BookingStatus.EXPIRED, BookingStatus.SEARCHING))
            values["booking_status"] = BookingStatus.SEARCHING.value
            values["expires_at"] = now + self.settings.search_window
        else:
            values["booking_status"] = BookingStatus.EXPIRED.value

        event = self._event(
            BookingEventType.ASSIGNMENT_EXPIRED,
            assignment,
            now,
            candidate_id=assignment.offered_candidate_id,
            payload={
                "policy": policy,
                "expired_at": assignment.expires_at.isoformat() if assignment.expires_at else None,
                "expires_at": values["expires_at"].isoformat() if "expires_at" in values else None,
            },
        )
        await self._apply(
            assignment,
            current,
            values,
            col(Assignment.expires_at) <= now,
            edges=edges,
            event=event,
            reason="search window elapsed",
            requested=BookingStatus.EXPIRED,
        )
        logger.info("Assignment expired", policy=policy)
        return await self._after_commit(assignment, event=event, refresh_project=refresh_project)

    async def reopen(
        self,
        assignment_id: UUID,
        expires_at: datetime | None = None,
        actor_id: UUID | None = None,
    ) -> BookingOutcome:
        """Administrative re-open of an expired slot (expired -> searching).

        Raises:
            AssignmentNotFound: No such assignment
            InvalidTransition: Slot is not expired
        """
        assignment = await self.get_assignment(assignment_id)
        bind_booking_context(assignment_id=assignment.id, project_id=assignment.project_id)
        now = self.clock()
        current = assignment.status_enum

        if current == BookingStatus.SEARCHING:
            return await self._unchanged(assignment)
        if current != BookingStatus.EXPIRED:
            raise InvalidTransition(
                current,
                BookingStatus.SEARCHING,
                "only expired assignments can be re-opened",
                assignment_id=assignment.id,
            )
        ctx = TransitionContext(now=now, administrative=True, assignment_id=assignment.id)
        validate_transition(current, BookingStatus.SEARCHING, ctx)

        values = {
            "booking_status": BookingStatus.SEARCHING.value,
            "expires_at": expires_at or now + self.settings.search_window,
            "updated_at": now,
        }
        await self._apply(
            assignment,
            current,
            values,
            edges=[(current, BookingStatus.SEARCHING)],
            actor_id=actor_id,
            reason="administrative re-open",
        )
        logger.info("Assignment re-opened")
        return await self._after_commit(assignment, event=None)

    async def refresh_project(self, project_id: UUID) -> AggregationResult:
        """Re-aggregate a project, drop its cached views and deliver any event."""
        result = await self.aggregator.refresh(project_id)
        await self._invalidate(project_id)
        if result.event is not None:
            await self.dispatcher.dispatch([result.event])
        return result

    # Internals

    async def _apply(
        self,
        assignment: Assignment,
        expected: BookingStatus,
        values: dict[str, Any],
        *extra_where: ColumnElement[bool],
        edges: list[Edge],
        event: BookingEvent | None = None,
        actor_id: UUID | None = None,
        reason: str | None = None,
        extra: list[Any] | None = None,
        requested: BookingStatus | None = None,
        raise_on_conflict: bool = True,
    ) -> bool:
        """Conditional update plus history, extra rows and event in one transaction.

        Returns:
            True if applied, False if the expected status no longer held
            (only when ``raise_on_conflict`` is False)
        """
        # Rollback expires loaded instances; read what is needed up front
        assignment_id = assignment.id
        project_id = assignment.project_id
        try:
            with translate_persistence_errors():
                rows = await self.assignment_repo.conditional_update(
                    assignment_id, expected, values, *extra_where
                )
                if rows == 0:
                    await self.session.rollback()
                else:
                    now = values["updated_at"]
                    for from_status, to_status in edges:
                        self.transition_repo.add(
                            AssignmentTransition(
                                assignment_id=assignment_id,
                                project_id=project_id,
                                from_status=from_status.value,
                                to_status=to_status.value,
                                actor_id=actor_id,
                                reason=reason,
                                created_at=now,
                            )
                        )
                    for entity in extra or []:
                        self.session.add(entity)
                    if event is not None:
                        self.event_repo.add(event)
                    await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if rows == 0:
            if raise_on_conflict:
                fresh = await self.get_assignment(assignment_id)
                target = requested or BookingStatus(values["booking_status"])
                raise AlreadyResolved(fresh.status_enum, target, assignment_id=assignment_id)
            return False
        return True

    async def _after_commit(
        self,
        assignment: Assignment,
        event: BookingEvent | None,
        refresh_project: bool = True,
    ) -> BookingOutcome:
        fresh = await self.get_assignment(assignment.id)
        staffing = None
        events = [event] if event is not None else []
        if refresh_project:
            staffing = await self.aggregator.refresh(fresh.project_id)
            if staffing.event is not None:
                events.append(staffing.event)
            await self._invalidate(fresh.project_id)
        if events:
            await self.dispatcher.dispatch(events)
        return BookingOutcome(fresh, changed=True, event=event, staffing=staffing)

    async def _unchanged(self, assignment: Assignment) -> BookingOutcome:
        """Idempotent retry: converge the project status, emit nothing."""
        staffing = await self.aggregator.refresh(assignment.project_id)
        if staffing.changed:
            await self._invalidate(assignment.project_id)
            if staffing.event is not None:
                await self.dispatcher.dispatch([staffing.event])
        logger.debug("Booking operation already applied", status=assignment.booking_status)
        return BookingOutcome(assignment, changed=False, staffing=staffing)

    async def _invalidate(self, project_id: UUID) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.invalidate_project(project_id)
        except Exception as e:
            logger.warning("Staffing cache invalidation failed", project_id=str(project_id), error=str(e))

    async def _decline_already_landed(self, assignment: Assignment, candidate_id: UUID) -> bool:
        if assignment.offered_candidate_id is not None:
            return False
        latest = await self.decline_repo.get_latest(assignment.id)
        return latest is not None and latest.candidate_id == candidate_id

    async def _price_for(self, assignment: Assignment, candidate_id: UUID) -> Decimal | None:
        base_price = assignment.base_price
        if self.directory is not None:
            profile = await self.directory.get(candidate_id)
            if profile is not None and profile.base_price is not None:
                base_price = profile.base_price
        if base_price is None:
            return None
        return calculate_price(
            base_price,
            assignment.seniority_enum,
            expertise_count=len(assignment.expertises),
            language_count=len(assignment.languages),
        )

    @staticmethod
    def _event(
        event_type: BookingEventType,
        assignment: Assignment,
        now: datetime,
        candidate_id: UUID | None = None,
        payload: dict[str, Any] | None = None,
    ) -> BookingEvent:
        return BookingEvent(
            event_type=event_type.value,
            project_id=assignment.project_id,
            assignment_id=assignment.id,
            candidate_id=candidate_id,
            occurred_at=now,
            payload=payload or {},
        )
