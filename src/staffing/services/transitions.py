"""Booking transition rules.

Pure functions over statuses and a small context object; nothing here touches
storage. The Booking Service calls ``validate_transition`` before every
conditional update.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.staffing.core.exceptions import InvalidTransition, NotAuthorized
from src.staffing.models.enums import BookingStatus

LEGAL_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.DRAFT: frozenset({BookingStatus.SEARCHING}),
    BookingStatus.SEARCHING: frozenset(
        {BookingStatus.ACCEPTED, BookingStatus.DECLINED, BookingStatus.EXPIRED}
    ),
    BookingStatus.ACCEPTED: frozenset(),
    BookingStatus.DECLINED: frozenset({BookingStatus.SEARCHING}),
    BookingStatus.EXPIRED: frozenset({BookingStatus.SEARCHING}),
}

# States a pending accept, decline or expire can no longer act on
RESOLVED_STATUSES = frozenset(
    {BookingStatus.ACCEPTED, BookingStatus.DECLINED, BookingStatus.EXPIRED}
)


@dataclass(frozen=True)
class TransitionContext:
    """Facts the preconditions are checked against."""

    now: datetime
    requirements_complete: bool = False
    candidate_id: UUID | None = None
    offered_candidate_id: UUID | None = None
    expires_at: datetime | None = None
    administrative: bool = False
    assignment_id: UUID | None = None


def is_legal(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in LEGAL_TRANSITIONS[current]


def validate_transition(
    current: BookingStatus,
    requested: BookingStatus,
    ctx: TransitionContext,
) -> bool:
    """Check that ``current -> requested`` may happen now.

    Returns:
        False if the assignment is already in the requested status (no-op),
        True if the mutation should be applied.

    Raises:
        InvalidTransition: Edge not in the table, or its precondition failed
        NotAuthorized: Decline requested by someone other than the offered candidate
    """
    if current == requested:
        return False

    if not is_legal(current, requested):
        raise InvalidTransition(current, requested, assignment_id=ctx.assignment_id)

    edge = (current, requested)
    if edge == (BookingStatus.DRAFT, BookingStatus.SEARCHING):
        if not ctx.requirements_complete:
            raise InvalidTransition(
                current, requested, "profile and seniority must be set", assignment_id=ctx.assignment_id
            )
    elif edge == (BookingStatus.SEARCHING, BookingStatus.ACCEPTED):
        if ctx.candidate_id is None:
            raise InvalidTransition(
                current, requested, "a candidate is required", assignment_id=ctx.assignment_id
            )
        if ctx.expires_at is not None and ctx.now >= ctx.expires_at:
            raise InvalidTransition(
                current, requested, "search window has elapsed", assignment_id=ctx.assignment_id
            )
    elif edge == (BookingStatus.SEARCHING, BookingStatus.DECLINED):
        if ctx.candidate_id is None or ctx.candidate_id != ctx.offered_candidate_id:
            raise NotAuthorized(
                ctx.candidate_id,  # type: ignore[arg-type]
                assignment_id=ctx.assignment_id,
                current=current,
                requested=requested,
            )
    elif edge == (BookingStatus.SEARCHING, BookingStatus.EXPIRED):
        if ctx.expires_at is None or ctx.now < ctx.expires_at:
            raise InvalidTransition(
                current, requested, "search window has not elapsed", assignment_id=ctx.assignment_id
            )
    elif edge == (BookingStatus.EXPIRED, BookingStatus.SEARCHING):
        if not ctx.administrative:
            raise InvalidTransition(
                current,
                requested,
                "only an administrator can re-open an expired assignment",
                assignment_id=ctx.assignment_id,
            )
    # declined -> searching has no precondition

    return True

