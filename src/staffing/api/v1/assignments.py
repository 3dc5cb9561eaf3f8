"""Assignment booking endpoints.

Failures come back as ``{"detail", "code", "current_status",
"requested_status", "request_id"}``; ``already_resolved`` (409) and
``not_authorized`` (403) are kept apart so clients can tell "no longer
available" from "not yours".
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from src.staffing.api.dependencies import BookingServiceDep
from src.staffing.schemas import (
    AcceptRequest,
    AssignmentRead,
    BookingResult,
    CandidateRead,
    DeclineRead,
    DeclineRequest,
    OfferRequest,
    OpenRequest,
    TransitionRead,
)
from src.staffing.services import BookingOutcome

router = APIRouter(prefix="/assignments", tags=["assignments"])

_NOT_FOUND = {404: {"description": "Assignment not found"}}
_CONFLICT = {409: {"description": "Illegal transition or slot already resolved"}}


def _result(outcome: BookingOutcome) -> BookingResult:
    return BookingResult(
        assignment=AssignmentRead.model_validate(outcome.assignment),
        changed=outcome.changed,
        event_id=outcome.event.id if outcome.event else None,
        project_staffing_status=outcome.staffing.current if outcome.staffing else None,
    )


@router.get(
    "/{assignment_id}",
    response_model=AssignmentRead,
    summary="Get assignment",
    responses=_NOT_FOUND,
)
async def get_assignment(assignment_id: UUID, service: BookingServiceDep) -> AssignmentRead:
    assignment = await service.get_assignment(assignment_id)
    return AssignmentRead.model_validate(assignment)


@router.post(
    "/{assignment_id}/open",
    response_model=BookingResult,
    summary="Open for matching",
    description="Move a draft assignment to searching. Profile and seniority must be set.",
    responses={**_NOT_FOUND, **_CONFLICT, 422: {"description": "Requirements incomplete"}},
)
async def open_assignment(
    assignment_id: UUID, request: OpenRequest, service: BookingServiceDep
) -> BookingResult:
    outcome = await service.open_for_search(
        assignment_id, expires_at=request.expires_at, actor_id=request.actor_id
    )
    return _result(outcome)


@router.post(
    "/{assignment_id}/offer",
    response_model=BookingResult,
    summary="Offer to candidate",
    description="Administrative. Opens a draft first, then binds the offered candidate.",
    responses={**_NOT_FOUND, **_CONFLICT, 422: {"description": "Requirements incomplete"}},
)
async def offer_assignment(
    assignment_id: UUID, request: OfferRequest, service: BookingServiceDep
) -> BookingResult:
    outcome = await service.offer(
        assignment_id,
        request.candidate_id,
        expires_at=request.expires_at,
        actor_id=request.actor_id,
    )
    return _result(outcome)


@router.post(
    "/{assignment_id}/accept",
    response_model=BookingResult,
    summary="Accept mission",
    description=(
        "Bind the candidate to the assignment. Repeating the call with the same "
        "candidate succeeds without side effects."
    ),
    responses={**_NOT_FOUND, 409: {"description": "Mission no longer available"}},
)
async def accept_assignment(
    assignment_id: UUID, request: AcceptRequest, service: BookingServiceDep
) -> BookingResult:
    outcome = await service.accept(assignment_id, request.candidate_id)
    return _result(outcome)


@router.post(
    "/{assignment_id}/decline",
    response_model=BookingResult,
    summary="Decline mission",
    description="Refuse the current offer. The assignment returns to searching.",
    responses={
        **_NOT_FOUND,
        403: {"description": "Candidate does not hold the offer"},
        409: {"description": "Mission no longer available"},
    },
)
async def decline_assignment(
    assignment_id: UUID, request: DeclineRequest, service: BookingServiceDep
) -> BookingResult:
    outcome = await service.decline(assignment_id, request.candidate_id, request.reason)
    return _result(outcome)


@router.post(
    "/{assignment_id}/expire",
    response_model=BookingResult,
    summary="Expire assignment",
    description="Expire a searching assignment whose window has elapsed.",
    responses={**_NOT_FOUND, **_CONFLICT},
)
async def expire_assignment(assignment_id: UUID, service: BookingServiceDep) -> BookingResult:
    outcome = await service.expire(assignment_id)
    return _result(outcome)


@router.post(
    "/{assignment_id}/reopen",
    response_model=BookingResult,
    summary="Re-open expired assignment",
    description="Administrative. Moves an expired assignment back to searching.",
    responses={**_NOT_FOUND, **_CONFLICT},
)
async def reopen_assignment(
    assignment_id: UUID, request: OpenRequest, service: BookingServiceDep
) -> BookingResult:
    outcome = await service.reopen(
        assignment_id, expires_at=request.expires_at, actor_id=request.actor_id
    )
    return _result(outcome)


@router.get(
    "/{assignment_id}/declines",
    response_model=list[DeclineRead],
    summary="Decline log",
    description="Candidates who previously declined this assignment, newest first.",
    responses=_NOT_FOUND,
)
async def list_declines(assignment_id: UUID, service: BookingServiceDep) -> list[DeclineRead]:
    declines = await service.list_declines(assignment_id)
    return [DeclineRead.model_validate(d) for d in declines]


@router.get(
    "/{assignment_id}/history",
    response_model=list[TransitionRead],
    summary="Status history",
    responses=_NOT_FOUND,
)
async def list_history(assignment_id: UUID, service: BookingServiceDep) -> list[TransitionRead]:
    transitions = await service.list_history(assignment_id)
    return [TransitionRead.model_validate(t) for t in transitions]


@router.get(
    "/{assignment_id}/candidates",
    response_model=list[CandidateRead],
    summary="Suggest candidates",
    description="Eligible candidates from the directory. Previous decliners are excluded by default.",
    responses=_NOT_FOUND,
)
async def suggest_candidates(
    assignment_id: UUID,
    service: BookingServiceDep,
    exclude_declined: Annotated[bool, Query(description="Skip candidates who declined")] = True,
) -> list[CandidateRead]:
    candidates = await service.suggest_candidates(assignment_id, exclude_declined=exclude_declined)
    return [CandidateRead.model_validate(c) for c in candidates]
