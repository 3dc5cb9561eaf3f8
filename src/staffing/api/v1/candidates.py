"""Candidate-facing mission listing."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from src.staffing.api.dependencies import ProjectServiceDep
from src.staffing.schemas import AssignmentRead, PaginatedResponse

router = APIRouter(prefix="/candidates", tags=["candidates"])


@router.get(
    "/{candidate_id}/missions",
    response_model=PaginatedResponse[AssignmentRead],
    summary="List candidate missions",
    description="Assignments the candidate holds or is currently offered.",
)
async def list_missions(
    candidate_id: UUID,
    service: ProjectServiceDep,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Max items to return")] = 50,
) -> PaginatedResponse[AssignmentRead]:
    missions, next_cursor, has_more = await service.list_candidate_missions(
        candidate_id, cursor, limit
    )
    return PaginatedResponse(
        items=[AssignmentRead.model_validate(m) for m in missions],
        next_cursor=next_cursor,
        has_more=has_more,
    )
