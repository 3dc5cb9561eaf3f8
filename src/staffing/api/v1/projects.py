"""Project endpoints - staffing view, requirements and lifecycle."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from src.staffing.api.dependencies import ProjectServiceDep
from src.staffing.schemas import (
    AssignmentRead,
    PaginatedResponse,
    ProjectCreate,
    ProjectRead,
    RequirementCreate,
    StaffingSummaryRead,
)

router = APIRouter(prefix="/projects", tags=["projects"])

_NOT_FOUND = {404: {"description": "Project not found"}}


@router.get(
    "",
    response_model=PaginatedResponse[ProjectRead],
    summary="List projects",
    description="List projects, optionally for one client, with cursor-based pagination.",
    responses={200: {"description": "Paginated list of projects"}},
)
async def list_projects(
    service: ProjectServiceDep,
    owner_id: Annotated[UUID | None, Query(description="Only this client's projects")] = None,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Max items to return")] = 50,
) -> PaginatedResponse[ProjectRead]:
    projects, next_cursor, has_more = await service.list_projects(owner_id, cursor, limit)
    return PaginatedResponse(
        items=[ProjectRead.model_validate(p) for p in projects],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.post(
    "",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    responses={201: {"description": "Project created"}},
)
async def create_project(request: ProjectCreate, service: ProjectServiceDep) -> ProjectRead:
    project = await service.create_project(request.owner_id, request.title, request.description)
    return ProjectRead.model_validate(project)


@router.get(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Get project",
    responses=_NOT_FOUND,
)
async def get_project(project_id: UUID, service: ProjectServiceDep) -> ProjectRead:
    return await service.get_project_view(project_id)


@router.get(
    "/{project_id}/staffing",
    response_model=StaffingSummaryRead,
    summary="Staffing summary",
    description="Counts per booking status and progress percentage. Cached briefly.",
    responses=_NOT_FOUND,
)
async def get_staffing(project_id: UUID, service: ProjectServiceDep) -> StaffingSummaryRead:
    summary = await service.get_staffing_summary(project_id)
    return StaffingSummaryRead.model_validate(summary)


@router.get(
    "/{project_id}/requirements",
    response_model=list[AssignmentRead],
    summary="List resource slots",
    responses=_NOT_FOUND,
)
async def list_requirements(project_id: UUID, service: ProjectServiceDep) -> list[AssignmentRead]:
    assignments = await service.list_assignments(project_id)
    return [AssignmentRead.model_validate(a) for a in assignments]


@router.post(
    "/{project_id}/requirements",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add resource slot",
    description="Declare a resource requirement. The new assignment starts as a draft.",
    responses={**_NOT_FOUND, 409: {"description": "Project already completed"}},
)
async def add_requirement(
    project_id: UUID, request: RequirementCreate, service: ProjectServiceDep
) -> AssignmentRead:
    assignment = await service.add_requirement(
        project_id,
        profile_id=request.profile_id,
        seniority=request.seniority,
        languages=request.languages,
        expertises=request.expertises,
        base_price=request.base_price,
    )
    return AssignmentRead.model_validate(assignment)


@router.delete(
    "/{project_id}/requirements/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove resource slot",
    responses={204: {"description": "Requirement removed"}, 404: {"description": "Not found"}},
)
async def remove_requirement(
    project_id: UUID, assignment_id: UUID, service: ProjectServiceDep
) -> None:
    await service.remove_requirement(project_id, assignment_id)


@router.post(
    "/{project_id}/start",
    response_model=ProjectRead,
    summary="Start project",
    description="Client action. Allowed only once every resource slot is accepted.",
    responses={**_NOT_FOUND, 409: {"description": "Project not fully staffed"}},
)
async def start_project(project_id: UUID, service: ProjectServiceDep) -> ProjectRead:
    project = await service.start_project(project_id)
    return ProjectRead.model_validate(project)


@router.post(
    "/{project_id}/complete",
    response_model=ProjectRead,
    summary="Complete project",
    responses={**_NOT_FOUND, 409: {"description": "Project is not active"}},
)
async def complete_project(project_id: UUID, service: ProjectServiceDep) -> ProjectRead:
    project = await service.complete_project(project_id)
    return ProjectRead.model_validate(project)
