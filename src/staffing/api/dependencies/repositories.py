"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.staffing.api.dependencies.db import DBSession
from src.staffing.repositories import AssignmentRepository, ProjectRepository


def get_project_repository(session: DBSession) -> ProjectRepository:
    return ProjectRepository(session)


def get_assignment_repository(session: DBSession) -> AssignmentRepository:
    return AssignmentRepository(session)


ProjectRepo = Annotated[ProjectRepository, Depends(get_project_repository)]
AssignmentRepo = Annotated[AssignmentRepository, Depends(get_assignment_repository)]
