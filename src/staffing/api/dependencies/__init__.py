"""FastAPI dependency injection definitions.

Re-exports all dependencies so routers import from one place.
"""

from src.staffing.api.dependencies.db import DBSession, get_db_session
from src.staffing.api.dependencies.repositories import (
    AssignmentRepo,
    ProjectRepo,
    get_assignment_repository,
    get_project_repository,
)
from src.staffing.api.dependencies.services import (
    BookingServiceDep,
    CandidateDirectoryDep,
    ExpirySweeperDep,
    NotifierDep,
    ProjectServiceDep,
    StaffingCacheDep,
    get_booking_service,
    get_candidate_directory,
    get_expiry_sweeper,
    get_notifier,
    get_project_service,
    get_staffing_cache,
)

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Repositories
    "AssignmentRepo",
    "ProjectRepo",
    "get_assignment_repository",
    "get_project_repository",
    # Services
    "BookingServiceDep",
    "CandidateDirectoryDep",
    "ExpirySweeperDep",
    "NotifierDep",
    "ProjectServiceDep",
    "StaffingCacheDep",
    "get_booking_service",
    "get_candidate_directory",
    "get_expiry_sweeper",
    "get_notifier",
    "get_project_service",
    "get_staffing_cache",
]
