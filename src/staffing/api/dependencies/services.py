"""Service factory dependencies.

Notifier, cache and candidate directory are resolved through their own
dependencies so tests (and alternative deployments) can override them.
"""

from typing import Annotated

from fastapi import Depends

from src.staffing.api.dependencies.db import DBSession
from src.staffing.api.dependencies.repositories import AssignmentRepo, ProjectRepo
from src.staffing.core.cache import StaffingCache
from src.staffing.core.notifications import Notifier
from src.staffing.core.notifications import get_notifier as build_notifier
from src.staffing.services import (
    BookingService,
    CandidateDirectory,
    ExpirySweeper,
    ProjectService,
)


def get_notifier() -> Notifier:
    """Get the notifier configured by NOTIFIER_BACKEND."""
    return build_notifier()


def get_staffing_cache() -> StaffingCache:
    """Get the staffing read cache with TTLs from settings."""
    return StaffingCache.from_settings()


def get_candidate_directory() -> CandidateDirectory | None:
    """Candidate directory client. None until an external directory is wired in."""
    return None


NotifierDep = Annotated[Notifier, Depends(get_notifier)]
StaffingCacheDep = Annotated[StaffingCache, Depends(get_staffing_cache)]
CandidateDirectoryDep = Annotated[CandidateDirectory | None, Depends(get_candidate_directory)]


def get_booking_service(
    session: DBSession,
    notifier: NotifierDep,
    cache: StaffingCacheDep,
    directory: CandidateDirectoryDep,
) -> BookingService:
    """Get booking service with its aggregator and dispatcher on one session."""
    return BookingService.from_session(session, notifier, cache=cache, directory=directory)


BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]


def get_project_service(
    project_repo: ProjectRepo,
    assignment_repo: AssignmentRepo,
    booking_service: BookingServiceDep,
    session: DBSession,
    cache: StaffingCacheDep,
) -> ProjectService:
    """Get project service."""
    return ProjectService(project_repo, assignment_repo, booking_service, session, cache=cache)


def get_expiry_sweeper(booking_service: BookingServiceDep) -> ExpirySweeper:
    return ExpirySweeper(booking_service)


ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
ExpirySweeperDep = Annotated[ExpirySweeper, Depends(get_expiry_sweeper)]
