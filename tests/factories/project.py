"""Project factory for test data generation."""

from polyfactory import Use

from src.staffing.models import Project, ProjectLifecycle, StaffingStatus
from tests.factories.base import BaseFactory, generate_uuid, utc_now


class ProjectFactory(BaseFactory):
    """Factory for generating Project test data."""

    __model__ = Project

    id = Use(generate_uuid)
    owner_id = Use(generate_uuid)
    title = Use(lambda: f"Test Project {generate_uuid().hex[-8:]}")
    description = None
    staffing_status = StaffingStatus.NO_RESOURCES.value
    lifecycle_status = ProjectLifecycle.PLANNING.value
    started_at = None
    completed_at = None
    created_at = Use(utc_now)
    updated_at = Use(utc_now)
