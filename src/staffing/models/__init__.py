"""Model exports.

Import from here: `from src.staffing.models import Assignment, Project`
"""

from src.staffing.models.assignment import Assignment, AssignmentDecline, AssignmentTransition
from src.staffing.models.enums import (
    BookingEventType,
    BookingStatus,
    ProjectLifecycle,
    Seniority,
    StaffingStatus,
)
from src.staffing.models.event import BookingEvent
from src.staffing.models.project import Project

__all__ = [
    # Enums
    "BookingEventType",
    "BookingStatus",
    "ProjectLifecycle",
    "Seniority",
    "StaffingStatus",
    # Tables
    "Assignment",
    "AssignmentDecline",
    "AssignmentTransition",
    "BookingEvent",
    "Project",
]
