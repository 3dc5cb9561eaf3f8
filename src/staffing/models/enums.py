"""Shared enums for models."""

from enum import Enum


class BookingStatus(str, Enum):
    """Lifecycle status of a single resource slot (assignment)."""

    DRAFT = "draft"
    SEARCHING = "searching"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class Seniority(str, Enum):
    """Seniority level required by an assignment."""

    JUNIOR = "junior"
    INTERMEDIATE = "intermediate"
    SENIOR = "senior"
    EXPERT = "expert"


class StaffingStatus(str, Enum):
    """Project staffing, derived from its assignments' booking statuses."""

    NO_RESOURCES = "no_resources"
    PARTIALLY_STAFFED = "partially_staffed"
    FULLY_STAFFED = "fully_staffed"


class ProjectLifecycle(str, Enum):
    """Explicit client-driven project lifecycle, independent of staffing."""

    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"


class BookingEventType(str, Enum):
    """Domain events handed to the notifier."""

    ASSIGNMENT_OFFERED = "AssignmentOffered"
    ASSIGNMENT_ACCEPTED = "AssignmentAccepted"
    ASSIGNMENT_DECLINED = "AssignmentDeclined"
    ASSIGNMENT_EXPIRED = "AssignmentExpired"
    PROJECT_FULLY_STAFFED = "ProjectFullyStaffed"
