"""Pydantic schemas for the HTTP API."""

from src.staffing.schemas.assignment import (
    AcceptRequest,
    AssignmentRead,
    BookingResult,
    CandidateRead,
    DeclineRead,
    DeclineRequest,
    OfferRequest,
    OpenRequest,
    SweepReportRead,
    TransitionRead,
)
from src.staffing.schemas.pagination import PaginatedResponse, decode_cursor, encode_cursor
from src.staffing.schemas.project import (
    ProjectCreate,
    ProjectRead,
    RequirementCreate,
    StaffingSummaryRead,
)

__all__ = [
    # Assignments
    "AcceptRequest",
    "AssignmentRead",
    "BookingResult",
    "CandidateRead",
    "DeclineRead",
    "DeclineRequest",
    "OfferRequest",
    "OpenRequest",
    "SweepReportRead",
    "TransitionRead",
    # Projects
    "ProjectCreate",
    "ProjectRead",
    "RequirementCreate",
    "StaffingSummaryRead",
    # Pagination
    "PaginatedResponse",
    "decode_cursor",
    "encode_cursor",
]
