"""Service layer - booking lifecycle, aggregation and project management."""

from src.staffing.services.aggregator import (
    AggregationResult,
    ProjectStatusAggregator,
    StaffingSummary,
    aggregate,
    staffing_summary,
)
from src.staffing.services.booking_service import BookingOutcome, BookingService
from src.staffing.services.event_dispatcher import EventDispatcher
from src.staffing.services.expiry_sweeper import ExpirySweeper, SweepReport
from src.staffing.services.matching import (
    CandidateDirectory,
    CandidateProfile,
    InMemoryCandidateDirectory,
    find_eligible_candidates,
    is_eligible,
)
from src.staffing.services.pricing import calculate_price
from src.staffing.services.project_service import ProjectService
from src.staffing.services.transitions import LEGAL_TRANSITIONS, TransitionContext, validate_transition

__all__ = [
    # Booking
    "BookingOutcome",
    "BookingService",
    "EventDispatcher",
    "ExpirySweeper",
    "SweepReport",
    "LEGAL_TRANSITIONS",
    "TransitionContext",
    "validate_transition",
    # Aggregation
    "AggregationResult",
    "ProjectStatusAggregator",
    "StaffingSummary",
    "aggregate",
    "staffing_summary",
    # Projects and matching
    "CandidateDirectory",
    "CandidateProfile",
    "InMemoryCandidateDirectory",
    "ProjectService",
    "calculate_price",
    "find_eligible_candidates",
    "is_eligible",
]
