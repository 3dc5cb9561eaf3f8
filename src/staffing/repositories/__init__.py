"""Repository layer - data access abstraction."""

from src.staffing.repositories.assignment import AssignmentRepository
from src.staffing.repositories.base import BaseRepository, translate_persistence_errors
from src.staffing.repositories.decline import AssignmentDeclineRepository
from src.staffing.repositories.event import BookingEventRepository
from src.staffing.repositories.project import ProjectRepository
from src.staffing.repositories.transition import AssignmentTransitionRepository

__all__ = [
    # Base
    "BaseRepository",
    "translate_persistence_errors",
    # Entities
    "AssignmentDeclineRepository",
    "AssignmentRepository",
    "AssignmentTransitionRepository",
    "BookingEventRepository",
    "ProjectRepository",
]
