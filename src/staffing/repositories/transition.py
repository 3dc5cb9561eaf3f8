"""Repository for assignment status history."""

from uuid import UUID

from sqlmodel import col, select

from src.staffing.models import AssignmentTransition
from src.staffing.repositories.base import BaseRepository


class AssignmentTransitionRepository(BaseRepository[AssignmentTransition]):
    """Append-only status history."""

    model = AssignmentTransition

    async def list_for_assignment(self, assignment_id: UUID) -> list[AssignmentTransition]:
        """History of one assignment in the order it happened."""
        result = await self.session.execute(
            select(AssignmentTransition)
            .where(AssignmentTransition.assignment_id == assignment_id)
            .order_by(col(AssignmentTransition.id))
        )
        return list(result.scalars().all())
