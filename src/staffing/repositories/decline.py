"""Repository for the assignment decline log."""

from uuid import UUID

from sqlmodel import col, select

from src.staffing.models import AssignmentDecline
from src.staffing.repositories.base import BaseRepository


class AssignmentDeclineRepository(BaseRepository[AssignmentDecline]):
    """Append-only decline log; rows are never updated."""

    model = AssignmentDecline

    async def list_for_assignment(self, assignment_id: UUID) -> list[AssignmentDecline]:
        """Declines of one assignment, newest first."""
        result = await self.session.execute(
            select(AssignmentDecline)
            .where(AssignmentDecline.assignment_id == assignment_id)
            .order_by(col(AssignmentDecline.id).desc())
        )
        return list(result.scalars().all())

    async def get_latest(self, assignment_id: UUID) -> AssignmentDecline | None:
        declines = await self.list_for_assignment(assignment_id)
        return declines[0] if declines else None

    async def declined_candidate_ids(self, assignment_id: UUID) -> set[UUID]:
        """Candidates who previously declined this slot."""
        result = await self.session.execute(
            select(AssignmentDecline.candidate_id).where(
                AssignmentDecline.assignment_id == assignment_id
            )
        )
        return set(result.scalars().all())
