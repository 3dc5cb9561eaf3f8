"""Repository for Assignment entity."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, update
from sqlmodel import col, select

from src.staffing.models import Assignment, BookingStatus
from src.staffing.repositories.base import BaseRepository


class AssignmentRepository(BaseRepository[Assignment]):
    """Repository for Assignment entity.

    Status writes go through ``conditional_update`` only, which is the single
    serialization point between concurrent actors on one assignment.
    """

    model = Assignment

    async def conditional_update(
        self,
        assignment_id: UUID,
        expected: BookingStatus,
        values: dict[str, Any],
        *extra_where: ColumnElement[bool],
    ) -> int:
        """Update the assignment only if it still has the expected status.

        Args:
            assignment_id: Assignment to update
            expected: Status the caller observed
            values: Column values to write
            extra_where: Additional guards (e.g. window not elapsed)

        Returns:
            Number of rows updated (0 means another actor got there first)
        """
        stmt = (
            update(Assignment)
            .where(col(Assignment.id) == assignment_id)
            .where(col(Assignment.booking_status) == expected.value)
            .where(*extra_where)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def list_by_project(self, project_id: UUID) -> list[Assignment]:
        """All assignments of a project, oldest first."""
        result = await self.session.execute(
            select(Assignment)
            .where(Assignment.project_id == project_id)
            .order_by(col(Assignment.created_at))
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_statuses_by_project(self, project_id: UUID) -> list[BookingStatus]:
        result = await self.session.execute(
            select(Assignment.booking_status).where(Assignment.project_id == project_id)
        )
        return [BookingStatus(value) for value in result.scalars().all()]

    async def list_due_for_expiry(self, now: datetime, limit: int) -> list[Assignment]:
        """Searching assignments whose window has elapsed, oldest deadline first."""
        result = await self.session.execute(
            select(Assignment)
            .where(Assignment.booking_status == BookingStatus.SEARCHING.value)
            .where(col(Assignment.expires_at).is_not(None))
            .where(col(Assignment.expires_at) <= now)
            .order_by(col(Assignment.expires_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_candidate(
        self,
        candidate_id: UUID,
        cursor: str | None = None,
        limit: int = 100,
    ) -> tuple[list[Assignment], str | None, bool]:
        """Missions a candidate holds or is currently offered.

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        query = select(Assignment).where(
            (col(Assignment.candidate_id) == candidate_id)
            | (col(Assignment.offered_candidate_id) == candidate_id)
        )
        return await self.paginate(query, cursor, limit, Assignment.created_at)
