"""Repository for Project entity."""

from uuid import UUID

from sqlmodel import select

from src.staffing.models import Project
from src.staffing.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project entity."""

    model = Project

    async def list_all(
        self,
        owner_id: UUID | None = None,
        cursor: str | None = None,
        limit: int = 100,
    ) -> tuple[list[Project], str | None, bool]:
        """List projects, optionally for one client, with cursor-based pagination.

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        query = select(Project)
        if owner_id is not None:
            query = query.where(Project.owner_id == owner_id)
        return await self.paginate(query, cursor, limit, Project.created_at)

    async def get_for_update(self, project_id: UUID) -> Project | None:
        """Get a project and lock its row until the transaction ends.

        Only the derived staffing write takes this lock; assignment rows are
        never locked.
        """
        result = await self.session.execute(
            select(Project)
            .where(Project.id == project_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
