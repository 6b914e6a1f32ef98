"""Activity log repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seedkeep.infrastructure.persistence.models import ActivityModel


class ActivityRepository:
    """Repository for the admin activity log."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, entry: ActivityModel) -> ActivityModel:
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def list_recent(self, limit: int = 100) -> list[ActivityModel]:
        """Most recent activity first.

        Args:
            limit: Maximum number of entries to return.
        """
        result = await self.session.execute(
            select(ActivityModel)
            .order_by(ActivityModel.logged_at.desc(), ActivityModel.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
