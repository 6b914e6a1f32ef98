"""Inventory history repository.

The history is append-only: entries are created and listed, never updated
or deleted.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seedkeep.infrastructure.persistence.models import InventoryHistoryModel


class InventoryHistoryRepository:
    """Repository for inventory history operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, entry: InventoryHistoryModel) -> InventoryHistoryModel:
        """Append a history entry and return it with its sequence number."""
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def list_for_record(self, record_id: str) -> list[InventoryHistoryModel]:
        """History of one entry, newest first."""
        result = await self.session.execute(
            select(InventoryHistoryModel)
            .where(InventoryHistoryModel.record_id == record_id)
            .order_by(InventoryHistoryModel.occurred_at.desc(), InventoryHistoryModel.id.desc())
        )
        return list(result.scalars().all())
