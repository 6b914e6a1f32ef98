"""Inventory repository for database operations."""

from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seedkeep.infrastructure.persistence.models import InventoryModel


class InventoryRepository:
    """Repository for inventory entry database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, entry: InventoryModel) -> InventoryModel:
        """Create a new inventory entry.

        Args:
            entry: Inventory model to create.

        Returns:
            Created inventory model.
        """
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def create_many(self, entries: Sequence[InventoryModel]) -> list[InventoryModel]:
        """Create several entries in the current transaction."""
        self.session.add_all(list(entries))
        await self.session.flush()
        return list(entries)

    async def get_by_id(self, entry_id: str) -> InventoryModel | None:
        """Get an inventory entry by ID.

        Args:
            entry_id: Entry ID (UUID string).

        Returns:
            Inventory model if found, None otherwise.
        """
        result = await self.session.execute(
            select(InventoryModel).where(InventoryModel.id == entry_id)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[InventoryModel]:
        """All entries, oldest first."""
        result = await self.session.execute(
            select(InventoryModel).order_by(InventoryModel.added_at, InventoryModel.id)
        )
        return list(result.scalars().all())

    async def find_by_field(self, field_name: str, value: Any) -> list[InventoryModel]:
        """Entries whose JSON field ``field_name`` equals ``value``.

        The comparison is typed like a document query: a number only matches
        a stored number, a string only a stored string.
        """
        if value is None:
            raise ValueError("Equality queries need a value")
        element = InventoryModel.data[field_name]
        if isinstance(value, bool):
            condition = element.as_boolean() == value
        elif isinstance(value, int):
            condition = element.as_integer() == value
        elif isinstance(value, float):
            condition = element.as_float() == value
        else:
            condition = element.as_string() == str(value)
        result = await self.session.execute(
            select(InventoryModel).where(condition).order_by(InventoryModel.added_at, InventoryModel.id)
        )
        return list(result.scalars().all())

    async def replace_data(self, entry: InventoryModel, data: dict[str, Any]) -> InventoryModel:
        """Overwrite the entry's field values."""
        entry.data = dict(data)
        await self.session.flush()
        return entry

    async def delete(self, entry: InventoryModel) -> None:
        await self.session.delete(entry)
        await self.session.flush()
