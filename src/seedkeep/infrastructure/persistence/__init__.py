"""Persistence layer: SQLAlchemy models, repositories and the inventory store."""

from seedkeep.infrastructure.persistence.database import Base, DatabaseManager
from seedkeep.infrastructure.persistence.store import InventoryStore

__all__ = ["Base", "DatabaseManager", "InventoryStore"]
