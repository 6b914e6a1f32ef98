"""SQLAlchemy models for SeedKeep tables.

All models inherit from the Base class defined in database.py and are
created on startup by ``DatabaseManager.create_tables``.
"""

from seedkeep.infrastructure.persistence.models.activity import ActivityModel
from seedkeep.infrastructure.persistence.models.inventory import InventoryModel
from seedkeep.infrastructure.persistence.models.inventory_history import InventoryHistoryModel
from seedkeep.infrastructure.persistence.models.user import UserModel

__all__ = [
    "ActivityModel",
    "InventoryHistoryModel",
    "InventoryModel",
    "UserModel",
]
