"""Repositories for SeedKeep tables.

Each repository wraps one table and works inside a session owned by the
caller; committing is the caller's job.
"""

from seedkeep.infrastructure.persistence.repositories.activity_repository import (
    ActivityRepository,
)
from seedkeep.infrastructure.persistence.repositories.inventory_history_repository import (
    InventoryHistoryRepository,
)
from seedkeep.infrastructure.persistence.repositories.inventory_repository import (
    InventoryRepository,
)
from seedkeep.infrastructure.persistence.repositories.user_repository import UserRepository

__all__ = [
    "ActivityRepository",
    "InventoryHistoryRepository",
    "InventoryRepository",
    "UserRepository",
]
