"""API route modules."""

from seedkeep.infrastructure.api.routes.admin_router import router as admin_router
from seedkeep.infrastructure.api.routes.inventory_router import router as inventory_router

__all__ = ["admin_router", "inventory_router"]
