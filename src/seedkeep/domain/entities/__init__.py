"""Domain entities for SeedKeep.

Entities are pure Python dataclasses that represent core business concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from seedkeep.domain.entities.audit import (
    ActivityEntry,
    AuditAction,
    AuditEntry,
    FieldChange,
)
from seedkeep.domain.entities.filters import (
    FilterCondition,
    FilterState,
    MultiFilter,
    NumericFilter,
    StringFilter,
    TextFilter,
    update_filter_state,
)
from seedkeep.domain.entities.grid import (
    ColumnDef,
    GridView,
    HeaderView,
    Page,
    PaginationState,
    Record,
    RowView,
    SortDirection,
    SortKey,
    SortState,
)
from seedkeep.domain.entities.inventory import EditBuffer, InventoryField
from seedkeep.domain.entities.user import Role, UserProfile
from seedkeep.domain.entities.validation import FieldError

__all__ = [
    "ActivityEntry",
    "AuditAction",
    "AuditEntry",
    "ColumnDef",
    "EditBuffer",
    "FieldChange",
    "FieldError",
    "FilterCondition",
    "FilterState",
    "GridView",
    "HeaderView",
    "InventoryField",
    "MultiFilter",
    "NumericFilter",
    "Page",
    "PaginationState",
    "Record",
    "Role",
    "RowView",
    "SortDirection",
    "SortKey",
    "SortState",
    "StringFilter",
    "TextFilter",
    "UserProfile",
    "update_filter_state",
]
