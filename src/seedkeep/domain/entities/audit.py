"""Audit trail entities.

Every save appends one immutable audit entry to the edited record's history.
The entry holds the field-level changes, the actor and the time of the
change, and lives independently of the record's mutable state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class AuditAction(str, Enum):
    """Kind of change an audit entry describes."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class FieldChange:
    """A single field going from one value to another."""

    field: str
    from_value: Any
    to_value: Any

    def as_dict(self) -> dict[str, Any]:
        return {"field": self.field, "from": self.from_value, "to": self.to_value}


@dataclass
class AuditEntry:
    """Audit trail entry for one record.

    Attributes:
        record_id: ID of the record that was changed.
        action: Type of change (create, update, delete).
        actor: Email of the user who made the change.
        changes: Ordered field-level before/after pairs.
        summary: Human-readable description of the change.
        snapshot: Full record state, kept for create and delete entries.
        occurred_at: Timestamp when the change occurred (UTC).
        id: Sequence number assigned by the store.
    """

    record_id: str
    action: AuditAction
    actor: str
    changes: list[FieldChange] = field(default_factory=list)
    summary: str = ""
    snapshot: dict[str, Any] | None = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: int | None = None


@dataclass
class ActivityEntry:
    """One line of the admin activity log."""

    message: str
    logged_by: str
    logged_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: int | None = None
