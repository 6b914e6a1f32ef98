"""SQLAlchemy model for the inventory_history table.

One row per save or delete of an inventory entry. Rows are append-only and
outlive the entry they describe, so there is no foreign key.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from seedkeep.infrastructure.persistence.database import Base


class InventoryHistoryModel(Base):
    """SQLAlchemy model for the inventory_history table.

    Attributes:
        id: Primary key (auto-incrementing, serves as sequence number).
        record_id: ID of the inventory entry that changed.
        action: Type of change (create, update, delete).
        actor: Email of the user who made the change.
        changes: List of ``{"field", "from", "to"}`` objects.
        summary: Human-readable description of the change.
        snapshot: Full entry state for create and delete entries.
        occurred_at: Timestamp when the change occurred (UTC).
    """

    __tablename__ = "inventory_history"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Sequence number",
    )
    record_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="ID of the affected inventory entry",
    )
    action: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="Change type: create, update, delete",
    )
    actor: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Email of user who made the change",
    )
    changes: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
        comment="Field-level before/after values",
    )
    summary: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Human-readable summary",
    )
    snapshot: Mapped[dict | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
        comment="Full entry state (create and delete)",
    )
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Timestamp when the change occurred (UTC)",
    )

    __table_args__ = (
        Index("ix_inventory_history_record_occurred", "record_id", "occurred_at"),
        CheckConstraint(
            "action IN ('create', 'update', 'delete')",
            name="ck_inventory_history_action",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryHistoryModel(id={self.id}, record_id={self.record_id}, "
            f"action={self.action})>"
        )
