"""SQLAlchemy model for the inventory table.

Inventory entries are schemaless documents: the field values live in one JSON
column so that columns discovered at import time need no migration.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from seedkeep.infrastructure.persistence.database import Base, utc_now


class InventoryModel(Base):
    """SQLAlchemy model for the inventory table.

    Attributes:
        id: Primary key (UUID string).
        data: Field values of the entry (box_number, type, weight...).
        added_by: Email of the user who created the entry.
        added_at: Timestamp when the entry was created.
        updated_at: Timestamp when the entry was last written.
    """

    __tablename__ = "inventory"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Inventory entry ID (UUID)",
    )
    data: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
        comment="Field values as JSON",
    )
    added_by: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Email of the user who added the entry",
    )
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        comment="Timestamp when the entry was created",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        comment="Timestamp when the entry was last updated",
    )

    def __repr__(self) -> str:
        return f"<InventoryModel(id={self.id}, box={self.data.get('box_number')})>"
