"""SQLAlchemy model for the users table.

Profiles mirror accounts held by the authentication provider; the id is the
provider's user id.
"""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from seedkeep.infrastructure.persistence.database import Base, utc_now


class UserModel(Base):
    """SQLAlchemy model for the users table.

    Attributes:
        id: Primary key (authentication provider user id).
        email: User's email address.
        display_name: Optional display name.
        role: ``admin`` or ``user``.
        approved: Whether an administrator approved the account.
        created_at: Timestamp when the profile was created.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        comment="Authentication provider user ID",
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="User email address",
    )
    display_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Display name",
    )
    role: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="user",
        comment="Role: admin or user",
    )
    approved: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether an administrator approved the account",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        comment="Timestamp when the profile was created",
    )

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'user')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email={self.email}, role={self.role})>"
