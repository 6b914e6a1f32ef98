"""SQLAlchemy model for the activity table (admin activity log)."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from seedkeep.infrastructure.persistence.database import Base


class ActivityModel(Base):
    """One line of the activity log shown to administrators."""

    __tablename__ = "activity"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    logged_by: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    logged_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<ActivityModel(id={self.id}, logged_by={self.logged_by})>"
