"""User profile entity.

Profiles are created by the authentication provider on first sign-in and
start unapproved. An administrator approves them before they can use the
inventory.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


@dataclass
class UserProfile:
    """Staff member known to the inventory.

    Attributes:
        id: Identifier issued by the authentication provider.
        email: User's email address.
        display_name: Optional display name.
        role: ``admin`` or ``user``.
        approved: Whether an administrator has approved the account.
        created_at: Timestamp when the profile was created.
    """

    id: str
    email: str
    display_name: str | None = None
    role: Role = Role.USER
    approved: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("User ID is required")
        if not self.email:
            raise ValueError("Email is required")
        self.role = Role(self.role)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
