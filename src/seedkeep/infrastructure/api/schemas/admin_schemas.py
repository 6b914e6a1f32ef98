"""Pydantic schemas for user administration and the activity log."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from seedkeep.domain.entities.user import Role


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Authentication provider user ID")
    email: str
    display_name: Optional[str] = None
    role: Role
    approved: bool
    created_at: datetime


class RoleUpdateRequest(BaseModel):
    role: Role = Field(..., description="New role: admin or user")


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    message: str
    logged_by: str
    logged_at: datetime
