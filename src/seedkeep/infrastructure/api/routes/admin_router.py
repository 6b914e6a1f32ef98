"""Administration API routes: user approval, roles and the activity log."""

from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status

from seedkeep.core.logging import get_logger
from seedkeep.domain.entities.audit import ActivityEntry
from seedkeep.infrastructure.api.dependencies import AdminUser, Store
from seedkeep.infrastructure.api.schemas.admin_schemas import (
    ActivityResponse,
    RoleUpdateRequest,
    UserResponse,
)

logger = get_logger(__name__)

router = APIRouter()


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    current_user: AdminUser,
    store: Store,
    status_filter: Literal["all", "approved", "unapproved"] = Query("all", alias="status"),
) -> list[UserResponse]:
    """List user profiles, optionally only approved or pending ones."""
    users = await store.list_users(status_filter)
    return [UserResponse.model_validate(u) for u in users]


async def _set_approval(store, current_user, user_id: str, approved: bool) -> UserResponse:
    user = await store.set_user_approved(user_id, approved)
    verb = "Approved" if approved else "Revoked approval for"
    await store.log_activity(ActivityEntry(message=f"{verb} user {user.email}", logged_by=current_user.email))
    logger.info("User approval changed", user_id=user_id, approved=approved, by=current_user.email)
    return UserResponse.model_validate(user)


@router.post("/users/{user_id}/approve", response_model=UserResponse)
async def approve_user(user_id: str, current_user: AdminUser, store: Store) -> UserResponse:
    return await _set_approval(store, current_user, user_id, True)


@router.post("/users/{user_id}/unapprove", response_model=UserResponse)
async def unapprove_user(user_id: str, current_user: AdminUser, store: Store) -> UserResponse:
    if user_id == current_user.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot revoke your own approval")
    return await _set_approval(store, current_user, user_id, False)


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def change_user_role(
    user_id: str,
    body: RoleUpdateRequest,
    current_user: AdminUser,
    store: Store,
) -> UserResponse:
    """Promote a user to admin or demote them to user."""
    if user_id == current_user.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")
    user = await store.set_user_role(user_id, body.role)
    await store.log_activity(ActivityEntry(
        message=f"Changed role of {user.email} to {body.role.value}",
        logged_by=current_user.email,
    ))
    logger.info("User role changed", user_id=user_id, role=body.role.value, by=current_user.email)
    return UserResponse.model_validate(user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, current_user: AdminUser, store: Store) -> None:
    if user_id == current_user.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete yourself")
    user = await store.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    await store.delete_user(user_id)
    await store.log_activity(ActivityEntry(message=f"Deleted user {user.email}", logged_by=current_user.email))
    logger.info("User deleted", user_id=user_id, by=current_user.email)


@router.get("/activity", response_model=list[ActivityResponse])
async def list_activity(
    current_user: AdminUser,
    store: Store,
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of entries"),
) -> list[ActivityResponse]:
    """Recent activity, newest first."""
    entries = await store.list_activity(limit)
    return [ActivityResponse.model_validate(e) for e in entries]
