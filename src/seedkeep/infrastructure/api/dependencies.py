"""FastAPI dependencies for authentication and authorization.

Provides dependencies for validating bearer tokens, loading the caller's
profile and reaching the store attached to the application.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from seedkeep.core.exceptions import StoreError
from seedkeep.core.logging import get_logger
from seedkeep.domain.entities.user import Role, UserProfile
from seedkeep.infrastructure.auth import InvalidTokenError, TokenExpiredError, jwt_service
from seedkeep.infrastructure.persistence.store import InventoryStore

logger = get_logger(__name__)


def get_store(request: Request) -> InventoryStore:
    """The store handle opened by the application lifespan."""
    return request.app.state.store


Store = Annotated[InventoryStore, Depends(get_store)]


@dataclass
class CurrentUser:
    """Represents the current authenticated user context.

    Built from a valid bearer token and the user's stored profile.
    """

    user_id: str
    email: str
    display_name: str | None
    role: Role
    approved: bool

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def get_current_user(
    store: Store,
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Validate the bearer token and load (or create) the caller's profile.

    A first request from an unknown user creates an unapproved profile, so it
    shows up for an administrator to approve.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired.
    """
    if authorization is None:
        logger.info("Authentication failed: missing Authorization header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.info("Authentication failed: invalid Authorization header format")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt_service.verify_token(parts[1])
    except TokenExpiredError:
        logger.info("Authentication failed: token expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidTokenError as e:
        logger.info("Authentication failed: invalid token", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        profile = await store.get_user(payload["sub"])
        if profile is None:
            profile = await store.upsert_user(
                UserProfile(id=payload["sub"], email=payload["email"], display_name=payload.get("name"))
            )
    except StoreError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not load user profile: {e.message}",
        )

    return CurrentUser(
        user_id=profile.id,
        email=profile.email,
        display_name=profile.display_name,
        role=profile.role,
        approved=profile.approved,
    )


AuthenticatedUser = Annotated[CurrentUser, Depends(get_current_user)]


async def require_approved(current_user: AuthenticatedUser) -> CurrentUser:
    """Ensure an administrator has approved the current user.

    Raises:
        HTTPException: 403 if the account is still pending approval.
    """
    if not current_user.approved:
        logger.info("Access denied: account pending approval", user_id=current_user.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account pending approval",
        )
    return current_user


ApprovedUser = Annotated[CurrentUser, Depends(require_approved)]


async def require_admin(current_user: ApprovedUser) -> CurrentUser:
    """Ensure the current user is an approved administrator.

    Raises:
        HTTPException: 403 if the user is not an administrator.
    """
    if not current_user.is_admin:
        logger.info("Access denied: admin role required", user_id=current_user.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return current_user


AdminUser = Annotated[CurrentUser, Depends(require_admin)]
