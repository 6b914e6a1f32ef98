"""Bearer token verification.

Sign-in happens at the authentication provider, which issues HS256 tokens
signed with the shared secret. The API only verifies them; ``issue_token``
exists for development and for the ``issue-token`` CLI command.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from seedkeep.core.config import get_settings


class JWTError(Exception):
    """Base exception for token errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is malformed, badly signed or lacks a claim."""

    pass


class JWTService:
    """Issue and verify identity tokens.

    Claims: ``sub`` (provider user id), ``email``, optional ``name``,
    ``iat`` and ``exp``.
    """

    ALGORITHM = "HS256"
    ISSUER = "seedkeep"
    REQUIRED_CLAIMS = ("sub", "email", "exp")

    def __init__(self, secret_key: str | None = None) -> None:
        """Initialize the service.

        Args:
            secret_key: Signing secret. Defaults to the configured secret key.
        """
        self._secret_key = secret_key

    @property
    def secret_key(self) -> str:
        if self._secret_key:
            return self._secret_key
        return get_settings().secret_key

    def issue_token(
        self,
        user_id: str,
        email: str,
        name: str | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a signed identity token.

        Args:
            user_id: Provider user id, stored as ``sub``.
            email: The user's email address.
            name: Optional display name.
            expires_delta: Lifetime. Defaults to the configured value.

        Returns:
            Encoded JWT.
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=get_settings().access_token_expire_minutes)
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "iss": self.ISSUER,
            "sub": user_id,
            "iat": now,
            "exp": now + expires_delta,
            "email": email,
        }
        if name:
            payload["name"] = name
        return jwt.encode(payload, self.secret_key, algorithm=self.ALGORITHM)

    def verify_token(self, token: str) -> dict[str, Any]:
        """Decode and validate a token.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid.
        """
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.ALGORITHM],
                issuer=self.ISSUER,
                options={"require": list(self.REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e


# Default service instance using the configured secret
jwt_service = JWTService()
