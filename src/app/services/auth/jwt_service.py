"""JWT bearer tokens for employees.

Tokens identify an employee by subject. Roles in the token are a hint for
clients only; authorization decisions read the role from the directory.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """Decoded token claims."""

    sub: str  # employee id
    exp: datetime
    iat: datetime
    iss: str
    type: str  # "access" or "refresh"
    roles: list[str] = []


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds until the access token expires


class JWTService:
    """Issues and verifies employee tokens."""

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str = "HS256",
        access_token_expire_minutes: int | None = None,
        refresh_token_expire_days: int | None = None,
        issuer: str | None = None,
    ):
        """Initialize JWT service.

        Args:
            secret_key: Signing key (defaults to settings.secret_key)
            algorithm: JWT algorithm
            access_token_expire_minutes: Access token lifetime
            refresh_token_expire_days: Refresh token lifetime
            issuer: Expected "iss" claim (defaults to the app name)
        """
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm
        self.issuer = issuer or settings.app_name
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )
        self.refresh_token_expire_days = (
            refresh_token_expire_days or settings.refresh_token_expire_days
        )

    def _encode(self, subject: str, token_type: str, lifetime: timedelta, **claims: Any) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "iat": now,
            "exp": now + lifetime,
            "iss": self.issuer,
            "type": token_type,
            **claims,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def create_access_token(self, employee_id: str, roles: list[str] | None = None) -> str:
        """Create an access token for an employee."""
        return self._encode(
            employee_id,
            "access",
            timedelta(minutes=self.access_token_expire_minutes),
            roles=roles or [],
        )

    def create_token_pair(self, employee_id: str, roles: list[str] | None = None) -> TokenPair:
        """Create access and refresh tokens for an employee."""
        refresh_token = self._encode(
            employee_id, "refresh", timedelta(days=self.refresh_token_expire_days)
        )
        return TokenPair(
            access_token=self.create_access_token(employee_id, roles),
            refresh_token=refresh_token,
            expires_in=self.access_token_expire_minutes * 60,
        )

    def verify_token(self, token: str, token_type: str = "access") -> TokenPayload | None:
        """Decode a token and check its type.

        Args:
            token: Encoded JWT
            token_type: Required "type" claim

        Returns:
            TokenPayload if the token is valid, None otherwise
        """
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
            )
            payload = TokenPayload(**claims)
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            return None
        except ValidationError as e:
            logger.warning(f"JWT claims malformed: {e.error_count()} errors")
            return None

        if payload.type != token_type:
            logger.warning(f"Expected {token_type} token, got {payload.type}")
            return None
        return payload

    def verify_access_token(self, token: str) -> TokenPayload | None:
        """Verify an access token."""
        return self.verify_token(token, "access")

    def verify_refresh_token(self, token: str) -> TokenPayload | None:
        """Verify a refresh token."""
        return self.verify_token(token, "refresh")


# Singleton instance
_jwt_service: JWTService | None = None


def get_jwt_service() -> JWTService:
    """Get or create JWT service singleton."""
    global _jwt_service
    if _jwt_service is None:
        _jwt_service = JWTService()
    return _jwt_service
