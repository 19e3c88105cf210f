"""Authentication dependencies for FastAPI."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.services.auth.jwt_service import JWTService, get_jwt_service

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticatedUser:
    """Employee identified by a bearer token."""

    def __init__(self, user_id: str, roles: list[str] | None = None):
        """Initialize authenticated user.

        Args:
            user_id: Employee ID (token subject)
            roles: Roles claimed in the token
        """
        self.user_id = user_id
        self.roles = roles or []

    def has_role(self, role: str) -> bool:
        """Check if the token claims a role."""
        return role in self.roles


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
) -> AuthenticatedUser:
    """Get current authenticated employee from the bearer token.

    Args:
        credentials: Bearer token from request
        jwt_service: JWT service for token verification

    Returns:
        AuthenticatedUser if token is valid

    Raises:
        HTTPException: If token is missing or invalid
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = jwt_service.verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(user_id=payload.sub, roles=payload.roles)


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
