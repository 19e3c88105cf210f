"""Authentication services module."""

from app.services.auth.dependencies import (
    AuthenticatedUser,
    CurrentUser,
    get_current_user,
)
from app.services.auth.jwt_service import (
    JWTService,
    TokenPair,
    TokenPayload,
    get_jwt_service,
)

__all__ = [
    # JWT
    "JWTService",
    "TokenPayload",
    "TokenPair",
    "get_jwt_service",
    # Dependencies
    "AuthenticatedUser",
    "get_current_user",
    "CurrentUser",
]
