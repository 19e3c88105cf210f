"""Authentication API endpoints.

Employees sign in through the company identity provider, which issues the
first token pair; this service only refreshes and introspects tokens.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from app.services.auth import CurrentUser, JWTService, TokenPair, get_jwt_service
from app.services.swap import SwapService, get_swap_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


class RefreshTokenRequest(BaseModel):
    """Request to refresh tokens."""

    refresh_token: str = Field(..., description="Valid refresh token")


class UserInfoResponse(BaseModel):
    """Current user information."""

    user_id: str
    roles: list[str]


@router.post("/refresh", response_model=TokenPair)
async def refresh_tokens(
    request: RefreshTokenRequest,
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
    service: Annotated[SwapService, Depends(get_swap_service)],
) -> TokenPair:
    """Exchange a refresh token for a new token pair.

    Roles in the new access token are read from the employee directory.
    """
    payload = jwt_service.verify_refresh_token(request.refresh_token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    role = await service.directory.role_of(payload.sub)
    if role is None:
        logger.warning(f"Refresh for unknown employee {payload.sub}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Employee no longer exists",
        )

    return jwt_service.create_token_pair(payload.sub, roles=[role.value])


@router.get("/me", response_model=UserInfoResponse)
async def get_current_user_info(user: CurrentUser) -> UserInfoResponse:
    """Get current authenticated user information."""
    return UserInfoResponse(user_id=user.user_id, roles=user.roles)
