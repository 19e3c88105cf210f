"""Shift swap API endpoints.

Workflow errors (SwapError subclasses) propagate to the exception handler
registered in app.main, which renders the structured error body.
"""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status

from app.services.auth import CurrentUser
from app.services.swap import (
    SwapActionResult,
    SwapCreate,
    SwapDetail,
    SwapHistoryEntry,
    SwapListResponse,
    SwapService,
    get_swap_service,
)
from app.services.swap.schemas import (
    ApprovalDecisionRequest,
    SwapErrorResponse,
    TargetResponseRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/swaps", tags=["Shift Swaps"])

ERROR_RESPONSES = {
    403: {"model": SwapErrorResponse, "description": "Actor may not do this"},
    404: {"model": SwapErrorResponse, "description": "Swap not found"},
    409: {"model": SwapErrorResponse, "description": "Invalid state or version conflict"},
    410: {"model": SwapErrorResponse, "description": "Swap expired"},
}

SwapServiceDep = Annotated[SwapService, Depends(get_swap_service)]


@router.post(
    "",
    response_model=SwapDetail,
    status_code=status.HTTP_201_CREATED,
    responses={404: ERROR_RESPONSES[404], 422: {"model": SwapErrorResponse}},
)
async def create_swap(
    request: SwapCreate,
    user: CurrentUser,
    service: SwapServiceDep,
) -> SwapDetail:
    """Ask another employee to take over one of your shifts."""
    return await service.create_swap(user.user_id, request)


@router.get("", response_model=SwapListResponse)
async def list_swaps(
    user: CurrentUser,
    service: SwapServiceDep,
    box: Literal["all", "incoming", "outgoing", "pending"] = Query(
        "all", description="incoming: you are the target; outgoing: you asked"
    ),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(50, ge=1, le=200, description="Maximum items"),
) -> SwapListResponse:
    """List swaps you take part in, newest first."""
    return await service.list_swaps(user.user_id, box=box, skip=skip, limit=limit)


@router.get("/{swap_id}", response_model=SwapDetail, responses=ERROR_RESPONSES)
async def get_swap(
    swap_id: str,
    user: CurrentUser,
    service: SwapServiceDep,
) -> SwapDetail:
    """Get a swap request.

    A request whose response window has closed is expired on read.
    """
    return await service.get_swap(swap_id)


@router.get(
    "/{swap_id}/history",
    response_model=list[SwapHistoryEntry],
    responses={404: ERROR_RESPONSES[404]},
)
async def get_swap_history(
    swap_id: str,
    user: CurrentUser,
    service: SwapServiceDep,
) -> list[SwapHistoryEntry]:
    """Get every transition of a swap in order."""
    return await service.list_history(swap_id)


@router.post(
    "/{swap_id}/respond",
    response_model=SwapActionResult,
    responses=ERROR_RESPONSES,
)
async def respond_to_swap(
    swap_id: str,
    request: TargetResponseRequest,
    user: CurrentUser,
    service: SwapServiceDep,
) -> SwapActionResult:
    """Accept or decline a swap addressed to you."""
    return await service.respond_as_target(
        swap_id,
        user.user_id,
        request.accept,
        reason=request.reason,
        expected_version=request.expected_version,
    )


@router.post(
    "/{swap_id}/manager-decision",
    response_model=SwapActionResult,
    responses={**ERROR_RESPONSES, 502: {"model": SwapErrorResponse}},
)
async def manager_decision(
    swap_id: str,
    request: ApprovalDecisionRequest,
    user: CurrentUser,
    service: SwapServiceDep,
) -> SwapActionResult:
    """Approve or reject an accepted swap.

    Requires: manager or admin role
    """
    return await service.respond_as_manager(
        swap_id,
        user.user_id,
        request.approve,
        reason=request.reason,
        expected_version=request.expected_version,
    )


@router.post(
    "/{swap_id}/hr-decision",
    response_model=SwapActionResult,
    responses={**ERROR_RESPONSES, 502: {"model": SwapErrorResponse}},
)
async def hr_decision(
    swap_id: str,
    request: ApprovalDecisionRequest,
    user: CurrentUser,
    service: SwapServiceDep,
) -> SwapActionResult:
    """Approve or reject a cross-department swap.

    Requires: hr or admin role
    """
    return await service.respond_as_cross_approver(
        swap_id,
        user.user_id,
        request.approve,
        reason=request.reason,
        expected_version=request.expected_version,
    )


@router.post(
    "/{swap_id}/execute",
    response_model=SwapActionResult,
    responses={**ERROR_RESPONSES, 502: {"model": SwapErrorResponse}},
)
async def execute_swap(
    swap_id: str,
    user: CurrentUser,
    service: SwapServiceDep,
) -> SwapActionResult:
    """Retry the schedule update for an approved swap.

    Requires: manager or admin role
    """
    logger.info(f"Manual execution of swap {swap_id} by {user.user_id}")
    return await service.retry_execution(swap_id, user.user_id)
