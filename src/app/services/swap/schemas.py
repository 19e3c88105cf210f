"""Shift swap workflow schemas."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SwapStatus(str, Enum):
    """Swap request status."""

    PENDING_TARGET = "pending_target"
    PENDING_MANAGER = "pending_manager"
    PENDING_HR = "pending_hr"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        """Whether the record is frozen in this status."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {SwapStatus.COMPLETED, SwapStatus.REJECTED, SwapStatus.EXPIRED}
)


class SwapTrigger(str, Enum):
    """Actor actions that attempt a transition."""

    TARGET_ACCEPT = "target_accept"
    TARGET_REJECT = "target_reject"
    MANAGER_APPROVE = "manager_approve"
    MANAGER_REJECT = "manager_reject"
    HR_APPROVE = "hr_approve"
    HR_REJECT = "hr_reject"


class HistoryAction(str, Enum):
    """Action recorded in the history log."""

    CREATED = "created"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    APPROVED = "approved"
    ESCALATED = "escalated"
    EXPIRED = "expired"
    COMPLETED = "completed"


class Role(str, Enum):
    """Directory roles."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    HR = "hr"
    ADMIN = "admin"


class SwapType(str, Enum):
    """Kind of exchange."""

    DIRECT_SWAP = "direct_swap"  # both workers trade shifts
    ONE_WAY_COVERAGE = "one_way_coverage"  # target covers, requestor is freed


class ResponseDecision(str, Enum):
    """Decision written by one approval stage."""

    ACCEPTED = "accepted"
    APPROVED = "approved"
    REJECTED = "rejected"


SYSTEM_ACTOR = "system"


class ShiftRef(BaseModel):
    """One employee's shift on one day."""

    model_config = ConfigDict(frozen=True)

    employee_id: str = Field(..., description="Assigned employee")
    work_date: date = Field(..., description="Day of the shift")
    shift_id: str | None = Field(None, description="Shift definition ID")


class SwapCreate(BaseModel):
    """Create swap request."""

    target_id: str = Field(..., min_length=1, description="Proposed counterpart")
    requestor_date: date = Field(..., description="Day of the requestor's shift")
    requestor_shift_id: str | None = Field(None, description="Requestor's shift ID")
    target_date: date | None = Field(
        None, description="Day of the target's shift (defaults to requestor_date)"
    )
    target_shift_id: str | None = Field(None, description="Target's shift ID")
    swap_type: SwapType = Field(default=SwapType.DIRECT_SWAP, description="Swap type")
    reason: str | None = Field(None, max_length=1000, description="Why the swap is needed")
    is_emergency: bool = Field(default=False, description="Shortened response window")
    requires_cross_approval: bool | None = Field(
        None,
        description="Force the HR stage on or off (derived from departments if omitted)",
    )


class TargetResponseRequest(BaseModel):
    """Counterpart's answer to a swap request."""

    accept: bool = Field(..., description="Accept or decline the swap")
    reason: str | None = Field(None, max_length=1000, description="Optional reason")
    expected_version: int | None = Field(
        None, ge=0, description="Version the caller last saw"
    )


class ApprovalDecisionRequest(BaseModel):
    """Manager or HR decision."""

    approve: bool = Field(..., description="Approve or reject")
    reason: str | None = Field(None, max_length=1000, description="Optional reason")
    expected_version: int | None = Field(
        None, ge=0, description="Version the caller last saw"
    )


class StageResponse(BaseModel):
    """Decision recorded by one approval stage."""

    decision: ResponseDecision = Field(..., description="Decision")
    reason: str | None = Field(None, description="Reason given")
    actor_id: str = Field(..., description="Who decided")
    responded_at: datetime = Field(..., description="When")


class SwapDetail(BaseModel):
    """Swap request as seen by callers."""

    id: str = Field(..., description="Swap request ID")
    swap_code: str = Field(..., description="Human-readable code")
    requestor_id: str = Field(..., description="Shift owner")
    target_id: str = Field(..., description="Proposed counterpart")
    manager_id: str | None = Field(None, description="Requestor's manager")
    swap_type: SwapType = Field(..., description="Swap type")
    requestor_date: date = Field(..., description="Requestor shift day")
    requestor_shift_id: str | None = Field(None, description="Requestor shift")
    target_date: date = Field(..., description="Target shift day")
    target_shift_id: str | None = Field(None, description="Target shift")
    reason: str | None = Field(None, description="Request reason")
    is_emergency: bool = Field(..., description="Emergency request")
    requires_cross_approval: bool = Field(..., description="HR stage required")
    status: SwapStatus = Field(..., description="Current status")
    version: int = Field(..., description="Optimistic concurrency version")
    target_response: StageResponse | None = Field(None, description="Target decision")
    manager_response: StageResponse | None = Field(None, description="Manager decision")
    hr_response: StageResponse | None = Field(None, description="HR decision")
    created_at: datetime = Field(..., description="Created timestamp")
    expires_at: datetime = Field(..., description="Target response deadline")
    updated_at: datetime = Field(..., description="Last change")


class SwapHistoryEntry(BaseModel):
    """One committed transition."""

    model_config = ConfigDict(from_attributes=True)

    swap_request_id: str = Field(..., description="Swap request ID")
    sequence_number: int = Field(..., description="Position in the log")
    action: HistoryAction = Field(..., description="Action")
    actor_id: str = Field(..., description="Acting user or system")
    actor_role: str = Field(..., description="Role the actor acted in")
    previous_status: SwapStatus | None = Field(None, description="Status before")
    new_status: SwapStatus = Field(..., description="Status after")
    detail: str | None = Field(None, description="Free text")
    timestamp: datetime = Field(
        ..., validation_alias="created_at", description="When it happened"
    )


class SwapActionResult(BaseModel):
    """Outcome of a successful action."""

    swap_id: str = Field(..., description="Swap request ID")
    status: SwapStatus = Field(..., description="Resulting status")
    version: int = Field(..., description="Resulting version")
    message: str = Field(..., description="Human-readable outcome")


class SwapListResponse(BaseModel):
    """Swap list response."""

    items: list[SwapDetail] = Field(..., description="Swaps, newest first")
    total: int = Field(..., ge=0, description="Number of items returned")


class SwapErrorResponse(BaseModel):
    """Structured error body."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="What went wrong")
    status: SwapStatus | None = Field(None, description="Current (unchanged) status")
    retryable: bool = Field(..., description="Whether retrying can succeed")
