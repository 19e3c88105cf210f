"""Shift swap approval workflow.

Components:
- gate: authorization decision per trigger
- state_machine: transitions with optimistic concurrency and history
- executor: idempotent completion against the schedule
- service: operations exposed to the API and scheduler
"""

from app.services.swap.collaborators import (
    Directory,
    EmployeeDirectory,
    Notifier,
    ScheduleError,
    ScheduleStore,
    SqlScheduleStore,
)
from app.services.swap.errors import (
    ConcurrencyConflictError,
    ExecutionFailedError,
    InvalidStateError,
    SwapError,
    SwapExpiredError,
    SwapNotFoundError,
    SwapValidationError,
    UnauthorizedActionError,
)
from app.services.swap.executor import SwapExecutor
from app.services.swap.gate import is_allowed
from app.services.swap.schemas import (
    HistoryAction,
    Role,
    ShiftRef,
    SwapActionResult,
    SwapCreate,
    SwapDetail,
    SwapHistoryEntry,
    SwapListResponse,
    SwapStatus,
    SwapTrigger,
    SwapType,
)
from app.services.swap.service import SwapService, get_swap_service, reset_swap_service
from app.services.swap.state_machine import TRANSITIONS, SwapStateMachine

__all__ = [
    # Collaborators
    "Directory",
    "EmployeeDirectory",
    "Notifier",
    "ScheduleError",
    "ScheduleStore",
    "SqlScheduleStore",
    # Errors
    "ConcurrencyConflictError",
    "ExecutionFailedError",
    "InvalidStateError",
    "SwapError",
    "SwapExpiredError",
    "SwapNotFoundError",
    "SwapValidationError",
    "UnauthorizedActionError",
    # Engine
    "SwapExecutor",
    "SwapStateMachine",
    "TRANSITIONS",
    "is_allowed",
    "SwapService",
    "get_swap_service",
    "reset_swap_service",
    # Schemas
    "HistoryAction",
    "Role",
    "ShiftRef",
    "SwapActionResult",
    "SwapCreate",
    "SwapDetail",
    "SwapHistoryEntry",
    "SwapListResponse",
    "SwapStatus",
    "SwapTrigger",
    "SwapType",
]
