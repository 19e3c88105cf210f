"""Swap workflow error taxonomy.

Every failure a caller can observe is one of these. Each carries the
record's current status when it is known, so callers can re-render
without another read.
"""

from app.services.swap.schemas import SwapErrorResponse, SwapStatus


class SwapError(Exception):
    """Base class for swap workflow errors."""

    code = "INTERNAL"
    retryable = False

    def __init__(self, message: str, status: SwapStatus | str | None = None):
        super().__init__(message)
        self.message = message
        self.status = SwapStatus(status) if status is not None else None

    def to_response(self) -> SwapErrorResponse:
        """Render as the structured error body."""
        return SwapErrorResponse(
            code=self.code,
            message=self.message,
            status=self.status,
            retryable=self.retryable,
        )


class SwapNotFoundError(SwapError):
    """Unknown swap request or employee."""

    code = "NOT_FOUND"


class InvalidStateError(SwapError):
    """Trigger has no edge from the current status."""

    code = "INVALID_STATE"


class UnauthorizedActionError(SwapError):
    """Actor or role may not perform this trigger."""

    code = "UNAUTHORIZED"


class SwapExpiredError(SwapError):
    """Response window closed; the record is expired."""

    code = "EXPIRED"

    def __init__(self, message: str):
        super().__init__(message, SwapStatus.EXPIRED)


class ConcurrencyConflictError(SwapError):
    """Lost an optimistic concurrency race. Re-read and retry."""

    code = "CONFLICT"
    retryable = True


class ExecutionFailedError(SwapError):
    """Schedule mutation failed; record stays approved."""

    code = "EXECUTION_FAILED"
    retryable = True

    def __init__(self, message: str):
        super().__init__(message, SwapStatus.APPROVED)


class SwapValidationError(SwapError):
    """Create request is malformed."""

    code = "VALIDATION"
