"""Execution of approved swaps against the schedule.

An approved request is carried out exactly once. A failure leaves it
approved so it can be retried.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database.session import AsyncSessionLocal
from app.models.base import utcnow
from app.models.swap import SwapRequest
from app.repositories.swap import SwapHistoryRepository, SwapRequestRepository
from app.services.notification import get_notifier, notify_safely
from app.services.swap.collaborators import (
    Notifier,
    ScheduleError,
    ScheduleStoreFactory,
    SqlScheduleStore,
)
from app.services.swap.errors import (
    ConcurrencyConflictError,
    ExecutionFailedError,
    InvalidStateError,
    SwapNotFoundError,
)
from app.services.swap.schemas import (
    SYSTEM_ACTOR,
    HistoryAction,
    ShiftRef,
    SwapStatus,
    SwapType,
)

logger = logging.getLogger(__name__)


class SwapExecutor:
    """Applies approved swaps to the schedule and completes them."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] | None = None,
        schedule_store_factory: ScheduleStoreFactory = SqlScheduleStore,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize executor.

        @param session_factory - Factory for database sessions
        @param schedule_store_factory - Builds a schedule store bound to a session
        @param notifier - Notification channel
        @param clock - Current-time source
        """
        self._session_factory = session_factory or AsyncSessionLocal
        self._schedule_store_factory = schedule_store_factory
        self._notifier = notifier or get_notifier()
        self._clock = clock

    @staticmethod
    def _shifts(record: SwapRequest) -> tuple[ShiftRef, ShiftRef]:
        requestor_shift = ShiftRef(
            employee_id=record.requestor_id,
            work_date=record.requestor_date,
            shift_id=record.requestor_shift_id,
        )
        target_shift = ShiftRef(
            employee_id=record.target_id,
            work_date=record.target_date,
            shift_id=record.target_shift_id,
        )
        return requestor_shift, target_shift

    async def execute(self, request_id: str) -> SwapRequest:
        """Carry out an approved swap.

        A completed record is returned unchanged. Otherwise the schedule
        mutation, approved -> completed and the history entry are committed
        together, or not at all.

        @param request_id - Swap request ID
        @returns Completed record
        @raises SwapNotFoundError if the ID is unknown
        @raises InvalidStateError if the record is neither approved nor completed
        @raises ExecutionFailedError if the schedule could not be updated
        """
        async with self._session_factory() as session:
            repo = SwapRequestRepository(session)

            record = await repo.get_by_id(request_id)
            if record is None:
                raise SwapNotFoundError(f"Swap request {request_id} not found")

            if record.status == SwapStatus.COMPLETED.value:
                logger.info(f"Swap {request_id} already completed, nothing to do")
                return record

            if record.status != SwapStatus.APPROVED.value:
                raise InvalidStateError(
                    f"Swap {request_id} is {record.status}, not approved",
                    record.status,
                )

            requestor_shift, target_shift = self._shifts(record)
            store = self._schedule_store_factory(session)

            try:
                await store.apply_swap(
                    record.id,
                    requestor_shift,
                    target_shift,
                    one_way=record.swap_type == SwapType.ONE_WAY_COVERAGE.value,
                )
                completed = await repo.compare_and_set(
                    record.id,
                    record.version,
                    {"status": SwapStatus.COMPLETED.value},
                )
                if completed is not None:
                    await SwapHistoryRepository(session).append(
                        swap_request_id=record.id,
                        action=HistoryAction.COMPLETED.value,
                        actor_id=SYSTEM_ACTOR,
                        actor_role=SYSTEM_ACTOR,
                        previous_status=SwapStatus.APPROVED.value,
                        new_status=SwapStatus.COMPLETED.value,
                        detail="Schedule updated",
                        created_at=self._clock(),
                    )
                    await session.commit()
            except (ScheduleError, SQLAlchemyError) as e:
                await session.rollback()
                logger.error(
                    f"Execution of swap {request_id} failed: {e}",
                    extra={"swap_id": request_id},
                )
                raise ExecutionFailedError(
                    f"Schedule update for swap {request_id} failed: {e}"
                ) from e

            if completed is None:
                # Another executor finished first
                await session.rollback()
                current = await repo.get_by_id(request_id, populate_existing=True)
                if current is not None and current.status == SwapStatus.COMPLETED.value:
                    return current
                raise ConcurrencyConflictError(
                    f"Swap {request_id} changed during execution",
                    current.status if current else None,
                )

        logger.info(
            f"Swap {request_id} completed",
            extra={"swap_id": request_id, "version": completed.version},
        )
        message = f"Swap request {completed.swap_code} is complete; the schedule has been updated"
        await notify_safely(self._notifier, completed.requestor_id, message)
        await notify_safely(self._notifier, completed.target_id, message)
        return completed
