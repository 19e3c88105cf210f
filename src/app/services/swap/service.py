"""Shift swap service: the operations callers use.

Features:
- Swap creation with directory-derived routing (manager, HR stage)
- Target, manager and cross-department responses via the state machine
- Lazy expiration on read plus a bulk sweep for the scheduler
- Manual re-execution of approved swaps
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.infrastructure.database.session import AsyncSessionLocal
from app.models.base import utcnow
from app.models.swap import SwapRequest
from app.repositories.swap import SwapHistoryRepository, SwapRequestRepository
from app.services.notification import get_notifier, notify_safely
from app.services.swap.collaborators import (
    Directory,
    EmployeeDirectory,
    Notifier,
    ScheduleStoreFactory,
    SqlScheduleStore,
)
from app.services.swap.errors import (
    ConcurrencyConflictError,
    ExecutionFailedError,
    SwapNotFoundError,
    SwapValidationError,
    UnauthorizedActionError,
)
from app.services.swap.executor import SwapExecutor
from app.services.swap.gate import MANAGER_ROLES
from app.services.swap.schemas import (
    HistoryAction,
    ResponseDecision,
    Role,
    StageResponse,
    SwapActionResult,
    SwapCreate,
    SwapDetail,
    SwapHistoryEntry,
    SwapListResponse,
    SwapStatus,
    SwapTrigger,
)
from app.services.swap.state_machine import SwapStateMachine, is_overdue

logger = logging.getLogger(__name__)

SWAP_BOXES = ("all", "incoming", "outgoing", "pending")

_STATUS_MESSAGES = {
    SwapStatus.PENDING_TARGET: "Waiting for the counterpart to respond",
    SwapStatus.PENDING_MANAGER: "Accepted; waiting for manager approval",
    SwapStatus.PENDING_HR: "Manager approved; waiting for HR approval",
    SwapStatus.APPROVED: "Approved; schedule update pending",
    SwapStatus.COMPLETED: "Swap completed and schedule updated",
    SwapStatus.REJECTED: "Swap rejected",
    SwapStatus.EXPIRED: "Swap expired",
}


def generate_swap_code(now: datetime) -> str:
    """Generate a human-readable swap code, e.g. SR-2024-3FA9C1."""
    return f"SR-{now.year}-{uuid.uuid4().hex[:6].upper()}"


def _stage(record: SwapRequest, stage: str) -> StageResponse | None:
    decision = getattr(record, f"{stage}_response")
    if decision is None:
        return None
    return StageResponse(
        decision=ResponseDecision(decision),
        reason=getattr(record, f"{stage}_reason"),
        actor_id=getattr(record, f"{stage}_actor_id"),
        responded_at=getattr(record, f"{stage}_responded_at"),
    )


def to_detail(record: SwapRequest) -> SwapDetail:
    """Convert a swap record to its API representation."""
    return SwapDetail(
        id=record.id,
        swap_code=record.swap_code,
        requestor_id=record.requestor_id,
        target_id=record.target_id,
        manager_id=record.manager_id,
        swap_type=record.swap_type,
        requestor_date=record.requestor_date,
        requestor_shift_id=record.requestor_shift_id,
        target_date=record.target_date,
        target_shift_id=record.target_shift_id,
        reason=record.reason,
        is_emergency=record.is_emergency,
        requires_cross_approval=record.requires_cross_approval,
        status=SwapStatus(record.status),
        version=record.version,
        target_response=_stage(record, "target"),
        manager_response=_stage(record, "manager"),
        hr_response=_stage(record, "hr"),
        created_at=record.created_at,
        expires_at=record.expires_at,
        updated_at=record.updated_at,
    )


def to_result(record: SwapRequest) -> SwapActionResult:
    """Summarize a record after a successful action."""
    status = SwapStatus(record.status)
    return SwapActionResult(
        swap_id=record.id,
        status=status,
        version=record.version,
        message=_STATUS_MESSAGES[status],
    )


class SwapService:
    """Entry point for swap operations."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] | None = None,
        directory: Directory | None = None,
        notifier: Notifier | None = None,
        schedule_store_factory: ScheduleStoreFactory = SqlScheduleStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize swap service.

        @param session_factory - Factory for database sessions
        @param directory - Employee directory (defaults to the employees table)
        @param notifier - Notification channel (defaults to settings)
        @param schedule_store_factory - Builds the schedule store for execution
        @param settings - Application settings
        @param clock - Current-time source
        """
        self._session_factory = session_factory or AsyncSessionLocal
        self._settings = settings or get_settings()
        self.directory = directory or EmployeeDirectory(self._session_factory)
        self._notifier = notifier or get_notifier()
        self._clock = clock
        self.executor = SwapExecutor(
            self._session_factory,
            schedule_store_factory=schedule_store_factory,
            notifier=self._notifier,
            clock=clock,
        )
        self.state_machine = SwapStateMachine(
            self._session_factory,
            executor=self.executor,
            directory=self.directory,
            notifier=self._notifier,
            clock=clock,
        )

    def _ttl(self, is_emergency: bool) -> timedelta:
        hours = (
            self._settings.swap_emergency_ttl_hours
            if is_emergency
            else self._settings.swap_ttl_hours
        )
        return timedelta(hours=hours)

    async def _cross_department(self, requestor_id: str, target_id: str) -> bool:
        requestor_dept = await self.directory.department_of(requestor_id)
        target_dept = await self.directory.department_of(target_id)
        if requestor_dept is None or target_dept is None:
            return False
        return requestor_dept != target_dept

    async def create_swap(self, requestor_id: str, data: SwapCreate) -> SwapDetail:
        """Create a swap request in pending_target.

        @param requestor_id - Employee giving away the shift
        @param data - Swap details
        @returns Created swap
        @raises SwapValidationError if the request is malformed
        @raises SwapNotFoundError if either party is unknown
        """
        if data.target_id == requestor_id:
            raise SwapValidationError("Cannot swap a shift with yourself")
        if not await self.directory.exists(requestor_id):
            raise SwapNotFoundError(f"Employee {requestor_id} not found")
        if not await self.directory.exists(data.target_id):
            raise SwapNotFoundError(f"Employee {data.target_id} not found")

        requires_cross_approval = data.requires_cross_approval
        if requires_cross_approval is None:
            requires_cross_approval = await self._cross_department(
                requestor_id, data.target_id
            )
        manager_id = await self.directory.manager_of(requestor_id)
        role = await self.directory.role_of(requestor_id) or Role.EMPLOYEE

        now = self._clock()
        swap_id = uuid.uuid4().hex

        async with self._session_factory() as session:
            repo = SwapRequestRepository(session)
            record = await repo.create({
                "id": swap_id,
                "swap_code": generate_swap_code(now),
                "requestor_id": requestor_id,
                "target_id": data.target_id,
                "manager_id": manager_id,
                "swap_type": data.swap_type.value,
                "requestor_date": data.requestor_date,
                "requestor_shift_id": data.requestor_shift_id,
                "target_date": data.target_date or data.requestor_date,
                "target_shift_id": data.target_shift_id,
                "reason": data.reason,
                "is_emergency": data.is_emergency,
                "requires_cross_approval": requires_cross_approval,
                "expires_at": now + self._ttl(data.is_emergency),
                "status": SwapStatus.PENDING_TARGET.value,
                "version": 0,
                "created_at": now,
                "updated_at": now,
            })

            await SwapHistoryRepository(session).append(
                swap_request_id=swap_id,
                action=HistoryAction.CREATED.value,
                actor_id=requestor_id,
                actor_role=role.value,
                previous_status=None,
                new_status=SwapStatus.PENDING_TARGET.value,
                detail=data.reason,
                created_at=now,
            )
            await session.commit()

        logger.info(
            f"Created swap {record.swap_code} {requestor_id} -> {data.target_id} "
            f"cross_approval={requires_cross_approval} emergency={data.is_emergency}",
            extra={"swap_id": swap_id},
        )
        await notify_safely(
            self._notifier,
            data.target_id,
            f"{requestor_id} asked you to take over a shift on "
            f"{data.requestor_date.isoformat()} ({record.swap_code})",
        )
        return to_detail(record)

    async def _respond(
        self,
        request_id: str,
        actor_id: str,
        trigger: SwapTrigger,
        reason: str | None,
        expected_version: int | None,
    ) -> SwapActionResult:
        role = await self.directory.role_of(actor_id)
        record = await self.state_machine.apply(
            request_id,
            actor_id,
            role,
            trigger,
            {"reason": reason},
            expected_version=expected_version,
        )
        return to_result(record)

    async def respond_as_target(
        self,
        request_id: str,
        actor_id: str,
        accept: bool,
        reason: str | None = None,
        expected_version: int | None = None,
    ) -> SwapActionResult:
        """Counterpart accepts or declines a swap.

        @param request_id - Swap request ID
        @param actor_id - Responding employee (must be the target)
        @param accept - Accept or decline
        @param reason - Optional reason
        @param expected_version - Version the caller last saw
        @returns Resulting status
        """
        trigger = SwapTrigger.TARGET_ACCEPT if accept else SwapTrigger.TARGET_REJECT
        return await self._respond(request_id, actor_id, trigger, reason, expected_version)

    async def respond_as_manager(
        self,
        request_id: str,
        actor_id: str,
        approve: bool,
        reason: str | None = None,
        expected_version: int | None = None,
    ) -> SwapActionResult:
        """Manager approves or rejects an accepted swap.

        @param request_id - Swap request ID
        @param actor_id - Acting manager (or admin)
        @param approve - Approve or reject
        @param reason - Optional reason
        @param expected_version - Version the caller last saw
        @returns Resulting status (completed if no HR stage is needed)
        """
        trigger = SwapTrigger.MANAGER_APPROVE if approve else SwapTrigger.MANAGER_REJECT
        return await self._respond(request_id, actor_id, trigger, reason, expected_version)

    async def respond_as_cross_approver(
        self,
        request_id: str,
        actor_id: str,
        approve: bool,
        reason: str | None = None,
        expected_version: int | None = None,
    ) -> SwapActionResult:
        """HR approves or rejects a cross-department swap.

        @param request_id - Swap request ID
        @param actor_id - Acting HR member (or admin)
        @param approve - Approve or reject
        @param reason - Optional reason
        @param expected_version - Version the caller last saw
        @returns Resulting status
        """
        trigger = SwapTrigger.HR_APPROVE if approve else SwapTrigger.HR_REJECT
        return await self._respond(request_id, actor_id, trigger, reason, expected_version)

    async def get_swap(self, request_id: str) -> SwapDetail:
        """Get a swap, expiring it first if its response window has closed.

        @param request_id - Swap request ID
        @returns Swap detail
        @raises SwapNotFoundError if the ID is unknown
        """
        record = await self.state_machine.refresh(request_id)
        return to_detail(record)

    async def list_history(self, request_id: str) -> list[SwapHistoryEntry]:
        """Get a swap's transition log in order.

        An overdue pending_target swap is expired first, so its log ends
        with the expired entry.

        @param request_id - Swap request ID
        @returns History entries
        @raises SwapNotFoundError if the ID is unknown
        """
        await self.state_machine.refresh(request_id)
        async with self._session_factory() as session:
            entries = await SwapHistoryRepository(session).list_for_request(request_id)
            return [SwapHistoryEntry.model_validate(e) for e in entries]

    async def list_swaps(
        self,
        actor_id: str,
        box: str = "all",
        skip: int = 0,
        limit: int = 100,
    ) -> SwapListResponse:
        """List swaps an employee takes part in.

        @param actor_id - Employee ID
        @param box - all / incoming / outgoing / pending
        @param skip - Pagination offset
        @param limit - Maximum results
        @returns Swaps, newest first
        """
        if box not in SWAP_BOXES:
            raise SwapValidationError(
                f"Unknown box {box!r}; expected one of {', '.join(SWAP_BOXES)}"
            )

        async with self._session_factory() as session:
            records = await SwapRequestRepository(session).list_for_actor(
                actor_id, box=box, skip=skip, limit=limit
            )

        now = self._clock()
        items = []
        for record in records:
            if is_overdue(record, now):
                try:
                    record = await self.state_machine.refresh(record.id)
                except ConcurrencyConflictError:
                    record = await self.state_machine.refresh(record.id)
                if box == "pending" and record.status == SwapStatus.EXPIRED.value:
                    continue
            items.append(to_detail(record))
        return SwapListResponse(items=items, total=len(items))

    async def retry_execution(self, request_id: str, actor_id: str) -> SwapActionResult:
        """Re-run execution for an approved swap.

        @param request_id - Swap request ID
        @param actor_id - Acting manager or admin
        @returns Resulting status
        @raises UnauthorizedActionError if the actor is not a manager or admin
        """
        role = await self.directory.role_of(actor_id)
        if role not in MANAGER_ROLES:
            raise UnauthorizedActionError(
                f"Actor {actor_id} may not execute swap {request_id}"
            )
        logger.info(f"Execution of swap {request_id} requested by {actor_id}")
        record = await self.executor.execute(request_id)
        return to_result(record)

    async def expire_stale(self, limit: int = 500) -> int:
        """Expire every overdue pending_target swap.

        @param limit - Maximum records per sweep
        @returns Number of swaps expired
        """
        async with self._session_factory() as session:
            overdue = await SwapRequestRepository(session).get_overdue(
                self._clock(), limit=limit
            )
            ids = [record.id for record in overdue]

        expired = 0
        for swap_id in ids:
            try:
                record = await self.state_machine.refresh(swap_id)
            except ConcurrencyConflictError:
                logger.warning(f"Skipped expiring swap {swap_id}: changed concurrently")
                continue
            if record.status == SwapStatus.EXPIRED.value:
                expired += 1

        if expired:
            logger.info(f"Expired {expired} stale swap requests")
        return expired

    async def retry_stuck_executions(self, limit: int = 100) -> dict[str, int]:
        """Re-run execution for swaps left in approved by an earlier failure.

        @param limit - Maximum records per run
        @returns Counts of completed and still-failing swaps
        """
        async with self._session_factory() as session:
            approved = await SwapRequestRepository(session).get_by_filter(
                status=SwapStatus.APPROVED.value, limit=limit
            )
            ids = [record.id for record in approved]

        completed = failed = 0
        for swap_id in ids:
            try:
                await self.executor.execute(swap_id)
                completed += 1
            except (ExecutionFailedError, ConcurrencyConflictError) as e:
                logger.warning(f"Swap {swap_id} still not executed: {e}")
                failed += 1

        return {"completed": completed, "failed": failed}


# Singleton instance
_swap_service: SwapService | None = None


def get_swap_service() -> SwapService:
    """Get or create swap service singleton.

    @returns SwapService instance
    """
    global _swap_service
    if _swap_service is None:
        _swap_service = SwapService()
    return _swap_service


def reset_swap_service() -> None:
    """Reset swap service singleton (for testing)."""
    global _swap_service
    _swap_service = None
