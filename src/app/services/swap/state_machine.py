"""Swap request state machine.

All status changes of an existing swap request go through
SwapStateMachine.apply (actor triggers) or SwapStateMachine.refresh
(lazy expiration). Each successful transition bumps the record version
through a compare-and-set update and appends exactly one history entry
in the same transaction.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database.session import AsyncSessionLocal
from app.models.base import utcnow
from app.models.swap import SwapRequest
from app.repositories.swap import SwapHistoryRepository, SwapRequestRepository
from app.services.notification import get_notifier, notify_safely
from app.services.swap.collaborators import Directory, Notifier
from app.services.swap.errors import (
    ConcurrencyConflictError,
    InvalidStateError,
    SwapExpiredError,
    SwapNotFoundError,
    UnauthorizedActionError,
)
from app.services.swap.executor import SwapExecutor
from app.services.swap.gate import is_allowed
from app.services.swap.schemas import (
    SYSTEM_ACTOR,
    HistoryAction,
    ResponseDecision,
    Role,
    SwapStatus,
    SwapTrigger,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """One edge of the transition table."""

    to_status: SwapStatus
    action: HistoryAction
    stage: str  # target / manager / hr, selects the response columns
    decision: ResponseDecision
    actor_role: Role | None = None  # role recorded in history; None = caller's


TRANSITIONS: dict[tuple[SwapStatus, SwapTrigger], Transition] = {
    (SwapStatus.PENDING_TARGET, SwapTrigger.TARGET_ACCEPT): Transition(
        SwapStatus.PENDING_MANAGER,
        HistoryAction.ACCEPTED,
        "target",
        ResponseDecision.ACCEPTED,
        Role.EMPLOYEE,
    ),
    (SwapStatus.PENDING_TARGET, SwapTrigger.TARGET_REJECT): Transition(
        SwapStatus.REJECTED,
        HistoryAction.REJECTED,
        "target",
        ResponseDecision.REJECTED,
        Role.EMPLOYEE,
    ),
    (SwapStatus.PENDING_MANAGER, SwapTrigger.MANAGER_APPROVE): Transition(
        SwapStatus.APPROVED,
        HistoryAction.APPROVED,
        "manager",
        ResponseDecision.APPROVED,
    ),
    (SwapStatus.PENDING_MANAGER, SwapTrigger.MANAGER_REJECT): Transition(
        SwapStatus.REJECTED,
        HistoryAction.REJECTED,
        "manager",
        ResponseDecision.REJECTED,
    ),
    (SwapStatus.PENDING_HR, SwapTrigger.HR_APPROVE): Transition(
        SwapStatus.APPROVED,
        HistoryAction.APPROVED,
        "hr",
        ResponseDecision.APPROVED,
    ),
    (SwapStatus.PENDING_HR, SwapTrigger.HR_REJECT): Transition(
        SwapStatus.REJECTED,
        HistoryAction.REJECTED,
        "hr",
        ResponseDecision.REJECTED,
    ),
}

# Manager approval routes through HR when the swap crosses departments
ESCALATION = Transition(
    SwapStatus.PENDING_HR,
    HistoryAction.ESCALATED,
    "manager",
    ResponseDecision.APPROVED,
)


def resolve_transition(
    record: SwapRequest, trigger: SwapTrigger
) -> Transition | None:
    """Look up the edge a trigger takes from the record's current status.

    @param record - Swap request
    @param trigger - Requested trigger
    @returns Transition, or None if the trigger is invalid in this status
    """
    transition = TRANSITIONS.get((SwapStatus(record.status), trigger))
    if (
        transition is not None
        and trigger == SwapTrigger.MANAGER_APPROVE
        and record.requires_cross_approval
    ):
        return ESCALATION
    return transition


def is_overdue(record: SwapRequest, now: datetime) -> bool:
    """Whether a pending_target record has passed its response deadline."""
    return record.status == SwapStatus.PENDING_TARGET.value and now > record.expires_at


class SwapStateMachine:
    """Applies triggers to swap requests."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] | None = None,
        executor: SwapExecutor | None = None,
        directory: Directory | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize state machine.

        @param session_factory - Factory for database sessions
        @param executor - Applier run when a swap reaches approved
        @param directory - Used to find HR approvers on escalation
        @param notifier - Notification channel
        @param clock - Current-time source
        """
        self._session_factory = session_factory or AsyncSessionLocal
        self._notifier = notifier or get_notifier()
        self._executor = executor or SwapExecutor(
            self._session_factory, notifier=self._notifier, clock=clock
        )
        self._directory = directory
        self._clock = clock

    async def _expire(
        self, session: AsyncSession, record: SwapRequest
    ) -> SwapRequest:
        """Commit pending_target -> expired for an overdue record.

        @param session - Open session the record was read in
        @param record - Overdue record
        @returns Expired record
        @raises ConcurrencyConflictError if the record moved to another status
        """
        repo = SwapRequestRepository(session)
        swap_id, expires_at = record.id, record.expires_at
        expired = await repo.compare_and_set(
            swap_id, record.version, {"status": SwapStatus.EXPIRED.value}
        )
        if expired is None:
            # rollback expires loaded instances; only locals are safe below
            await session.rollback()
            current = await repo.get_by_id(swap_id, populate_existing=True)
            if current is not None and current.status == SwapStatus.EXPIRED.value:
                logger.info(f"Swap {swap_id} was expired by a concurrent reader")
                return current
            logger.warning(f"Expiry of swap {swap_id} lost a version race")
            raise ConcurrencyConflictError(
                f"Swap {swap_id} changed while expiring",
                current.status if current else None,
            )

        await SwapHistoryRepository(session).append(
            swap_request_id=swap_id,
            action=HistoryAction.EXPIRED.value,
            actor_id=SYSTEM_ACTOR,
            actor_role=SYSTEM_ACTOR,
            previous_status=SwapStatus.PENDING_TARGET.value,
            new_status=SwapStatus.EXPIRED.value,
            detail=f"No response before {expires_at.isoformat()}",
            created_at=self._clock(),
        )
        await session.commit()
        logger.warning(
            f"Swap {swap_id} expired",
            extra={"swap_id": swap_id, "version": expired.version},
        )
        await notify_safely(
            self._notifier,
            expired.requestor_id,
            f"Swap request {expired.swap_code} expired without a response",
        )
        return expired

    async def refresh(self, request_id: str) -> SwapRequest:
        """Load a swap request, expiring it first if it is overdue.

        @param request_id - Swap request ID
        @returns Current record
        @raises SwapNotFoundError if the ID is unknown
        @raises ConcurrencyConflictError if the record moved while expiring
        """
        async with self._session_factory() as session:
            record = await SwapRequestRepository(session).get_by_id(request_id)
            if record is None:
                raise SwapNotFoundError(f"Swap request {request_id} not found")
            if is_overdue(record, self._clock()):
                return await self._expire(session, record)
            return record

    async def apply(
        self,
        request_id: str,
        actor_id: str,
        actor_role: Role | str | None,
        trigger: SwapTrigger | str,
        payload: dict[str, Any] | None = None,
        expected_version: int | None = None,
    ) -> SwapRequest:
        """Apply an actor trigger to a swap request.

        Checks run in this order: existence, lazy expiration, expected
        version, transition validity, authorization, compare-and-set.
        When the transition lands in approved, the executor runs right
        after the commit and the completed record is returned.

        @param request_id - Swap request ID
        @param actor_id - Acting employee
        @param actor_role - Directory role of the actor
        @param trigger - Requested trigger
        @param payload - Optional {"reason": str}
        @param expected_version - Version the caller last saw
        @returns Record after the transition
        @raises SwapNotFoundError, SwapExpiredError, ConcurrencyConflictError,
                InvalidStateError, UnauthorizedActionError, ExecutionFailedError
        """
        trigger = SwapTrigger(trigger)
        reason = (payload or {}).get("reason")

        async with self._session_factory() as session:
            repo = SwapRequestRepository(session)

            record = await repo.get_by_id(request_id)
            if record is None:
                raise SwapNotFoundError(f"Swap request {request_id} not found")

            if is_overdue(record, self._clock()):
                await self._expire(session, record)
                raise SwapExpiredError(
                    f"Swap request {request_id} expired before a response"
                )
            if record.status == SwapStatus.EXPIRED.value:
                raise SwapExpiredError(f"Swap request {request_id} is expired")

            current = SwapStatus(record.status)

            if expected_version is not None and expected_version != record.version:
                logger.warning(
                    f"Stale version for swap {request_id}: "
                    f"expected {expected_version}, stored {record.version}"
                )
                raise ConcurrencyConflictError(
                    f"Swap request {request_id} is at version {record.version}, "
                    f"not {expected_version}",
                    current,
                )

            transition = resolve_transition(record, trigger)
            if transition is None:
                raise InvalidStateError(
                    f"Cannot {trigger.value} a swap in status {current.value}",
                    current,
                )

            if not is_allowed(actor_id, actor_role, record, trigger):
                raise UnauthorizedActionError(
                    f"Actor {actor_id} may not {trigger.value} swap {request_id}",
                    current,
                )

            stage = transition.stage
            read_version = record.version
            updated = await repo.compare_and_set(
                request_id,
                read_version,
                {
                    "status": transition.to_status.value,
                    f"{stage}_response": transition.decision.value,
                    f"{stage}_reason": reason,
                    f"{stage}_actor_id": actor_id,
                    f"{stage}_responded_at": self._clock(),
                },
            )
            if updated is None:
                await session.rollback()
                latest = await repo.get_by_id(request_id, populate_existing=True)
                logger.warning(
                    f"Version race on swap {request_id} ({trigger.value})",
                    extra={"swap_id": request_id, "version": read_version},
                )
                raise ConcurrencyConflictError(
                    f"Swap request {request_id} changed concurrently",
                    latest.status if latest else current,
                )

            role = transition.actor_role or actor_role
            await SwapHistoryRepository(session).append(
                swap_request_id=request_id,
                action=transition.action.value,
                actor_id=actor_id,
                actor_role=role.value if isinstance(role, Role) else str(role),
                previous_status=current.value,
                new_status=transition.to_status.value,
                detail=reason,
                created_at=self._clock(),
            )
            await session.commit()

        logger.info(
            f"Swap {request_id} {current.value} -> {updated.status} "
            f"by {actor_id} ({trigger.value})",
            extra={"swap_id": request_id, "version": updated.version},
        )
        if transition.to_status == SwapStatus.APPROVED:
            # execute before notifying
            try:
                return await self._executor.execute(request_id)
            finally:
                await self._notify(updated, transition)

        await self._notify(updated, transition)
        return updated

    async def _notify(self, record: SwapRequest, transition: Transition) -> None:
        """Send notifications for a committed transition."""
        code = record.swap_code
        if transition.action == HistoryAction.ACCEPTED:
            await notify_safely(
                self._notifier,
                record.manager_id,
                f"Swap request {code} was accepted and awaits your approval",
            )
        elif transition.action == HistoryAction.ESCALATED:
            approvers: list[str] = []
            if self._directory is not None:
                try:
                    approvers = await self._directory.members_with_role(Role.HR)
                except Exception as e:
                    logger.error(f"Could not load HR approvers for swap {record.id}: {e}")
            for approver in approvers:
                await notify_safely(
                    self._notifier,
                    approver,
                    f"Cross-department swap request {code} awaits HR approval",
                )
        elif transition.action == HistoryAction.REJECTED:
            await notify_safely(
                self._notifier,
                record.requestor_id,
                f"Swap request {code} was rejected at the {transition.stage} stage",
            )
