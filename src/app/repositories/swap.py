"""Repositories for shift swap requests and their history."""

from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import and_, desc, func, or_, select, update

from app.models.swap import SwapHistory, SwapRequest
from app.repositories.base import BaseRepository

PENDING_STATUSES = ("pending_target", "pending_manager", "pending_hr")


class SwapRequestRepository(BaseRepository[SwapRequest]):
    """Repository for SwapRequest database operations.

    All status changes go through compare_and_set, which is the only
    write path after creation.
    """

    model = SwapRequest

    async def get_by_code(self, swap_code: str) -> SwapRequest | None:
        """Get swap request by its human-readable code.

        @param swap_code - Code such as SR-2024-AB12CD
        @returns SwapRequest or None
        """
        stmt = select(self.model).where(self.model.swap_code == swap_code)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def compare_and_set(
        self,
        swap_id: str,
        expected_version: int,
        values: dict[str, Any],
    ) -> SwapRequest | None:
        """Conditionally update a swap request.

        The update applies only if the stored version still equals
        expected_version; the version is bumped by one in the same statement.

        @param swap_id - Swap request ID
        @param expected_version - Version observed when the record was read
        @param values - Column values to write
        @returns Refreshed SwapRequest, or None if the version moved
        """
        stmt = (
            update(self.model)
            .where(
                and_(
                    self.model.id == swap_id,
                    self.model.version == expected_version,
                )
            )
            .values(**values, version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return None
        await self.session.flush()
        return await self.get_by_id(swap_id, populate_existing=True)

    async def list_for_actor(
        self,
        actor_id: str,
        *,
        box: str = "all",
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[SwapRequest]:
        """List swaps an actor takes part in.

        @param actor_id - Employee ID
        @param box - incoming (actor is target), outgoing (actor is requestor),
                     pending (either side, still awaiting a decision) or all
        @param skip - Pagination offset
        @param limit - Maximum results
        @returns Swaps ordered newest first
        """
        stmt = select(self.model)
        if box == "incoming":
            stmt = stmt.where(self.model.target_id == actor_id)
        elif box == "outgoing":
            stmt = stmt.where(self.model.requestor_id == actor_id)
        else:
            stmt = stmt.where(
                or_(
                    self.model.requestor_id == actor_id,
                    self.model.target_id == actor_id,
                )
            )
            if box == "pending":
                stmt = stmt.where(self.model.status.in_(PENDING_STATUSES))
        stmt = stmt.order_by(desc(self.model.created_at)).offset(skip).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_overdue(self, now: datetime, *, limit: int = 500) -> Sequence[SwapRequest]:
        """Get pending_target swaps whose response window has closed.

        @param now - Reference time
        @param limit - Maximum results
        @returns Overdue swaps, oldest deadline first
        """
        stmt = (
            select(self.model)
            .where(
                and_(
                    self.model.status == "pending_target",
                    self.model.expires_at < now,
                )
            )
            .order_by(self.model.expires_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()


class SwapHistoryRepository(BaseRepository[SwapHistory]):
    """Append-only access to the swap transition log.

    Entries are never updated or deleted.
    """

    model = SwapHistory

    async def append(
        self,
        *,
        swap_request_id: str,
        action: str,
        actor_id: str,
        actor_role: str,
        previous_status: str | None,
        new_status: str,
        detail: str | None = None,
        created_at: datetime | None = None,
    ) -> SwapHistory:
        """Append the next history entry for a swap request.

        @param swap_request_id - Swap request ID
        @param action - created/accepted/rejected/approved/escalated/expired/completed
        @param actor_id - Acting user, or "system"
        @param actor_role - Role the actor acted in
        @param previous_status - Status before the transition (None on creation)
        @param new_status - Status after the transition
        @param detail - Free text
        @param created_at - Timestamp (defaults to now)
        @returns Created history entry
        """
        stmt = select(func.max(self.model.sequence_number)).where(
            self.model.swap_request_id == swap_request_id
        )
        result = await self.session.execute(stmt)
        next_sequence = (result.scalar() or 0) + 1

        data: dict[str, Any] = {
            "swap_request_id": swap_request_id,
            "sequence_number": next_sequence,
            "action": action,
            "actor_id": actor_id,
            "actor_role": actor_role,
            "previous_status": previous_status,
            "new_status": new_status,
            "detail": detail,
        }
        if created_at is not None:
            data["created_at"] = created_at
        return await self.create(data)

    async def list_for_request(self, swap_request_id: str) -> Sequence[SwapHistory]:
        """Get all history entries for a swap request in sequence order.

        @param swap_request_id - Swap request ID
        @returns Ordered history entries
        """
        stmt = (
            select(self.model)
            .where(self.model.swap_request_id == swap_request_id)
            .order_by(self.model.sequence_number)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
