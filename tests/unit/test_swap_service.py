"""Tests for the swap service operations."""

from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest

from app.services.swap import (
    SwapCreate,
    SwapNotFoundError,
    SwapService,
    SwapStatus,
    SwapValidationError,
    UnauthorizedActionError,
)
from app.services.swap.schemas import HistoryAction


def request(target="bob", **kwargs) -> SwapCreate:
    return SwapCreate(target_id=target, requestor_date=date(2025, 3, 1), **kwargs)


class TestCreateSwap:
    """Test swap creation."""

    @pytest.mark.asyncio
    async def test_create_defaults(self, swap_service, clock, notifier):
        """Test a new swap starts pending_target at version 0."""
        detail = await swap_service.create_swap("alice", request(reason="wedding"))

        assert detail.status == SwapStatus.PENDING_TARGET
        assert detail.version == 0
        assert detail.requestor_id == "alice"
        assert detail.manager_id == "mike"
        assert detail.target_date == date(2025, 3, 1)
        assert detail.requires_cross_approval is False
        assert detail.expires_at == clock.now + timedelta(hours=48)
        assert detail.swap_code.startswith("SR-2025-")
        assert len(detail.swap_code) == len("SR-2025-") + 6
        assert notifier.recipients() == ["bob"]

    @pytest.mark.asyncio
    async def test_cross_department_derived_from_directory(self, swap_service):
        """Test different departments turn on the HR stage."""
        detail = await swap_service.create_swap("alice", request(target="carol"))

        assert detail.requires_cross_approval is True

    @pytest.mark.asyncio
    async def test_explicit_cross_approval_wins(self, swap_service):
        """Test the caller may force the HR stage."""
        detail = await swap_service.create_swap(
            "alice", request(requires_cross_approval=True)
        )

        assert detail.requires_cross_approval is True

    @pytest.mark.asyncio
    async def test_emergency_window(self, swap_service, clock):
        """Test emergency swaps get the short response window."""
        detail = await swap_service.create_swap("alice", request(is_emergency=True))

        assert detail.expires_at == clock.now + timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_creation_is_logged(self, swap_service):
        """Test creation writes the first history entry."""
        detail = await swap_service.create_swap("alice", request())

        entries = await swap_service.list_history(detail.id)

        assert len(entries) == 1
        assert entries[0].action == HistoryAction.CREATED
        assert entries[0].sequence_number == 1
        assert entries[0].previous_status is None
        assert entries[0].actor_role == "employee"

    @pytest.mark.asyncio
    async def test_self_swap_rejected(self, swap_service):
        """Test requestor and target must differ."""
        with pytest.raises(SwapValidationError) as exc:
            await swap_service.create_swap("alice", request(target="alice"))

        assert exc.value.code == "VALIDATION"

    @pytest.mark.asyncio
    async def test_unknown_target(self, swap_service):
        """Test the target must exist in the directory."""
        with pytest.raises(SwapNotFoundError):
            await swap_service.create_swap("alice", request(target="nobody"))


class TestScenarios:
    """End-to-end flows through the service."""

    @pytest.mark.asyncio
    async def test_same_department_flow(self, swap_service):
        """Test create, accept, manager approve ends completed."""
        detail = await swap_service.create_swap("alice", request())

        accepted = await swap_service.respond_as_target(detail.id, "bob", True)
        done = await swap_service.respond_as_manager(detail.id, "mike", True)

        assert accepted.status == SwapStatus.PENDING_MANAGER
        assert done.status == SwapStatus.COMPLETED
        history = await swap_service.list_history(detail.id)
        assert [e.action.value for e in history] == [
            "created",
            "accepted",
            "approved",
            "completed",
        ]

    @pytest.mark.asyncio
    async def test_cross_department_flow(self, swap_service):
        """Test the HR stage sits between manager and completion."""
        detail = await swap_service.create_swap(
            "alice", request(target="carol", target_date=date(2025, 3, 2))
        )

        await swap_service.respond_as_target(detail.id, "carol", True)
        escalated = await swap_service.respond_as_manager(detail.id, "mike", True)
        done = await swap_service.respond_as_cross_approver(detail.id, "hannah", True)

        assert escalated.status == SwapStatus.PENDING_HR
        assert done.status == SwapStatus.COMPLETED
        swap = await swap_service.get_swap(detail.id)
        assert swap.manager_response.decision == "approved"
        assert swap.hr_response.actor_id == "hannah"

    @pytest.mark.asyncio
    async def test_target_declines(self, swap_service):
        """Test a declined swap cannot be approved later."""
        detail = await swap_service.create_swap("alice", request())

        rejected = await swap_service.respond_as_target(
            detail.id, "bob", False, reason="already booked"
        )

        assert rejected.status == SwapStatus.REJECTED
        swap = await swap_service.get_swap(detail.id)
        assert swap.target_response.decision == "rejected"
        assert swap.target_response.reason == "already booked"

    @pytest.mark.asyncio
    async def test_role_comes_from_directory(self, swap_service):
        """Test an employee cannot approve even with a manager-shaped request."""
        detail = await swap_service.create_swap("alice", request())
        await swap_service.respond_as_target(detail.id, "bob", True)

        with pytest.raises(UnauthorizedActionError) as exc:
            await swap_service.respond_as_manager(detail.id, "carol", True)

        assert exc.value.status == SwapStatus.PENDING_MANAGER


class TestReads:
    """Test read operations."""

    @pytest.mark.asyncio
    async def test_get_swap_expires_on_read(self, swap_service, clock):
        """Test reading an overdue swap expires it."""
        detail = await swap_service.create_swap("alice", request())
        clock.advance(hours=49)

        swap = await swap_service.get_swap(detail.id)

        assert swap.status == SwapStatus.EXPIRED
        assert swap.version == 1
        history = await swap_service.list_history(detail.id)
        assert history[-1].action == HistoryAction.EXPIRED

    @pytest.mark.asyncio
    async def test_get_unknown_swap(self, swap_service):
        """Test reading an unknown swap fails."""
        with pytest.raises(SwapNotFoundError):
            await swap_service.get_swap("missing")

    @pytest.mark.asyncio
    async def test_history_of_unknown_swap(self, swap_service):
        """Test history of an unknown swap fails."""
        with pytest.raises(SwapNotFoundError):
            await swap_service.list_history("missing")

    @pytest.mark.asyncio
    async def test_history_expires_overdue_swap(self, swap_service, clock, notifier):
        """Test reading the log of an overdue swap expires it first."""
        detail = await swap_service.create_swap("alice", request())
        clock.advance(hours=49)
        notifier.sent.clear()

        history = await swap_service.list_history(detail.id)

        assert [e.action.value for e in history] == ["created", "expired"]
        assert history[-1].previous_status == SwapStatus.PENDING_TARGET
        assert notifier.recipients() == ["alice"]
        swap = await swap_service.get_swap(detail.id)
        assert swap.status == SwapStatus.EXPIRED
        assert swap.version == 1

    @pytest.mark.asyncio
    async def test_list_swaps_boxes(self, swap_service, clock):
        """Test inbox views for the target."""
        first = await swap_service.create_swap("alice", request())
        clock.advance(minutes=1)
        second = await swap_service.create_swap("carol", request(target="bob"))

        incoming = await swap_service.list_swaps("bob", box="incoming")
        outgoing = await swap_service.list_swaps("bob", box="outgoing")

        assert [s.id for s in incoming.items] == [second.id, first.id]
        assert incoming.total == 2
        assert outgoing.total == 0

    @pytest.mark.asyncio
    async def test_pending_box_drops_expired(self, swap_service, clock):
        """Test overdue swaps are expired while listing pending."""
        await swap_service.create_swap("alice", request())
        clock.advance(hours=49)

        pending = await swap_service.list_swaps("bob", box="pending")
        everything = await swap_service.list_swaps("bob")

        assert pending.total == 0
        assert everything.items[0].status == SwapStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_unknown_box(self, swap_service):
        """Test an unknown box is a validation error."""
        with pytest.raises(SwapValidationError):
            await swap_service.list_swaps("bob", box="archive")


class TestMaintenance:
    """Test sweep and retry operations."""

    @pytest.mark.asyncio
    async def test_expire_stale(self, swap_service, clock, notifier):
        """Test the sweep expires only overdue pending_target swaps."""
        stale = await swap_service.create_swap("alice", request())
        answered = await swap_service.create_swap("carol", request(target="alice"))
        await swap_service.respond_as_target(answered.id, "alice", True)
        clock.advance(hours=49)
        fresh = await swap_service.create_swap("bob", request(target="alice"))
        notifier.sent.clear()

        expired = await swap_service.expire_stale()

        assert expired == 1
        assert (await swap_service.get_swap(stale.id)).status == SwapStatus.EXPIRED
        assert (await swap_service.get_swap(answered.id)).status == SwapStatus.PENDING_MANAGER
        assert (await swap_service.get_swap(fresh.id)).status == SwapStatus.PENDING_TARGET
        assert notifier.recipients() == ["alice"]

    @pytest.mark.asyncio
    async def test_expire_stale_twice_is_noop(self, swap_service, clock):
        """Test a second sweep finds nothing."""
        await swap_service.create_swap("alice", request())
        clock.advance(hours=49)

        assert await swap_service.expire_stale() == 1
        assert await swap_service.expire_stale() == 0

    @pytest.mark.asyncio
    async def test_retry_execution_requires_manager(self, swap_service):
        """Test employees cannot trigger execution."""
        detail = await swap_service.create_swap("alice", request())

        with pytest.raises(UnauthorizedActionError):
            await swap_service.retry_execution(detail.id, "bob")

    @pytest.mark.asyncio
    async def test_notifier_failure_does_not_fail_transition(
        self, session_factory, settings, clock
    ):
        """Test a broken notification channel is logged, not raised."""
        broken = AsyncMock()
        broken.notify.side_effect = RuntimeError("smtp down")
        service = SwapService(
            session_factory=session_factory,
            notifier=broken,
            settings=settings,
            clock=clock,
        )

        detail = await service.create_swap("alice", request())
        result = await service.respond_as_target(detail.id, "bob", True)

        assert result.status == SwapStatus.PENDING_MANAGER
        assert broken.notify.await_count == 2
