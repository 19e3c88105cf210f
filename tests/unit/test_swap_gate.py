"""Tests for swap trigger authorization."""

import pytest

from app.models.swap import SwapRequest
from app.services.swap.gate import is_allowed
from app.services.swap.schemas import Role, SwapTrigger


def make_record(cross: bool = False) -> SwapRequest:
    return SwapRequest(
        id="swap-1",
        requestor_id="alice",
        target_id="bob",
        requires_cross_approval=cross,
    )


class TestTargetTriggers:
    """Only the named counterpart may answer."""

    @pytest.mark.parametrize(
        "trigger", [SwapTrigger.TARGET_ACCEPT, SwapTrigger.TARGET_REJECT]
    )
    def test_target_allowed(self, trigger):
        """Test the target may accept or decline."""
        assert is_allowed("bob", Role.EMPLOYEE, make_record(), trigger)

    def test_requestor_cannot_answer_own_request(self):
        """Test the requestor cannot accept on the target's behalf."""
        assert not is_allowed("alice", Role.EMPLOYEE, make_record(), SwapTrigger.TARGET_ACCEPT)

    def test_admin_cannot_answer_for_target(self):
        """Test role does not substitute for identity."""
        assert not is_allowed("ada", Role.ADMIN, make_record(), SwapTrigger.TARGET_ACCEPT)


class TestManagerTriggers:
    """Manager stage requires manager or admin role."""

    @pytest.mark.parametrize("role", [Role.MANAGER, Role.ADMIN, "manager", "ADMIN"])
    def test_manager_roles_allowed(self, role):
        """Test manager and admin roles pass, as enum or string."""
        assert is_allowed("mike", role, make_record(), SwapTrigger.MANAGER_APPROVE)
        assert is_allowed("mike", role, make_record(), SwapTrigger.MANAGER_REJECT)

    @pytest.mark.parametrize("role", [Role.EMPLOYEE, Role.HR, None, "janitor"])
    def test_other_roles_denied(self, role):
        """Test employees, HR and unknown roles are denied."""
        assert not is_allowed("bob", role, make_record(), SwapTrigger.MANAGER_APPROVE)


class TestHRTriggers:
    """HR stage requires HR or admin role and a cross-department swap."""

    @pytest.mark.parametrize("role", [Role.HR, Role.ADMIN])
    def test_hr_allowed_on_cross_department(self, role):
        """Test HR and admin may decide cross-department swaps."""
        record = make_record(cross=True)
        assert is_allowed("hannah", role, record, SwapTrigger.HR_APPROVE)
        assert is_allowed("hannah", role, record, SwapTrigger.HR_REJECT)

    def test_hr_denied_without_cross_approval(self):
        """Test the HR stage does not apply to same-department swaps."""
        assert not is_allowed("hannah", Role.HR, make_record(), SwapTrigger.HR_APPROVE)

    def test_manager_cannot_act_as_hr(self):
        """Test a manager cannot decide the HR stage."""
        record = make_record(cross=True)
        assert not is_allowed("mike", Role.MANAGER, record, SwapTrigger.HR_APPROVE)
