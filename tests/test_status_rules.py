"""Tests for advance, leave and payroll run status transitions."""

import pytest

from hr_system.services import (
    AdvanceStateMachine,
    BusinessRuleError,
    InvalidTransitionError,
    LeaveStateMachine,
    PayrollRunStateMachine,
)


class TestAdvanceStateMachine:
    def test_valid_transitions(self):
        assert AdvanceStateMachine.can_transition("pending", "approved") is True
        assert AdvanceStateMachine.can_transition("pending", "rejected") is True
        assert AdvanceStateMachine.can_transition("approved", "paid") is True

    def test_invalid_transitions(self):
        # Can't pay before approval
        assert AdvanceStateMachine.can_transition("pending", "paid") is False
        # Decisions are final
        assert AdvanceStateMachine.can_transition("rejected", "approved") is False
        assert AdvanceStateMachine.can_transition("approved", "rejected") is False
        assert AdvanceStateMachine.can_transition("paid", "approved") is False

    def test_validate_transition_raises(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            AdvanceStateMachine.validate_transition("rejected", "paid")

        assert exc_info.value.from_status == "rejected"
        assert exc_info.value.to_status == "paid"
        assert exc_info.value.status_code == 400
        assert isinstance(exc_info.value, BusinessRuleError)
        assert str(exc_info.value) == "Invalid transition from 'rejected' to 'paid': 'rejected' is final"

    def test_error_lists_allowed_statuses(self):
        with pytest.raises(InvalidTransitionError, match="expected one of approved, rejected"):
            AdvanceStateMachine.validate_transition("pending", "paid")

    def test_terminal_statuses(self):
        assert AdvanceStateMachine.is_terminal("paid") is True
        assert AdvanceStateMachine.is_terminal("rejected") is True
        assert AdvanceStateMachine.is_terminal("pending") is False

    def test_next_statuses(self):
        assert set(AdvanceStateMachine.get_next_statuses("pending")) == {"approved", "rejected"}
        assert AdvanceStateMachine.get_next_statuses("unknown") == []


class TestLeaveStateMachine:
    def test_only_pending_can_change(self):
        assert LeaveStateMachine.can_transition("pending", "approved") is True
        assert LeaveStateMachine.can_transition("pending", "rejected") is True
        assert LeaveStateMachine.can_transition("approved", "rejected") is False
        assert LeaveStateMachine.can_transition("rejected", "approved") is False


class TestPayrollRunStateMachine:
    def test_transitions(self):
        assert PayrollRunStateMachine.can_transition("pending", "completed") is True
        assert PayrollRunStateMachine.can_transition("pending", "failed") is True
        assert PayrollRunStateMachine.can_transition("completed", "failed") is False
        assert PayrollRunStateMachine.is_terminal("failed") is True
