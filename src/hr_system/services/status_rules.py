"""Status transition rules for advances, leave requests and payroll runs."""

from __future__ import annotations

from hr_system.models.enums import AdvanceStatus, LeaveStatus, PayrollRunStatus
from hr_system.services.errors import BusinessRuleError


class InvalidTransitionError(BusinessRuleError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class StateMachine:
    """Table-driven status transitions. Subclasses fill VALID_TRANSITIONS."""

    VALID_TRANSITIONS: dict[str, list[str]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if cls.can_transition(from_status, to_status):
            return
        if cls.is_terminal(from_status):
            reason = f"'{from_status}' is final"
        else:
            reason = "expected one of " + ", ".join(cls.get_next_statuses(from_status))
        raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        return list(cls.VALID_TRANSITIONS.get(current_status, []))

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status)


class AdvanceStateMachine(StateMachine):
    """Advance lifecycle.

    - pending → approved | rejected
    - approved → paid

    Payroll deductions also move approved → paid when the balance reaches
    zero, and a reversal moves paid → approved; those bypass this table.
    """

    VALID_TRANSITIONS = {
        AdvanceStatus.PENDING.value: [AdvanceStatus.APPROVED.value, AdvanceStatus.REJECTED.value],
        AdvanceStatus.APPROVED.value: [AdvanceStatus.PAID.value],
        AdvanceStatus.PAID.value: [],
        AdvanceStatus.REJECTED.value: [],
    }


class LeaveStateMachine(StateMachine):
    VALID_TRANSITIONS = {
        LeaveStatus.PENDING.value: [LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value],
        LeaveStatus.APPROVED.value: [],
        LeaveStatus.REJECTED.value: [],
    }


class PayrollRunStateMachine(StateMachine):
    VALID_TRANSITIONS = {
        PayrollRunStatus.PENDING.value: [
            PayrollRunStatus.COMPLETED.value,
            PayrollRunStatus.FAILED.value,
        ],
        PayrollRunStatus.COMPLETED.value: [],
        PayrollRunStatus.FAILED.value: [],
    }
