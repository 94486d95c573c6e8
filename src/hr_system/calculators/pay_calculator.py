"""Pure arithmetic for salaries, advance installments and payroll totals.

Nothing here touches the database: services load rows, hand them to the
calculator and persist whatever it returns.
"""

from __future__ import annotations

import calendar
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable
from uuid import UUID

from hr_system.calculators.types import (
    AdvanceInstallment,
    CompensationItem,
    EmployeePay,
    PayrollSummary,
)

MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")


class InvalidMonthError(ValueError):
    """Raised for payroll months not in YYYY-MM form."""


def month_bounds(month: str) -> tuple[date, date]:
    """Return the first and last calendar day of a ``YYYY-MM`` month."""
    if not MONTH_PATTERN.match(month):
        raise InvalidMonthError(f"Month must be in YYYY-MM format: {month!r}")
    year, month_number = int(month[:4]), int(month[5:])
    if not 1 <= month_number <= 12:
        raise InvalidMonthError(f"Month out of range: {month!r}")
    last_day = calendar.monthrange(year, month_number)[1]
    return date(year, month_number, 1), date(year, month_number, last_day)


class PayCalculator:
    """Computes gross/net pay and advance installments."""

    OUTPUT_PRECISION = Decimal("0.01")
    ZERO = Decimal("0")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places."""
        return Decimal(amount).quantize(PayCalculator.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def monthly_deduction(amount: Decimal, installments: int) -> Decimal:
        """Fixed monthly installment of an advance."""
        if installments < 1:
            raise ValueError("installments must be at least 1")
        return PayCalculator.round_to_cents(Decimal(amount) / installments)

    @staticmethod
    def installment_due(monthly: Decimal, remaining: Decimal) -> Decimal:
        """Installment taken this month: never more than what is still owed."""
        return PayCalculator.round_to_cents(min(Decimal(monthly), Decimal(remaining)))

    @classmethod
    def build_installment(
        cls,
        advance_id: UUID,
        amount: Decimal,
        remaining: Decimal,
        installments: int,
        approved_date: date | None = None,
    ) -> AdvanceInstallment:
        monthly = cls.monthly_deduction(amount, installments)
        return AdvanceInstallment(
            advance_id=advance_id,
            total_amount=Decimal(amount),
            remaining_amount=Decimal(remaining),
            installments=installments,
            monthly_deduction=monthly,
            this_month_deduction=cls.installment_due(monthly, remaining),
            approved_date=approved_date,
        )

    @classmethod
    def total_installments(cls, installments: Iterable[AdvanceInstallment]) -> Decimal:
        return cls.round_to_cents(sum((i.this_month_deduction for i in installments), cls.ZERO))

    @classmethod
    def calculate_employee(
        cls,
        employee_id: UUID,
        employee_name: str,
        base_salary: Decimal,
        rewards: list[CompensationItem],
        deductions: list[CompensationItem],
        advances: list[AdvanceInstallment],
        **extra,
    ) -> EmployeePay:
        """Compute one employee's pay for a month.

        gross = base + rewards; net = gross - deductions - advance deduction.
        Net pay is not floored at zero.
        """
        base = cls.round_to_cents(Decimal(base_salary))
        reward_total = cls.round_to_cents(sum((r.amount for r in rewards), cls.ZERO))
        deduction_total = cls.round_to_cents(sum((d.amount for d in deductions), cls.ZERO))
        advance_total = cls.total_installments(advances)

        gross = base + reward_total
        net = gross - deduction_total - advance_total

        return EmployeePay(
            employee_id=employee_id,
            employee_name=employee_name,
            base_salary=base,
            rewards=reward_total,
            deductions=deduction_total,
            advance_deduction=advance_total,
            gross_pay=gross,
            net_pay=net,
            reward_items=list(rewards),
            deduction_items=list(deductions),
            advance_items=list(advances),
            **extra,
        )

    @classmethod
    def summarize(cls, results: list[EmployeePay]) -> PayrollSummary:
        """Aggregate totals; total deductions include advance installments."""
        summary = PayrollSummary(total_employees=len(results))
        for pay in results:
            summary.total_gross += pay.gross_pay
            summary.total_deductions += pay.deductions + pay.advance_deduction
            summary.total_net += pay.net_pay
            summary.total_rewards += pay.rewards
            summary.total_advance_deductions += pay.advance_deduction

        summary.total_gross = cls.round_to_cents(summary.total_gross)
        summary.total_deductions = cls.round_to_cents(summary.total_deductions)
        summary.total_net = cls.round_to_cents(summary.total_net)
        summary.total_rewards = cls.round_to_cents(summary.total_rewards)
        summary.total_advance_deductions = cls.round_to_cents(summary.total_advance_deductions)
        if results:
            summary.average_gross_pay = cls.round_to_cents(summary.total_gross / len(results))
            summary.average_net_pay = cls.round_to_cents(summary.total_net / len(results))
        return summary
