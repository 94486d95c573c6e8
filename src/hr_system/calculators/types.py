"""Type definitions for payroll and advance calculations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID


@dataclass
class AdvanceInstallment:
    """An approved advance with the installment it owes this month."""

    advance_id: UUID
    total_amount: Decimal
    remaining_amount: Decimal
    installments: int
    monthly_deduction: Decimal
    this_month_deduction: Decimal
    approved_date: date | None = None


@dataclass
class CompensationItem:
    """A reward or deduction counted in a payroll month."""

    id: UUID
    amount: Decimal
    reason: str
    date: date


@dataclass
class EmployeePay:
    """Pay calculation result for one employee and month."""

    employee_id: UUID
    employee_name: str
    base_salary: Decimal
    rewards: Decimal = Decimal("0")
    deductions: Decimal = Decimal("0")
    advance_deduction: Decimal = Decimal("0")
    gross_pay: Decimal = Decimal("0")
    net_pay: Decimal = Decimal("0")
    employee_photo_url: str | None = None
    file_number: str | None = None
    institution_id: UUID | None = None
    reward_items: list[CompensationItem] = field(default_factory=list)
    deduction_items: list[CompensationItem] = field(default_factory=list)
    advance_items: list[AdvanceInstallment] = field(default_factory=list)


@dataclass
class PayrollSummary:
    """Aggregated totals over a set of employee pay calculations."""

    total_employees: int = 0
    total_gross: Decimal = Decimal("0")
    total_deductions: Decimal = Decimal("0")
    total_net: Decimal = Decimal("0")
    total_rewards: Decimal = Decimal("0")
    total_advance_deductions: Decimal = Decimal("0")
    average_gross_pay: Decimal = Decimal("0")
    average_net_pay: Decimal = Decimal("0")
