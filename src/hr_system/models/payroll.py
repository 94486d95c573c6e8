"""Payroll run and payroll entry models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hr_system.models.base import Base, IdMixin, TimestampMixin
from hr_system.models.enums import PayrollRunStatus, check_in


class PayrollRun(Base, IdMixin, TimestampMixin):
    """Monthly payroll batch. A null institution covers all institutions."""

    __tablename__ = "payroll_run"

    month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)
    institution_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("institution.id", ondelete="SET NULL"), index=True
    )
    run_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    total_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_gross: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_net: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PayrollRunStatus.PENDING.value
    )
    notes: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint(check_in("status", PayrollRunStatus), name="payroll_run_status_check"),
    )


class PayrollEntry(Base, IdMixin, TimestampMixin):
    """One employee's computed pay within a payroll run."""

    __tablename__ = "payroll_entry"

    payroll_run_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_run.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True
    )
    base_salary: Mapped[Decimal] = mapped_column(nullable=False)
    rewards: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    deductions: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    advance_deduction: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    gross_pay: Mapped[Decimal] = mapped_column(nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(nullable=False)
