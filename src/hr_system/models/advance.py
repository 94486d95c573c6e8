"""Salary advance and advance deduction models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hr_system.models.base import Base, IdMixin, TimestampMixin
from hr_system.models.enums import AdvanceStatus, check_in


class Advance(Base, IdMixin, TimestampMixin):
    """Salary advance repaid through fixed monthly installments."""

    __tablename__ = "advance"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    request_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AdvanceStatus.PENDING.value
    )
    installments: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    paid_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    remaining_amount: Mapped[Decimal] = mapped_column(nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    approved_by: Mapped[str | None] = mapped_column(String(255))
    approved_date: Mapped[date | None] = mapped_column(Date)
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("amount > 0", name="advance_amount_check"),
        CheckConstraint("installments >= 1", name="advance_installments_check"),
        CheckConstraint("paid_amount >= 0", name="advance_paid_check"),
        CheckConstraint("remaining_amount >= 0", name="advance_remaining_check"),
        CheckConstraint(check_in("status", AdvanceStatus), name="advance_status_check"),
    )


class AdvanceDeduction(Base, IdMixin, TimestampMixin):
    """One installment taken from an advance by a payroll run."""

    __tablename__ = "advance_deduction"

    advance_id: Mapped[UUID] = mapped_column(
        ForeignKey("advance.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True
    )
    payroll_run_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_run.id", ondelete="CASCADE"), nullable=False, index=True
    )
    deduction_amount: Mapped[Decimal] = mapped_column(nullable=False)
    remaining_amount: Mapped[Decimal] = mapped_column(nullable=False)
    deduction_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    __table_args__ = (
        CheckConstraint("deduction_amount > 0", name="advance_deduction_amount_check"),
        UniqueConstraint("advance_id", "payroll_run_id", name="advance_deduction_run_unique"),
    )
