"""Reward and deduction model."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hr_system.models.base import Base, IdMixin, TimestampMixin
from hr_system.models.enums import CompensationType, check_in


class Compensation(Base, IdMixin, TimestampMixin):
    """A one-off reward or deduction applied in the payroll month of its date."""

    __tablename__ = "compensation"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        CheckConstraint("amount > 0", name="compensation_amount_check"),
        CheckConstraint(check_in("type", CompensationType), name="compensation_type_check"),
    )
