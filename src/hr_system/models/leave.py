"""Leave request model."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hr_system.models.base import Base, IdMixin, TimestampMixin
from hr_system.models.enums import LeaveStatus, LeaveType, check_in


class LeaveRequest(Base, IdMixin, TimestampMixin):
    """Employee leave request awaiting or past approval."""

    __tablename__ = "leave_request"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True
    )
    leave_type: Mapped[str] = mapped_column(String(20), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=LeaveStatus.PENDING.value
    )
    request_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    approved_by: Mapped[str | None] = mapped_column(String(255))
    approved_date: Mapped[date | None] = mapped_column(Date)
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="leave_request_dates_check"),
        CheckConstraint(check_in("leave_type", LeaveType), name="leave_request_type_check"),
        CheckConstraint(check_in("status", LeaveStatus), name="leave_request_status_check"),
    )
