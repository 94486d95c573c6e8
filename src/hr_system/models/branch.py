"""Branch model."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hr_system.models.base import Base, IdMixin, TimestampMixin
from hr_system.models.enums import BranchStatus, check_in


class Branch(Base, IdMixin, TimestampMixin):
    """Branch office. A branch without an institution is independent."""

    __tablename__ = "branch"

    institution_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("institution.id", ondelete="SET NULL"), index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(255))
    manager_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("employee.id", ondelete="SET NULL", use_alter=True)
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BranchStatus.ACTIVE.value
    )

    __table_args__ = (
        CheckConstraint(check_in("status", BranchStatus), name="branch_status_check"),
    )
