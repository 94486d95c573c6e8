"""Application user model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from hr_system.models.base import Base, IdMixin, TimestampMixin
from hr_system.models.enums import UserRole, UserStatus, check_in


class User(Base, IdMixin, TimestampMixin):
    """Login account holding a role and a list of permission strings."""

    __tablename__ = "app_user"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.EMPLOYEE.value
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserStatus.ACTIVE.value
    )
    permissions: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list
    )
    phone: Mapped[str | None] = mapped_column(String(50))
    last_login: Mapped[datetime | None] = mapped_column()
    login_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    locked_until: Mapped[datetime | None] = mapped_column()

    __table_args__ = (
        CheckConstraint(check_in("role", UserRole), name="app_user_role_check"),
        CheckConstraint(check_in("status", UserStatus), name="app_user_status_check"),
    )
