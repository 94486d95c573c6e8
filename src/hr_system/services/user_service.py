"""User accounts, login and password management."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select

from hr_system.auth.permissions import default_permissions, filter_allowed_permissions
from hr_system.auth.security import get_password_hash, verify_password
from hr_system.config import get_settings
from hr_system.models import User, utcnow
from hr_system.models.enums import UserRole, UserStatus
from hr_system.services.base import BaseService
from hr_system.services.errors import (
    AccountLockedError,
    AuthenticationError,
    BusinessRuleError,
    ConflictError,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def as_utc(value: datetime | None) -> datetime | None:
    """Some backends return naive datetimes for timezone-aware columns."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserService(BaseService):
    async def get_by_email(self, email: str) -> User | None:
        return await self.session.scalar(select(User).where(User.email == email.strip().lower()))

    async def get_user(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def authenticate(self, email: str, password: str) -> User:
        """Verify credentials, tracking failed attempts and lockouts.

        Failed-attempt bookkeeping is flushed before the error is raised so the
        caller can commit it.
        """
        settings = get_settings()
        user = await self.get_by_email(email)
        if user is None:
            raise AuthenticationError("Email is not registered")
        if user.status != UserStatus.ACTIVE.value:
            raise AuthenticationError(f"Account is {user.status}")

        now = utcnow()
        locked_until = as_utc(user.locked_until)
        if locked_until is not None:
            if locked_until > now:
                minutes = max(1, int((locked_until - now).total_seconds() // 60) + 1)
                raise AccountLockedError(f"Account is locked for {minutes} more minute(s)")
            user.locked_until = None
            user.login_attempts = 0

        if not verify_password(password, user.password_hash):
            user.login_attempts = (user.login_attempts or 0) + 1
            if user.login_attempts >= settings.max_login_attempts:
                user.locked_until = now + timedelta(minutes=settings.lockout_minutes)
                await self.session.flush()
                logger.warning("Locked account %s after %d failed logins", user.email, user.login_attempts)
                raise AccountLockedError("Account locked after repeated failed login attempts")
            await self.session.flush()
            remaining = settings.max_login_attempts - user.login_attempts
            raise AuthenticationError(f"Incorrect password. Attempts remaining: {remaining}")

        user.login_attempts = 0
        user.locked_until = None
        user.last_login = now
        await self.session.flush()
        logger.info("User %s logged in", user.email)
        return user

    async def list_users(
        self,
        search: str | None = None,
        role: str | None = None,
        status: str | None = None,
    ) -> list[User]:
        query = select(User)
        if search:
            term = f"%{search}%"
            query = query.where(or_(User.name.ilike(term), User.email.ilike(term)))
        if role:
            query = query.where(User.role == role)
        if status:
            query = query.where(User.status == status)
        result = await self.session.execute(query.order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def _check_email(self, email: str, exclude_id: UUID | None = None) -> None:
        query = select(User.id).where(User.email == email)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        if await self.session.scalar(query) is not None:
            raise ConflictError(f"Email '{email}' is already registered")

    async def create_user(self, data: dict[str, Any]) -> User:
        email = data["email"].strip().lower()
        await self._check_email(email)
        role = data.get("role") or UserRole.EMPLOYEE.value
        permissions = data.get("permissions")
        if permissions is None:
            permissions = default_permissions(role)

        user = User(
            name=data["name"],
            email=email,
            password_hash=get_password_hash(data["password"]),
            role=role,
            status=data.get("status") or UserStatus.ACTIVE.value,
            permissions=filter_allowed_permissions(role, permissions),
            phone=data.get("phone"),
        )
        self.session.add(user)
        await self.session.flush()
        logger.info("Created user %s (%s)", user.email, user.role)
        return user

    async def update_user(self, user_id: UUID, data: dict[str, Any]) -> User:
        user = await self._get_or_404(User, user_id, "User")
        if data.get("email"):
            data["email"] = data["email"].strip().lower()
            await self._check_email(data["email"], exclude_id=user_id)
        password = data.pop("password", None)
        if password:
            user.password_hash = get_password_hash(password)

        self._apply(user, data)
        if "permissions" in data or "role" in data:
            user.permissions = filter_allowed_permissions(user.role, user.permissions or [])
        await self.session.flush()
        return user

    async def delete_user(self, user_id: UUID, current_user_id: UUID) -> None:
        if user_id == current_user_id:
            raise BusinessRuleError("You cannot delete your own account")
        user = await self._get_or_404(User, user_id, "User")
        await self.session.delete(user)
        await self.session.flush()
        logger.info("Deleted user %s", user_id)

    async def change_password(self, user_id: UUID, current_password: str, new_password: str) -> None:
        user = await self._get_or_404(User, user_id, "User")
        if not verify_password(current_password, user.password_hash):
            raise BusinessRuleError("Current password is incorrect")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise BusinessRuleError(
                f"New password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        user.password_hash = get_password_hash(new_password)
        await self.session.flush()

    async def statistics(self) -> dict[str, Any]:
        by_status = dict(
            (await self.session.execute(select(User.status, func.count(User.id)).group_by(User.status))).all()
        )
        by_role = dict(
            (await self.session.execute(select(User.role, func.count(User.id)).group_by(User.role))).all()
        )
        return {
            "total": sum(by_status.values()),
            "active": by_status.get(UserStatus.ACTIVE.value, 0),
            "inactive": by_status.get(UserStatus.INACTIVE.value, 0),
            "suspended": by_status.get(UserStatus.SUSPENDED.value, 0),
            "by_role": by_role,
        }
