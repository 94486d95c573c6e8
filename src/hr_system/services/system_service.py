"""Dashboard counters across every aggregate."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import case, func, or_, select

from hr_system.calculators import PayCalculator
from hr_system.config import get_settings
from hr_system.models import (
    EXPIRY_FIELDS,
    Advance,
    Branch,
    Employee,
    Form,
    Institution,
    LeaveRequest,
    PayrollRun,
    User,
    utcnow,
)
from hr_system.models.enums import (
    AdvanceStatus,
    EmployeeStatus,
    InstitutionStatus,
    LeaveStatus,
    PayrollRunStatus,
    UserStatus,
)
from hr_system.services.base import BaseService
from hr_system.services.expiry import expiry_window
from hr_system.services.user_service import as_utc


def _count_if(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


class SystemService(BaseService):
    async def stats(self, today: date | None = None) -> dict[str, Any]:
        today = today or date.today()
        stats: dict[str, Any] = {}
        stats.update(await self._users())
        stats.update(await self._employees())
        stats.update(await self._documents(today))

        institutions = (
            await self.session.execute(
                select(
                    func.count(Institution.id).label("total"),
                    _count_if(Institution.status == InstitutionStatus.ACTIVE.value).label("active"),
                )
            )
        ).one()
        stats["total_institutions"] = institutions.total
        stats["active_institutions"] = institutions.active
        stats["total_branches"] = await self.session.scalar(select(func.count(Branch.id)))

        stats["pending_advances"] = await self.session.scalar(
            select(func.count(Advance.id)).where(Advance.status == AdvanceStatus.PENDING.value)
        )
        stats["pending_leaves"] = await self.session.scalar(
            select(func.count(LeaveRequest.id)).where(
                LeaveRequest.status == LeaveStatus.PENDING.value
            )
        )
        stats["completed_payroll_runs"] = await self.session.scalar(
            select(func.count(PayrollRun.id)).where(
                PayrollRun.status == PayrollRunStatus.COMPLETED.value
            )
        )
        stats["active_forms"] = await self.session.scalar(
            select(func.count(Form.id)).where(Form.is_active.is_(True))
        )
        return stats

    async def _users(self) -> dict[str, Any]:
        row = (
            await self.session.execute(
                select(
                    func.count(User.id).label("total"),
                    _count_if(User.status == UserStatus.ACTIVE.value).label("active"),
                    func.coalesce(func.sum(User.login_attempts), 0).label("failed_logins"),
                    func.max(User.last_login).label("last_login"),
                )
            )
        ).one()

        now = utcnow()
        lock_times = (
            await self.session.scalars(
                select(User.locked_until).where(User.locked_until.is_not(None))
            )
        ).all()
        return {
            "total_users": row.total,
            "active_users": row.active,
            "inactive_users": row.total - row.active,
            "locked_users": sum(1 for locked in lock_times if as_utc(locked) > now),
            "failed_login_attempts": row.failed_logins,
            "last_login_activity": as_utc(row.last_login),
        }

    async def _employees(self) -> dict[str, Any]:
        active = Employee.status == EmployeeStatus.ACTIVE.value
        row = (
            await self.session.execute(
                select(
                    func.count(Employee.id).label("total"),
                    _count_if(active).label("active"),
                    _count_if(Employee.status == EmployeeStatus.ARCHIVED.value).label("archived"),
                    _count_if(active & Employee.institution_id.is_(None)).label("unsponsored"),
                    func.sum(case((active, Employee.salary), else_=0)).label("total_salaries"),
                )
            )
        ).one()

        total_salaries = PayCalculator.round_to_cents(Decimal(row.total_salaries or 0))
        return {
            "total_employees": row.total,
            "active_employees": row.active,
            "archived_employees": row.archived,
            "unsponsored_employees": row.unsponsored,
            "total_salaries": total_salaries,
            "average_salary": (
                PayCalculator.round_to_cents(total_salaries / row.active)
                if row.active
                else Decimal("0.00")
            ),
        }

    async def _documents(self, today: date) -> dict[str, int]:
        """Active employees with an expired document, and with one about to expire."""
        _, window_end = expiry_window(get_settings().expiry_warning_days, today)
        columns = [getattr(Employee, column) for column in EXPIRY_FIELDS]
        expired = or_(*[column <= today for column in columns])
        expiring = or_(*[(column > today) & (column <= window_end) for column in columns])

        row = (
            await self.session.execute(
                select(
                    _count_if(expired).label("expired"),
                    _count_if(expiring).label("expiring"),
                ).where(Employee.status == EmployeeStatus.ACTIVE.value)
            )
        ).one()
        return {
            "employees_with_expired_documents": row.expired,
            "employees_with_expiring_documents": row.expiring,
        }
