"""Leave requests."""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import Row, func, select

from hr_system.models import Branch, Employee, Institution, LeaveRequest
from hr_system.models.enums import LeaveStatus
from hr_system.services.base import BaseService
from hr_system.services.errors import BusinessRuleError
from hr_system.services.status_rules import LeaveStateMachine


def leave_days(start: date, end: date) -> int:
    """Calendar days covered by a leave, both ends included."""
    return (end - start).days + 1


class LeaveService(BaseService):
    def _select(self):
        return (
            select(
                LeaveRequest,
                Employee.name.label("employee_name"),
                Employee.photo_url.label("employee_photo_url"),
                Institution.name.label("institution_name"),
                Branch.name.label("branch_name"),
            )
            .join(Employee, LeaveRequest.employee_id == Employee.id)
            .outerjoin(Institution, Employee.institution_id == Institution.id)
            .outerjoin(Branch, Employee.branch_id == Branch.id)
        )

    async def list_leaves(
        self,
        employee_id: UUID | None = None,
        institution_id: UUID | None = None,
        branch_id: UUID | None = None,
        status: str | None = None,
        leave_type: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Row]:
        query = self._select()
        if employee_id is not None:
            query = query.where(LeaveRequest.employee_id == employee_id)
        if institution_id is not None:
            query = query.where(Employee.institution_id == institution_id)
        if branch_id is not None:
            query = query.where(Employee.branch_id == branch_id)
        if status:
            query = query.where(LeaveRequest.status == status)
        if leave_type:
            query = query.where(LeaveRequest.leave_type == leave_type)
        if date_from is not None:
            query = query.where(LeaveRequest.start_date >= date_from)
        if date_to is not None:
            query = query.where(LeaveRequest.end_date <= date_to)
        result = await self.session.execute(
            query.order_by(LeaveRequest.request_date.desc(), LeaveRequest.created_at.desc())
        )
        return list(result.all())

    async def get_leave(self, leave_id: UUID) -> Row | None:
        result = await self.session.execute(self._select().where(LeaveRequest.id == leave_id))
        return result.first()

    @staticmethod
    def _check_dates(start: date, end: date) -> None:
        if end < start:
            raise BusinessRuleError("End date must be on or after start date")

    async def create_leave(self, data: dict[str, Any]) -> Row:
        await self._get_or_404(Employee, data["employee_id"], "Employee")
        self._check_dates(data["start_date"], data["end_date"])
        leave = LeaveRequest(
            **data,
            status=LeaveStatus.PENDING.value,
            request_date=date.today(),
        )
        self.session.add(leave)
        await self.session.flush()
        return await self.get_leave(leave.id)

    async def update_leave(self, leave_id: UUID, data: dict[str, Any]) -> Row:
        leave = await self._get_or_404(LeaveRequest, leave_id, "Leave request")
        data.pop("employee_id", None)
        self._check_dates(
            data.get("start_date", leave.start_date), data.get("end_date", leave.end_date)
        )
        self._apply(leave, data)
        await self.session.flush()
        return await self.get_leave(leave_id)

    async def delete_leave(self, leave_id: UUID) -> None:
        leave = await self._get_or_404(LeaveRequest, leave_id, "Leave request")
        await self.session.delete(leave)
        await self.session.flush()

    async def approve_leave(self, leave_id: UUID, approved_by: str) -> Row:
        leave = await self._get_or_404(LeaveRequest, leave_id, "Leave request")
        LeaveStateMachine.validate_transition(leave.status, LeaveStatus.APPROVED.value)
        leave.status = LeaveStatus.APPROVED.value
        leave.approved_by = approved_by
        leave.approved_date = date.today()
        await self.session.flush()
        return await self.get_leave(leave_id)

    async def reject_leave(self, leave_id: UUID, reason: str) -> Row:
        leave = await self._get_or_404(LeaveRequest, leave_id, "Leave request")
        LeaveStateMachine.validate_transition(leave.status, LeaveStatus.REJECTED.value)
        leave.status = LeaveStatus.REJECTED.value
        leave.rejection_reason = reason
        await self.session.flush()
        return await self.get_leave(leave_id)

    async def employee_stats(self, employee_id: UUID, year: int | None = None) -> list[dict[str, Any]]:
        """Approved leave per type for one employee, by start date within ``year``."""
        year = year or date.today().year
        result = await self.session.execute(
            select(LeaveRequest.leave_type, LeaveRequest.start_date, LeaveRequest.end_date).where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.start_date.between(date(year, 1, 1), date(year, 12, 31)),
            )
        )
        stats: dict[str, dict[str, Any]] = {}
        for leave_type, start, end in result.all():
            entry = stats.setdefault(
                leave_type, {"leave_type": leave_type, "request_count": 0, "total_days": 0}
            )
            entry["request_count"] += 1
            entry["total_days"] += leave_days(start, end)
        return sorted(stats.values(), key=lambda s: s["leave_type"])

    async def pending_count(self) -> int:
        return await self.session.scalar(
            select(func.count(LeaveRequest.id)).where(
                LeaveRequest.status == LeaveStatus.PENDING.value
            )
        ) or 0
