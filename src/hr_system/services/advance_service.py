"""Salary advance requests and their approval lifecycle."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Row, case, func, select

from hr_system.models import Advance, Branch, Employee, Institution
from hr_system.models.enums import AdvanceStatus
from hr_system.services.base import BaseService
from hr_system.services.errors import BusinessRuleError
from hr_system.services.status_rules import AdvanceStateMachine

logger = logging.getLogger(__name__)


def _zero(value: Any) -> Decimal:
    return Decimal(value) if value is not None else Decimal("0")


class AdvanceService(BaseService):
    def _select(self):
        return (
            select(
                Advance,
                Employee.name.label("employee_name"),
                Employee.photo_url.label("employee_photo_url"),
                Employee.file_number.label("file_number"),
                Institution.name.label("institution_name"),
                Branch.name.label("branch_name"),
            )
            .join(Employee, Advance.employee_id == Employee.id)
            .outerjoin(Institution, Employee.institution_id == Institution.id)
            .outerjoin(Branch, Employee.branch_id == Branch.id)
        )

    @staticmethod
    def _filtered(query, employee_id, institution_id, branch_id, date_from, date_to):
        if employee_id is not None:
            query = query.where(Advance.employee_id == employee_id)
        if institution_id is not None:
            query = query.where(Employee.institution_id == institution_id)
        if branch_id is not None:
            query = query.where(Employee.branch_id == branch_id)
        if date_from is not None:
            query = query.where(Advance.request_date >= date_from)
        if date_to is not None:
            query = query.where(Advance.request_date <= date_to)
        return query

    async def list_advances(
        self,
        employee_id: UUID | None = None,
        institution_id: UUID | None = None,
        branch_id: UUID | None = None,
        status: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Row]:
        query = self._filtered(
            self._select(), employee_id, institution_id, branch_id, date_from, date_to
        )
        if status:
            query = query.where(Advance.status == status)
        result = await self.session.execute(
            query.order_by(Advance.request_date.desc(), Advance.created_at.desc())
        )
        return list(result.all())

    async def get_advance(self, advance_id: UUID) -> Row | None:
        result = await self.session.execute(self._select().where(Advance.id == advance_id))
        return result.first()

    async def create_advance(self, data: dict[str, Any]) -> Row:
        await self._get_or_404(Employee, data["employee_id"], "Employee")
        if data.get("request_date") is None:
            data["request_date"] = date.today()
        advance = Advance(
            **data,
            status=AdvanceStatus.PENDING.value,
            paid_amount=Decimal("0"),
            remaining_amount=data["amount"],
        )
        self.session.add(advance)
        await self.session.flush()
        logger.info(
            "Created advance %s for employee %s: amount=%s installments=%s",
            advance.id,
            advance.employee_id,
            advance.amount,
            advance.installments,
        )
        return await self.get_advance(advance.id)

    async def update_advance(self, advance_id: UUID, data: dict[str, Any]) -> Row:
        advance = await self._get_or_404(Advance, advance_id, "Advance")
        data.pop("employee_id", None)
        self._apply(advance, data)
        if "amount" in data:
            remaining = advance.amount - advance.paid_amount
            if remaining < 0:
                raise BusinessRuleError("Amount cannot be less than the amount already paid")
            advance.remaining_amount = remaining
        await self.session.flush()
        return await self.get_advance(advance_id)

    async def delete_advance(self, advance_id: UUID) -> None:
        advance = await self._get_or_404(Advance, advance_id, "Advance")
        await self.session.delete(advance)
        await self.session.flush()

    async def approve_advance(self, advance_id: UUID, approved_by: str) -> Row:
        advance = await self._get_or_404(Advance, advance_id, "Advance")
        AdvanceStateMachine.validate_transition(advance.status, AdvanceStatus.APPROVED.value)
        advance.status = AdvanceStatus.APPROVED.value
        advance.approved_by = approved_by
        advance.approved_date = date.today()
        await self.session.flush()
        logger.info("Advance %s approved by %s", advance_id, approved_by)
        return await self.get_advance(advance_id)

    async def reject_advance(self, advance_id: UUID, reason: str) -> Row:
        advance = await self._get_or_404(Advance, advance_id, "Advance")
        AdvanceStateMachine.validate_transition(advance.status, AdvanceStatus.REJECTED.value)
        advance.status = AdvanceStatus.REJECTED.value
        advance.rejection_reason = reason
        await self.session.flush()
        logger.info("Advance %s rejected", advance_id)
        return await self.get_advance(advance_id)

    async def mark_paid(self, advance_id: UUID) -> Row:
        """Settle the advance in full outside payroll."""
        advance = await self._get_or_404(Advance, advance_id, "Advance")
        AdvanceStateMachine.validate_transition(advance.status, AdvanceStatus.PAID.value)
        advance.status = AdvanceStatus.PAID.value
        advance.paid_amount = advance.amount
        advance.remaining_amount = Decimal("0")
        await self.session.flush()
        logger.info("Advance %s marked paid (%s)", advance_id, advance.amount)
        return await self.get_advance(advance_id)

    async def statistics(
        self,
        institution_id: UUID | None = None,
        branch_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> dict[str, Any]:
        def count_status(value: str):
            return func.sum(case((Advance.status == value, 1), else_=0))

        query = select(
            func.count(Advance.id).label("total_advances"),
            func.sum(Advance.amount).label("total_amount"),
            func.sum(Advance.paid_amount).label("total_paid"),
            func.sum(Advance.remaining_amount).label("total_remaining"),
            count_status(AdvanceStatus.PENDING.value).label("pending_count"),
            count_status(AdvanceStatus.APPROVED.value).label("approved_count"),
            count_status(AdvanceStatus.PAID.value).label("paid_count"),
            count_status(AdvanceStatus.REJECTED.value).label("rejected_count"),
        ).join(Employee, Advance.employee_id == Employee.id)
        query = self._filtered(query, None, institution_id, branch_id, date_from, date_to)
        row = (await self.session.execute(query)).one()

        return {
            "total_advances": row.total_advances or 0,
            "total_amount": _zero(row.total_amount),
            "total_paid": _zero(row.total_paid),
            "total_remaining": _zero(row.total_remaining),
            "pending_count": int(row.pending_count or 0),
            "approved_count": int(row.approved_count or 0),
            "paid_count": int(row.paid_count or 0),
            "rejected_count": int(row.rejected_count or 0),
        }
