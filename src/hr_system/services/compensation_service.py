"""Rewards and deductions."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Row, case, func, select

from hr_system.models import Branch, Compensation, Employee, Institution
from hr_system.models.enums import CompensationType
from hr_system.services.base import BaseService

REWARD = CompensationType.REWARD.value
DEDUCTION = CompensationType.DEDUCTION.value


class CompensationService(BaseService):
    def _select(self):
        return (
            select(
                Compensation,
                Employee.name.label("employee_name"),
                Employee.photo_url.label("employee_photo_url"),
                Institution.name.label("institution_name"),
                Branch.name.label("branch_name"),
            )
            .join(Employee, Compensation.employee_id == Employee.id)
            .outerjoin(Institution, Employee.institution_id == Institution.id)
            .outerjoin(Branch, Employee.branch_id == Branch.id)
        )

    @staticmethod
    def _filtered(query, institution_id, branch_id, date_from, date_to):
        if institution_id is not None:
            query = query.where(Employee.institution_id == institution_id)
        if branch_id is not None:
            query = query.where(Employee.branch_id == branch_id)
        if date_from is not None:
            query = query.where(Compensation.date >= date_from)
        if date_to is not None:
            query = query.where(Compensation.date <= date_to)
        return query

    async def list_compensations(
        self,
        employee_id: UUID | None = None,
        institution_id: UUID | None = None,
        branch_id: UUID | None = None,
        compensation_type: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Row]:
        query = self._filtered(self._select(), institution_id, branch_id, date_from, date_to)
        if employee_id is not None:
            query = query.where(Compensation.employee_id == employee_id)
        if compensation_type:
            query = query.where(Compensation.type == compensation_type)
        result = await self.session.execute(
            query.order_by(Compensation.date.desc(), Compensation.created_at.desc())
        )
        return list(result.all())

    async def get_compensation(self, compensation_id: UUID) -> Row | None:
        result = await self.session.execute(
            self._select().where(Compensation.id == compensation_id)
        )
        return result.first()

    async def create_compensation(self, data: dict[str, Any]) -> Row:
        await self._get_or_404(Employee, data["employee_id"], "Employee")
        compensation = Compensation(**data)
        self.session.add(compensation)
        await self.session.flush()
        return await self.get_compensation(compensation.id)

    async def update_compensation(self, compensation_id: UUID, data: dict[str, Any]) -> Row:
        compensation = await self._get_or_404(Compensation, compensation_id, "Compensation")
        if data.get("employee_id") is not None:
            await self._get_or_404(Employee, data["employee_id"], "Employee")
        self._apply(compensation, data)
        await self.session.flush()
        return await self.get_compensation(compensation_id)

    async def delete_compensation(self, compensation_id: UUID) -> None:
        compensation = await self._get_or_404(Compensation, compensation_id, "Compensation")
        await self.session.delete(compensation)
        await self.session.flush()

    async def items_for_month(
        self, employee_id: UUID, start: date, end: date, compensation_type: str
    ) -> list[Compensation]:
        result = await self.session.execute(
            select(Compensation)
            .where(
                Compensation.employee_id == employee_id,
                Compensation.type == compensation_type,
                Compensation.date.between(start, end),
            )
            .order_by(Compensation.date.desc())
        )
        return list(result.scalars().all())

    async def statistics(
        self,
        institution_id: UUID | None = None,
        branch_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> dict[str, Any]:
        query = select(
            func.sum(case((Compensation.type == REWARD, Compensation.amount), else_=0)).label(
                "total_rewards"
            ),
            func.sum(case((Compensation.type == DEDUCTION, Compensation.amount), else_=0)).label(
                "total_deductions"
            ),
            func.sum(case((Compensation.type == REWARD, 1), else_=0)).label("reward_count"),
            func.sum(case((Compensation.type == DEDUCTION, 1), else_=0)).label("deduction_count"),
        ).join(Employee, Compensation.employee_id == Employee.id)
        row = (
            await self.session.execute(
                self._filtered(query, institution_id, branch_id, date_from, date_to)
            )
        ).one()

        rewards = Decimal(row.total_rewards or 0)
        deductions = Decimal(row.total_deductions or 0)
        return {
            "total_rewards": rewards,
            "total_deductions": deductions,
            "reward_count": int(row.reward_count or 0),
            "deduction_count": int(row.deduction_count or 0),
            "net_amount": rewards - deductions,
        }

    async def monthly_summary(
        self,
        year: int,
        institution_id: UUID | None = None,
        branch_id: UUID | None = None,
    ) -> list[dict[str, Any]]:
        """Reward and deduction totals for each month of ``year`` that has any."""
        query = select(Compensation.date, Compensation.type, Compensation.amount).join(
            Employee, Compensation.employee_id == Employee.id
        )
        query = self._filtered(
            query, institution_id, branch_id, date(year, 1, 1), date(year, 12, 31)
        )
        totals: dict[str, dict[str, Decimal]] = defaultdict(
            lambda: {REWARD: Decimal("0"), DEDUCTION: Decimal("0")}
        )
        for day, kind, amount in (await self.session.execute(query)).all():
            totals[day.strftime("%Y-%m")][kind] += amount

        return [
            {
                "month": month,
                "total_rewards": sums[REWARD],
                "total_deductions": sums[DEDUCTION],
                "net_amount": sums[REWARD] - sums[DEDUCTION],
            }
            for month, sums in sorted(totals.items())
        ]
