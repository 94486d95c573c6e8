"""Advance installments taken by payroll runs, and their reversal."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Row, delete, select

from hr_system.calculators import AdvanceInstallment, PayCalculator
from hr_system.models import Advance, AdvanceDeduction, Employee, PayrollRun
from hr_system.models.enums import AdvanceStatus, EmployeeStatus
from hr_system.services.base import BaseService

logger = logging.getLogger(__name__)


class AdvanceDeductionService(BaseService):
    """Computes and applies monthly advance installments.

    An advance is active while it is approved and still has a positive
    remaining balance; installments are taken oldest approval first.
    """

    async def _active_advances(self, employee_id: UUID) -> list[Advance]:
        result = await self.session.execute(
            select(Advance)
            .where(
                Advance.employee_id == employee_id,
                Advance.status == AdvanceStatus.APPROVED.value,
                Advance.remaining_amount > 0,
            )
            .order_by(Advance.approved_date.asc(), Advance.created_at.asc())
        )
        return list(result.scalars().all())

    async def active_installments(self, employee_id: UUID) -> list[AdvanceInstallment]:
        return [
            PayCalculator.build_installment(
                advance_id=a.id,
                amount=a.amount,
                remaining=a.remaining_amount,
                installments=a.installments,
                approved_date=a.approved_date,
            )
            for a in await self._active_advances(employee_id)
        ]

    async def monthly_total(self, employee_id: UUID) -> Decimal:
        return PayCalculator.total_installments(await self.active_installments(employee_id))

    async def process_for_employee(
        self, payroll_run_id: UUID, employee_id: UUID
    ) -> tuple[Decimal, list[AdvanceDeduction]]:
        """Take this month's installment from every active advance of an employee.

        Advances the run already took an installment from are skipped.
        """
        deductions: list[AdvanceDeduction] = []
        total = Decimal("0")
        already_taken = set(
            await self.session.scalars(
                select(AdvanceDeduction.advance_id).where(
                    AdvanceDeduction.payroll_run_id == payroll_run_id,
                    AdvanceDeduction.employee_id == employee_id,
                )
            )
        )

        for advance in await self._active_advances(employee_id):
            if advance.id in already_taken:
                continue
            monthly = PayCalculator.monthly_deduction(advance.amount, advance.installments)
            amount = PayCalculator.installment_due(monthly, advance.remaining_amount)
            if amount <= 0:
                continue

            remaining = advance.remaining_amount - amount
            if remaining <= 0:
                advance.remaining_amount = Decimal("0")
                advance.paid_amount = advance.amount
                advance.status = AdvanceStatus.PAID.value
            else:
                advance.remaining_amount = remaining
                advance.paid_amount = advance.amount - remaining

            deduction = AdvanceDeduction(
                advance_id=advance.id,
                employee_id=employee_id,
                payroll_run_id=payroll_run_id,
                deduction_amount=amount,
                remaining_amount=advance.remaining_amount,
            )
            self.session.add(deduction)
            deductions.append(deduction)
            total += amount

        if deductions:
            await self.session.flush()
            logger.info(
                "Deducted %s from %d advance(s) of employee %s in payroll run %s",
                total,
                len(deductions),
                employee_id,
                payroll_run_id,
            )
        return total, deductions

    async def process_manual(self, payroll_run_id: UUID, employee_id: UUID) -> tuple[Decimal, list[AdvanceDeduction]]:
        """Apply installments for one employee against an existing payroll run."""
        await self._get_or_404(PayrollRun, payroll_run_id, "Payroll run")
        await self._get_or_404(Employee, employee_id, "Employee")
        return await self.process_for_employee(payroll_run_id, employee_id)

    async def history(self, advance_id: UUID) -> list[Row]:
        await self._get_or_404(Advance, advance_id, "Advance")
        result = await self.session.execute(
            select(AdvanceDeduction, PayrollRun.month.label("payroll_month"))
            .outerjoin(PayrollRun, AdvanceDeduction.payroll_run_id == PayrollRun.id)
            .where(AdvanceDeduction.advance_id == advance_id)
            .order_by(AdvanceDeduction.deduction_date.desc(), AdvanceDeduction.created_at.desc())
        )
        return list(result.all())

    async def for_payroll(self, employee_id: UUID, payroll_run_id: UUID) -> list[AdvanceDeduction]:
        result = await self.session.execute(
            select(AdvanceDeduction)
            .where(
                AdvanceDeduction.employee_id == employee_id,
                AdvanceDeduction.payroll_run_id == payroll_run_id,
            )
            .order_by(AdvanceDeduction.deduction_date.desc())
        )
        return list(result.scalars().all())

    async def reverse(self, payroll_run_id: UUID) -> int:
        """Give back every installment a payroll run took and drop its deduction rows."""
        result = await self.session.execute(
            select(AdvanceDeduction).where(AdvanceDeduction.payroll_run_id == payroll_run_id)
        )
        deductions = list(result.scalars().all())

        for deduction in deductions:
            advance = await self.session.get(Advance, deduction.advance_id)
            if advance is None:
                continue
            advance.remaining_amount += deduction.deduction_amount
            advance.paid_amount -= deduction.deduction_amount
            if advance.remaining_amount > 0:
                advance.status = AdvanceStatus.APPROVED.value

        await self.session.execute(
            delete(AdvanceDeduction).where(AdvanceDeduction.payroll_run_id == payroll_run_id)
        )
        await self.session.flush()
        if deductions:
            logger.info(
                "Reversed %d advance deduction(s) of payroll run %s", len(deductions), payroll_run_id
            )
        return len(deductions)

    async def preview(
        self,
        institution_id: UUID | None = None,
        branch_id: UUID | None = None,
    ) -> dict[str, Any]:
        """Upcoming installments per active employee who has any."""
        query = select(Employee).where(Employee.status == EmployeeStatus.ACTIVE.value)
        if institution_id is not None:
            query = query.where(Employee.institution_id == institution_id)
        if branch_id is not None:
            query = query.where(Employee.branch_id == branch_id)
        employees = (await self.session.execute(query.order_by(Employee.name.asc()))).scalars().all()

        items: list[dict[str, Any]] = []
        total = Decimal("0")
        for employee in employees:
            installments = await self.active_installments(employee.id)
            if not installments:
                continue
            monthly = PayCalculator.total_installments(installments)
            total += monthly
            items.append(
                {
                    "employee_id": employee.id,
                    "employee_name": employee.name,
                    "institution_id": employee.institution_id,
                    "branch_id": employee.branch_id,
                    "monthly_deduction": monthly,
                    "active_advances": installments,
                }
            )

        count = len(items)
        return {
            "deductions": items,
            "summary": {
                "total_employees": count,
                "total_deductions": PayCalculator.round_to_cents(total),
                "average_deduction": (
                    PayCalculator.round_to_cents(total / count) if count else Decimal("0.00")
                ),
            },
        }
