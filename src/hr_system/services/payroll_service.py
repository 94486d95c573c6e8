"""Monthly payroll: calculation preview, runs, statistics and export."""

from __future__ import annotations

import csv
import io
import logging
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Row, delete, func, or_, select

from hr_system.calculators import (
    CompensationItem,
    EmployeePay,
    PayCalculator,
    PayrollSummary,
    month_bounds,
)
from hr_system.calculators.pay_calculator import InvalidMonthError
from hr_system.models import Employee, Institution, PayrollEntry, PayrollRun
from hr_system.models.enums import CompensationType, EmployeeStatus, PayrollRunStatus
from hr_system.services.base import BaseService
from hr_system.services.compensation_service import CompensationService
from hr_system.services.deduction_service import AdvanceDeductionService
from hr_system.services.errors import BusinessRuleError, NotFoundError, ServiceError
from hr_system.services.status_rules import PayrollRunStateMachine

logger = logging.getLogger(__name__)


class PayrollProcessingError(ServiceError):
    """Processing a run failed; the run is left in ``failed`` status."""

    status_code = 500

    def __init__(self, run_id: UUID):
        self.run_id = run_id
        super().__init__("Failed to process payroll run", details={"payroll_run_id": str(run_id)})


def _items(rows) -> list[CompensationItem]:
    return [CompensationItem(id=c.id, amount=c.amount, reason=c.reason, date=c.date) for c in rows]


ENTRY_COLUMNS = [
    "Employee",
    "File Number",
    "Base Salary",
    "Rewards",
    "Deductions",
    "Advance Deduction",
    "Gross Pay",
    "Net Pay",
]

RUN_COLUMNS = [
    "Month",
    "Institution",
    "Employees",
    "Total Gross",
    "Total Deductions",
    "Total Net",
    "Run Date",
    "Status",
]

EXPORT_FORMATS = ("detailed", "summary")


def _entry_cells(entry_row) -> list[Any]:
    entry = entry_row.PayrollEntry
    return [
        entry_row.employee_name,
        entry_row.file_number or "",
        f"{entry.base_salary:.2f}",
        f"{entry.rewards:.2f}",
        f"{entry.deductions:.2f}",
        f"{entry.advance_deduction:.2f}",
        f"{entry.gross_pay:.2f}",
        f"{entry.net_pay:.2f}",
    ]


class PayrollService(BaseService):
    """Service for payroll calculation and payroll run lifecycle.

    Operations:
    - calculate: preview every active salaried employee's pay, no writes
    - create_run: persist entries, take advance installments, set totals
    - delete_run: reverse advance installments, drop entries and the run
    """

    def __init__(self, session):
        super().__init__(session)
        self.compensations = CompensationService(session)
        self.deductions = AdvanceDeductionService(session)

    @staticmethod
    def _validate_month(month: str) -> tuple[date, date]:
        try:
            return month_bounds(month)
        except InvalidMonthError as exc:
            raise BusinessRuleError(str(exc)) from exc

    async def calculate(
        self, month: str, institution_id: UUID | None = None
    ) -> tuple[list[EmployeePay], PayrollSummary]:
        start, end = self._validate_month(month)

        query = select(Employee).where(
            Employee.status == EmployeeStatus.ACTIVE.value,
            Employee.salary > 0,
        )
        if institution_id is not None:
            query = query.where(Employee.institution_id == institution_id)
        employees = (await self.session.execute(query.order_by(Employee.name.asc()))).scalars().all()

        results: list[EmployeePay] = []
        for employee in employees:
            rewards = await self.compensations.items_for_month(
                employee.id, start, end, CompensationType.REWARD.value
            )
            deductions = await self.compensations.items_for_month(
                employee.id, start, end, CompensationType.DEDUCTION.value
            )
            advances = await self.deductions.active_installments(employee.id)
            results.append(
                PayCalculator.calculate_employee(
                    employee_id=employee.id,
                    employee_name=employee.name,
                    base_salary=employee.salary,
                    rewards=_items(rewards),
                    deductions=_items(deductions),
                    advances=advances,
                    employee_photo_url=employee.photo_url,
                    file_number=employee.file_number,
                    institution_id=employee.institution_id,
                )
            )

        return results, PayCalculator.summarize(results)

    async def _check_duplicate(self, month: str, institution_id: UUID | None) -> None:
        """A month may only be run once per scope; an all-institutions run covers every scope."""
        query = select(PayrollRun.id).where(
            PayrollRun.month == month,
            PayrollRun.status != PayrollRunStatus.FAILED.value,
        )
        if institution_id is not None:
            query = query.where(
                or_(
                    PayrollRun.institution_id == institution_id,
                    PayrollRun.institution_id.is_(None),
                )
            )
        if await self.session.scalar(query.limit(1)) is not None:
            raise BusinessRuleError(f"A payroll run already exists for {month}")

    async def create_run(
        self,
        month: str,
        institution_id: UUID | None = None,
        notes: str | None = None,
    ) -> PayrollRun:
        """Create and process a payroll run.

        Processing happens inside a savepoint. On failure the savepoint is
        rolled back, the run row is kept with status ``failed`` and
        PayrollProcessingError is raised; the caller still commits.
        """
        self._validate_month(month)
        if institution_id is not None:
            await self._get_or_404(Institution, institution_id, "Institution")
        await self._check_duplicate(month, institution_id)

        run = PayrollRun(
            month=month,
            institution_id=institution_id,
            run_date=date.today(),
            notes=notes,
            status=PayrollRunStatus.PENDING.value,
        )
        self.session.add(run)
        await self.session.flush()
        run_id = run.id

        try:
            async with self.session.begin_nested():
                await self._process(run)
        except Exception as exc:
            logger.exception("Payroll run %s for %s failed", run_id, month)
            await self.session.refresh(run)
            PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.FAILED.value)
            run.status = PayrollRunStatus.FAILED.value
            await self.session.flush()
            raise PayrollProcessingError(run_id) from exc

        return run

    async def _process(self, run: PayrollRun) -> None:
        results, _ = await self.calculate(run.month, run.institution_id)

        for pay in results:
            self.session.add(
                PayrollEntry(
                    payroll_run_id=run.id,
                    employee_id=pay.employee_id,
                    base_salary=pay.base_salary,
                    rewards=pay.rewards,
                    deductions=pay.deductions,
                    advance_deduction=pay.advance_deduction,
                    gross_pay=pay.gross_pay,
                    net_pay=pay.net_pay,
                )
            )
            if pay.advance_deduction > 0:
                await self.deductions.process_for_employee(run.id, pay.employee_id)

        summary = PayCalculator.summarize(results)
        PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.COMPLETED.value)
        run.total_employees = summary.total_employees
        run.total_gross = summary.total_gross
        run.total_deductions = summary.total_deductions
        run.total_net = summary.total_net
        run.status = PayrollRunStatus.COMPLETED.value
        await self.session.flush()

        logger.info(
            "Payroll run %s for %s completed: employees=%d gross=%s deductions=%s net=%s",
            run.id,
            run.month,
            summary.total_employees,
            summary.total_gross,
            summary.total_deductions,
            summary.total_net,
        )

    def _select_runs(self):
        return select(PayrollRun, Institution.name.label("institution_name")).outerjoin(
            Institution, PayrollRun.institution_id == Institution.id
        )

    async def list_runs(
        self,
        institution_id: UUID | None = None,
        status: str | None = None,
        month_from: str | None = None,
        month_to: str | None = None,
    ) -> list[Row]:
        query = self._select_runs()
        if institution_id is not None:
            query = query.where(PayrollRun.institution_id == institution_id)
        if status:
            query = query.where(PayrollRun.status == status)
        if month_from:
            query = query.where(PayrollRun.month >= month_from)
        if month_to:
            query = query.where(PayrollRun.month <= month_to)
        result = await self.session.execute(
            query.order_by(PayrollRun.month.desc(), PayrollRun.created_at.desc())
        )
        return list(result.all())

    async def get_run(self, run_id: UUID) -> Row | None:
        result = await self.session.execute(self._select_runs().where(PayrollRun.id == run_id))
        return result.first()

    async def get_entries(self, run_id: UUID) -> list[Row]:
        result = await self.session.execute(
            select(
                PayrollEntry,
                Employee.name.label("employee_name"),
                Employee.photo_url.label("employee_photo_url"),
                Employee.file_number.label("file_number"),
            )
            .join(Employee, PayrollEntry.employee_id == Employee.id)
            .where(PayrollEntry.payroll_run_id == run_id)
            .order_by(Employee.name.asc())
        )
        return list(result.all())

    async def delete_run(self, run_id: UUID) -> None:
        run = await self._get_or_404(PayrollRun, run_id, "Payroll run")
        month = run.month
        reversed_count = await self.deductions.reverse(run_id)
        await self.session.execute(delete(PayrollEntry).where(PayrollEntry.payroll_run_id == run_id))
        await self.session.delete(run)
        await self.session.flush()
        logger.info(
            "Deleted payroll run %s (%s), reversed %d advance deduction(s)",
            run_id,
            month,
            reversed_count,
        )

    async def statistics(
        self,
        institution_id: UUID | None = None,
        year: int | None = None,
    ) -> dict[str, Any]:
        """Totals over completed runs."""
        query = select(
            func.count(PayrollRun.id).label("total_runs"),
            func.sum(PayrollRun.total_employees).label("total_employees"),
            func.sum(PayrollRun.total_gross).label("total_gross"),
            func.sum(PayrollRun.total_deductions).label("total_deductions"),
            func.sum(PayrollRun.total_net).label("total_net"),
        ).where(PayrollRun.status == PayrollRunStatus.COMPLETED.value)
        if institution_id is not None:
            query = query.where(PayrollRun.institution_id == institution_id)
        if year is not None:
            query = query.where(PayrollRun.month.like(f"{year}-%"))
        row = (await self.session.execute(query)).one()

        employees = int(row.total_employees or 0)
        total_net = Decimal(row.total_net or 0)
        return {
            "total_runs": row.total_runs or 0,
            "total_employees": employees,
            "total_gross": Decimal(row.total_gross or 0),
            "total_deductions": Decimal(row.total_deductions or 0),
            "total_net": total_net,
            "average_net_pay": (
                PayCalculator.round_to_cents(total_net / employees) if employees else Decimal("0.00")
            ),
        }

    async def export_csv(self, run_id: UUID) -> str:
        """Export a run's entries as CSV text."""
        row = await self.get_run(run_id)
        if row is None:
            raise NotFoundError("Payroll run", run_id)
        run = row.PayrollRun
        entries = await self.get_entries(run_id)

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(ENTRY_COLUMNS)
        for entry_row in entries:
            writer.writerow(_entry_cells(entry_row))
        writer.writerow([])
        writer.writerow(["Month", run.month])
        writer.writerow(["Employees", run.total_employees])
        writer.writerow(["Total Gross", f"{run.total_gross:.2f}"])
        writer.writerow(["Total Deductions", f"{run.total_deductions:.2f}"])
        writer.writerow(["Total Net", f"{run.total_net:.2f}"])
        return output.getvalue()

    async def export_all_csv(
        self,
        institution_id: UUID | None = None,
        month_from: str | None = None,
        month_to: str | None = None,
        export_format: str = "detailed",
    ) -> str:
        """Export every completed run in a month range as one CSV.

        ``summary`` writes one line per run; ``detailed`` writes each run's
        entries under a month heading. Both end with grand totals.
        """
        if export_format not in EXPORT_FORMATS:
            raise BusinessRuleError(f"Unknown export format '{export_format}'")
        for month in (month_from, month_to):
            if month:
                self._validate_month(month)

        rows = await self.list_runs(
            institution_id=institution_id,
            status=PayrollRunStatus.COMPLETED.value,
            month_from=month_from,
            month_to=month_to,
        )
        if not rows:
            raise NotFoundError("Payroll runs")

        output = io.StringIO()
        writer = csv.writer(output)
        if export_format == "summary":
            writer.writerow(RUN_COLUMNS)
            for row in rows:
                run = row.PayrollRun
                writer.writerow(
                    [
                        run.month,
                        row.institution_name or "All institutions",
                        run.total_employees,
                        f"{run.total_gross:.2f}",
                        f"{run.total_deductions:.2f}",
                        f"{run.total_net:.2f}",
                        run.run_date.isoformat() if run.run_date else "",
                        run.status,
                    ]
                )
        else:
            for row in rows:
                run = row.PayrollRun
                writer.writerow(
                    ["Month", run.month, "Institution", row.institution_name or "All institutions"]
                )
                writer.writerow(ENTRY_COLUMNS)
                for entry_row in await self.get_entries(run.id):
                    writer.writerow(_entry_cells(entry_row))
                writer.writerow(
                    [
                        "Run Total",
                        "",
                        "",
                        "",
                        "",
                        "",
                        f"{run.total_gross:.2f}",
                        f"{run.total_net:.2f}",
                    ]
                )
                writer.writerow([])

        runs = [row.PayrollRun for row in rows]
        writer.writerow([])
        writer.writerow(["Runs", len(runs)])
        writer.writerow(["Employees", sum(run.total_employees for run in runs)])
        writer.writerow(["Total Gross", f"{sum(run.total_gross for run in runs):.2f}"])
        writer.writerow(
            ["Total Deductions", f"{sum(run.total_deductions for run in runs):.2f}"]
        )
        writer.writerow(["Total Net", f"{sum(run.total_net for run in runs):.2f}"])
        logger.info("Exported %d payroll run(s) as %s CSV", len(runs), export_format)
        return output.getvalue()
