"""Tabular reports: previewed as rows, downloaded as CSV."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import aliased

from hr_system.calculators import PayCalculator, month_bounds
from hr_system.calculators.pay_calculator import InvalidMonthError
from hr_system.config import get_settings
from hr_system.models import (
    EXPIRY_FIELDS,
    Advance,
    Branch,
    Compensation,
    Employee,
    Institution,
    LeaveRequest,
    PayrollEntry,
    PayrollRun,
)
from hr_system.models.enums import EmployeeStatus, PayrollRunStatus, ReportType
from hr_system.services.base import BaseService
from hr_system.services.errors import BusinessRuleError
from hr_system.services.expiry import document_status, expiry_window

logger = logging.getLogger(__name__)

Manager = aliased(Employee, name="manager")

ACTIVE = EmployeeStatus.ACTIVE.value
ARCHIVED = EmployeeStatus.ARCHIVED.value


def _status_key(column: str) -> str:
    return column.removesuffix("_expiry") + "_status"


_DOCUMENT_COLUMNS: tuple[tuple[str, str], ...] = tuple(
    pair
    for column, label in EXPIRY_FIELDS.items()
    for pair in (
        (column, f"{label.replace('_', ' ').title()} Expiry"),
        (_status_key(column), f"{label.replace('_', ' ').title()} Status"),
    )
)

# (row key, CSV header) per report, in output order.
REPORT_COLUMNS: dict[ReportType, tuple[tuple[str, str], ...]] = {
    ReportType.EMPLOYEES: (
        ("name", "Name"),
        ("file_number", "File Number"),
        ("mobile", "Mobile"),
        ("email", "Email"),
        ("nationality", "Nationality"),
        ("position", "Position"),
        ("iqama_number", "Iqama Number"),
        ("salary", "Salary"),
        ("hire_date", "Hire Date"),
        ("status", "Status"),
        ("institution_name", "Institution"),
        ("branch_name", "Branch"),
        ("iqama_expiry", "Iqama Expiry"),
        ("work_permit_expiry", "Work Permit Expiry"),
        ("contract_expiry", "Contract Expiry"),
    ),
    ReportType.INSTITUTIONS: (
        ("name", "Institution"),
        ("cr_number", "CR Number"),
        ("cr_expiry_date", "CR Expiry"),
        ("cr_status", "CR Status"),
        ("email", "Email"),
        ("phone", "Phone"),
        ("address", "Address"),
        ("total_employees", "Employees"),
        ("active_employees", "Active Employees"),
        ("archived_employees", "Archived Employees"),
        ("total_branches", "Branches"),
        ("total_salaries", "Total Salaries"),
        ("status", "Status"),
    ),
    ReportType.BRANCHES: (
        ("branch_name", "Branch"),
        ("institution_name", "Institution"),
        ("address", "Address"),
        ("manager_name", "Manager"),
        ("total_employees", "Employees"),
        ("active_employees", "Active Employees"),
        ("total_salaries", "Total Salaries"),
        ("average_salary", "Average Salary"),
        ("status", "Status"),
    ),
    ReportType.DOCUMENTS: (
        ("employee_name", "Employee"),
        ("file_number", "File Number"),
        ("mobile", "Mobile"),
        ("institution_name", "Institution"),
        ("branch_name", "Branch"),
        *_DOCUMENT_COLUMNS,
    ),
    ReportType.PAYROLL: (
        ("employee_name", "Employee"),
        ("file_number", "File Number"),
        ("month", "Month"),
        ("institution_name", "Institution"),
        ("base_salary", "Base Salary"),
        ("rewards", "Rewards"),
        ("deductions", "Deductions"),
        ("advance_deduction", "Advance Deduction"),
        ("gross_pay", "Gross Pay"),
        ("net_pay", "Net Pay"),
    ),
    ReportType.LEAVES: (
        ("employee_name", "Employee"),
        ("file_number", "File Number"),
        ("leave_type", "Leave Type"),
        ("start_date", "Start Date"),
        ("end_date", "End Date"),
        ("days", "Days"),
        ("reason", "Reason"),
        ("status", "Status"),
        ("request_date", "Request Date"),
        ("institution_name", "Institution"),
    ),
    ReportType.COMPENSATIONS: (
        ("employee_name", "Employee"),
        ("file_number", "File Number"),
        ("type", "Type"),
        ("amount", "Amount"),
        ("reason", "Reason"),
        ("date", "Date"),
        ("institution_name", "Institution"),
    ),
    ReportType.ADVANCES: (
        ("employee_name", "Employee"),
        ("file_number", "File Number"),
        ("amount", "Amount"),
        ("paid_amount", "Paid"),
        ("remaining_amount", "Remaining"),
        ("installments", "Installments"),
        ("status", "Status"),
        ("request_date", "Request Date"),
        ("approved_date", "Approved Date"),
        ("institution_name", "Institution"),
    ),
}


@dataclass(frozen=True)
class ReportFilters:
    institution_id: UUID | None = None
    branch_id: UUID | None = None
    employee_id: UUID | None = None
    status: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    month: str | None = None


@dataclass
class Report:
    report_type: ReportType
    columns: tuple[tuple[str, str], ...]
    rows: list[dict[str, Any]] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return f"{self.report_type.value}-report-{date.today().isoformat()}.csv"


def _csv_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, date):
        return value.isoformat()
    return value


def _money(value: Any) -> Decimal:
    return PayCalculator.round_to_cents(Decimal(value or 0))


def _employee_scope(query, filters: ReportFilters):
    """Restrict a query joined to Employee by institution, branch or employee."""
    if filters.institution_id is not None:
        query = query.where(Employee.institution_id == filters.institution_id)
    if filters.branch_id is not None:
        query = query.where(Employee.branch_id == filters.branch_id)
    if filters.employee_id is not None:
        query = query.where(Employee.id == filters.employee_id)
    return query


def _date_range(query, column, filters: ReportFilters):
    if filters.start_date is not None:
        query = query.where(column >= filters.start_date)
    if filters.end_date is not None:
        query = query.where(column <= filters.end_date)
    if filters.month:
        try:
            start, end = month_bounds(filters.month)
        except InvalidMonthError as exc:
            raise BusinessRuleError(str(exc)) from exc
        query = query.where(column >= start, column <= end)
    return query


class ReportService(BaseService):
    """Report rows per report type.

    Every report accepts the same filters; each applies the ones that make
    sense for its rows and ignores the rest.
    """

    async def build(
        self,
        report_type: ReportType | str,
        filters: ReportFilters | None = None,
        today: date | None = None,
    ) -> Report:
        report_type = ReportType(report_type)
        filters = filters or ReportFilters()
        today = today or date.today()
        builders = {
            ReportType.EMPLOYEES: self._employees,
            ReportType.INSTITUTIONS: self._institutions,
            ReportType.BRANCHES: self._branches,
            ReportType.DOCUMENTS: self._documents,
            ReportType.PAYROLL: self._payroll,
            ReportType.LEAVES: self._leaves,
            ReportType.COMPENSATIONS: self._compensations,
            ReportType.ADVANCES: self._advances,
        }
        rows = await builders[report_type](filters, today)
        return Report(report_type=report_type, columns=REPORT_COLUMNS[report_type], rows=rows)

    async def generate(
        self,
        report_type: ReportType | str,
        filters: ReportFilters | None = None,
        today: date | None = None,
    ) -> tuple[Report, str]:
        """Build a report and render it as CSV text."""
        report = await self.build(report_type, filters, today)

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow([label for _, label in report.columns])
        for row in report.rows:
            writer.writerow([_csv_cell(row.get(key)) for key, _ in report.columns])

        logger.info(
            "Generated %s report with %d row(s)", report.report_type.value, len(report.rows)
        )
        return report, output.getvalue()

    async def _employees(self, filters: ReportFilters, today: date) -> list[dict[str, Any]]:
        query = (
            select(
                Employee,
                Institution.name.label("institution_name"),
                Branch.name.label("branch_name"),
            )
            .outerjoin(Institution, Employee.institution_id == Institution.id)
            .outerjoin(Branch, Employee.branch_id == Branch.id)
        )
        query = _employee_scope(query, filters)
        if filters.status:
            query = query.where(Employee.status == filters.status)
        result = await self.session.execute(query.order_by(Employee.name.asc()))

        keys = [key for key, _ in REPORT_COLUMNS[ReportType.EMPLOYEES]]
        rows = []
        for row in result.all():
            values = {key: getattr(row.Employee, key, None) for key in keys}
            values["institution_name"] = row.institution_name
            values["branch_name"] = row.branch_name
            rows.append(values)
        return rows

    async def _institutions(self, filters: ReportFilters, today: date) -> list[dict[str, Any]]:
        def employees(*conditions):
            return (
                select(func.count(Employee.id))
                .where(Employee.institution_id == Institution.id, *conditions)
                .correlate(Institution)
                .scalar_subquery()
            )

        query = select(
            Institution,
            employees().label("total_employees"),
            employees(Employee.status == ACTIVE).label("active_employees"),
            employees(Employee.status == ARCHIVED).label("archived_employees"),
            select(func.count(Branch.id))
            .where(Branch.institution_id == Institution.id)
            .correlate(Institution)
            .scalar_subquery()
            .label("total_branches"),
            select(func.sum(Employee.salary))
            .where(Employee.institution_id == Institution.id, Employee.status == ACTIVE)
            .correlate(Institution)
            .scalar_subquery()
            .label("total_salaries"),
        )
        if filters.institution_id is not None:
            query = query.where(Institution.id == filters.institution_id)
        if filters.status:
            query = query.where(Institution.status == filters.status)
        result = await self.session.execute(query.order_by(Institution.name.asc()))

        rows = []
        for row in result.all():
            institution = row.Institution
            rows.append(
                {
                    "name": institution.name,
                    "cr_number": institution.cr_number,
                    "cr_expiry_date": institution.cr_expiry_date,
                    "cr_status": (
                        document_status(institution.cr_expiry_date, today)
                        if institution.cr_expiry_date
                        else None
                    ),
                    "email": institution.email,
                    "phone": institution.phone,
                    "address": institution.address,
                    "total_employees": row.total_employees,
                    "active_employees": row.active_employees,
                    "archived_employees": row.archived_employees,
                    "total_branches": row.total_branches,
                    "total_salaries": _money(row.total_salaries),
                    "status": institution.status,
                }
            )
        return rows

    async def _branches(self, filters: ReportFilters, today: date) -> list[dict[str, Any]]:
        def employees(*conditions):
            return (
                select(func.count(Employee.id))
                .where(Employee.branch_id == Branch.id, *conditions)
                .correlate(Branch)
                .scalar_subquery()
            )

        query = (
            select(
                Branch,
                Institution.name.label("institution_name"),
                Manager.name.label("manager_name"),
                employees().label("total_employees"),
                employees(Employee.status == ACTIVE).label("active_employees"),
                select(func.sum(Employee.salary))
                .where(Employee.branch_id == Branch.id, Employee.status == ACTIVE)
                .correlate(Branch)
                .scalar_subquery()
                .label("total_salaries"),
            )
            .outerjoin(Institution, Branch.institution_id == Institution.id)
            .outerjoin(Manager, Branch.manager_id == Manager.id)
        )
        if filters.institution_id is not None:
            query = query.where(Branch.institution_id == filters.institution_id)
        if filters.branch_id is not None:
            query = query.where(Branch.id == filters.branch_id)
        if filters.status:
            query = query.where(Branch.status == filters.status)
        result = await self.session.execute(
            query.order_by(Institution.name.asc(), Branch.name.asc())
        )

        rows = []
        for row in result.all():
            total = _money(row.total_salaries)
            active = row.active_employees or 0
            rows.append(
                {
                    "branch_name": row.Branch.name,
                    "institution_name": row.institution_name,
                    "address": row.Branch.address,
                    "manager_name": row.manager_name,
                    "total_employees": row.total_employees,
                    "active_employees": active,
                    "total_salaries": total,
                    "average_salary": (
                        PayCalculator.round_to_cents(total / active) if active else Decimal("0.00")
                    ),
                    "status": row.Branch.status,
                }
            )
        return rows

    async def _documents(self, filters: ReportFilters, today: date) -> list[dict[str, Any]]:
        """Active employees with at least one document expired or inside the warning window."""
        _, window_end = expiry_window(get_settings().expiry_warning_days, today)
        columns = [getattr(Employee, column) for column in EXPIRY_FIELDS]

        query = (
            select(
                Employee,
                Institution.name.label("institution_name"),
                Branch.name.label("branch_name"),
            )
            .outerjoin(Institution, Employee.institution_id == Institution.id)
            .outerjoin(Branch, Employee.branch_id == Branch.id)
            .where(
                Employee.status == ACTIVE,
                or_(*[column <= window_end for column in columns]),
            )
        )
        query = _employee_scope(query, filters)
        result = await self.session.execute(query.order_by(Employee.name.asc()))

        rows = []
        for row in result.all():
            employee = row.Employee
            values: dict[str, Any] = {
                "employee_name": employee.name,
                "file_number": employee.file_number,
                "mobile": employee.mobile,
                "institution_name": row.institution_name,
                "branch_name": row.branch_name,
            }
            for column in EXPIRY_FIELDS:
                expiry = getattr(employee, column)
                values[column] = expiry
                values[_status_key(column)] = document_status(expiry, today) if expiry else None
            rows.append(values)
        return rows

    async def _payroll(self, filters: ReportFilters, today: date) -> list[dict[str, Any]]:
        query = (
            select(
                PayrollEntry,
                PayrollRun.month.label("month"),
                Employee.name.label("employee_name"),
                Employee.file_number.label("file_number"),
                Institution.name.label("institution_name"),
            )
            .join(PayrollRun, PayrollEntry.payroll_run_id == PayrollRun.id)
            .join(Employee, PayrollEntry.employee_id == Employee.id)
            .outerjoin(Institution, Employee.institution_id == Institution.id)
            .where(PayrollRun.status == PayrollRunStatus.COMPLETED.value)
        )
        query = _employee_scope(query, filters)
        if filters.month:
            query = query.where(PayrollRun.month == filters.month)
        result = await self.session.execute(
            query.order_by(PayrollRun.month.desc(), Employee.name.asc())
        )

        rows = []
        for row in result.all():
            entry = row.PayrollEntry
            rows.append(
                {
                    "employee_name": row.employee_name,
                    "file_number": row.file_number,
                    "month": row.month,
                    "institution_name": row.institution_name,
                    "base_salary": entry.base_salary,
                    "rewards": entry.rewards,
                    "deductions": entry.deductions,
                    "advance_deduction": entry.advance_deduction,
                    "gross_pay": entry.gross_pay,
                    "net_pay": entry.net_pay,
                }
            )
        return rows

    def _with_employee(self, model):
        return (
            select(
                model,
                Employee.name.label("employee_name"),
                Employee.file_number.label("file_number"),
                Institution.name.label("institution_name"),
            )
            .join(Employee, model.employee_id == Employee.id)
            .outerjoin(Institution, Employee.institution_id == Institution.id)
        )

    async def _leaves(self, filters: ReportFilters, today: date) -> list[dict[str, Any]]:
        query = _employee_scope(self._with_employee(LeaveRequest), filters)
        if filters.status:
            query = query.where(LeaveRequest.status == filters.status)
        # leave overlapping the requested period
        if filters.start_date is not None:
            query = query.where(LeaveRequest.end_date >= filters.start_date)
        if filters.end_date is not None:
            query = query.where(LeaveRequest.start_date <= filters.end_date)
        result = await self.session.execute(
            query.order_by(LeaveRequest.start_date.desc(), Employee.name.asc())
        )

        rows = []
        for row in result.all():
            leave = row.LeaveRequest
            rows.append(
                {
                    "employee_name": row.employee_name,
                    "file_number": row.file_number,
                    "leave_type": leave.leave_type,
                    "start_date": leave.start_date,
                    "end_date": leave.end_date,
                    "days": (leave.end_date - leave.start_date).days + 1,
                    "reason": leave.reason,
                    "status": leave.status,
                    "request_date": leave.request_date,
                    "institution_name": row.institution_name,
                }
            )
        return rows

    async def _compensations(self, filters: ReportFilters, today: date) -> list[dict[str, Any]]:
        query = _employee_scope(self._with_employee(Compensation), filters)
        query = _date_range(query, Compensation.date, filters)
        result = await self.session.execute(
            query.order_by(Compensation.date.desc(), Employee.name.asc())
        )

        return [
            {
                "employee_name": row.employee_name,
                "file_number": row.file_number,
                "type": row.Compensation.type,
                "amount": row.Compensation.amount,
                "reason": row.Compensation.reason,
                "date": row.Compensation.date,
                "institution_name": row.institution_name,
            }
            for row in result.all()
        ]

    async def _advances(self, filters: ReportFilters, today: date) -> list[dict[str, Any]]:
        query = _employee_scope(self._with_employee(Advance), filters)
        if filters.status:
            query = query.where(Advance.status == filters.status)
        query = _date_range(query, Advance.request_date, filters)
        result = await self.session.execute(
            query.order_by(Advance.request_date.desc(), Employee.name.asc())
        )

        return [
            {
                "employee_name": row.employee_name,
                "file_number": row.file_number,
                "amount": row.Advance.amount,
                "paid_amount": row.Advance.paid_amount,
                "remaining_amount": row.Advance.remaining_amount,
                "installments": row.Advance.installments,
                "status": row.Advance.status,
                "request_date": row.Advance.request_date,
                "approved_date": row.Advance.approved_date,
                "institution_name": row.institution_name,
            }
            for row in result.all()
        ]
