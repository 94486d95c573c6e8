"""Employee records: CRUD, archiving, sponsorship transfers and expiry lookups."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import Row, or_, select

from hr_system.models import EXPIRY_FIELDS, Branch, Employee, Institution, utcnow
from hr_system.models.enums import EmployeeStatus
from hr_system.services.base import BaseService
from hr_system.services.errors import ConflictError
from hr_system.services.expiry import expiry_window

logger = logging.getLogger(__name__)

ALL_STATUSES = "all"


class EmployeeService(BaseService):
    def _select(self):
        return (
            select(
                Employee,
                Institution.name.label("institution_name"),
                Branch.name.label("branch_name"),
            )
            .outerjoin(Institution, Employee.institution_id == Institution.id)
            .outerjoin(Branch, Employee.branch_id == Branch.id)
        )

    async def list_employees(
        self,
        institution_id: UUID | None = None,
        no_institution: bool = False,
        branch_id: UUID | None = None,
        no_branch: bool = False,
        status: str | None = None,
        search: str | None = None,
    ) -> list[Row]:
        """List employees, active ones unless another status (or "all") is asked for."""
        query = self._select()

        if no_institution:
            query = query.where(Employee.institution_id.is_(None))
        elif institution_id is not None:
            query = query.where(Employee.institution_id == institution_id)

        if no_branch:
            query = query.where(Employee.branch_id.is_(None))
        elif branch_id is not None:
            query = query.where(Employee.branch_id == branch_id)

        status = status or EmployeeStatus.ACTIVE.value
        if status != ALL_STATUSES:
            query = query.where(Employee.status == status)

        if search:
            term = f"%{search}%"
            query = query.where(
                or_(
                    Employee.name.ilike(term),
                    Employee.iqama_number.ilike(term),
                    Employee.file_number.ilike(term),
                )
            )

        result = await self.session.execute(query.order_by(Employee.created_at.desc()))
        return list(result.all())

    async def get_employee(self, employee_id: UUID) -> Row | None:
        result = await self.session.execute(self._select().where(Employee.id == employee_id))
        return result.first()

    async def _check_file_number(self, file_number: str | None, exclude_id: UUID | None = None) -> None:
        if not file_number:
            return
        query = select(Employee.id).where(Employee.file_number == file_number)
        if exclude_id is not None:
            query = query.where(Employee.id != exclude_id)
        if await self.session.scalar(query) is not None:
            raise ConflictError(f"File number '{file_number}' is already in use")

    async def _check_refs(self, data: dict[str, Any]) -> None:
        if data.get("institution_id") is not None:
            await self._get_or_404(Institution, data["institution_id"], "Institution")
        if data.get("branch_id") is not None:
            await self._get_or_404(Branch, data["branch_id"], "Branch")

    async def create_employee(self, data: dict[str, Any]) -> Row:
        await self._check_file_number(data.get("file_number"))
        await self._check_refs(data)
        employee = Employee(**data)
        self.session.add(employee)
        await self.session.flush()
        logger.info("Created employee %s (%s)", employee.id, employee.name)
        return await self.get_employee(employee.id)

    async def update_employee(self, employee_id: UUID, data: dict[str, Any]) -> Row:
        employee = await self._get_or_404(Employee, employee_id, "Employee")
        if "file_number" in data:
            await self._check_file_number(data["file_number"], exclude_id=employee_id)
        await self._check_refs(data)

        self._apply(employee, data)
        if "status" in data:
            employee.last_status_update = utcnow()
            if data["status"] == EmployeeStatus.ACTIVE.value:
                employee.archive_reason = None
                employee.archive_date = None
                employee.archived_at = None

        await self.session.flush()
        return await self.get_employee(employee_id)

    async def archive_employee(self, employee_id: UUID, reason: str) -> Employee:
        """Soft delete: mark archived with a terminated or final_exit reason."""
        employee = await self._get_or_404(Employee, employee_id, "Employee")
        now = utcnow()
        employee.status = EmployeeStatus.ARCHIVED.value
        employee.archive_reason = reason
        employee.archive_date = now.date()
        employee.archived_at = now
        employee.last_status_update = now
        await self.session.flush()
        logger.info("Archived employee %s (%s)", employee_id, reason)
        return employee

    async def transfer_institution(
        self,
        employee_id: UUID,
        institution_id: UUID | None,
        unsponsored_reason: str | None = None,
    ) -> Row:
        """Move an employee to another institution, or leave them unsponsored."""
        employee = await self._get_or_404(Employee, employee_id, "Employee")
        if institution_id is not None:
            await self._get_or_404(Institution, institution_id, "Institution")
            unsponsored_reason = None
        employee.institution_id = institution_id
        employee.unsponsored_reason = unsponsored_reason
        employee.last_status_update = utcnow()
        await self.session.flush()
        logger.info("Transferred employee %s to institution %s", employee_id, institution_id)
        return await self.get_employee(employee_id)

    async def expiring_documents(self, days: int = 30, today: date | None = None) -> list[Row]:
        """Active employees with any tracked document expiring by ``days`` from now.

        Already-expired documents are included.
        """
        _, cutoff = expiry_window(days, today)
        columns = [getattr(Employee, name) for name in EXPIRY_FIELDS]
        result = await self.session.execute(
            self._select()
            .where(
                Employee.status == EmployeeStatus.ACTIVE.value,
                or_(*[col.is_not(None) & (col <= cutoff) for col in columns]),
            )
            .order_by(Employee.name.asc())
        )
        return list(result.all())

    async def unsponsored(self) -> list[Row]:
        result = await self.session.execute(
            self._select()
            .where(
                Employee.institution_id.is_(None),
                Employee.status == EmployeeStatus.ACTIVE.value,
            )
            .order_by(Employee.created_at.desc())
        )
        return list(result.all())
