"""Branch management and branch assignment of employees."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import Row, func, select, update
from sqlalchemy.orm import aliased

from hr_system.models import Branch, Employee, Institution
from hr_system.models.enums import BranchStatus, EmployeeStatus
from hr_system.services.base import BaseService

logger = logging.getLogger(__name__)

Manager = aliased(Employee, name="manager")


class BranchService(BaseService):
    """Branches belong to an institution or are independent (no institution)."""

    def _select(self):
        employee_count = (
            select(func.count(Employee.id))
            .where(
                Employee.branch_id == Branch.id,
                Employee.status == EmployeeStatus.ACTIVE.value,
            )
            .correlate(Branch)
            .scalar_subquery()
            .label("employee_count")
        )
        return (
            select(
                Branch,
                Institution.name.label("institution_name"),
                Manager.name.label("manager_name"),
                employee_count,
            )
            .outerjoin(Institution, Branch.institution_id == Institution.id)
            .outerjoin(Manager, Branch.manager_id == Manager.id)
        )

    async def list_branches(
        self,
        institution_id: UUID | None = None,
        independent: bool = False,
        status: str | None = BranchStatus.ACTIVE.value,
    ) -> list[Row]:
        query = self._select()
        if status:
            query = query.where(Branch.status == status)
        if independent:
            query = query.where(Branch.institution_id.is_(None))
        elif institution_id is not None:
            query = query.where(Branch.institution_id == institution_id)
        result = await self.session.execute(query.order_by(Branch.created_at.desc()))
        return list(result.all())

    async def get_branch(self, branch_id: UUID) -> Row | None:
        result = await self.session.execute(self._select().where(Branch.id == branch_id))
        return result.first()

    async def _check_refs(self, data: dict[str, Any]) -> None:
        if data.get("institution_id") is not None:
            await self._get_or_404(Institution, data["institution_id"], "Institution")
        if data.get("manager_id") is not None:
            await self._get_or_404(Employee, data["manager_id"], "Manager")

    async def create_branch(self, data: dict[str, Any]) -> Row:
        await self._check_refs(data)
        branch = Branch(**data)
        self.session.add(branch)
        await self.session.flush()
        logger.info("Created branch %s (%s)", branch.id, branch.name)
        return await self.get_branch(branch.id)

    async def update_branch(self, branch_id: UUID, data: dict[str, Any]) -> Row:
        branch = await self._get_or_404(Branch, branch_id, "Branch")
        await self._check_refs(data)
        self._apply(branch, data)
        await self.session.flush()
        return await self.get_branch(branch_id)

    async def delete_branch(self, branch_id: UUID) -> int:
        """Unassign the branch's employees, then delete it. Returns employees detached."""
        branch = await self._get_or_404(Branch, branch_id, "Branch")
        result = await self.session.execute(
            update(Employee).where(Employee.branch_id == branch_id).values(branch_id=None)
        )
        await self.session.delete(branch)
        await self.session.flush()
        logger.info("Deleted branch %s, detached %d employees", branch_id, result.rowcount)
        return result.rowcount

    async def list_employees(self, branch_id: UUID) -> list[Employee]:
        await self._get_or_404(Branch, branch_id, "Branch")
        result = await self.session.execute(
            select(Employee)
            .where(Employee.branch_id == branch_id, Employee.status == EmployeeStatus.ACTIVE.value)
            .order_by(Employee.name.asc())
        )
        return list(result.scalars().all())

    async def transfer_employee(self, employee_id: UUID, branch_id: UUID | None) -> Employee:
        """Move an employee to ``branch_id``, or out of any branch when None."""
        employee = await self._get_or_404(Employee, employee_id, "Employee")
        if branch_id is not None:
            await self._get_or_404(Branch, branch_id, "Branch")
        employee.branch_id = branch_id
        await self.session.flush()
        return employee
