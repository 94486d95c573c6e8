"""Institution management: CRUD, documents, subscriptions and expiry stats."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import Row, delete, func, or_, select, update

from hr_system.models import (
    EXPIRY_FIELDS,
    Branch,
    Employee,
    Institution,
    InstitutionDocument,
    Subscription,
)
from hr_system.models.enums import DocumentStatus, EmployeeStatus, InstitutionStatus
from hr_system.services.base import BaseService
from hr_system.services.expiry import document_status, expiry_window

logger = logging.getLogger(__name__)


def _employee_count():
    return (
        select(func.count(Employee.id))
        .where(
            Employee.institution_id == Institution.id,
            Employee.status == EmployeeStatus.ACTIVE.value,
        )
        .correlate(Institution)
        .scalar_subquery()
        .label("employee_count")
    )


class InstitutionService(BaseService):
    """CRUD and reporting over institutions."""

    def _select(self):
        return select(Institution, _employee_count())

    async def list_institutions(self) -> list[Row]:
        """Institutions that are not inactive, newest first."""
        result = await self.session.execute(
            self._select()
            .where(Institution.status != InstitutionStatus.INACTIVE.value)
            .order_by(Institution.created_at.desc())
        )
        return list(result.all())

    async def get_institution(self, institution_id: UUID) -> Row | None:
        result = await self.session.execute(
            self._select().where(Institution.id == institution_id)
        )
        return result.first()

    async def create_institution(self, data: dict[str, Any]) -> Row:
        institution = Institution(**data)
        self.session.add(institution)
        await self.session.flush()
        logger.info("Created institution %s (%s)", institution.id, institution.name)
        return await self.get_institution(institution.id)

    async def update_institution(self, institution_id: UUID, data: dict[str, Any]) -> Row:
        institution = await self._get_or_404(Institution, institution_id, "Institution")
        self._apply(institution, data)
        await self.session.flush()
        return await self.get_institution(institution_id)

    async def delete_institution(self, institution_id: UUID) -> None:
        """Detach employees and branches, then delete with documents and subscriptions."""
        institution = await self._get_or_404(Institution, institution_id, "Institution")
        await self.session.execute(
            update(Employee)
            .where(Employee.institution_id == institution_id)
            .values(institution_id=None)
        )
        await self.session.execute(
            update(Branch).where(Branch.institution_id == institution_id).values(institution_id=None)
        )
        await self.session.execute(
            delete(InstitutionDocument).where(InstitutionDocument.institution_id == institution_id)
        )
        await self.session.execute(
            delete(Subscription).where(Subscription.institution_id == institution_id)
        )
        await self.session.delete(institution)
        await self.session.flush()
        logger.info("Deleted institution %s", institution_id)

    async def list_documents(self, institution_id: UUID) -> list[InstitutionDocument]:
        await self._get_or_404(Institution, institution_id, "Institution")
        result = await self.session.execute(
            select(InstitutionDocument)
            .where(InstitutionDocument.institution_id == institution_id)
            .order_by(InstitutionDocument.created_at.desc())
        )
        return list(result.scalars().all())

    async def add_document(self, institution_id: UUID, data: dict[str, Any]) -> InstitutionDocument:
        await self._get_or_404(Institution, institution_id, "Institution")
        document = InstitutionDocument(institution_id=institution_id, **data)
        self.session.add(document)
        await self.session.flush()
        return document

    async def list_subscriptions(self, institution_id: UUID) -> list[Subscription]:
        await self._get_or_404(Institution, institution_id, "Institution")
        result = await self.session.execute(
            select(Subscription)
            .where(Subscription.institution_id == institution_id)
            .order_by(Subscription.expiry_date.asc())
        )
        return list(result.scalars().all())

    async def expiring_licenses(self, days: int = 30, today: date | None = None) -> list[Institution]:
        """Active institutions whose license or commercial record expires within ``days``."""
        start, end = expiry_window(days, today)
        result = await self.session.execute(
            select(Institution)
            .where(
                Institution.status == InstitutionStatus.ACTIVE.value,
                or_(
                    Institution.license_expiry.between(start, end),
                    Institution.cr_expiry_date.between(start, end),
                ),
            )
            .order_by(Institution.license_expiry.asc(), Institution.cr_expiry_date.asc())
        )
        return list(result.scalars().all())

    async def expiry_stats(self, today: date | None = None) -> list[dict[str, Any]]:
        """Per-institution counts of expired and soon-expiring subscriptions and employee documents."""
        today = today or date.today()
        rows = await self.list_institutions()
        stats: list[dict[str, Any]] = []

        for row in rows:
            institution = row.Institution
            subs = (
                await self.session.execute(
                    select(Subscription).where(Subscription.institution_id == institution.id)
                )
            ).scalars().all()
            employees = (
                await self.session.execute(
                    select(Employee).where(
                        Employee.institution_id == institution.id,
                        Employee.status == EmployeeStatus.ACTIVE.value,
                    )
                )
            ).scalars().all()

            sub_status = [document_status(s.expiry_date, today) for s in subs]
            expired_docs = {label: 0 for label in EXPIRY_FIELDS.values()}
            expiring_docs = {label: 0 for label in EXPIRY_FIELDS.values()}
            for employee in employees:
                for column, label in EXPIRY_FIELDS.items():
                    expiry = getattr(employee, column)
                    if expiry is None:
                        continue
                    state = document_status(expiry, today)
                    if state == DocumentStatus.EXPIRED.value:
                        expired_docs[label] += 1
                    elif state == DocumentStatus.EXPIRING_SOON.value:
                        expiring_docs[label] += 1

            stats.append(
                {
                    "institution_id": institution.id,
                    "institution_name": institution.name,
                    "employee_count": row.employee_count,
                    "subscriptions_total": len(subs),
                    "subscriptions_expired": sub_status.count(DocumentStatus.EXPIRED.value),
                    "subscriptions_expiring_soon": sub_status.count(
                        DocumentStatus.EXPIRING_SOON.value
                    ),
                    "expired_documents": expired_docs,
                    "expiring_documents": expiring_docs,
                    "total_expired_documents": sum(expired_docs.values()),
                    "total_expiring_documents": sum(expiring_docs.values()),
                }
            )
        return stats
