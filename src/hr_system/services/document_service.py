"""Employee and institution documents behind a single interface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select

from hr_system.models import Employee, EmployeeDocument, Institution, InstitutionDocument
from hr_system.models.enums import DocumentStatus, EmployeeDocumentType, InstitutionDocumentType
from hr_system.services.base import BaseService
from hr_system.services.errors import BusinessRuleError, NotFoundError
from hr_system.services.expiry import document_status, expiry_window

logger = logging.getLogger(__name__)

EMPLOYEE = "employee"
INSTITUTION = "institution"


@dataclass
class DocumentRecord:
    """A document of either kind, flattened for listing."""

    id: UUID
    entity_type: str
    entity_id: UUID
    entity_name: str | None
    document_type: str
    file_name: str
    file_path: str | None
    file_url: str | None
    expiry_date: date | None
    status: str
    upload_date: date
    created_at: datetime

    @classmethod
    def from_employee_document(cls, doc: EmployeeDocument, entity_name: str | None) -> DocumentRecord:
        return cls(
            id=doc.id,
            entity_type=EMPLOYEE,
            entity_id=doc.employee_id,
            entity_name=entity_name,
            document_type=doc.document_type,
            file_name=doc.file_name,
            file_path=doc.file_path,
            file_url=doc.file_url,
            expiry_date=doc.expiry_date,
            status=doc.status,
            upload_date=doc.upload_date,
            created_at=doc.created_at,
        )

    @classmethod
    def from_institution_document(
        cls, doc: InstitutionDocument, entity_name: str | None
    ) -> DocumentRecord:
        return cls(
            id=doc.id,
            entity_type=INSTITUTION,
            entity_id=doc.institution_id,
            entity_name=entity_name,
            document_type=doc.document_type,
            file_name=doc.name,
            file_path=doc.file_path,
            file_url=doc.file_url,
            expiry_date=None,
            status=DocumentStatus.ACTIVE.value,
            upload_date=doc.upload_date,
            created_at=doc.created_at,
        )


class DocumentService(BaseService):
    async def list_documents(
        self,
        entity_type: str | None = None,
        entity_id: UUID | None = None,
        document_type: str | None = None,
        expiring_days: int | None = None,
        expired: bool = False,
        today: date | None = None,
    ) -> list[DocumentRecord]:
        """List documents newest first.

        Institution documents carry no expiry date, so the ``expiring_days``
        and ``expired`` filters only ever match employee documents.
        """
        today = today or date.today()
        records: list[DocumentRecord] = []

        if entity_type in (None, EMPLOYEE):
            query = select(EmployeeDocument, Employee.name).join(
                Employee, EmployeeDocument.employee_id == Employee.id
            )
            if entity_id is not None:
                query = query.where(EmployeeDocument.employee_id == entity_id)
            if document_type:
                query = query.where(EmployeeDocument.document_type == document_type)
            if expiring_days is not None:
                _, cutoff = expiry_window(expiring_days, today)
                query = query.where(
                    EmployeeDocument.expiry_date.is_not(None),
                    EmployeeDocument.expiry_date > today,
                    EmployeeDocument.expiry_date <= cutoff,
                )
            if expired:
                query = query.where(
                    EmployeeDocument.expiry_date.is_not(None),
                    EmployeeDocument.expiry_date <= today,
                )
            for doc, name in (await self.session.execute(query)).all():
                records.append(DocumentRecord.from_employee_document(doc, name))

        if entity_type in (None, INSTITUTION) and expiring_days is None and not expired:
            query = select(InstitutionDocument, Institution.name).join(
                Institution, InstitutionDocument.institution_id == Institution.id
            )
            if entity_id is not None:
                query = query.where(InstitutionDocument.institution_id == entity_id)
            if document_type:
                query = query.where(InstitutionDocument.document_type == document_type)
            for doc, name in (await self.session.execute(query)).all():
                records.append(DocumentRecord.from_institution_document(doc, name))

        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    async def create_document(self, entity_type: str, entity_id: UUID, data: dict[str, Any]) -> DocumentRecord:
        """Attach a document to an existing employee or institution."""
        if entity_type == EMPLOYEE:
            employee = await self._get_or_404(Employee, entity_id, "Employee")
            if data["document_type"] not in {t.value for t in EmployeeDocumentType}:
                raise BusinessRuleError(f"Invalid employee document type: {data['document_type']}")
            doc = EmployeeDocument(
                employee_id=entity_id,
                document_type=data["document_type"],
                file_name=data["file_name"],
                file_path=data.get("file_path"),
                file_url=data.get("file_url"),
                expiry_date=data.get("expiry_date"),
            )
            doc.status = document_status(doc.expiry_date)
            self.session.add(doc)
            await self.session.flush()
            return DocumentRecord.from_employee_document(doc, employee.name)

        institution = await self._get_or_404(Institution, entity_id, "Institution")
        if data["document_type"] not in {t.value for t in InstitutionDocumentType}:
            raise BusinessRuleError(f"Invalid institution document type: {data['document_type']}")
        doc = InstitutionDocument(
            institution_id=entity_id,
            name=data["file_name"],
            document_type=data["document_type"],
            file_path=data.get("file_path"),
            file_url=data.get("file_url"),
        )
        self.session.add(doc)
        await self.session.flush()
        return DocumentRecord.from_institution_document(doc, institution.name)

    async def get_document(self, document_id: UUID) -> DocumentRecord | None:
        row = (
            await self.session.execute(
                select(EmployeeDocument, Employee.name)
                .join(Employee, EmployeeDocument.employee_id == Employee.id)
                .where(EmployeeDocument.id == document_id)
            )
        ).first()
        if row is not None:
            return DocumentRecord.from_employee_document(*row)
        row = (
            await self.session.execute(
                select(InstitutionDocument, Institution.name)
                .join(Institution, InstitutionDocument.institution_id == Institution.id)
                .where(InstitutionDocument.id == document_id)
            )
        ).first()
        if row is not None:
            return DocumentRecord.from_institution_document(*row)
        return None

    async def delete_document(self, document_id: UUID) -> None:
        doc = await self.session.get(EmployeeDocument, document_id)
        if doc is None:
            doc = await self.session.get(InstitutionDocument, document_id)
        if doc is None:
            raise NotFoundError("Document", document_id)
        await self.session.delete(doc)
        await self.session.flush()

    async def renew_document(self, document_id: UUID, expiry_date: date) -> DocumentRecord:
        """Give an employee document a new expiry date and recompute its status."""
        doc = await self._get_or_404(EmployeeDocument, document_id, "Document")
        doc.expiry_date = expiry_date
        doc.status = document_status(expiry_date)
        await self.session.flush()
        employee = await self.session.get(Employee, doc.employee_id)
        logger.info("Renewed document %s until %s", document_id, expiry_date)
        return DocumentRecord.from_employee_document(doc, employee.name if employee else None)
