"""Employee and employee document models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hr_system.models.base import Base, IdMixin, TimestampMixin
from hr_system.models.enums import (
    ArchiveReason,
    DocumentStatus,
    EmployeeDocumentType,
    EmployeeStatus,
    UnsponsoredReason,
    check_in,
)

# Expiry-tracked employee columns and their display labels.
EXPIRY_FIELDS: dict[str, str] = {
    "iqama_expiry": "iqama",
    "work_permit_expiry": "work_permit",
    "contract_expiry": "contract",
    "insurance_expiry": "insurance",
    "health_cert_expiry": "health_certificate",
}


class Employee(Base, IdMixin, TimestampMixin):
    """Employee, optionally sponsored by an institution and assigned to a branch."""

    __tablename__ = "employee"

    institution_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("institution.id", ondelete="SET NULL"), index=True
    )
    branch_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("branch.id", ondelete="SET NULL"), index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    mobile: Mapped[str | None] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(255))
    file_number: Mapped[str | None] = mapped_column(String(100))
    nationality: Mapped[str | None] = mapped_column(String(100))
    position: Mapped[str | None] = mapped_column(String(150))
    photo_url: Mapped[str | None] = mapped_column(String(500))
    iqama_number: Mapped[str | None] = mapped_column(String(50))
    iqama_expiry: Mapped[date | None] = mapped_column(Date)
    work_permit_expiry: Mapped[date | None] = mapped_column(Date)
    contract_expiry: Mapped[date | None] = mapped_column(Date)
    insurance_expiry: Mapped[date | None] = mapped_column(Date)
    health_cert_expiry: Mapped[date | None] = mapped_column(Date)
    salary: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    hire_date: Mapped[date | None] = mapped_column(Date)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EmployeeStatus.ACTIVE.value
    )
    unsponsored_reason: Mapped[str | None] = mapped_column(String(30))
    archive_reason: Mapped[str | None] = mapped_column(String(30))
    archive_date: Mapped[date | None] = mapped_column(Date)
    archived_at: Mapped[datetime | None] = mapped_column()
    last_status_update: Mapped[datetime | None] = mapped_column()

    __table_args__ = (
        UniqueConstraint("file_number", name="employee_file_number_unique"),
        CheckConstraint("salary >= 0", name="employee_salary_check"),
        CheckConstraint(check_in("status", EmployeeStatus), name="employee_status_check"),
        CheckConstraint(
            f"unsponsored_reason IS NULL OR {check_in('unsponsored_reason', UnsponsoredReason)}",
            name="employee_unsponsored_reason_check",
        ),
        CheckConstraint(
            f"archive_reason IS NULL OR {check_in('archive_reason', ArchiveReason)}",
            name="employee_archive_reason_check",
        ),
    )


class EmployeeDocument(Base, IdMixin, TimestampMixin):
    """Scanned employee document with an optional expiry date."""

    __tablename__ = "employee_document"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str | None] = mapped_column(String(500))
    file_url: Mapped[str | None] = mapped_column(String(500))
    expiry_date: Mapped[date | None] = mapped_column(Date)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.ACTIVE.value
    )
    upload_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    __table_args__ = (
        CheckConstraint(
            check_in("document_type", EmployeeDocumentType),
            name="employee_document_type_check",
        ),
        CheckConstraint(check_in("status", DocumentStatus), name="employee_document_status_check"),
    )
