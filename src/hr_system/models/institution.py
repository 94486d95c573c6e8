"""Institution, institution document and subscription models."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hr_system.models.base import Base, IdMixin, TimestampMixin
from hr_system.models.enums import (
    DocumentStatus,
    InstitutionDocumentType,
    InstitutionStatus,
    check_in,
)


class Institution(Base, IdMixin, TimestampMixin):
    """Sponsoring company that owns branches, employees and documents."""

    __tablename__ = "institution"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    license_number: Mapped[str | None] = mapped_column(String(100))
    license_expiry: Mapped[date | None] = mapped_column(Date)
    cr_number: Mapped[str | None] = mapped_column(String(100))
    cr_issue_date: Mapped[date | None] = mapped_column(Date)
    cr_expiry_date: Mapped[date | None] = mapped_column(Date)
    address: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InstitutionStatus.ACTIVE.value
    )

    __table_args__ = (
        CheckConstraint(check_in("status", InstitutionStatus), name="institution_status_check"),
    )


class InstitutionDocument(Base, IdMixin, TimestampMixin):
    """File attached to an institution (license, commercial record...)."""

    __tablename__ = "institution_document"

    institution_id: Mapped[UUID] = mapped_column(
        ForeignKey("institution.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    file_path: Mapped[str | None] = mapped_column(String(500))
    file_url: Mapped[str | None] = mapped_column(String(500))
    upload_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    __table_args__ = (
        CheckConstraint(
            check_in("document_type", InstitutionDocumentType),
            name="institution_document_type_check",
        ),
    )


class Subscription(Base, IdMixin, TimestampMixin):
    """Recurring institution subscription with an expiry date."""

    __tablename__ = "subscription"

    institution_id: Mapped[UUID] = mapped_column(
        ForeignKey("institution.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(100))
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.ACTIVE.value
    )

    __table_args__ = (
        CheckConstraint(check_in("status", DocumentStatus), name="subscription_status_check"),
    )
