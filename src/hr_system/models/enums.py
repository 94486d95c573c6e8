"""Enumerated column values shared by models and API schemas."""

from __future__ import annotations

from enum import Enum


class InstitutionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class BranchStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class UnsponsoredReason(str, Enum):
    TRANSFERRED = "transferred"
    NEW = "new"
    TEMPORARY_HOLD = "temporary_hold"


class ArchiveReason(str, Enum):
    TERMINATED = "terminated"
    FINAL_EXIT = "final_exit"


class DocumentStatus(str, Enum):
    """Expiry-derived status of documents and subscriptions."""

    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"


class EmployeeDocumentType(str, Enum):
    IQAMA = "iqama"
    PASSPORT = "passport"
    CONTRACT = "contract"
    HEALTH_CERTIFICATE = "health_certificate"
    INSURANCE = "insurance"
    WORK_PERMIT = "work_permit"
    OTHER = "other"


class InstitutionDocumentType(str, Enum):
    LICENSE = "license"
    COMMERCIAL_RECORD = "commercial_record"
    TAX_CERTIFICATE = "tax_certificate"
    OTHER = "other"


class AdvanceStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    REJECTED = "rejected"


class CompensationType(str, Enum):
    REWARD = "reward"
    DEDUCTION = "deduction"


class PayrollRunStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    UNPAID = "unpaid"
    EMERGENCY = "emergency"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class FormCategory(str, Enum):
    HR = "hr"
    FINANCE = "finance"
    GENERAL = "general"


class UserRole(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class ReportType(str, Enum):
    EMPLOYEES = "employees"
    INSTITUTIONS = "institutions"
    BRANCHES = "branches"
    DOCUMENTS = "documents"
    PAYROLL = "payroll"
    LEAVES = "leaves"
    COMPENSATIONS = "compensations"
    ADVANCES = "advances"


def check_in(column: str, enum: type[Enum]) -> str:
    """Build a CHECK constraint expression restricting a column to enum values."""
    values = ", ".join(f"'{member.value}'" for member in enum)
    return f"{column} IN ({values})"
