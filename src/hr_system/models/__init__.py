"""SQLAlchemy ORM models for the HR system."""

from hr_system.models.advance import Advance, AdvanceDeduction
from hr_system.models.base import Base, IdMixin, TimestampMixin, utcnow
from hr_system.models.branch import Branch
from hr_system.models.compensation import Compensation
from hr_system.models.employee import EXPIRY_FIELDS, Employee, EmployeeDocument
from hr_system.models.form import Form
from hr_system.models.institution import Institution, InstitutionDocument, Subscription
from hr_system.models.leave import LeaveRequest
from hr_system.models.payroll import PayrollEntry, PayrollRun
from hr_system.models.user import User

__all__ = [
    "Advance",
    "AdvanceDeduction",
    "Base",
    "Branch",
    "Compensation",
    "EXPIRY_FIELDS",
    "Employee",
    "EmployeeDocument",
    "Form",
    "IdMixin",
    "Institution",
    "InstitutionDocument",
    "LeaveRequest",
    "PayrollEntry",
    "PayrollRun",
    "Subscription",
    "TimestampMixin",
    "User",
    "utcnow",
]
