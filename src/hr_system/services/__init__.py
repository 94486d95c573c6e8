"""Business services. Each takes the request's AsyncSession."""

from hr_system.services.advance_service import AdvanceService
from hr_system.services.branch_service import BranchService
from hr_system.services.compensation_service import CompensationService
from hr_system.services.deduction_service import AdvanceDeductionService
from hr_system.services.document_service import DocumentService
from hr_system.services.employee_import_service import EmployeeImportService
from hr_system.services.employee_service import EmployeeService
from hr_system.services.errors import (
    AccountLockedError,
    AuthenticationError,
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    ServiceError,
)
from hr_system.services.form_service import FormService
from hr_system.services.institution_service import InstitutionService
from hr_system.services.leave_service import LeaveService
from hr_system.services.payroll_service import PayrollProcessingError, PayrollService
from hr_system.services.report_service import ReportFilters, ReportService
from hr_system.services.status_rules import (
    AdvanceStateMachine,
    InvalidTransitionError,
    LeaveStateMachine,
    PayrollRunStateMachine,
)
from hr_system.services.subscription_service import SubscriptionService
from hr_system.services.system_service import SystemService
from hr_system.services.user_service import UserService

__all__ = [
    "AccountLockedError",
    "AdvanceDeductionService",
    "AdvanceService",
    "AdvanceStateMachine",
    "AuthenticationError",
    "BranchService",
    "BusinessRuleError",
    "CompensationService",
    "ConflictError",
    "DocumentService",
    "EmployeeImportService",
    "EmployeeService",
    "FormService",
    "InstitutionService",
    "InvalidTransitionError",
    "LeaveService",
    "LeaveStateMachine",
    "NotFoundError",
    "PayrollProcessingError",
    "PayrollRunStateMachine",
    "PayrollService",
    "ReportFilters",
    "ReportService",
    "ServiceError",
    "SubscriptionService",
    "SystemService",
    "UserService",
]
