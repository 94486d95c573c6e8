"""API routes."""

from hr_system.api.routes.advances import router as advances_router
from hr_system.api.routes.auth import router as auth_router
from hr_system.api.routes.branches import router as branches_router
from hr_system.api.routes.compensations import router as compensations_router
from hr_system.api.routes.documents import router as documents_router
from hr_system.api.routes.employee_import import router as employee_import_router
from hr_system.api.routes.employees import router as employees_router
from hr_system.api.routes.forms import router as forms_router
from hr_system.api.routes.health import router as health_router
from hr_system.api.routes.institutions import router as institutions_router
from hr_system.api.routes.leaves import router as leaves_router
from hr_system.api.routes.payroll import router as payroll_router
from hr_system.api.routes.permissions import router as permissions_router
from hr_system.api.routes.reports import router as reports_router
from hr_system.api.routes.subscriptions import router as subscriptions_router
from hr_system.api.routes.system import router as system_router
from hr_system.api.routes.users import router as users_router

__all__ = [
    "advances_router",
    "auth_router",
    "branches_router",
    "compensations_router",
    "documents_router",
    "employee_import_router",
    "employees_router",
    "forms_router",
    "health_router",
    "institutions_router",
    "leaves_router",
    "payroll_router",
    "permissions_router",
    "reports_router",
    "subscriptions_router",
    "system_router",
    "users_router",
]
