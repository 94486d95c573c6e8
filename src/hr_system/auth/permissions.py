"""Static permission catalogue and permission checks.

There are two roles. ``admin`` passes every check; ``employee`` holds an
explicit list of permission ids and may never hold ``system`` permissions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
from uuid import UUID

from hr_system.models.enums import UserRole


@dataclass(frozen=True)
class Permission:
    id: str
    name: str
    category: str
    is_high: bool = False


AVAILABLE_PERMISSIONS: tuple[Permission, ...] = (
    Permission("employees_view", "View employees", "employees"),
    Permission("employees_add", "Add employees", "employees", True),
    Permission("employees_edit", "Edit employees", "employees", True),
    Permission("employees_delete", "Delete employees", "employees", True),
    Permission("employees_export", "Export employees", "employees"),
    Permission("institutions_view", "View institutions", "institutions"),
    Permission("institutions_add", "Add institutions", "institutions", True),
    Permission("institutions_edit", "Edit institutions", "institutions", True),
    Permission("institutions_delete", "Delete institutions", "institutions", True),
    Permission("branches_view", "View branches", "branches"),
    Permission("branches_add", "Add branches", "branches", True),
    Permission("branches_edit", "Edit branches", "branches", True),
    Permission("branches_delete", "Delete branches", "branches", True),
    Permission("payroll_view", "View payroll", "payroll"),
    Permission("payroll_calculate", "Calculate payroll", "payroll", True),
    Permission("payroll_edit", "Edit payroll", "payroll", True),
    Permission("payroll_approve", "Approve payroll", "payroll", True),
    Permission("leaves_view", "View leave requests", "leaves"),
    Permission("leaves_request", "Request leave", "leaves"),
    Permission("leaves_approve", "Approve leave", "leaves", True),
    Permission("leaves_cancel", "Cancel leave", "leaves", True),
    Permission("advances_view", "View advances", "advances"),
    Permission("advances_request", "Request advances", "advances"),
    Permission("advances_approve", "Approve advances", "advances", True),
    Permission("advances_disburse", "Disburse advances", "advances", True),
    Permission("compensations_view", "View rewards and deductions", "compensations"),
    Permission("compensations_add", "Add rewards and deductions", "compensations", True),
    Permission("compensations_edit", "Edit rewards and deductions", "compensations", True),
    Permission("compensations_delete", "Delete rewards and deductions", "compensations", True),
    Permission("reports_view", "View reports", "reports"),
    Permission("reports_generate", "Generate reports", "reports"),
    Permission("reports_export", "Export reports", "reports"),
    Permission("users_view", "View users", "system", True),
    Permission("users_add", "Add users", "system", True),
    Permission("users_edit", "Edit users", "system", True),
    Permission("users_delete", "Delete users", "system", True),
    Permission("system_settings", "System settings", "system", True),
)

PERMISSION_CATEGORIES: dict[str, str] = {
    "employees": "Employees",
    "institutions": "Institutions",
    "branches": "Branches",
    "payroll": "Payroll",
    "leaves": "Leave",
    "advances": "Advances",
    "compensations": "Rewards and deductions",
    "reports": "Reports",
    "system": "User management",
}

_BY_ID: dict[str, Permission] = {p.id: p for p in AVAILABLE_PERMISSIONS}

EMPLOYEE_DEFAULT_PERMISSIONS: tuple[str, ...] = (
    "employees_view",
    "institutions_view",
    "branches_view",
    "leaves_view",
    "leaves_request",
    "advances_view",
    "advances_request",
    "compensations_view",
    "reports_view",
)


@dataclass
class AuthUser:
    """Identity carried by an access token."""

    id: UUID
    email: str
    role: str
    name: str = ""
    permissions: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def has_permission(user: AuthUser, permission: str) -> bool:
    if user.is_admin:
        return True
    return permission in user.permissions


def has_any_permission(user: AuthUser, permissions: Iterable[str]) -> bool:
    if user.is_admin:
        return True
    return any(p in user.permissions for p in permissions)


def has_all_permissions(user: AuthUser, permissions: Iterable[str]) -> bool:
    if user.is_admin:
        return True
    return all(p in user.permissions for p in permissions)


def permissions_by_category(category: str) -> list[Permission]:
    return [p for p in AVAILABLE_PERMISSIONS if p.category == category]


def high_risk_permissions() -> list[Permission]:
    return [p for p in AVAILABLE_PERMISSIONS if p.is_high]


def validate_permissions(permissions: Iterable[str]) -> dict[str, list[str]]:
    """Split permission ids into valid, invalid and high-risk lists."""
    requested = list(permissions)
    valid = [p for p in requested if p in _BY_ID]
    invalid = [p for p in requested if p not in _BY_ID]
    high_risk = [p for p in valid if _BY_ID[p].is_high]
    return {"valid": valid, "invalid": invalid, "high_risk": high_risk}


def default_permissions(role: str) -> list[str]:
    """Permissions granted to a new user of ``role``.

    Admins get an empty list because they pass every check anyway.
    """
    if role == UserRole.ADMIN.value:
        return []
    return list(EMPLOYEE_DEFAULT_PERMISSIONS)


def filter_allowed_permissions(role: str, permissions: Iterable[str]) -> list[str]:
    """Drop unknown ids, and ``system`` permissions for non-admins."""
    known = [p for p in dict.fromkeys(permissions) if p in _BY_ID]
    if role == UserRole.ADMIN.value:
        return known
    return [p for p in known if _BY_ID[p].category != "system"]
