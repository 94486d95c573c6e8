"""Tests for the permission catalogue and checks."""

from uuid import uuid4

from hr_system.auth.permissions import (
    AVAILABLE_PERMISSIONS,
    EMPLOYEE_DEFAULT_PERMISSIONS,
    PERMISSION_CATEGORIES,
    AuthUser,
    default_permissions,
    filter_allowed_permissions,
    has_all_permissions,
    has_any_permission,
    has_permission,
    high_risk_permissions,
    permissions_by_category,
    validate_permissions,
)


def _user(role: str = "employee", permissions: list[str] | None = None) -> AuthUser:
    return AuthUser(id=uuid4(), email="u@example.com", role=role, permissions=permissions or [])


class TestCatalogue:
    def test_ids_are_unique(self):
        ids = [p.id for p in AVAILABLE_PERMISSIONS]
        assert len(ids) == len(set(ids))

    def test_every_category_is_named(self):
        assert {p.category for p in AVAILABLE_PERMISSIONS} <= set(PERMISSION_CATEGORIES)

    def test_by_category(self):
        ids = {p.id for p in permissions_by_category("advances")}
        assert ids == {"advances_view", "advances_request", "advances_approve", "advances_disburse"}

    def test_high_risk(self):
        high = {p.id for p in high_risk_permissions()}
        assert "users_delete" in high
        assert "employees_view" not in high

    def test_defaults_are_known(self):
        known = {p.id for p in AVAILABLE_PERMISSIONS}
        assert set(EMPLOYEE_DEFAULT_PERMISSIONS) <= known


class TestChecks:
    def test_admin_passes_everything(self):
        admin = _user(role="admin")
        assert admin.is_admin
        assert has_permission(admin, "users_delete")
        assert has_all_permissions(admin, ["payroll_edit", "system_settings"])

    def test_employee_needs_explicit_permission(self):
        user = _user(permissions=["leaves_view"])
        assert has_permission(user, "leaves_view")
        assert not has_permission(user, "leaves_approve")

    def test_any_and_all(self):
        user = _user(permissions=["leaves_view", "advances_view"])
        assert has_any_permission(user, ["payroll_view", "advances_view"])
        assert not has_any_permission(user, ["payroll_view"])
        assert has_all_permissions(user, ["leaves_view", "advances_view"])
        assert not has_all_permissions(user, ["leaves_view", "payroll_view"])


class TestValidation:
    def test_validate_splits_lists(self):
        result = validate_permissions(["employees_view", "users_add", "fly_to_moon"])
        assert result["valid"] == ["employees_view", "users_add"]
        assert result["invalid"] == ["fly_to_moon"]
        assert result["high_risk"] == ["users_add"]

    def test_default_permissions(self):
        assert default_permissions("admin") == []
        assert default_permissions("employee") == list(EMPLOYEE_DEFAULT_PERMISSIONS)

    def test_employee_cannot_hold_system_permissions(self):
        allowed = filter_allowed_permissions(
            "employee", ["users_view", "employees_view", "system_settings", "bogus"]
        )
        assert allowed == ["employees_view"]

    def test_admin_keeps_system_permissions(self):
        allowed = filter_allowed_permissions("admin", ["users_view", "users_view", "bogus"])
        assert allowed == ["users_view"]
