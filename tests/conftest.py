"""Pytest configuration shared by unit and API tests."""

from __future__ import annotations

import os

import pytest

# Settings are read once and cached; pin the values tests depend on.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("EXPIRY_WARNING_DAYS", "30")
os.environ.setdefault("MAX_LOGIN_ATTEMPTS", "5")
os.environ.setdefault("LOCKOUT_MINUTES", "15")


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop the cached settings so per-test environment changes take effect."""
    from hr_system.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
