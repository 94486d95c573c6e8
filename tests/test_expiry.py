"""Tests for expiry-date classification."""

from datetime import date, timedelta

import pytest

from hr_system.services.expiry import days_until, document_status, expiry_window

TODAY = date(2024, 6, 1)


class TestDocumentStatus:
    def test_no_expiry_date_is_active(self):
        assert document_status(None, TODAY) == "active"

    @pytest.mark.parametrize("offset", [-30, -1, 0])
    def test_past_or_today_is_expired(self, offset):
        assert document_status(TODAY + timedelta(days=offset), TODAY) == "expired"

    @pytest.mark.parametrize("offset", [1, 15, 30])
    def test_within_warning_window(self, offset):
        assert document_status(TODAY + timedelta(days=offset), TODAY) == "expiring_soon"

    def test_beyond_warning_window(self):
        assert document_status(TODAY + timedelta(days=31), TODAY) == "active"

    def test_custom_warning_days(self):
        expiry = TODAY + timedelta(days=45)
        assert document_status(expiry, TODAY, warning_days=60) == "expiring_soon"
        assert document_status(expiry, TODAY, warning_days=10) == "active"

    def test_warning_days_from_settings(self, monkeypatch):
        monkeypatch.setenv("EXPIRY_WARNING_DAYS", "7")
        from hr_system.config import get_settings

        get_settings.cache_clear()
        assert document_status(TODAY + timedelta(days=10), TODAY) == "active"
        assert document_status(TODAY + timedelta(days=5), TODAY) == "expiring_soon"


def test_days_until():
    assert days_until(date(2024, 6, 11), TODAY) == 10
    assert days_until(date(2024, 5, 30), TODAY) == -2


def test_expiry_window():
    assert expiry_window(30, TODAY) == (TODAY, date(2024, 7, 1))
