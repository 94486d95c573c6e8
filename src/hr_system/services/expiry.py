"""Expiry-date classification for documents and subscriptions."""

from __future__ import annotations

from datetime import date, timedelta

from hr_system.config import get_settings
from hr_system.models.enums import DocumentStatus


def days_until(expiry_date: date, today: date | None = None) -> int:
    """Whole days from ``today`` until ``expiry_date`` (negative once past)."""
    return (expiry_date - (today or date.today())).days


def document_status(
    expiry_date: date | None,
    today: date | None = None,
    warning_days: int | None = None,
) -> str:
    """Classify an expiry date.

    No date means the document never expires. A document expiring today is
    already expired.
    """
    if expiry_date is None:
        return DocumentStatus.ACTIVE.value
    if warning_days is None:
        warning_days = get_settings().expiry_warning_days

    remaining = days_until(expiry_date, today)
    if remaining <= 0:
        return DocumentStatus.EXPIRED.value
    if remaining <= warning_days:
        return DocumentStatus.EXPIRING_SOON.value
    return DocumentStatus.ACTIVE.value


def expiry_window(days: int, today: date | None = None) -> tuple[date, date]:
    """Date range [today, today + days] used by "expiring within N days" queries."""
    start = today or date.today()
    return start, start + timedelta(days=days)
