"""Calendar arithmetic on timezone-aware UTC datetimes.

Every helper takes the reference instant explicitly; nothing here reads the
clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
WEEK = timedelta(days=7)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def first_of_month(value: datetime) -> datetime:
    value = ensure_utc(value)
    return datetime(value.year, value.month, 1, tzinfo=timezone.utc)


def first_of_year(value: datetime) -> datetime:
    value = ensure_utc(value)
    return datetime(value.year, 1, 1, tzinfo=timezone.utc)


def add_months(year: int, month: int, months: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def month_window(year: int, month: int) -> tuple[datetime, datetime]:
    """Return ``[first of month, first of next month)`` for the given month."""
    if not 1 <= month <= 12:
        msg = f"month must be in 1..12, got {month}"
        raise ValueError(msg)
    next_year, next_month = add_months(year, month, 1)
    return (
        datetime(year, month, 1, tzinfo=timezone.utc),
        datetime(next_year, next_month, 1, tzinfo=timezone.utc),
    )


def current_month_window(now: datetime) -> tuple[datetime, datetime]:
    now = ensure_utc(now)
    return month_window(now.year, now.month)


def last_month_window(now: datetime) -> tuple[datetime, datetime]:
    now = ensure_utc(now)
    year, month = add_months(now.year, now.month, -1)
    return month_window(year, month)


def current_year_window(now: datetime) -> tuple[datetime, datetime]:
    now = ensure_utc(now)
    return (
        datetime(now.year, 1, 1, tzinfo=timezone.utc),
        datetime(now.year + 1, 1, 1, tzinfo=timezone.utc),
    )


def last_year_window(now: datetime) -> tuple[datetime, datetime]:
    now = ensure_utc(now)
    return (
        datetime(now.year - 1, 1, 1, tzinfo=timezone.utc),
        datetime(now.year, 1, 1, tzinfo=timezone.utc),
    )


def current_week_window(now: datetime) -> tuple[datetime, datetime]:
    # Rolling seven days ending now.
    now = ensure_utc(now)
    return now - WEEK, now


def last_week_window(now: datetime) -> tuple[datetime, datetime]:
    now = ensure_utc(now)
    return now - 2 * WEEK, now - WEEK


__all__ = [
    "EPOCH",
    "add_months",
    "current_month_window",
    "current_week_window",
    "current_year_window",
    "ensure_utc",
    "first_of_month",
    "first_of_year",
    "last_month_window",
    "last_week_window",
    "last_year_window",
    "month_window",
]
