"""Calendar helpers. All day boundaries are UTC."""

import calendar
from datetime import date, datetime, timezone


def utc_today() -> date:
    """Current date in UTC."""
    return datetime.now(timezone.utc).date()


def month_start(day: date) -> date:
    return day.replace(day=1)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month, inclusive."""
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def same_month(a: date, b: date) -> bool:
    return (a.year, a.month) == (b.year, b.month)
