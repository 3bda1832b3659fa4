"""Business-day arithmetic for leave requests.

A business day is Monday–Friday. Public holidays are not considered.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Union

DateLike = Union[date, datetime]

# date.weekday(): Monday=0 … Sunday=6
WEEKEND_DAYS = frozenset({5, 6})


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def is_business_day(day: DateLike) -> bool:
    return _as_date(day).weekday() not in WEEKEND_DAYS


def business_days_between(start: DateLike, end: DateLike) -> int:
    """Count weekdays in the inclusive range ``[start, end]``.

    Time-of-day is ignored. Returns 0 for a weekend-only range and for
    ``start > end``; callers treat 0 as an invalid leave request.
    """
    current = _as_date(start)
    last = _as_date(end)

    days = 0
    while current <= last:
        if is_business_day(current):
            days += 1
        current += timedelta(days=1)
    return days
