"""
Calendar utilities: date keys, day offsets, week/month alignment and
inclusive ranges.

All arithmetic is on `datetime.date`, so it is calendar-day based and
never affected by daylight-saving transitions.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from habitlog.core.errors import InvalidDateKeyError

_DATE_KEY = re.compile(r"([0-9]{4})-([0-9]{1,2})-([0-9]{1,2})")

MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
WEEKDAY_ABBR = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class DateWindow:
    start_key: str
    end_key: str


def _today() -> date:
    return date.today()


def to_date_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date_key(key: str) -> date:
    """Inverse of to_date_key. Raises InvalidDateKeyError on bad input."""
    if not isinstance(key, str):
        raise InvalidDateKeyError(key)
    match = _DATE_KEY.fullmatch(key)
    if match is None:
        raise InvalidDateKeyError(key)
    year, month, day = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        raise InvalidDateKeyError(key) from None


def add_days(d: date, n: int) -> date:
    return d + timedelta(days=n)


def start_of_week(d: date, week_starts_on: int) -> date:
    # isoweekday: Mon=1..Sun=7, so % 7 gives Sun=0..Sat=6
    day_of_week = d.isoweekday() % 7
    return add_days(d, -((day_of_week - week_starts_on + 7) % 7))


def start_of_month(d: date) -> date:
    return d.replace(day=1)


def add_months(d: date, months: int) -> date:
    """First day of the month `months` away from the month containing d."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def days_in_month(d: date) -> int:
    # Day before the first of the following month.
    return add_days(add_months(d, 1), -1).day


def date_range_inclusive(start_key: str, end_key: str) -> list[str]:
    start = parse_date_key(start_key)
    end = parse_date_key(end_key)
    span = (end - start).days
    return [to_date_key(add_days(start, i)) for i in range(span + 1)]


def last_n_days(n: int, today: Optional[date] = None) -> DateWindow:
    """Window of the most recent n days, ending today (inclusive)."""
    end = today or _today()
    # n <= 0 gives start > end, which enumerates as an empty range
    start = add_days(end, -(max(n, 0) - 1))
    return DateWindow(start_key=to_date_key(start), end_key=to_date_key(end))


# ---------------------------------------------------------------------------
# Display labels (locale independent)
# ---------------------------------------------------------------------------

def day_label(d: date) -> str:
    return f"{WEEKDAY_ABBR[d.weekday()]} {MONTH_ABBR[d.month - 1]} {d.day}"


def range_label(start: date, end: date) -> str:
    return f"{MONTH_ABBR[start.month - 1]} {start.day} - {MONTH_ABBR[end.month - 1]} {end.day}"


def month_label(d: date) -> str:
    return f"{MONTH_ABBR[d.month - 1]} {d.year}"
