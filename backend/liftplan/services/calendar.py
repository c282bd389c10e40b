# backend/liftplan/services/calendar.py
"""
Calendar-day helpers.

Everything in the engine compares calendar days (``datetime.date`` or the
``YYYY-MM-DD`` string form), never timestamps, so a time-of-day component is
dropped as soon as a value enters through ``to_calendar_date``.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterator, Optional, Union

DateLike = Union[date, datetime, str]


def day_of_week(d: date) -> int:
    """0..6 with Sunday = 0 (Python's weekday() has Monday = 0)."""
    return (d.weekday() + 1) % 7


def format_iso_date(d: date) -> str:
    return to_calendar_date(d).isoformat()


def parse_iso_date(value: str) -> date:
    value = value.strip()
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD")


def to_calendar_date(value: DateLike) -> date:
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_iso_date(value)
    raise TypeError(f"Expected a date, datetime or ISO string, got {type(value).__name__}")


def local_calendar_date(moment: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar day of a stored timestamp in tz (the server's local zone when None).

    Naive timestamps are read as UTC, which is how they are written.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def iterate_dates(start: date, end: date) -> Iterator[date]:
    """Every calendar day in [start, end], ascending."""
    start = to_calendar_date(start)
    end = to_calendar_date(end)
    if end < start:
        raise ValueError(f"end date {end} is before start date {start}")
    return _walk(start, end)


def _walk(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def days_between(start: date, end: date) -> int:
    """Number of days in the closed range [start, end]."""
    return (to_calendar_date(end) - to_calendar_date(start)).days + 1
