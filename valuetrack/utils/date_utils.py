# valuetrack/utils/date_utils.py
"""
Date utility functions shared by the timeline, snapshot and performance code.

Timestamps are naive local datetimes. A "day" is the calendar date of a
timestamp; snapshots are keyed by day.

Usage:
    from valuetrack.utils.date_utils import iter_days, to_day

    for day in iter_days(to_day(account.created_at), date.today()):
        ...
"""

from collections.abc import Iterator
from datetime import date, datetime, time, timedelta


def to_day(value: date | datetime) -> date:
    """Truncate a timestamp to its calendar day (dates pass through)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def to_naive_local(value: datetime) -> datetime:
    """Convert an aware timestamp to naive local time (naive values pass through)."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def start_of_day(value: date | datetime) -> datetime:
    """Midnight at the start of the value's calendar day."""
    return datetime.combine(to_day(value), time.min)


def end_of_day(value: date | datetime) -> datetime:
    """Last representable instant of the value's calendar day."""
    return datetime.combine(to_day(value), time.max)


def iter_days(start: date, end: date) -> Iterator[date]:
    """
    Yield every calendar day from start to end inclusive.

    Args:
        start: First day
        end: Last day (nothing is yielded if end < start)

    Example:
        >>> list(iter_days(date(2024, 1, 30), date(2024, 2, 1)))
        [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1)]
    """
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative if end precedes start)."""
    return (end - start).days


def format_label_date(value: date | datetime) -> str:
    """Short human date used in performance labels, e.g. 'Mar 5, 2024'."""
    day = to_day(value)
    return f"{day:%b} {day.day}, {day.year}"
