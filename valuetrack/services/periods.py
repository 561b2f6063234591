# valuetrack/services/periods.py
"""
Lookback periods shared by chart filtering and performance calculation.
"""

import enum
from datetime import datetime, timedelta

from valuetrack.services.constants import (
    ONE_MONTH_DAYS,
    ONE_YEAR_DAYS,
    THREE_MONTHS_DAYS,
)


class TimePeriod(str, enum.Enum):
    """
    A performance / chart window.

    LAST_UPDATE compares the two most recent observations, ALL_TIME the first
    and last. The fixed windows look back a number of days from "now".
    """
    LAST_UPDATE = "last_update"
    ONE_MONTH = "one_month"
    THREE_MONTHS = "three_months"
    ONE_YEAR = "one_year"
    ALL_TIME = "all_time"

    @property
    def display_name(self) -> str:
        """Short name for period pickers."""
        return _DISPLAY_NAMES[self]

    @property
    def label(self) -> str:
        """Label shown next to a performance figure."""
        return _LABELS[self]

    @property
    def lookback_days(self) -> int | None:
        """Days in a fixed window; None for LAST_UPDATE and ALL_TIME."""
        return _LOOKBACK_DAYS.get(self)

    @property
    def is_window(self) -> bool:
        return self in _LOOKBACK_DAYS

    def cutoff(self, now: datetime) -> datetime | None:
        """Start of the window ending at `now`, or None for non-window periods."""
        days = self.lookback_days
        if days is None:
            return None
        return now - timedelta(days=days)


_DISPLAY_NAMES = {
    TimePeriod.LAST_UPDATE: "Latest",
    TimePeriod.ONE_MONTH: "1M",
    TimePeriod.THREE_MONTHS: "3M",
    TimePeriod.ONE_YEAR: "1Y",
    TimePeriod.ALL_TIME: "Max",
}

_LABELS = {
    TimePeriod.LAST_UPDATE: "Since last update",
    TimePeriod.ONE_MONTH: "Past month",
    TimePeriod.THREE_MONTHS: "Past 3 months",
    TimePeriod.ONE_YEAR: "Past year",
    TimePeriod.ALL_TIME: "All time",
}

_LOOKBACK_DAYS = {
    TimePeriod.ONE_MONTH: ONE_MONTH_DAYS,
    TimePeriod.THREE_MONTHS: THREE_MONTHS_DAYS,
    TimePeriod.ONE_YEAR: ONE_YEAR_DAYS,
}
