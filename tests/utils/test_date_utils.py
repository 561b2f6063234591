# tests/utils/test_date_utils.py
"""Tests for the day helpers."""

from datetime import date, datetime, time, timezone

from valuetrack.utils.date_utils import (
    days_between,
    end_of_day,
    format_label_date,
    iter_days,
    start_of_day,
    to_day,
    to_naive_local,
)


class TestDayBoundaries:
    def test_to_day(self):
        assert to_day(datetime(2024, 3, 5, 23, 59)) == date(2024, 3, 5)
        assert to_day(date(2024, 3, 5)) == date(2024, 3, 5)

    def test_start_and_end_of_day(self):
        assert start_of_day(datetime(2024, 3, 5, 15, 30)) == datetime(2024, 3, 5, 0, 0)
        assert end_of_day(date(2024, 3, 5)) == datetime.combine(date(2024, 3, 5), time.max)

    def test_to_naive_local(self):
        local = datetime(2024, 3, 5, 12, 0)
        assert to_naive_local(local) is local
        converted = to_naive_local(local.astimezone(timezone.utc))
        assert converted == local
        assert converted.tzinfo is None


class TestIterDays:
    def test_inclusive_range_across_month(self):
        assert list(iter_days(date(2024, 2, 28), date(2024, 3, 1))) == [
            date(2024, 2, 28),
            date(2024, 2, 29),
            date(2024, 3, 1),
        ]

    def test_single_day(self):
        assert list(iter_days(date(2024, 1, 1), date(2024, 1, 1))) == [date(2024, 1, 1)]

    def test_empty_when_reversed(self):
        assert list(iter_days(date(2024, 1, 2), date(2024, 1, 1))) == []

    def test_days_between(self):
        assert days_between(date(2024, 1, 1), date(2024, 12, 31)) == 365
        assert days_between(date(2024, 1, 2), date(2024, 1, 1)) == -1


class TestLabelDate:
    def test_format(self):
        assert format_label_date(datetime(2024, 3, 5, 9, 0)) == "Mar 5, 2024"
        assert format_label_date(date(2023, 12, 25)) == "Dec 25, 2023"
