# valuetrack/services/performance/calculator.py
"""
Baseline selection and change calculation.

Works on any chronologically ordered sequence of (date, value) points: an
account's own updates or the portfolio timeline. All functions are pure.

Baseline rules:
    LAST_UPDATE   second-to-last point vs last point (needs 2 points)
    ONE_MONTH     latest point at or before now - 30 days,
    THREE_MONTHS  latest point at or before now - 90 days,
    ONE_YEAR      latest point at or before now - 365 days;
                  the first point when the data starts after the cutoff
    ALL_TIME      first point vs last point (needs 2 points); the
                  portfolio labels it "Since <first date>"

A baseline of zero has no meaningful percentage and yields has_data=False.
"""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

from valuetrack.services.constants import FALLBACK_LABEL_TEMPLATE, NO_PREVIOUS_UPDATE_LABEL
from valuetrack.services.performance.types import BaselineSelection, PerformanceResult
from valuetrack.services.periods import TimePeriod
from valuetrack.services.timeline.types import ChartDataPoint
from valuetrack.utils.date_utils import format_label_date

_HUNDRED = Decimal("100")


def select_baseline(
    points: Sequence[ChartDataPoint],
    period: TimePeriod,
    now: datetime,
) -> BaselineSelection | None:
    """
    Choose the baseline and current points for a period.

    Args:
        points: Chronologically ordered points
        period: Requested period
        now: Reference instant for window cutoffs

    Returns:
        The selection, or None when there is not enough data
    """
    if not points:
        return None

    current = points[-1]

    if period is TimePeriod.LAST_UPDATE:
        if len(points) < 2:
            return None
        return BaselineSelection(baseline=points[-2], current=current)

    if period is TimePeriod.ALL_TIME:
        if len(points) < 2:
            return None
        return BaselineSelection(baseline=points[0], current=current)

    cutoff = period.cutoff(now)
    eligible = [p for p in points if p.date <= cutoff]
    if eligible:
        return BaselineSelection(baseline=eligible[-1], current=current)
    return BaselineSelection(baseline=points[0], current=current, used_fallback=True)


def calculate_change(
    points: Sequence[ChartDataPoint],
    period: TimePeriod,
    now: datetime,
    label_start: bool = False,
) -> PerformanceResult:
    """
    Percentage and absolute change over a period.

    With label_start, a successful ALL_TIME result is labelled with the
    first point's date ('Since Mar 5, 2024') instead of 'All time'.

    Example:
        (d0, 1000), (d1, 1200) over LAST_UPDATE → 20.0%, +200
    """
    selection = select_baseline(points, period, now)
    if selection is None:
        label = NO_PREVIOUS_UPDATE_LABEL if period is TimePeriod.LAST_UPDATE else period.label
        return PerformanceResult.no_data(period, label)

    baseline, current = selection.baseline, selection.current
    if selection.used_fallback:
        label = FALLBACK_LABEL_TEMPLATE.format(date=format_label_date(baseline.date))
    else:
        label = period.label

    if baseline.value <= 0:
        return PerformanceResult.no_data(period, label)

    if label_start and period is TimePeriod.ALL_TIME:
        label = FALLBACK_LABEL_TEMPLATE.format(date=format_label_date(baseline.date))

    absolute = current.value - baseline.value
    percentage = float(absolute / baseline.value * _HUNDRED)

    return PerformanceResult(
        period=period,
        percentage=percentage,
        absolute=absolute,
        is_positive=absolute >= 0,
        has_data=True,
        period_label=label,
        baseline_date=baseline.date,
        current_date=current.date,
        baseline_value=baseline.value,
        current_value=current.value,
    )
