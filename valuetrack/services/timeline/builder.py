# valuetrack/services/timeline/builder.py
"""
Timeline reconstruction by replaying updates.

The portfolio timeline is rebuilt from raw updates: updates are sorted
chronologically and replayed while a running "last known value" per account
is kept. After each update one point is emitted whose value is the sum of
every account's last known value. The output therefore has exactly one
point per update, in non-decreasing date order.

Same-timestamp updates are ordered by (account_id, update_id), which makes
the replay deterministic regardless of fetch order.

All functions here are pure and safe to run concurrently.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal

from valuetrack.services.periods import TimePeriod
from valuetrack.services.timeline.types import ChartDataPoint, ValuePoint


def build_timeline(entries: Iterable[ValuePoint]) -> list[ChartDataPoint]:
    """
    Replay updates into a portfolio-total timeline.

    Args:
        entries: Updates from any number of accounts, in any order

    Returns:
        One ChartDataPoint per entry, chronologically ordered

    Example:
        A@d0=1000, B@d0=500, B@d1=200 → [(d0, 1000), (d0, 1500), (d1, 1200)]
    """
    last_known: dict[int, Decimal] = {}
    running_total = Decimal("0")
    points: list[ChartDataPoint] = []

    for entry in sorted(entries, key=lambda e: e.sort_key):
        previous = last_known.get(entry.account_id, Decimal("0"))
        last_known[entry.account_id] = entry.value
        # Equal to sum(last_known.values()) without re-summing every step
        running_total += entry.value - previous
        points.append(ChartDataPoint(date=entry.date, value=running_total))

    return points


def build_account_timeline(entries: Iterable[ValuePoint]) -> list[ChartDataPoint]:
    """One point per update of a single account, chronologically ordered."""
    return [
        ChartDataPoint(date=entry.date, value=entry.value)
        for entry in sorted(entries, key=lambda e: e.sort_key)
    ]


def filter_timeline(points: Sequence[ChartDataPoint], start: datetime) -> list[ChartDataPoint]:
    """
    Points from `start` onward, anchored by the last earlier point.

    If no point falls exactly on `start`, the latest point strictly before
    it is prepended so a chart does not begin from nothing.

    Args:
        points: Chronologically ordered timeline
        start: First instant to include
    """
    filtered = [p for p in points if p.date >= start]

    if not any(p.date == start for p in filtered):
        earlier = [p for p in points if p.date < start]
        if earlier:
            filtered.insert(0, earlier[-1])

    return filtered


def last_update_window(points: Sequence[ChartDataPoint]) -> list[ChartDataPoint]:
    """The last two points (or all of them when there are fewer than two)."""
    return list(points[-2:])


def timeline_for_period(
    points: Sequence[ChartDataPoint],
    period: TimePeriod,
    now: datetime,
) -> list[ChartDataPoint]:
    """
    Slice a full timeline to what a chart for `period` should show.

    Args:
        points: Chronologically ordered timeline
        period: Requested window
        now: Reference instant for window cutoffs
    """
    if period is TimePeriod.LAST_UPDATE:
        return last_update_window(points)

    cutoff = period.cutoff(now)
    if cutoff is None:
        return list(points)
    return filter_timeline(points, cutoff)
