# valuetrack/services/performance/types.py
"""
Data types for performance calculation.

Design Principles:
- Decimal for money, float only for the percentage
- A result without enough data is still a result (has_data=False),
  never an exception

Type Hierarchy:
    BaselineSelection  - The pair of points a change is measured between
    PerformanceResult  - Change over a period for an account or portfolio
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from valuetrack.services.periods import TimePeriod
from valuetrack.services.timeline.types import ChartDataPoint


@dataclass(frozen=True)
class BaselineSelection:
    """
    Baseline and current point chosen for a period.

    Attributes:
        baseline: Reference point
        current: Latest point
        used_fallback: The window had no point at its cutoff, so the
            earliest point was used instead
    """
    baseline: ChartDataPoint
    current: ChartDataPoint
    used_fallback: bool = False


@dataclass(frozen=True)
class PerformanceResult:
    """
    Change in value over a period.

    Attributes:
        period: Requested period
        percentage: Change relative to the baseline, in percent
        absolute: Current value minus baseline value
        is_positive: absolute >= 0
        has_data: False when there is no meaningful comparison
        period_label: Human label ("Past month", "Since Mar 5, 2024", ...)
        baseline_date / current_date: Points compared, when has_data
        baseline_value / current_value: Values compared, when has_data
    """
    period: TimePeriod
    percentage: float
    absolute: Decimal
    is_positive: bool
    has_data: bool
    period_label: str
    baseline_date: datetime | None = None
    current_date: datetime | None = None
    baseline_value: Decimal | None = None
    current_value: Decimal | None = None

    @classmethod
    def no_data(cls, period: TimePeriod, label: str | None = None) -> PerformanceResult:
        return cls(
            period=period,
            percentage=0.0,
            absolute=Decimal("0"),
            is_positive=True,
            has_data=False,
            period_label=label or period.label,
        )
