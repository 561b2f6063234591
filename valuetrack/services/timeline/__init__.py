# valuetrack/services/timeline/__init__.py
"""
Timeline Builder package.

Architecture:
    timeline/
    ├── __init__.py   # Package exports
    ├── types.py      # ValuePoint, ChartDataPoint
    ├── builder.py    # Pure replay / filtering functions
    └── service.py    # TimelineService (loads updates, builds charts)
"""

from valuetrack.services.timeline.builder import (
    build_account_timeline,
    build_timeline,
    filter_timeline,
    last_update_window,
    timeline_for_period,
)
from valuetrack.services.timeline.service import TimelineService
from valuetrack.services.timeline.types import ChartDataPoint, ValuePoint

__all__ = [
    "TimelineService",
    "ChartDataPoint",
    "ValuePoint",
    "build_timeline",
    "build_account_timeline",
    "filter_timeline",
    "last_update_window",
    "timeline_for_period",
]
