# valuetrack/services/performance/__init__.py
"""
Performance Calculator package.

Architecture:
    performance/
    ├── __init__.py     # Package exports
    ├── types.py        # BaselineSelection, PerformanceResult
    ├── calculator.py   # Pure baseline selection / change math
    ├── cache.py        # PerformanceCache (thread-safe LRU)
    └── service.py      # PerformanceService (loads data, caches results)
"""

from valuetrack.services.performance.cache import PerformanceCache
from valuetrack.services.performance.calculator import calculate_change, select_baseline
from valuetrack.services.performance.service import PerformanceService
from valuetrack.services.performance.types import BaselineSelection, PerformanceResult

__all__ = [
    "PerformanceService",
    "PerformanceCache",
    "PerformanceResult",
    "BaselineSelection",
    "calculate_change",
    "select_baseline",
]
