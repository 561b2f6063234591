# valuetrack/routers/__init__.py
"""
API routers for ValueTrack.

Each router handles a specific domain:
- accounts: Accounts and their value updates
- validation: Form input checks (amounts, account names)
- charts: Value timelines for charts
- performance: Change over a period
- snapshots: Snapshot coverage and background portfolio rebuilds
"""

from valuetrack.routers.accounts import router as accounts_router
from valuetrack.routers.charts import router as charts_router
from valuetrack.routers.performance import router as performance_router
from valuetrack.routers.snapshots import router as snapshots_router
from valuetrack.routers.validation import router as validation_router

__all__ = [
    "accounts_router",
    "validation_router",
    "charts_router",
    "performance_router",
    "snapshots_router",
]
