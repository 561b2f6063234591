# valuetrack/services/snapshots/__init__.py
"""
Snapshot Maintainer package.

Architecture:
    snapshots/
    ├── __init__.py     # Package exports
    ├── types.py        # MaintenanceResult, CoverageReport, job types
    ├── maintainer.py   # SnapshotMaintainer (fill / upsert / rebuild / verify)
    └── background.py   # RecalculationWorker (cancellable portfolio rebuilds)
"""

from valuetrack.services.snapshots.background import RecalculationWorker
from valuetrack.services.snapshots.maintainer import SNAPSHOT_WRITE_LOCK, SnapshotMaintainer
from valuetrack.services.snapshots.types import (
    CoverageReport,
    JobStatus,
    MaintenanceResult,
    RecalculationJob,
)

__all__ = [
    "SnapshotMaintainer",
    "RecalculationWorker",
    "SNAPSHOT_WRITE_LOCK",
    "MaintenanceResult",
    "CoverageReport",
    "JobStatus",
    "RecalculationJob",
]
