# valuetrack/services/snapshots/types.py
"""
Data types for snapshot maintenance.

Type Hierarchy:
    MaintenanceResult  - Counts and outcome of one maintenance call
    CoverageReport     - Gap/duplicate check of one account's snapshots
    JobStatus          - Lifecycle state of a background rebuild
    RecalculationJob   - A queued portfolio rebuild (identifiers only)
"""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass
class MaintenanceResult:
    """
    Outcome of a snapshot maintenance call.

    Maintenance never raises on a failed save: the error is logged and
    recorded here, and the call can simply be repeated.

    Attributes:
        created: Snapshots inserted
        updated: Existing snapshots overwritten
        deleted: Snapshots removed
        days_processed: Calendar days visited
        cancelled: Stopped early by a cancellation request
        error: Persistence failure message, if the save failed
    """
    created: int = 0
    updated: int = 0
    deleted: int = 0
    days_processed: int = 0
    cancelled: bool = False
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and not self.cancelled

    def merge(self, other: MaintenanceResult) -> MaintenanceResult:
        """Accumulate another result into this one (returns self)."""
        self.created += other.created
        self.updated += other.updated
        self.deleted += other.deleted
        self.days_processed += other.days_processed
        self.cancelled = self.cancelled or other.cancelled
        self.error = self.error or other.error
        return self


@dataclass(frozen=True)
class CoverageReport:
    """
    Snapshot coverage of one account between creation and an end day.

    Complete coverage means one snapshot per day with no gaps and no
    duplicates: actual_count == expected_count == days_between + 1.
    """
    account_id: int
    start_day: date
    end_day: date
    expected_count: int
    actual_count: int
    missing_days: list[date] = field(default_factory=list)
    duplicate_days: list[date] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return (
            not self.missing_days
            and not self.duplicate_days
            and self.actual_count == self.expected_count
        )


class JobStatus(str, enum.Enum):
    """
    State of a background recalculation job.

    State transitions:
        PENDING → RUNNING → COMPLETED
        PENDING → RUNNING → FAILED
        PENDING | RUNNING → CANCELLED
    """
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_finished(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.CANCELLED, JobStatus.FAILED)


@dataclass
class RecalculationJob:
    """
    A queued portfolio snapshot rebuild.

    Holds only plain values; the worker resolves everything else against
    its own session.
    """
    job_id: str
    from_day: date
    submitted_at: datetime
    until_day: date | None = None
    correlation_id: str | None = None
    status: JobStatus = JobStatus.PENDING
    started_at: datetime | None = None
    finished_at: datetime | None = None
    result: MaintenanceResult | None = None
    error: str | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)
    done_event: threading.Event = field(default_factory=threading.Event, repr=False)
