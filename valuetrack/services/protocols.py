# valuetrack/services/protocols.py
"""
Protocol interfaces for service dependency injection.

AccountService depends on these seams rather than on the concrete
PerformanceCache and RecalculationWorker, so tests can pass mocks and the
service can run without a background worker.
"""

from datetime import date
from typing import Protocol


class PerformanceCacheProtocol(Protocol):
    """Interface the account service uses to drop stale performance results."""

    def invalidate(self, scope: str | None = None) -> int:
        ...


class RecalculationSchedulerProtocol(Protocol):
    """Anything that can queue a portfolio snapshot rebuild."""

    def submit(self, from_day: date, until_day: date | None = None) -> str:
        ...
