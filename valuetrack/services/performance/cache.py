# valuetrack/services/performance/cache.py
"""
Thread-safe LRU cache for performance results.

Entries are keyed by (scope, period, fingerprint, window marker):
    scope        "account:<id>" or "portfolio:<sorted ids>|all"
    fingerprint  SHA-256 over every contributing (account, update, date, value)
    marker       for fixed windows, how many points fall at or before the
                 cutoff; the baseline choice depends on nothing else

Any change to a contributing update changes the fingerprint, so stale
entries are never served; invalidate() additionally frees them eagerly.
"""

import hashlib
import logging
import threading
from bisect import bisect_right
from collections import OrderedDict
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from valuetrack.config import settings
from valuetrack.services.performance.types import PerformanceResult
from valuetrack.services.periods import TimePeriod
from valuetrack.services.timeline.types import ValuePoint

logger = logging.getLogger(__name__)

PORTFOLIO_SCOPE = "portfolio"


def account_scope(account_id: int) -> str:
    return f"account:{account_id}"


def portfolio_scope(account_ids: Iterable[int] | None) -> str:
    if account_ids is None:
        return f"{PORTFOLIO_SCOPE}:all"
    return f"{PORTFOLIO_SCOPE}:{','.join(str(i) for i in sorted(set(account_ids)))}"


def fingerprint(points: Iterable[ValuePoint]) -> str:
    """Stable hash of the contributing updates."""
    digest = hashlib.sha256()
    for p in sorted(points, key=lambda e: e.sort_key):
        digest.update(f"{p.account_id}|{p.update_id}|{p.date.isoformat()}|{p.value}\n".encode())
    return digest.hexdigest()


def window_marker(points: Sequence[ValuePoint], period: TimePeriod, now: datetime) -> int | None:
    """Number of points at or before the period's cutoff (None for non-windows)."""
    cutoff = period.cutoff(now)
    if cutoff is None:
        return None
    dates = sorted(p.date for p in points)
    return bisect_right(dates, cutoff)


class PerformanceCache:
    """
    Bounded LRU cache with TTL.

    Thread Safety:
        All access goes through one threading.Lock; writes are rare (one
        invalidation per update mutation).
    """

    def __init__(
            self,
            ttl_seconds: int | None = None,
            max_size: int | None = None,
    ) -> None:
        self._cache: OrderedDict[str, tuple[datetime, PerformanceResult]] = OrderedDict()
        self._ttl = timedelta(seconds=ttl_seconds or settings.performance_cache_ttl_seconds)
        self._max_size = max_size or settings.performance_cache_max_size
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(scope: str, period: TimePeriod, data_fingerprint: str, marker: int | None) -> str:
        return f"{scope}|{period.value}|{data_fingerprint}|{'-' if marker is None else marker}"

    def get(self, key: str) -> PerformanceResult | None:
        """Cached result, or None if absent or expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None:
                timestamp, result = entry
                if datetime.now() - timestamp < self._ttl:
                    self._cache.move_to_end(key)
                    self.hits += 1
                    logger.debug(f"Performance cache hit for {key[:60]}")
                    return result
                del self._cache[key]
            self.misses += 1
        return None

    def set(self, key: str, result: PerformanceResult) -> None:
        with self._lock:
            self._cache.pop(key, None)
            while len(self._cache) >= self._max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
            self._cache[key] = (datetime.now(), result)

    def invalidate(self, scope: str | None = None) -> int:
        """
        Drop entries for a scope (all entries if None).

        "portfolio" matches every portfolio scope; "account:3" matches
        only that account.

        Returns:
            Number of entries removed
        """
        with self._lock:
            if scope is None:
                count = len(self._cache)
                self._cache.clear()
            else:
                keys = [k for k in self._cache if _scope_matches(k.split("|", 1)[0], scope)]
                for key in keys:
                    del self._cache[key]
                count = len(keys)
        if count:
            logger.debug(f"Invalidated {count} performance cache entries for {scope or 'all scopes'}")
        return count

    def clear(self) -> None:
        self.invalidate(None)

    def size(self) -> int:
        with self._lock:
            return len(self._cache)


def _scope_matches(entry_scope: str, scope: str) -> bool:
    return entry_scope == scope or entry_scope.startswith(f"{scope}:")
