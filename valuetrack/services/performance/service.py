# valuetrack/services/performance/service.py
"""
Performance Service - change over a period for accounts and the portfolio.

- calculate_account_performance(): baseline from the account's own updates
- calculate_portfolio_performance(): baseline from the replayed portfolio
  timeline (Timeline Builder output)
- calculate_all_periods(): every period at once, for summary views

Results are memoized in a PerformanceCache keyed by the data fingerprint.
Missing accounts and empty histories produce has_data=False results rather
than exceptions.

Usage:
    from valuetrack.services.performance import PerformanceService

    service = PerformanceService(timeline_service=TimelineService())
    result = service.calculate_account_performance(db, 1, TimePeriod.ONE_MONTH)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from sqlalchemy.orm import Session

from valuetrack.services.performance.cache import (
    PORTFOLIO_SCOPE,
    PerformanceCache,
    account_scope,
    fingerprint,
    portfolio_scope,
    window_marker,
)
from valuetrack.services.performance.calculator import calculate_change
from valuetrack.services.performance.types import PerformanceResult
from valuetrack.services.periods import TimePeriod
from valuetrack.services.store import ValueStore
from valuetrack.services.timeline.builder import build_account_timeline, build_timeline
from valuetrack.services.timeline.service import TimelineService
from valuetrack.services.timeline.types import ValuePoint

logger = logging.getLogger(__name__)


class PerformanceService:
    """
    Computes PerformanceResults, caching them per data fingerprint.

    Attributes:
        _timeline: Loads contributing updates
        _cache: Result cache owned by this instance
    """

    def __init__(
            self,
            timeline_service: TimelineService | None = None,
            cache: PerformanceCache | None = None,
    ) -> None:
        self._timeline = timeline_service or TimelineService()
        self._cache = cache or PerformanceCache()
        logger.info("PerformanceService initialized")

    @property
    def cache(self) -> PerformanceCache:
        return self._cache

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def calculate_account_performance(
            self,
            db: Session,
            account_id: int,
            period: TimePeriod,
            now: datetime | None = None,
    ) -> PerformanceResult:
        """
        Change of one account over a period.

        Closed accounts are still measured; an unknown account id yields a
        has_data=False result.
        """
        now = now or datetime.now()
        store = ValueStore(db)
        if not store.fetch_accounts([account_id]):
            logger.warning(f"Performance requested for unknown account {account_id}")
            return PerformanceResult.no_data(period)

        entries = [ValuePoint.from_update(u) for u in store.fetch_updates([account_id])]
        return self._cached(
            account_scope(account_id),
            entries,
            period,
            now,
            lambda: calculate_change(build_account_timeline(entries), period, now),
        )

    def calculate_portfolio_performance(
            self,
            db: Session,
            period: TimePeriod,
            account_ids: Iterable[int] | None = None,
            now: datetime | None = None,
    ) -> PerformanceResult:
        """
        Change of the portfolio total over a period.

        Args:
            db: Database session
            period: Requested period
            account_ids: Restrict to these active accounts (None = all active)
            now: Reference instant (defaults to datetime.now())
        """
        now = now or datetime.now()
        ids = None if account_ids is None else list(account_ids)
        entries = self._timeline.collect_points(db, ids)
        return self._cached(
            portfolio_scope(ids),
            entries,
            period,
            now,
            lambda: calculate_change(build_timeline(entries), period, now, label_start=True),
        )

    def calculate_all_periods(
            self,
            db: Session,
            account_id: int | None = None,
            now: datetime | None = None,
    ) -> dict[TimePeriod, PerformanceResult]:
        """Every period for one account, or for the portfolio when account_id is None."""
        now = now or datetime.now()
        if account_id is None:
            return {p: self.calculate_portfolio_performance(db, p, now=now) for p in TimePeriod}
        return {p: self.calculate_account_performance(db, account_id, p, now=now) for p in TimePeriod}

    def invalidate_account(self, account_id: int) -> int:
        """Drop cached results for an account and for every portfolio scope."""
        return self._cache.invalidate(account_scope(account_id)) + self._cache.invalidate(PORTFOLIO_SCOPE)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _cached(
            self,
            scope: str,
            entries: list[ValuePoint],
            period: TimePeriod,
            now: datetime,
            compute: Callable[[], PerformanceResult],
    ) -> PerformanceResult:
        key = self._cache.make_key(scope, period, fingerprint(entries), window_marker(entries, period, now))
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        result = compute()
        self._cache.set(key, result)
        return result
