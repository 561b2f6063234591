# valuetrack/services/timeline/service.py
"""
Timeline Service - loads updates and builds chart timelines.

Entry points:
- collect_points(): Updates for an account set as detached ValuePoints
- build_timeline(): Portfolio-total timeline for an account set
- build_timeline_async(): Same, on a worker thread with its own session
- get_portfolio_chart() / get_account_chart(): Timelines sliced to a period

Inactive accounts are left out of portfolio timelines unless
include_inactive is set.

Usage:
    from valuetrack.services.timeline import TimelineService

    service = TimelineService()
    points = service.build_timeline(db)
    chart = service.get_portfolio_chart(db, TimePeriod.ONE_MONTH)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from sqlalchemy.orm import Session

from valuetrack.database import session_scope
from valuetrack.services.periods import TimePeriod
from valuetrack.services.store import ValueStore
from valuetrack.services.timeline.builder import (
    build_account_timeline,
    build_timeline,
    timeline_for_period,
)
from valuetrack.services.timeline.types import ChartDataPoint, ValuePoint

logger = logging.getLogger(__name__)


class TimelineService:
    """Fetches updates from the value store and replays them into timelines."""

    def __init__(self) -> None:
        logger.info("TimelineService initialized")

    # =========================================================================
    # DATA LOADING
    # =========================================================================

    def collect_points(
            self,
            db: Session,
            account_ids: Iterable[int] | None = None,
            include_inactive: bool = False,
    ) -> list[ValuePoint]:
        """
        Updates of the selected accounts as ValuePoints.

        Args:
            db: Database session
            account_ids: Restrict to these accounts (None = all)
            include_inactive: Keep closed accounts in the selection

        Unknown ids are ignored.
        """
        store = ValueStore(db)
        accounts = store.fetch_accounts(account_ids, active_only=not include_inactive)
        updates = store.fetch_updates(account.id for account in accounts)
        return [ValuePoint.from_update(update) for update in updates]

    # =========================================================================
    # TIMELINES
    # =========================================================================

    def build_timeline(
            self,
            db: Session,
            account_ids: Iterable[int] | None = None,
            include_inactive: bool = False,
    ) -> list[ChartDataPoint]:
        """Portfolio-total timeline over the selected accounts."""
        points = build_timeline(self.collect_points(db, account_ids, include_inactive))
        logger.debug(f"Built timeline with {len(points)} points")
        return points

    async def build_timeline_async(
            self,
            session_factory: Callable[[], Session],
            account_ids: Iterable[int] | None = None,
            include_inactive: bool = False,
    ) -> list[ChartDataPoint]:
        """
        Build a timeline off the event loop.

        Only the account ids cross into the worker thread, which opens and
        closes its own session.
        """
        ids = None if account_ids is None else list(account_ids)
        return await asyncio.to_thread(self._build_in_new_session, session_factory, ids, include_inactive)

    def _build_in_new_session(
            self,
            session_factory: Callable[[], Session],
            account_ids: list[int] | None,
            include_inactive: bool,
    ) -> list[ChartDataPoint]:
        with session_scope(session_factory) as db:
            return self.build_timeline(db, account_ids, include_inactive)

    # =========================================================================
    # CHARTS
    # =========================================================================

    def get_portfolio_chart(
            self,
            db: Session,
            period: TimePeriod,
            account_ids: Iterable[int] | None = None,
            now: datetime | None = None,
    ) -> list[ChartDataPoint]:
        """Portfolio timeline sliced to the requested period."""
        points = self.build_timeline(db, account_ids)
        return timeline_for_period(points, period, now or datetime.now())

    def get_account_chart(
            self,
            db: Session,
            account_id: int,
            period: TimePeriod,
            now: datetime | None = None,
    ) -> list[ChartDataPoint]:
        """
        One account's updates sliced to the requested period.

        Raises:
            AccountNotFoundError: If the account does not exist
        """
        store = ValueStore(db)
        store.get_account(account_id)
        entries = [ValuePoint.from_update(u) for u in store.fetch_updates([account_id])]
        return timeline_for_period(build_account_timeline(entries), period, now or datetime.now())
