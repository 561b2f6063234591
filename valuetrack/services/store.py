# valuetrack/services/store.py
"""
SQLAlchemy-backed value store.

Wraps a Session with the small set of operations the engine needs:
insert, delete, predicate fetches and a commit that converts database
failures into PersistenceError after rolling back.

Ordering guarantees:
    - updates: (date, account_id, id) ascending
    - snapshots: date ascending
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from valuetrack.models import Account, AccountSnapshot, AccountUpdate, PortfolioSnapshot
from valuetrack.services.exceptions import (
    AccountNotFoundError,
    PersistenceError,
    UpdateNotFoundError,
)

logger = logging.getLogger(__name__)


class ValueStore:
    """Value store over one SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self._db = db

    @property
    def session(self) -> Session:
        return self._db

    # =========================================================================
    # WRITES
    # =========================================================================

    def insert(self, entity: Any) -> None:
        self._db.add(entity)

    def delete(self, entity: Any) -> None:
        self._db.delete(entity)

    def flush(self) -> None:
        """Push pending writes so generated ids are available."""
        try:
            self._db.flush()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(f"Flush failed: {e}")
            raise PersistenceError(f"Failed to write changes: {e}", operation="flush") from e

    def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            PersistenceError: If the database rejects the write (rolled back)
        """
        try:
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(f"Commit failed: {e}")
            raise PersistenceError(f"Failed to save changes: {e}", operation="commit") from e

    def rollback(self) -> None:
        self._db.rollback()

    def delete_account_snapshots(
        self,
        account_id: int,
        start_day: date | None = None,
        end_day: date | None = None,
    ) -> int:
        """Delete an account's snapshots in [start_day, end_day]. Returns rows removed."""
        stmt = delete(AccountSnapshot).where(AccountSnapshot.account_id == account_id)
        if start_day is not None:
            stmt = stmt.where(AccountSnapshot.date >= start_day)
        if end_day is not None:
            stmt = stmt.where(AccountSnapshot.date <= end_day)
        result = self._db.execute(stmt.execution_options(synchronize_session="fetch"))
        return result.rowcount or 0

    def delete_account_updates(self, account_id: int) -> int:
        """Delete every update of an account. Returns rows removed."""
        stmt = delete(AccountUpdate).where(AccountUpdate.account_id == account_id)
        result = self._db.execute(stmt.execution_options(synchronize_session="fetch"))
        return result.rowcount or 0

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    def get_account(self, account_id: int) -> Account:
        """
        Resolve an account id.

        Raises:
            AccountNotFoundError: If no such account exists
        """
        account = self._db.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def fetch_accounts(
        self,
        account_ids: Iterable[int] | None = None,
        active_only: bool = False,
    ) -> list[Account]:
        """Accounts filtered by id set and/or active flag, ordered by id."""
        stmt = select(Account)
        if account_ids is not None:
            stmt = stmt.where(Account.id.in_(list(account_ids)))
        if active_only:
            stmt = stmt.where(Account.is_active.is_(True))
        return list(self._db.scalars(stmt.order_by(Account.id)))

    def account_names(self) -> list[str]:
        """Names of all accounts, active and inactive."""
        return list(self._db.scalars(select(Account.name)))

    # =========================================================================
    # UPDATES
    # =========================================================================

    def get_update(self, update_id: int) -> AccountUpdate:
        """
        Resolve an update id.

        Raises:
            UpdateNotFoundError: If no such update exists
        """
        update = self._db.get(AccountUpdate, update_id)
        if update is None:
            raise UpdateNotFoundError(update_id)
        return update

    def fetch_updates(
        self,
        account_ids: Iterable[int],
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AccountUpdate]:
        """Updates for the given accounts within [start, end], chronologically."""
        ids = list(account_ids)
        if not ids:
            return []
        stmt = select(AccountUpdate).where(AccountUpdate.account_id.in_(ids))
        if start is not None:
            stmt = stmt.where(AccountUpdate.date >= start)
        if end is not None:
            stmt = stmt.where(AccountUpdate.date <= end)
        stmt = stmt.order_by(AccountUpdate.date, AccountUpdate.account_id, AccountUpdate.id)
        return list(self._db.scalars(stmt))

    def latest_update(self, account_id: int, at_or_before: datetime | None = None) -> AccountUpdate | None:
        stmt = select(AccountUpdate).where(AccountUpdate.account_id == account_id)
        if at_or_before is not None:
            stmt = stmt.where(AccountUpdate.date <= at_or_before)
        stmt = stmt.order_by(AccountUpdate.date.desc(), AccountUpdate.id.desc()).limit(1)
        return self._db.scalars(stmt).first()

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def fetch_account_snapshots(
        self,
        account_id: int,
        start_day: date | None = None,
        end_day: date | None = None,
    ) -> list[AccountSnapshot]:
        stmt = select(AccountSnapshot).where(AccountSnapshot.account_id == account_id)
        if start_day is not None:
            stmt = stmt.where(AccountSnapshot.date >= start_day)
        if end_day is not None:
            stmt = stmt.where(AccountSnapshot.date <= end_day)
        return list(self._db.scalars(stmt.order_by(AccountSnapshot.date)))

    def get_account_snapshot(self, account_id: int, day: date) -> AccountSnapshot | None:
        stmt = select(AccountSnapshot).where(
            AccountSnapshot.account_id == account_id,
            AccountSnapshot.date == day,
        )
        return self._db.scalars(stmt).first()

    def latest_account_snapshot(self, account_id: int, before_day: date | None = None) -> AccountSnapshot | None:
        """Most recent snapshot strictly before before_day (or overall)."""
        stmt = select(AccountSnapshot).where(AccountSnapshot.account_id == account_id)
        if before_day is not None:
            stmt = stmt.where(AccountSnapshot.date < before_day)
        stmt = stmt.order_by(AccountSnapshot.date.desc()).limit(1)
        return self._db.scalars(stmt).first()

    def fetch_portfolio_snapshots(
        self,
        start_day: date | None = None,
        end_day: date | None = None,
    ) -> list[PortfolioSnapshot]:
        stmt = select(PortfolioSnapshot)
        if start_day is not None:
            stmt = stmt.where(PortfolioSnapshot.date >= start_day)
        if end_day is not None:
            stmt = stmt.where(PortfolioSnapshot.date <= end_day)
        return list(self._db.scalars(stmt.order_by(PortfolioSnapshot.date)))

    def get_portfolio_snapshot(self, day: date) -> PortfolioSnapshot | None:
        return self._db.scalars(
            select(PortfolioSnapshot).where(PortfolioSnapshot.date == day)
        ).first()

    def delete_portfolio_snapshots(self, start_day: date | None = None, end_day: date | None = None) -> int:
        stmt = delete(PortfolioSnapshot)
        if start_day is not None:
            stmt = stmt.where(PortfolioSnapshot.date >= start_day)
        if end_day is not None:
            stmt = stmt.where(PortfolioSnapshot.date <= end_day)
        result = self._db.execute(stmt.execution_options(synchronize_session="fetch"))
        return result.rowcount or 0
