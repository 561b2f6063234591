# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Sample data factories that bypass the services (no snapshot maintenance)
"""

import os

# Settings are validated on import; select the test environment first
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import date, datetime
from decimal import Decimal
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from valuetrack.models import Account, AccountUpdate, Base


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory bound to the test engine (for worker threads)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Iterator[Session]:
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def create_account(
        db: Session,
        name: str = "Savings",
        created_at: datetime = datetime(2024, 1, 1, 9, 0),
        is_active: bool = True,
) -> Account:
    """Create an account row without an initial update."""
    account = Account(name=name, created_at=created_at, is_active=is_active)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def create_update(
        db: Session,
        account: Account,
        value: str | Decimal,
        when: datetime,
) -> AccountUpdate:
    """Record a raw update row (snapshots are not touched)."""
    update = AccountUpdate(account_id=account.id, value=Decimal(value), date=when)
    db.add(update)
    db.commit()
    db.refresh(update)
    return update


def day(n: int) -> date:
    """Day n of the fixture calendar (day 0 = 2024-01-01)."""
    return date.fromordinal(date(2024, 1, 1).toordinal() + n)


def at(n: int, hour: int = 12) -> datetime:
    """Noon (or the given hour) on fixture day n."""
    return datetime.combine(day(n), datetime.min.time()).replace(hour=hour)
