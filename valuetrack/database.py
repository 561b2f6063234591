# valuetrack/database.py
"""
Database engine and sessions.

Two kinds of session are handed out:
- request sessions through the `get_db` dependency
- worker sessions through `session_scope(factory)`, used by the
  recalculation worker and off-loop timeline builds, which must never share
  a request's session

SQLite runs on a StaticPool (one shared connection, usable from the worker
thread). PostgreSQL runs on a QueuePool sized by the DB_POOL_* settings.
"""

import logging
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool, QueuePool

from .config import settings

logger = logging.getLogger(__name__)


def _sqlite_engine(url: str) -> Engine:
    # check_same_thread=False: the recalculation worker runs on its own thread
    logger.info(f"Using SQLite database ({url})")
    return create_engine(
        url,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=settings.debug,
    )


def _pooled_engine(url: str) -> Engine:
    logger.info(
        f"Using PostgreSQL pool: size={settings.db_pool_size}, "
        f"max_overflow={settings.db_pool_max_overflow}, "
        f"recycle={settings.db_pool_recycle}s"
    )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_timeout=30,
        echo=settings.debug,
    )


engine = _sqlite_engine(settings.database_url) if settings.is_sqlite else _pooled_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session dependency; closed when the request ends."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(factory: Callable[[], Session] = SessionLocal) -> Iterator[Session]:
    """
    Session for work running outside a request.

    Uncommitted changes are rolled back when the block raises; the session
    is always closed.

    Example:
        with session_scope(session_factory) as db:
            maintainer.recalculate_portfolio_snapshots(db, from_day)
    """
    db = factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_database_health() -> dict:
    """
    Run a trivial query against the engine.

    Returns:
        {"status": "healthy", "database": <kind>} or
        {"status": "unhealthy", "error": <message>}
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}

    return {"status": "healthy", "database": "sqlite" if settings.is_sqlite else "postgresql"}
