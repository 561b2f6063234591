#!/usr/bin/env python3
# init_db.py
"""
Database initialization script.

Creates every table directly from the models, then forward-fills snapshot
coverage for existing accounts. Use alembic for schema changes on a
database that already has data.

    python init_db.py
"""

from valuetrack.database import engine, session_scope
from valuetrack.models import Base
from valuetrack.services.snapshots import SnapshotMaintainer
from valuetrack.utils import setup_logging


def init_db() -> None:
    """Create all database tables and fill missing snapshots."""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)

    with session_scope() as db:
        result = SnapshotMaintainer().ensure_snapshot_coverage(db)
    print(f"Tables ready; {result.created} missing snapshots created.")


if __name__ == "__main__":
    setup_logging()
    init_db()
