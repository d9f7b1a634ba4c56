"""Shared SQLAlchemy handle and transaction helpers."""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

db = SQLAlchemy()


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime for DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on
    module = type(dbapi_connection).__module__
    if not module.startswith(("sqlite3", "pysqlite")):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@contextmanager
def atomic() -> Iterator[Session]:
    """Run the enclosed block as a single unit of work.

    Commits when the block finishes and rolls back on any exception, so a
    cascade delete either happens completely or not at all.
    """
    session = db.session
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


__all__ = ["atomic", "db", "utcnow"]
