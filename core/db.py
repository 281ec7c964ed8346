"""
core/db.py -- Engine construction and integrity-error classification.

Both stores (auth/store.py, campus/store.py) talk to the same database, so
they share one Engine built here. The Engine owns the connection pool; stores
check out a connection per statement with `with engine.connect() as conn:`,
which returns it to the pool on every exit path, error paths included.

SQLite specifics:
  - check_same_thread=False: FastAPI runs sync handlers in a thread pool, so a
    pooled connection may be used from a different thread than the one that
    opened it.
  - WAL journal mode and foreign_keys=ON are per-connection PRAGMAs and must
    be set in a "connect" listener; new pool connections do not inherit them.

Layer rule: core/ is the kernel. No imports from api/, web/, auth/, or campus/.
"""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

# SQLSTATE codes shared by PostgreSQL drivers
_PG_UNIQUE_VIOLATION = "23505"
_PG_FOREIGN_KEY_VIOLATION = "23503"
_PG_NOT_NULL_VIOLATION = "23502"


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL for concurrent reads and enforce foreign keys."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args, pool_pre_ping=not db_url.startswith("sqlite"))
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = exc.orig
    # psycopg 3 exposes .sqlstate, psycopg2 exposes .pgcode
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == _PG_UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(exc.orig)


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == _PG_FOREIGN_KEY_VIOLATION:
        return True
    return "FOREIGN KEY constraint failed" in str(exc.orig)


def is_not_null_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == _PG_NOT_NULL_VIOLATION:
        return True
    return "NOT NULL constraint failed" in str(exc.orig)
