"""Claim store: the explicitly constructed handle on the relational store.

One ``ClaimStore`` is built by the application factory and handed to every
component that needs the database. There is no module-level engine.

Write transactions are opened with ``ClaimStore.transaction()``:

- PostgreSQL: a regular transaction with ``SET LOCAL lock_timeout`` so that
  ``SELECT ... FOR UPDATE`` waits are bounded.
- SQLite: the transaction starts with ``BEGIN IMMEDIATE`` which takes the
  database write lock up front. SQLite has no row locks, so this serializes
  all writers; the busy timeout bounds the wait.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import InterfaceError, OperationalError

from ..errors import TransientStoreError
from .schema import metadata

logger = logging.getLogger(__name__)

# Execution option consulted by the SQLite "begin" listener
SQLITE_BEGIN_OPTION = "sqlite_begin_mode"


class ClaimStore:
    """Owns the SQLAlchemy engine and hands out connections and transactions."""

    def __init__(self, engine: Engine, lock_timeout_ms: int = 5000) -> None:
        self.engine = engine
        self.lock_timeout_ms = lock_timeout_ms

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def init_schema(self) -> None:
        """Create all tables that don't exist yet."""
        metadata.create_all(self.engine)
        logger.info(f"Schema ready on {self.dialect} store")

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Read-only unit of work; no locks are taken."""
        try:
            with self.engine.connect() as conn:
                yield conn
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Store read failed: {e}", exc_info=True)
            raise TransientStoreError("Claim store is unavailable, retry later") from e

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Atomic unit of work. Commits on success, rolls back on any error."""
        try:
            with self.engine.connect() as conn:
                conn.execution_options(**{SQLITE_BEGIN_OPTION: "IMMEDIATE"})
                with conn.begin():
                    if self.dialect == "postgresql":
                        # SET does not accept bind parameters
                        conn.execute(
                            text(f"SET LOCAL lock_timeout = {int(self.lock_timeout_ms)}")
                        )
                    yield conn
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Store transaction failed: {e}", exc_info=True)
            raise TransientStoreError(
                "Claim store is busy or unavailable, retry later"
            ) from e

    def ping(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except (OperationalError, InterfaceError) as e:
            logger.warning(f"Store health check failed: {e}")
            return False


def _configure_sqlite(engine: Engine) -> None:
    """Take over transaction control from pysqlite so BEGIN can be IMMEDIATE."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys = ON")

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")


def create_store(database_url: str, lock_timeout_ms: int = 5000) -> ClaimStore:
    """Build a ClaimStore for the given SQLAlchemy URL.

    Args:
        database_url: SQLAlchemy URL (``postgresql://...`` or ``sqlite:///...``)
        lock_timeout_ms: Upper bound on lock waits inside a transaction

    Returns:
        A ready-to-use ClaimStore (schema is not created here)
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            url,
            connect_args={
                "check_same_thread": False,
                "timeout": lock_timeout_ms / 1000,
            },
        )
        _configure_sqlite(engine)
    else:
        engine = create_engine(
            url,
            pool_pre_ping=True,  # Check connection health
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
        )

    logger.info(f"Created {url.get_backend_name()} claim store")
    return ClaimStore(engine, lock_timeout_ms=lock_timeout_ms)
