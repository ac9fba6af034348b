"""Database connection management.

:class:`Database` owns the connection source for the configured backend: a
``psycopg_pool.ConnectionPool`` for PostgreSQL, or a single lock-guarded
connection for SQLite (development and tests; ``:memory:`` databases only
exist on the connection that created them).

:class:`Session` wraps one borrowed connection together with its dialect. It
translates driver exceptions into :class:`StoreError` /
:class:`ConstraintViolationError` and provides a nestable ``transaction()``
scope: only the outermost scope commits, and any exception (including task
cancellation) rolls the whole scope back.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout

from name_enricher.core.dialect import Dialect, get_dialect
from name_enricher.core.errors import ConstraintViolationError, StoreError
from name_enricher.core.settings import Settings
from name_enricher.observability.logging import get_logger

_INTEGRITY_ERRORS = (sqlite3.IntegrityError, psycopg.IntegrityError)
_DRIVER_ERRORS = (sqlite3.Error, psycopg.Error)


def _unicode_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def _sqlite_path(url: str) -> str:
    """``sqlite:///relative.db`` -> ``relative.db``, ``sqlite:///:memory:`` -> ``:memory:``."""
    path = url.split("://", 1)[1]
    if path.startswith("/"):
        path = path[1:]
    return path or ":memory:"


class Session:
    """One borrowed connection plus the dialect to build SQL for it."""

    def __init__(self, conn: Any, dialect: Dialect, *, logger=None):
        self._conn = conn
        self.dialect = dialect
        self._depth = 0
        self._logger = logger or get_logger(__name__)

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute a statement and return the driver cursor."""
        try:
            return self._conn.execute(sql, tuple(params))
        except _INTEGRITY_ERRORS as e:
            self._reset_after_error()
            raise ConstraintViolationError(f"constraint violation: {e}", cause=e) from e
        except _DRIVER_ERRORS as e:
            self._reset_after_error()
            self._logger.error("query_failed", error=str(e), sql=sql)
            raise StoreError(f"query execution error: {e}", cause=e) from e

    def fetchone(self, sql: str, params: Sequence[Any] = ()) -> tuple | None:
        # Drain the cursor so SQLite finishes RETURNING statements before commit.
        rows = self.execute(sql, params).fetchall()
        return tuple(rows[0]) if rows else None

    def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        return [tuple(row) for row in self.execute(sql, params).fetchall()]

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Commit on success of the outermost scope, roll back on any error."""
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._conn.rollback()
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                self._commit()

    def _commit(self) -> None:
        try:
            self._conn.commit()
        except _INTEGRITY_ERRORS as e:
            self._conn.rollback()
            raise ConstraintViolationError(f"constraint violation: {e}", cause=e) from e
        except _DRIVER_ERRORS as e:
            self._conn.rollback()
            raise StoreError(f"commit failed: {e}", cause=e) from e

    def _reset_after_error(self) -> None:
        # Inside a transaction the enclosing scope rolls back on exit.
        if self._depth == 0:
            self._conn.rollback()


class Database:
    """Connection source for the configured backend."""

    def __init__(
        self,
        url: str,
        *,
        min_size: int = 2,
        max_size: int = 10,
        logger=None,
    ):
        self.url = url
        scheme = url.split("://", 1)[0].split("+", 1)[0]
        self.dialect = get_dialect(scheme)
        self.min_size = min_size
        self.max_size = max_size
        self._logger = logger or get_logger(__name__)
        self._pool: ConnectionPool | None = None
        self._sqlite: sqlite3.Connection | None = None
        self._sqlite_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, *, logger=None) -> Database:
        return cls(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            logger=logger,
        )

    @property
    def backend(self) -> str:
        return self.dialect.name

    @property
    def is_open(self) -> bool:
        return self._pool is not None or self._sqlite is not None

    def open(self) -> Database:
        """Open the pool (PostgreSQL) or the shared connection (SQLite)."""
        if self.is_open:
            return self
        if self.backend == "postgresql":
            self._pool = ConnectionPool(
                conninfo=self.url,
                min_size=self.min_size,
                max_size=self.max_size,
                open=True,
            )
        else:
            try:
                conn = sqlite3.connect(_sqlite_path(self.url), check_same_thread=False)
                conn.execute("PRAGMA foreign_keys = ON")
                conn.create_function("lower", 1, _unicode_lower, deterministic=True)
            except sqlite3.Error as e:
                raise StoreError(f"database unavailable: {e}", cause=e) from e
            self._sqlite = conn
        self._logger.info("database_opened", backend=self.backend)
        return self

    def close(self) -> None:
        """Close the connection source."""
        if self._pool is not None:
            self._pool.close()
            self._pool = None
        if self._sqlite is not None:
            self._sqlite.close()
            self._sqlite = None
        self._logger.info("database_closed", backend=self.backend)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Borrow a connection for the duration of the block."""
        if not self.is_open:
            self.open()
        if self._pool is not None:
            try:
                with self._pool.connection() as conn:
                    yield Session(conn, self.dialect, logger=self._logger)
            except (psycopg.OperationalError, PoolTimeout) as e:
                raise StoreError(f"database unavailable: {e}", cause=e) from e
        else:
            with self._sqlite_lock:
                yield Session(self._sqlite, self.dialect, logger=self._logger)

    def ping(self) -> None:
        """Run a trivial query; raises :class:`StoreError` when unreachable."""
        with self.session() as session:
            session.fetchone("SELECT 1")

    def __enter__(self) -> Database:
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["Database", "Session"]
