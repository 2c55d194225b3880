"""
Persistence gateway - Pooled PostgreSQL access with a single retry policy.

This module owns the psycopg3 connection pool. Every query in the
application goes through Database.execute() or a Database.acquire()
transaction, so retry, timeout, slow-query logging and error
classification live in one place.

Error Classification
--------------------
psycopg exceptions never leave this module. They are re-raised as:

- TransientDatabaseError: connectivity problems, safe to retry client-side.
  Connection-level failures (lost, reset, refused, host not found, connect
  timed out) are retried here first, tearing down and recreating the pool
  between attempts. Pool-acquisition and statement timeouts are raised
  immediately without retry.
- PermanentDatabaseError: constraint violations, bad SQL and anything else
  that retrying cannot fix.

Both carry a stable ``code`` string so callers never inspect driver fields.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from heroes_portal.config.settings import Settings

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Params = Sequence[Any] | dict[str, Any] | None
PoolFactory = Callable[[], ConnectionPool]


class DatabaseError(Exception):
    """Base class for classified database failures."""

    transient = False

    def __init__(self, message: str, code: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = retryable


class TransientDatabaseError(DatabaseError):
    """Connectivity failure; the request may succeed if tried again later."""

    transient = True


class PermanentDatabaseError(DatabaseError):
    """Failure that retrying will not fix (constraint, syntax, data)."""


def _connection_error_code(message: str) -> str:
    text = message.lower()
    if "refused" in text:
        return "CONNECTION_REFUSED"
    if "could not translate host name" in text or "name or service not known" in text:
        return "SERVER_NOT_FOUND"
    if "timeout" in text or "timed out" in text:
        return "TIMEOUT_ERROR"
    if "reset" in text:
        return "CONNECTION_RESET"
    return "CONNECTION_LOST"


def classify_error(exc: Exception) -> DatabaseError:
    """Map a psycopg / psycopg_pool exception onto the gateway taxonomy."""
    message = str(exc)
    # Order matters: PoolTimeout and QueryCanceled are OperationalError subclasses
    if isinstance(exc, PoolTimeout):
        return TransientDatabaseError(message, "POOL_TIMEOUT")
    if isinstance(exc, pg_errors.QueryCanceled):
        return TransientDatabaseError(message, "TIMEOUT_ERROR")
    if isinstance(exc, psycopg.OperationalError):
        return TransientDatabaseError(message, _connection_error_code(message), retryable=True)
    if isinstance(exc, psycopg.InterfaceError):
        return TransientDatabaseError(message, "CONNECTION_LOST", retryable=True)
    if isinstance(exc, pg_errors.UniqueViolation):
        return PermanentDatabaseError(message, "DUPLICATE_ENTRY")
    if isinstance(exc, psycopg.IntegrityError):
        return PermanentDatabaseError(message, "CONSTRAINT_VIOLATION")
    if isinstance(exc, psycopg.ProgrammingError | psycopg.DataError):
        return PermanentDatabaseError(message, "QUERY_ERROR")
    return PermanentDatabaseError(message, "DATABASE_ERROR")


def create_pool(settings: Settings) -> ConnectionPool:
    """Build a bounded pool with connect and statement timeouts applied."""
    return ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout_seconds,
        kwargs={
            "connect_timeout": settings.connect_timeout_seconds,
            "options": f"-c statement_timeout={settings.statement_timeout_ms}",
        },
        open=True,
    )


class Transaction:
    """Handle on one checked-out connection inside an open transaction."""

    def __init__(self, database: "Database", conn: psycopg.Connection) -> None:
        self._database = database
        self._conn = conn

    def execute(self, query: str, params: Params = None) -> list[Row]:
        try:
            return self._database._run_on(self._conn, query, params)
        except psycopg.Error as e:
            raise self._database._fail(e, attempts=1) from e


class Database:
    """
    Gateway over a psycopg3 ConnectionPool.

    The pool is built by ``pool_factory`` so that it can be torn down and
    recreated after connection-level failures.
    """

    def __init__(
        self,
        pool_factory: PoolFactory,
        max_retries: int = 3,
        retry_delay_seconds: float = 0.5,
        slow_query_ms: int = 1000,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._pool_factory = pool_factory
        self._pool = pool_factory()
        self._max_retries = max_retries
        self._retry_delay = retry_delay_seconds
        self._slow_query_ms = slow_query_ms
        self._sleep = sleep
        self._lock = threading.Lock()
        self._counters = {"queries": 0, "errors": 0, "retries": 0, "slow_queries": 0}

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            pool_factory=lambda: create_pool(settings),
            max_retries=settings.db_max_retries,
            retry_delay_seconds=settings.db_retry_delay_seconds,
            slow_query_ms=settings.slow_query_ms,
        )

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    def execute(self, query: str, params: Params = None) -> list[Row]:
        """
        Run a single parameterized statement in its own transaction.

        Returns all rows as dicts, or an empty list for statements without
        a result set.

        Raises:
            TransientDatabaseError: Connectivity failure (after retries where retryable)
            PermanentDatabaseError: Anything retrying cannot fix
        """
        attempt = 0
        while True:
            attempt += 1
            pool = self._pool
            try:
                with pool.connection() as conn:
                    return self._run_on(conn, query, params)
            except psycopg.Error as e:
                error = classify_error(e)
                if not error.retryable or attempt > self._max_retries:
                    raise self._fail(e, attempts=attempt, error=error) from e
                self._count("errors")
                self._count("retries")
                logger.warning(
                    "Transient database error (%s), retry %d/%d: %s",
                    error.code,
                    attempt,
                    self._max_retries,
                    e,
                )
                self._reset_pool(pool)
                self._sleep(self._retry_delay * attempt)

    @contextmanager
    def acquire(self) -> Iterator[Transaction]:
        """
        Check out one connection for a multi-statement transaction.

        Commits when the block exits normally and rolls back on any
        exception. The connection always goes back to the pool. Not retried.
        """
        try:
            with self._pool.connection() as conn, conn.transaction():
                yield Transaction(self, conn)
        except psycopg.Error as e:
            raise self._fail(e, attempts=1) from e

    def ping(self) -> bool:
        """Liveness probe: True if ``SELECT 1`` succeeds on a pooled connection."""
        try:
            with self._pool.connection() as conn:
                conn.execute("SELECT 1")
            return True
        except psycopg.Error as e:
            logger.error("Database health check failed: %s", e)
            return False

    def stats(self) -> dict[str, int]:
        """Pool utilisation and cumulative query counters."""
        pool_stats = self._pool.get_stats()
        total = pool_stats.get("pool_size", 0)
        free = pool_stats.get("pool_available", 0)
        with self._lock:
            counters = dict(self._counters)
        return {
            "total_connections": total,
            "free_connections": free,
            "used_connections": total - free,
            "waiting_requests": pool_stats.get("requests_waiting", 0),
            "min_size": self._pool.min_size,
            "max_size": self._pool.max_size,
            **counters,
        }

    def close(self) -> None:
        self._pool.close()

    def _run_on(self, conn: psycopg.Connection, query: str, params: Params) -> list[Row]:
        started = time.perf_counter()
        with conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall() if cursor.description is not None else []
        elapsed_ms = (time.perf_counter() - started) * 1000
        self._count("queries")
        if elapsed_ms >= self._slow_query_ms:
            self._count("slow_queries")
            logger.warning("Slow query (%.0fms): %s", elapsed_ms, " ".join(query.split())[:200])
        return rows

    def _fail(
        self, exc: Exception, attempts: int, error: DatabaseError | None = None
    ) -> DatabaseError:
        error = error or classify_error(exc)
        self._count("errors")
        logger.error(
            "Database operation failed (%s) after %d attempt(s): %s", error.code, attempts, exc
        )
        return error

    def _reset_pool(self, failed_pool: ConnectionPool) -> None:
        """Replace failed_pool unless another thread already has."""
        with self._lock:
            if self._pool is not failed_pool:
                return
            self._pool = self._pool_factory()
        try:
            failed_pool.close(timeout=5.0)
        except Exception as e:
            logger.warning("Error closing stale connection pool: %s", e)

    def _count(self, name: str) -> None:
        with self._lock:
            self._counters[name] += 1


def run_migrations(database: Database, migrations_dir: Path | None = None) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).
    """
    # Structure: heroes_portal/adapters/database.py -> heroes_portal/migrations/
    migrations_dir = migrations_dir or Path(__file__).parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            database.execute(sql_file.read_text())
            logger.info(f"Migration complete: {sql_file.name}")
        except DatabaseError as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
