"""
Unit tests for the persistence gateway.

Uses a MagicMock in place of psycopg_pool.ConnectionPool to verify:
- Error classification into transient/permanent with stable codes
- Retry policy and pool recreation
- Transactions always release their connection
- Statistics and liveness probe
"""

from unittest.mock import MagicMock, Mock

import psycopg
import pytest
from psycopg import errors as pg_errors
from psycopg_pool import PoolTimeout

from heroes_portal.adapters.database import (
    Database,
    PermanentDatabaseError,
    TransientDatabaseError,
    classify_error,
    run_migrations,
)


def make_pool(rows: list[dict] | None = None) -> MagicMock:
    pool = MagicMock()
    pool.min_size = 2
    pool.max_size = 10
    pool.get_stats.return_value = {"pool_size": 4, "pool_available": 3, "requests_waiting": 0}
    cursor = cursor_of(pool)
    cursor.description = [("ok",)]
    cursor.fetchall.return_value = rows if rows is not None else [{"ok": 1}]
    return pool


def cursor_of(pool: MagicMock) -> MagicMock:
    conn = pool.connection.return_value.__enter__.return_value
    return conn.cursor.return_value.__enter__.return_value


def make_database(pool: MagicMock, **kwargs) -> tuple[Database, Mock, Mock]:
    factory = Mock(return_value=pool)
    sleep = Mock()
    database = Database(factory, sleep=sleep, **kwargs)
    return database, factory, sleep


class TestClassifyError:
    """Tests for classify_error."""

    @pytest.mark.parametrize(
        ("message", "code"),
        [
            ("connection refused", "CONNECTION_REFUSED"),
            ('could not translate host name "db" to address', "SERVER_NOT_FOUND"),
            ("connection timeout expired", "TIMEOUT_ERROR"),
            ("connection reset by peer", "CONNECTION_RESET"),
            ("server closed the connection unexpectedly", "CONNECTION_LOST"),
        ],
    )
    def test_operational_errors_are_retryable_transient(self, message: str, code: str) -> None:
        error = classify_error(psycopg.OperationalError(message))

        assert isinstance(error, TransientDatabaseError)
        assert error.code == code
        assert error.retryable

    def test_pool_timeout_is_transient_without_retry(self) -> None:
        error = classify_error(PoolTimeout("couldn't get a connection after 10.00 sec"))

        assert isinstance(error, TransientDatabaseError)
        assert error.code == "POOL_TIMEOUT"
        assert not error.retryable

    def test_statement_timeout_is_transient_without_retry(self) -> None:
        error = classify_error(pg_errors.QueryCanceled("canceling statement due to timeout"))

        assert isinstance(error, TransientDatabaseError)
        assert error.code == "TIMEOUT_ERROR"
        assert not error.retryable

    def test_unique_violation_is_duplicate_entry(self) -> None:
        error = classify_error(pg_errors.UniqueViolation("duplicate key value"))

        assert isinstance(error, PermanentDatabaseError)
        assert error.code == "DUPLICATE_ENTRY"
        assert not error.transient

    def test_other_integrity_errors_are_constraint_violations(self) -> None:
        error = classify_error(pg_errors.ForeignKeyViolation("violates foreign key"))

        assert error.code == "CONSTRAINT_VIOLATION"

    def test_syntax_error_is_query_error(self) -> None:
        error = classify_error(pg_errors.SyntaxError('syntax error at or near "SELEC"'))

        assert isinstance(error, PermanentDatabaseError)
        assert error.code == "QUERY_ERROR"


class TestExecute:
    """Tests for Database.execute."""

    def test_returns_rows(self) -> None:
        database, _, _ = make_database(make_pool([{"ndx": 1}]))

        assert database.execute("SELECT ndx FROM heroes WHERE ndx = %s", (1,)) == [{"ndx": 1}]

    def test_statement_without_result_returns_empty_list(self) -> None:
        pool = make_pool()
        cursor_of(pool).description = None
        database, _, _ = make_database(pool)

        assert database.execute("UPDATE users SET last_login = NOW()") == []
        cursor_of(pool).fetchall.assert_not_called()

    def test_transient_error_retried_with_pool_recreated(self) -> None:
        pool = make_pool()
        cursor_of(pool).execute.side_effect = [psycopg.OperationalError("connection reset"), None]
        database, factory, sleep = make_database(pool, max_retries=3, retry_delay_seconds=0.5)

        assert database.execute("SELECT 1") == [{"ok": 1}]
        assert factory.call_count == 2
        pool.close.assert_called_once()
        sleep.assert_called_once_with(0.5)
        assert database.stats()["retries"] == 1

    def test_gives_up_after_max_retries(self) -> None:
        pool = make_pool()
        cursor_of(pool).execute.side_effect = psycopg.OperationalError("connection refused")
        database, factory, sleep = make_database(pool, max_retries=2)

        with pytest.raises(TransientDatabaseError) as exc_info:
            database.execute("SELECT 1")

        assert exc_info.value.code == "CONNECTION_REFUSED"
        assert cursor_of(pool).execute.call_count == 3
        assert factory.call_count == 3
        assert sleep.call_count == 2
        assert database.stats()["errors"] == 3

    def test_pool_timeout_not_retried(self) -> None:
        pool = make_pool()
        pool.connection.side_effect = PoolTimeout("couldn't get a connection")
        database, factory, _ = make_database(pool)

        with pytest.raises(TransientDatabaseError) as exc_info:
            database.execute("SELECT 1")

        assert exc_info.value.code == "POOL_TIMEOUT"
        assert factory.call_count == 1

    def test_permanent_error_not_retried(self) -> None:
        pool = make_pool()
        cursor_of(pool).execute.side_effect = pg_errors.UniqueViolation("duplicate key")
        database, factory, _ = make_database(pool)

        with pytest.raises(PermanentDatabaseError) as exc_info:
            database.execute("INSERT INTO users ...")

        assert exc_info.value.code == "DUPLICATE_ENTRY"
        assert isinstance(exc_info.value.__cause__, pg_errors.UniqueViolation)
        assert factory.call_count == 1

    def test_slow_query_counted(self, caplog: pytest.LogCaptureFixture) -> None:
        database, _, _ = make_database(make_pool(), slow_query_ms=0)

        database.execute("SELECT pg_sleep(2)")

        assert database.stats()["slow_queries"] == 1
        assert "Slow query" in caplog.text


class TestAcquire:
    """Tests for Database.acquire transactions."""

    def test_statements_share_one_connection(self) -> None:
        pool = make_pool([{"id": 5}])
        database, _, _ = make_database(pool)

        with database.acquire() as tx:
            first = tx.execute("SELECT 1")
            second = tx.execute("SELECT 2")

        assert first == second == [{"id": 5}]
        pool.connection.assert_called_once()
        conn = pool.connection.return_value.__enter__.return_value
        conn.transaction.assert_called_once()

    def test_connection_released_when_body_raises(self) -> None:
        pool = make_pool()
        database, _, _ = make_database(pool)

        with pytest.raises(ValueError), database.acquire():
            raise ValueError("business rule failed")

        connection_cm = pool.connection.return_value
        connection_cm.__exit__.assert_called_once()
        assert connection_cm.__exit__.call_args[0][0] is ValueError

    def test_statement_error_is_classified(self) -> None:
        pool = make_pool()
        cursor_of(pool).execute.side_effect = pg_errors.UniqueViolation("duplicate key")
        database, _, _ = make_database(pool)

        with pytest.raises(PermanentDatabaseError) as exc_info, database.acquire() as tx:
            tx.execute("INSERT INTO pensioners ...")

        assert exc_info.value.code == "DUPLICATE_ENTRY"
        pool.connection.return_value.__exit__.assert_called_once()

    def test_acquire_timeout_is_transient(self) -> None:
        pool = make_pool()
        pool.connection.side_effect = PoolTimeout("couldn't get a connection")
        database, _, _ = make_database(pool)

        with pytest.raises(TransientDatabaseError), database.acquire():
            pass


class TestHealth:
    """Tests for ping and stats."""

    def test_ping_true_when_select_succeeds(self) -> None:
        database, _, _ = make_database(make_pool())

        assert database.ping() is True

    def test_ping_false_on_error(self) -> None:
        pool = make_pool()
        conn = pool.connection.return_value.__enter__.return_value
        conn.execute.side_effect = psycopg.OperationalError("connection refused")
        database, _, _ = make_database(pool)

        assert database.ping() is False

    def test_stats_reports_pool_utilisation(self) -> None:
        database, _, _ = make_database(make_pool())
        database.execute("SELECT 1")

        stats = database.stats()

        assert stats["total_connections"] == 4
        assert stats["free_connections"] == 3
        assert stats["used_connections"] == 1
        assert stats["max_size"] == 10
        assert stats["queries"] == 1
        assert stats["errors"] == 0


class TestPoolReset:
    """Concurrent failures replace the shared pool only once."""

    def test_stale_failure_does_not_replace_fresh_pool(self) -> None:
        first, second, third = make_pool(), make_pool(), make_pool()
        factory = Mock(side_effect=[first, second, third])
        database = Database(factory, sleep=Mock())

        database._reset_pool(first)
        database._reset_pool(first)

        assert database.pool is second
        assert factory.call_count == 2
        first.close.assert_called_once()
        second.close.assert_not_called()

    def test_retry_uses_pool_replaced_by_another_thread(self) -> None:
        first, second = make_pool(), make_pool()
        factory = Mock(side_effect=[first])
        database = Database(factory, sleep=Mock())

        def fail_after_concurrent_reset(*args: object) -> None:
            database._pool = second
            raise psycopg.OperationalError("connection reset")

        cursor_of(first).execute.side_effect = fail_after_concurrent_reset

        assert database.execute("SELECT 1") == [{"ok": 1}]
        assert factory.call_count == 1
        first.close.assert_not_called()
        cursor_of(second).execute.assert_called_once()


class TestRunMigrations:
    """Tests for run_migrations."""

    def test_packaged_migrations_run_in_order(self) -> None:
        database = Mock()

        run_migrations(database)

        executed = [call.args[0] for call in database.execute.call_args_list]
        assert len(executed) == 4
        assert "CREATE TABLE IF NOT EXISTS heroes" in executed[0]
        assert "validation_tokens" in executed[2]

    def test_failure_raises_runtime_error(self, tmp_path) -> None:
        (tmp_path / "001_broken.sql").write_text("CREATE TABL oops;")
        database = Mock()
        database.execute.side_effect = PermanentDatabaseError("syntax error", "QUERY_ERROR")

        with pytest.raises(RuntimeError, match="001_broken.sql"):
            run_migrations(database, tmp_path)
