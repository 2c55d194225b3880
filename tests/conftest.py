"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A persistence gateway against the configured PostgreSQL database
  (tests using it are skipped when the database is unreachable)
- Table cleanup and registry seeding helpers
"""

from collections.abc import Generator
from datetime import date

import pytest

from heroes_portal.adapters.database import Database, run_migrations
from heroes_portal.config.settings import get_settings


@pytest.fixture(scope="session")
def database() -> Generator[Database, None, None]:
    """Gateway for integration tests, with migrations applied."""
    settings = get_settings().model_copy(
        update={
            "pool_min_size": 1,
            "pool_timeout_seconds": 3.0,
            "connect_timeout_seconds": 3,
            "db_max_retries": 0,
        }
    )
    database = Database.from_settings(settings)
    if not database.ping():
        database.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(database)
    yield database
    database.close()


@pytest.fixture
def clean_database(database: Database) -> Generator[None, None, None]:
    """Empty all tables before each test."""
    for table in ("validation_tokens", "users", "pensioners", "heroes"):
        database.execute(f"DELETE FROM {table}")
    yield


@pytest.fixture
def insert_hero(database: Database):
    """Factory fixture seeding registry records."""

    def insert(
        first_name: str = "Juan",
        last_name: str = "Cruz",
        dob: date = date(1950, 1, 1),
        serial_id: str = "AF-123",
        category: str = "Principal",
        control_number: str = "CTRL-0042",
        mobile_number: str | None = None,
    ) -> int:
        """Seed one registry record and return its ndx."""
        rows = database.execute(
            """
            INSERT INTO heroes (firstname, lastname, dob, afpsn, type, ctrlnr, mobilenr)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING ndx
            """,
            (first_name, last_name, dob, serial_id, category, control_number, mobile_number),
        )
        return rows[0]["ndx"]

    return insert
