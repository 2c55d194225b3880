"""
PostgreSQL registry adapter - Implements RegistryLookup protocol.

The heroes table is reference data and is only ever read here. Text
columns are compared trimmed and uppercased on both sides so that input
casing and stray whitespace do not matter. Duplicate registry entries are
reported, never resolved by picking one.
"""

import logging
from datetime import date
from typing import Any

from heroes_portal.adapters.database import Database
from heroes_portal.domain.exceptions import MultipleRegistryMatches, RegistryNotFound
from heroes_portal.domain.models import Category, RegistryRecord
from heroes_portal.domain.signup import normalize_text

logger = logging.getLogger(__name__)

_SELECT_HEROES = """
    SELECT ndx, firstname, lastname, dob, afpsn, type, ctrlnr
    FROM heroes
"""


def registry_record(row: dict[str, Any], prefix: str = "") -> RegistryRecord:
    """Build a RegistryRecord from a (optionally column-prefixed) row."""
    return RegistryRecord(
        ndx=row[f"{prefix}ndx"],
        first_name=row[f"{prefix}firstname"],
        last_name=row[f"{prefix}lastname"],
        dob=row[f"{prefix}dob"],
        serial_id=row[f"{prefix}afpsn"],
        category=Category(row[f"{prefix}type"]),
        control_number=row[f"{prefix}ctrlnr"],
    )


class PostgresRegistryLookup:
    """Implements RegistryLookup protocol via the persistence gateway."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def match(self, category: Category, serial_id: str) -> RegistryRecord:
        sql = _SELECT_HEROES + """
            WHERE UPPER(TRIM(afpsn)) = %s AND type = %s
            LIMIT 2
        """
        rows = self._database.execute(sql, (normalize_text(serial_id), category.value))
        return self._single(rows, serial_id)

    def match_personal_details(
        self,
        category: Category,
        serial_id: str,
        first_name: str,
        last_name: str,
        dob: date,
    ) -> RegistryRecord:
        sql = _SELECT_HEROES + """
            WHERE UPPER(TRIM(afpsn)) = %s
              AND type = %s
              AND UPPER(TRIM(firstname)) = %s
              AND UPPER(TRIM(lastname)) = %s
              AND dob = %s
            LIMIT 2
        """
        rows = self._database.execute(
            sql,
            (
                normalize_text(serial_id),
                category.value,
                normalize_text(first_name),
                normalize_text(last_name),
                dob,
            ),
        )
        return self._single(rows, serial_id)

    def _single(self, rows: list[dict[str, Any]], serial_id: str) -> RegistryRecord:
        if not rows:
            raise RegistryNotFound()
        if len(rows) > 1:
            logger.warning("Duplicate registry records for serial %s", serial_id)
            raise MultipleRegistryMatches()
        return registry_record(rows[0])
