"""
PostgreSQL account repository - Implements AccountRepository protocol.

Account finalization (create_account) runs as one transaction:

1. Lock the registry row (SELECT ... FOR UPDATE) so concurrent finalizations
   for the same identity queue up behind each other.
2. Re-check email uniqueness and registry-link uniqueness. Steps 1 and 2
   only read, so another flow may have finished in between.
3. Insert the profile row, then the credential row referencing it.

Any failure rolls back both inserts. The UNIQUE constraints on
pensioners.hero_ndx, users.pensioner_id and users.email remain the final
arbiter: a violation from a concurrent winner is reported as a conflict.
"""

import logging
from typing import Any

from heroes_portal.adapters.database import Database, PermanentDatabaseError
from heroes_portal.adapters.repository.registry import registry_record
from heroes_portal.domain.exceptions import AccountConflict, RegistryNotFound
from heroes_portal.domain.models import (
    AccountProfile,
    AccountStatus,
    Category,
    CreatedAccount,
    LoginRecord,
    NewAccount,
)

logger = logging.getLogger(__name__)


class PostgresAccountRepository:
    """Implements AccountRepository protocol via the persistence gateway."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def account_exists_for(self, registry_ndx: int) -> bool:
        sql = """
            SELECT u.id
            FROM users u
            JOIN pensioners p ON u.pensioner_id = p.id
            WHERE p.hero_ndx = %s
            LIMIT 1
        """
        return bool(self._database.execute(sql, (registry_ndx,)))

    def create_account(self, account: NewAccount) -> CreatedAccount:
        try:
            with self._database.acquire() as tx:
                locked = tx.execute(
                    "SELECT ndx FROM heroes WHERE ndx = %s FOR UPDATE", (account.registry_ndx,)
                )
                if not locked:
                    raise RegistryNotFound()

                if tx.execute("SELECT id FROM users WHERE email = %s LIMIT 1", (account.email,)):
                    raise AccountConflict(
                        "An account with this email already exists", code="EMAIL_EXISTS"
                    )

                if tx.execute(
                    "SELECT id FROM pensioners WHERE hero_ndx = %s LIMIT 1",
                    (account.registry_ndx,),
                ):
                    raise AccountConflict()

                profile = tx.execute(
                    """
                    INSERT INTO pensioners
                        (hero_ndx, type, bos, b_type, principal_firstname, principal_lastname)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        account.registry_ndx,
                        account.category.value,
                        account.branch,
                        account.relationship,
                        account.principal_first_name,
                        account.principal_last_name,
                    ),
                )[0]

                user = tx.execute(
                    """
                    INSERT INTO users (pensioner_id, email, password_hash, status, created_at)
                    VALUES (%s, %s, %s, %s, NOW())
                    RETURNING id, status
                    """,
                    (
                        profile["id"],
                        account.email,
                        account.password_hash,
                        AccountStatus.UNVERIFIED.value,
                    ),
                )[0]
        except PermanentDatabaseError as e:
            if e.code == "DUPLICATE_ENTRY":
                logger.warning("Concurrent signup lost for registry %s", account.registry_ndx)
                raise AccountConflict("Account already exists", code="DUPLICATE_ENTRY") from e
            raise

        return CreatedAccount(
            user_id=user["id"],
            profile_id=profile["id"],
            email=account.email,
            category=account.category,
            branch=account.branch,
            status=AccountStatus(user["status"]),
        )

    def find_login(self, email: str) -> LoginRecord | None:
        sql = """
            SELECT
                u.id AS user_id,
                u.email,
                u.password_hash,
                u.status,
                p.id AS pensioner_id,
                p.type,
                p.bos,
                p.b_type,
                p.principal_firstname,
                p.principal_lastname,
                h.ndx AS h_ndx,
                h.firstname AS h_firstname,
                h.lastname AS h_lastname,
                h.dob AS h_dob,
                h.afpsn AS h_afpsn,
                h.type AS h_type,
                h.ctrlnr AS h_ctrlnr
            FROM users u
            JOIN pensioners p ON u.pensioner_id = p.id
            JOIN heroes h ON p.hero_ndx = h.ndx
            WHERE u.email = %s
            LIMIT 1
        """
        rows = self._database.execute(sql, (email,))
        if not rows:
            return None
        return _login_record(rows[0])

    def touch_last_login(self, user_id: int) -> None:
        self._database.execute("UPDATE users SET last_login = NOW() WHERE id = %s", (user_id,))

    def find_profile(self, user_id: int) -> AccountProfile | None:
        sql = """
            SELECT
                u.id AS user_id,
                u.email,
                u.status,
                u.created_at,
                p.type,
                p.b_type,
                p.principal_firstname,
                p.principal_lastname,
                h.ndx AS h_ndx,
                h.firstname AS h_firstname,
                h.lastname AS h_lastname,
                h.dob AS h_dob,
                h.afpsn AS h_afpsn,
                h.type AS h_type,
                h.ctrlnr AS h_ctrlnr,
                h.mobilenr AS h_mobilenr
            FROM users u
            JOIN pensioners p ON u.pensioner_id = p.id
            JOIN heroes h ON p.hero_ndx = h.ndx
            WHERE u.id = %s AND u.status IN (%s, %s)
        """
        rows = self._database.execute(
            sql, (user_id, AccountStatus.UNVERIFIED.value, AccountStatus.ACTIVE.value)
        )
        if not rows:
            return None
        row = rows[0]
        return AccountProfile(
            user_id=row["user_id"],
            email=row["email"],
            status=AccountStatus(row["status"]),
            created_at=row["created_at"],
            category=Category(row["type"]),
            relationship=row["b_type"],
            principal_first_name=row["principal_firstname"],
            principal_last_name=row["principal_lastname"],
            mobile_number=row["h_mobilenr"],
            registry=registry_record(row, prefix="h_"),
        )


def _login_record(row: dict[str, Any]) -> LoginRecord:
    return LoginRecord(
        user_id=row["user_id"],
        email=row["email"],
        password_hash=row["password_hash"],
        status=AccountStatus(row["status"]),
        profile_id=row["pensioner_id"],
        category=Category(row["type"]),
        branch=row["bos"],
        relationship=row["b_type"],
        principal_first_name=row["principal_firstname"],
        principal_last_name=row["principal_lastname"],
        registry=registry_record(row, prefix="h_"),
    )
