"""
PostgreSQL validation-token store - Implements TokenStore protocol.

Tokens are opaque ``secrets.token_urlsafe`` values mapping to a JSONB
payload holding the tagged signup state. Expiry is always judged by the
database clock (``NOW()``), never the application clock.
"""

import json
import logging
import secrets

from psycopg.types.json import Jsonb
from pydantic import ValidationError

from heroes_portal.adapters.database import Database
from heroes_portal.domain.exceptions import TokenCorrupt, TokenExpired, TokenNotFound
from heroes_portal.domain.states import SignupState, signup_state_adapter

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


class PostgresTokenStore:
    """
    Implements TokenStore protocol via the persistence gateway.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    def issue(self, payload: SignupState, ttl_seconds: int) -> str:
        """
        Persist payload under a fresh random token.

        Upserts on the token value so that a (practically impossible)
        collision replaces the old row instead of failing.
        """
        token = secrets.token_urlsafe(TOKEN_BYTES)
        sql = """
            INSERT INTO validation_tokens (token, payload, created_at, expires_at)
            VALUES (%s, %s, NOW(), NOW() + %s * INTERVAL '1 second')
            ON CONFLICT (token) DO UPDATE
            SET payload = EXCLUDED.payload,
                created_at = EXCLUDED.created_at,
                expires_at = EXCLUDED.expires_at
        """
        self._database.execute(sql, (token, Jsonb(payload.model_dump(mode="json")), ttl_seconds))
        return token

    def resolve(self, token: str) -> SignupState:
        sql = """
            SELECT payload, expires_at <= NOW() AS expired
            FROM validation_tokens
            WHERE token = %s
        """
        rows = self._database.execute(sql, (token,))
        if not rows:
            raise TokenNotFound()

        row = rows[0]
        if row["expired"]:
            raise TokenExpired()

        payload = row["payload"]
        try:
            if isinstance(payload, str | bytes):
                return signup_state_adapter.validate_json(payload)
            return signup_state_adapter.validate_python(payload)
        except (ValidationError, json.JSONDecodeError) as e:
            logger.error("Stored validation token payload is corrupt: %s", e)
            raise TokenCorrupt() from e

    def sweep(self) -> int:
        sql = """
            WITH deleted AS (
                DELETE FROM validation_tokens WHERE expires_at <= NOW() RETURNING 1
            )
            SELECT COUNT(*) AS removed FROM deleted
        """
        rows = self._database.execute(sql)
        return rows[0]["removed"]
