"""Repository adapters - Database implementations."""

from .accounts import PostgresAccountRepository
from .registry import PostgresRegistryLookup
from .tokens import PostgresTokenStore

__all__ = ["PostgresAccountRepository", "PostgresRegistryLookup", "PostgresTokenStore"]
