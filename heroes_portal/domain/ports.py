"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from datetime import date
from typing import Protocol

from .models import (
    AccountProfile,
    Category,
    CreatedAccount,
    LoginRecord,
    NewAccount,
    RegistryRecord,
)
from .states import SignupState


class RegistryLookup(Protocol):
    """Port interface for identity matching against the heroes registry."""

    def match(self, category: Category, serial_id: str) -> RegistryRecord:
        """
        Find the single registry record for a serial id and category.

        Raises:
            RegistryNotFound: No record matches
            MultipleRegistryMatches: More than one record matches
        """
        ...

    def match_personal_details(
        self,
        category: Category,
        serial_id: str,
        first_name: str,
        last_name: str,
        dob: date,
    ) -> RegistryRecord:
        """
        Find the single registry record matching serial id, name and birth date.

        Free-text fields are compared trimmed and uppercased.

        Raises:
            RegistryNotFound: No record matches
            MultipleRegistryMatches: More than one record matches
        """
        ...


class TokenStore(Protocol):
    """Port interface for short-lived signup validation tokens."""

    def issue(self, payload: SignupState, ttl_seconds: int) -> str:
        """Persist payload under a fresh random token and return the token."""
        ...

    def resolve(self, token: str) -> SignupState:
        """
        Load the payload stored under token. Reading never mutates the row.

        Raises:
            TokenNotFound: No such token
            TokenExpired: Token exists but is past its expiry
            TokenCorrupt: Stored payload cannot be deserialized
        """
        ...

    def sweep(self) -> int:
        """Delete expired tokens and return how many were removed."""
        ...


class AccountRepository(Protocol):
    """Port interface for profile and credential persistence."""

    def account_exists_for(self, registry_ndx: int) -> bool:
        """True if a credential is already linked to the registry record."""
        ...

    def create_account(self, account: NewAccount) -> CreatedAccount:
        """
        Create the profile and credential rows in a single transaction.

        Raises:
            AccountConflict: Email or registry identity already taken
        """
        ...

    def find_login(self, email: str) -> LoginRecord | None:
        """Look up the login view for a normalized email."""
        ...

    def touch_last_login(self, user_id: int) -> None:
        """Stamp the credential's last login time."""
        ...

    def find_profile(self, user_id: int) -> AccountProfile | None:
        """Profile of an unverified or active account; None if missing or suspended."""
        ...
