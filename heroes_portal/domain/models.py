"""
Domain records - Plain data that crosses the port boundary.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class Category(str, Enum):
    """Enrollment category of a registry record and of a profile."""

    PRINCIPAL = "Principal"
    BENEFICIARY = "Beneficiary"


class AccountStatus(str, Enum):
    """Credential status codes as stored in the users table."""

    UNVERIFIED = "UNV"
    ACTIVE = "ACT"
    SUSPENDED = "SUS"


@dataclass(frozen=True)
class RegistryRecord:
    """Read-only row of the heroes registry."""

    ndx: int
    first_name: str
    last_name: str
    dob: date
    serial_id: str
    category: Category
    control_number: str | None


@dataclass(frozen=True)
class NewAccount:
    """Everything step 3 needs to create the profile and credential pair."""

    registry_ndx: int
    category: Category
    email: str
    password_hash: str
    branch: str | None = None
    relationship: str | None = None
    principal_first_name: str | None = None
    principal_last_name: str | None = None


@dataclass(frozen=True)
class CreatedAccount:
    """Identifiers of a freshly finalized account."""

    user_id: int
    profile_id: int
    email: str
    category: Category
    branch: str | None
    status: AccountStatus


@dataclass(frozen=True)
class LoginRecord:
    """Credential joined with its profile and registry record."""

    user_id: int
    email: str
    password_hash: str
    status: AccountStatus
    profile_id: int
    category: Category
    branch: str | None
    relationship: str | None
    principal_first_name: str | None
    principal_last_name: str | None
    registry: RegistryRecord


@dataclass(frozen=True)
class AccountProfile:
    """Account holder's view: credential, profile and registry record."""

    user_id: int
    email: str
    status: AccountStatus
    created_at: datetime
    category: Category
    relationship: str | None
    principal_first_name: str | None
    principal_last_name: str | None
    mobile_number: str | None
    registry: RegistryRecord
