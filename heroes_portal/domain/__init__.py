"""
Domain layer - Pure business logic with zero web-framework imports.

This package contains the signup state machine and the login verifier.
It defines its own port interfaces for infrastructure abstraction,
ensuring the database and HTTP layers stay swappable.
"""

from .exceptions import (
    AccountConflict,
    AccountSuspended,
    IdentityMismatch,
    InvalidCredentials,
    InvalidTokenStep,
    MultipleRegistryMatches,
    PortalError,
    ProfileNotFound,
    RegistryNotFound,
    TokenCorrupt,
    TokenExpired,
    TokenNotFound,
    ValidationFailed,
)
from .login import LoginService
from .models import AccountProfile, AccountStatus, Category, RegistryRecord
from .ports import AccountRepository, RegistryLookup, TokenStore
from .profile import ProfileService
from .signup import SignupService

__all__ = [
    "AccountConflict",
    "AccountProfile",
    "AccountRepository",
    "AccountStatus",
    "AccountSuspended",
    "Category",
    "IdentityMismatch",
    "InvalidCredentials",
    "InvalidTokenStep",
    "LoginService",
    "MultipleRegistryMatches",
    "PortalError",
    "ProfileNotFound",
    "ProfileService",
    "RegistryLookup",
    "RegistryNotFound",
    "RegistryRecord",
    "SignupService",
    "TokenCorrupt",
    "TokenExpired",
    "TokenNotFound",
    "TokenStore",
    "ValidationFailed",
]
