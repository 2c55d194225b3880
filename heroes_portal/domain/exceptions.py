"""
Domain exceptions - Semantic error types for signup and login.

Every exception carries a stable machine-readable ``code`` alongside the
human-readable message so that clients can tell "fix your input" apart
from "restart the signup flow" and "try again shortly". Mapping to HTTP
status codes happens in the API layer.
"""


class PortalError(Exception):
    """Base class for portal domain errors."""

    code = "SERVICE_ERROR"
    message = "Service temporarily unavailable. Please try again later."

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        self.message = message or self.message
        self.code = code or self.code
        super().__init__(self.message)


class ValidationFailed(PortalError):
    """Missing or malformed input. Never reaches the database."""

    code = "VALIDATION_ERROR"
    message = "Invalid request"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: list[str] | None = None,
    ) -> None:
        super().__init__(message, code)
        self.details = details or []


class TokenNotFound(PortalError):
    """Validation token does not exist."""

    code = "TOKEN_NOT_FOUND"
    message = "Validation session not found. Please restart from step 1."


class TokenExpired(PortalError):
    """Validation token exists but its expiry has passed."""

    code = "TOKEN_EXPIRED"
    message = "Validation session expired. Please restart from step 1."


class TokenCorrupt(PortalError):
    """Stored token payload cannot be deserialized."""

    code = "TOKEN_CORRUPT"
    message = "Validation session is invalid. Please restart from step 1."


class InvalidTokenStep(PortalError):
    """Token belongs to a different signup step than the one requested."""

    code = "INVALID_TOKEN_STEP"
    message = "Validation token does not match this step. Please restart from step 1."


class RegistryNotFound(PortalError):
    """No registry record matches the given identity."""

    code = "NOT_FOUND"
    message = "No record found for the provided serial number"


class MultipleRegistryMatches(PortalError):
    """Registry holds duplicate entries for the identity; never auto-resolved."""

    code = "DUPLICATE_RECORDS"
    message = "Multiple matching records found. Please contact support."


class IdentityMismatch(PortalError):
    """Personal details do not match the registry record."""

    code = "NOT_AUTHORIZED"
    message = "Authorization failed: Information does not match our records"


class AccountConflict(PortalError):
    """An account already exists for the email or registry identity."""

    code = "ACCOUNT_EXISTS"
    message = "An account already exists for this record"


class InvalidCredentials(PortalError):
    """Unknown email or wrong password (deliberately indistinguishable)."""

    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class AccountSuspended(PortalError):
    """Credential status is suspended."""

    code = "ACCOUNT_SUSPENDED"
    message = "Account suspended. Please contact support."


class ProfileNotFound(PortalError):
    """No unverified or active account has the requested id."""

    code = "PROFILE_NOT_FOUND"
    message = "User profile not found"
