"""
Login domain service - Credential verification.

Unknown emails and wrong passwords fail identically with InvalidCredentials.
bcrypt always runs, against a dummy hash when the email is unknown, so the
response time does not reveal whether an account exists. The suspended-account
gate is only reported once the password has matched.
"""

import logging
from dataclasses import dataclass

import bcrypt
from email_validator import EmailNotValidError, validate_email

from .exceptions import AccountSuspended, InvalidCredentials, ValidationFailed
from .models import AccountStatus, LoginRecord
from .ports import AccountRepository
from .signup import normalize_email

logger = logging.getLogger(__name__)

# Pre-computed bcrypt hash compared against when the email does not exist.
_DUMMY_BCRYPT_HASH = bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(12)).decode()


@dataclass
class LoginService:
    """Domain service verifying email/password pairs."""

    accounts: AccountRepository

    def login(self, email: str | None, password: str | None) -> LoginRecord:
        """
        Verify credentials and return the joined account view.

        Raises:
            ValidationFailed: Missing credentials or malformed email
            InvalidCredentials: Unknown email or wrong password
            AccountSuspended: Credentials valid but the account is suspended
        """
        if not email or not password:
            raise ValidationFailed("Email and password are required", code="MISSING_CREDENTIALS")
        try:
            validate_email(email.strip(), check_deliverability=False)
        except EmailNotValidError:
            raise ValidationFailed(
                "Please enter a valid email address", code="INVALID_EMAIL"
            ) from None

        normalized_email = normalize_email(email)
        logger.info("Login attempt for: %s", normalized_email)

        record = self.accounts.find_login(normalized_email)
        stored_hash = record.password_hash if record is not None else _DUMMY_BCRYPT_HASH
        password_valid = bcrypt.checkpw(password.encode(), stored_hash.encode())

        if record is None:
            logger.warning("Login failed - user not found: %s", normalized_email)
            raise InvalidCredentials()
        if not password_valid:
            logger.warning("Login failed - invalid password: %s", normalized_email)
            raise InvalidCredentials()
        # Suspension is not a secret, but a 403 is only given once the password
        # matched so that it never confirms a guessed email.
        if record.status is AccountStatus.SUSPENDED:
            logger.warning("Login refused - account suspended: %s", normalized_email)
            raise AccountSuspended()

        logger.info("Login successful for %s", normalized_email)
        return record

    def record_login(self, user_id: int) -> None:
        """Stamp last login. Failures are logged and never propagate."""
        try:
            self.accounts.touch_last_login(user_id)
        except Exception as e:
            logger.warning("Failed to update last_login for user %s: %s", user_id, e)
