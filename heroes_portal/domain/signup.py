"""
Signup domain service - Three-step identity verification state machine.

Signup State Machine
====================

    START --step 1--> STEP1_VALIDATED --step 2--> STEP2_VALIDATED --step 3--> COMPLETED

Step 1 (eligibility): category + serial id (+ branch for principals, or
relationship and principal name for beneficiaries) must match exactly one
registry record that has no account yet. Issues a 1-hour token.

Step 2 (personal details): the step-1 token plus first name, last name and
date of birth must match that registry record exactly. A mismatch is an
authorization failure, not "not found", so callers cannot learn which field
was wrong. Issues a 2-hour token carrying the registry reference.

Step 3 (credentials): the step-2 token plus email and password. Email and
registry uniqueness are re-checked inside the same transaction that inserts
the profile and credential rows (see AccountRepository.create_account).

Validation failures are raised before any port is touched. Steps 1 and 2
only read (and write their token); step 3 writes everything or nothing.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

import bcrypt
from email_validator import EmailNotValidError, validate_email

from .exceptions import (
    AccountConflict,
    IdentityMismatch,
    InvalidTokenStep,
    RegistryNotFound,
    ValidationFailed,
)
from .models import Category, CreatedAccount, NewAccount
from .password_policy import PasswordPolicy
from .ports import AccountRepository, RegistryLookup, TokenStore
from .states import SignupPhase, Step1State, Step2State

logger = logging.getLogger(__name__)

_CATEGORY_ALIASES = {
    "PRINCIPAL": Category.PRINCIPAL,
    "P": Category.PRINCIPAL,
    "BENEFICIARY": Category.BENEFICIARY,
    "B": Category.BENEFICIARY,
}

# Column widths of the registry and profile tables.
MAX_FIELD_LENGTHS = {
    "serial_id": 50,
    "branch": 50,
    "relationship": 50,
    "principal_first_name": 100,
    "principal_last_name": 100,
    "first_name": 100,
    "last_name": 100,
}


@dataclass(frozen=True)
class StepResult:
    """Token handed back to the client after step 1 or step 2."""

    step: int
    next_step: int
    token: str
    expires_in_seconds: int
    phase: SignupPhase


def normalize_text(value: str) -> str:
    """Trim and uppercase free text for registry comparison."""
    return value.strip().upper()


def normalize_email(email: str) -> str:
    """Strip whitespace and lowercase an email address."""
    return email.strip().lower()


def _missing(**fields: object) -> list[str]:
    return [
        name
        for name, value in fields.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]


def _require(**fields: object) -> None:
    missing = _missing(**fields)
    if missing:
        raise ValidationFailed(
            f"Missing required fields: {', '.join(missing)}",
            code="MISSING_FIELDS",
            details=missing,
        )


def _check_lengths(**fields: str | None) -> None:
    too_long = [
        name
        for name, value in fields.items()
        if value is not None and len(value.strip()) > MAX_FIELD_LENGTHS[name]
    ]
    if too_long:
        raise ValidationFailed(
            f"Fields exceed maximum length: {', '.join(too_long)}",
            code="FIELD_TOO_LONG",
            details=too_long,
        )


@dataclass
class SignupService:
    """
    Domain service for the three-step signup flow.

    All collaborators are injected; the service holds no connection state.
    """

    registry: RegistryLookup
    tokens: TokenStore
    accounts: AccountRepository
    step1_ttl_seconds: int = 3600
    step2_ttl_seconds: int = 7200
    bcrypt_cost: int = 12
    password_policy: PasswordPolicy = field(default_factory=PasswordPolicy)

    def step1(
        self,
        category: str | None,
        serial_id: str | None,
        branch: str | None = None,
        relationship: str | None = None,
        principal_first_name: str | None = None,
        principal_last_name: str | None = None,
    ) -> StepResult:
        """
        Eligibility check.

        Raises:
            ValidationFailed: Missing fields or unknown category, or a field
                longer than its column
            RegistryNotFound: Serial id unknown for the category
            MultipleRegistryMatches: Registry holds duplicates
            AccountConflict: An account already exists for the record
        """
        _require(category=category, serial_id=serial_id)
        parsed_category = self._parse_category(category)
        _check_lengths(
            serial_id=serial_id,
            branch=branch,
            relationship=relationship,
            principal_first_name=principal_first_name,
            principal_last_name=principal_last_name,
        )

        if parsed_category is Category.PRINCIPAL:
            _require(branch=branch)
            state = Step1State(
                category=parsed_category,
                serial_id=normalize_text(serial_id),
                branch=normalize_text(branch),
            )
        else:
            _require(
                relationship=relationship,
                principal_first_name=principal_first_name,
                principal_last_name=principal_last_name,
            )
            state = Step1State(
                category=parsed_category,
                serial_id=normalize_text(serial_id),
                relationship=normalize_text(relationship),
                principal_first_name=normalize_text(principal_first_name),
                principal_last_name=normalize_text(principal_last_name),
            )

        record = self.registry.match(state.category, state.serial_id)
        self._ensure_no_account(record.ndx)

        token = self.tokens.issue(state, self.step1_ttl_seconds)
        logger.info("Signup step 1 validated for serial %s", state.serial_id)
        return StepResult(
            step=1,
            next_step=2,
            token=token,
            expires_in_seconds=self.step1_ttl_seconds,
            phase=state.phase,
        )

    def step2(
        self,
        token: str | None,
        first_name: str | None,
        last_name: str | None,
        dob: str | date | None,
    ) -> StepResult:
        """
        Personal-detail verification.

        Raises:
            ValidationFailed: Missing fields or malformed date of birth,
                or an overlong name
            TokenNotFound, TokenExpired, TokenCorrupt: Restart from step 1
            InvalidTokenStep: Token is not a step-1 token
            IdentityMismatch: Details do not match the registry record
            MultipleRegistryMatches: Registry holds duplicates
        """
        _require(step1Token=token, first_name=first_name, last_name=last_name, dob=dob)
        _check_lengths(first_name=first_name, last_name=last_name)
        birth_date = self._parse_date(dob)

        previous = self.tokens.resolve(token)
        if not isinstance(previous, Step1State):
            raise InvalidTokenStep()

        try:
            record = self.registry.match_personal_details(
                previous.category,
                previous.serial_id,
                normalize_text(first_name),
                normalize_text(last_name),
                birth_date,
            )
        except RegistryNotFound:
            logger.warning("Signup step 2 details mismatch for serial %s", previous.serial_id)
            raise IdentityMismatch() from None

        state = Step2State(
            **previous.model_dump(exclude={"step"}),
            first_name=record.first_name,
            last_name=record.last_name,
            dob=record.dob,
            registry_ndx=record.ndx,
            control_number=record.control_number,
        )
        new_token = self.tokens.issue(state, self.step2_ttl_seconds)
        logger.info("Signup step 2 validated for serial %s", state.serial_id)
        return StepResult(
            step=2,
            next_step=3,
            token=new_token,
            expires_in_seconds=self.step2_ttl_seconds,
            phase=state.phase,
        )

    def step3(self, token: str | None, email: str | None, password: str | None) -> CreatedAccount:
        """
        Credential creation and account finalization.

        Raises:
            ValidationFailed: Bad email or weak password
            TokenNotFound, TokenExpired, TokenCorrupt: Restart from step 1
            InvalidTokenStep: Token is not a step-2 token
            AccountConflict: Email or registry identity already has an account
        """
        _require(step2Token=token, email=email, password=password)
        normalized_email = self._validate_email(email)
        self._validate_password(password)

        previous = self.tokens.resolve(token)
        if not isinstance(previous, Step2State):
            raise InvalidTokenStep()

        account = self.accounts.create_account(
            NewAccount(
                registry_ndx=previous.registry_ndx,
                category=previous.category,
                email=normalized_email,
                password_hash=self._hash_password(password),
                branch=previous.branch,
                relationship=previous.relationship,
                principal_first_name=previous.principal_first_name,
                principal_last_name=previous.principal_last_name,
            )
        )
        logger.info("Signup completed for %s (user %s)", account.email, account.user_id)
        return account

    def _ensure_no_account(self, registry_ndx: int) -> None:
        if self.accounts.account_exists_for(registry_ndx):
            raise AccountConflict()

    def _parse_category(self, value: str) -> Category:
        category = _CATEGORY_ALIASES.get(value.strip().upper())
        if category is None:
            raise ValidationFailed(
                "Invalid pensioner type. Expected Principal or Beneficiary",
                code="INVALID_TYPE",
            )
        return category

    def _parse_date(self, value: str | date) -> date:
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise ValidationFailed(
                "Date of birth must be in YYYY-MM-DD format", code="INVALID_DATE"
            ) from None

    def _validate_email(self, email: str) -> str:
        try:
            validate_email(email.strip(), check_deliverability=False)
        except EmailNotValidError:
            raise ValidationFailed(
                "Please enter a valid email address", code="INVALID_EMAIL"
            ) from None
        return normalize_email(email)

    def _validate_password(self, password: str) -> None:
        if self.password_policy.has_forbidden_characters(password):
            raise ValidationFailed(
                "Password contains invalid characters", code="INVALID_PASSWORD_CHARS"
            )
        result = self.password_policy.check(password)
        if not result.is_valid:
            raise ValidationFailed(
                "Password does not meet security requirements",
                code="WEAK_PASSWORD",
                details=result.errors,
            )

    def _hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.bcrypt_cost)).decode()
