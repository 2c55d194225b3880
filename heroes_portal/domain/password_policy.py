"""
Password policy - Strength rules applied before any password is hashed.
"""

import re
from dataclasses import dataclass, field

SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'

# Characters stripped by the input filter; a password containing any is rejected outright
_FORBIDDEN_CHARS = re.compile(r"[<>;\"'`\\]")
_REPEATED_CHAR = re.compile(r"(.)\1{2,}")
_COMMON_PASSWORD = re.compile(r"^(123456|password|qwerty|abc123|admin|letmein)", re.IGNORECASE)
_SPECIAL_CHAR = re.compile(r'[!@#$%^&*(),.?":{}|<>]')


@dataclass(frozen=True)
class PasswordCheck:
    """Outcome of a strength check. ``errors`` is empty when the password passes."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class PasswordPolicy:
    min_length: int = 8
    max_length: int = 128

    def has_forbidden_characters(self, password: str) -> bool:
        return bool(_FORBIDDEN_CHARS.search(password)) or password != password.strip()

    def check(self, password: str) -> PasswordCheck:
        """
        Evaluate every rule and collect one message per failing rule.

        Rules: length bounds, at least one digit, one letter and one
        special character, no character repeated three times in a row,
        and no common password prefix.
        """
        errors = []
        if len(password) < self.min_length:
            errors.append(f"Password must be at least {self.min_length} characters")
        if len(password) > self.max_length:
            errors.append(f"Password must be less than {self.max_length} characters")
        if not re.search(r"\d", password):
            errors.append("Password must contain at least one number")
        if not re.search(r"[a-zA-Z]", password):
            errors.append("Password must contain at least one letter")
        if not _SPECIAL_CHAR.search(password):
            errors.append(
                f"Password must contain at least one special character ({SPECIAL_CHARACTERS})"
            )
        if _REPEATED_CHAR.search(password):
            errors.append("Password cannot contain more than 2 repeated characters")
        if _COMMON_PASSWORD.match(password):
            errors.append("Password cannot be a common password")
        return PasswordCheck(errors)
