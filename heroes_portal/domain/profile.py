"""
Profile lookup - Read-only account view for an existing account holder.
"""

import logging
from dataclasses import dataclass

from .exceptions import ProfileNotFound, ValidationFailed
from .models import AccountProfile
from .ports import AccountRepository

logger = logging.getLogger(__name__)

# Upper bound of a PostgreSQL SERIAL id.
MAX_USER_ID = 2_147_483_647


@dataclass
class ProfileService:
    """Domain service returning an account holder's profile."""

    accounts: AccountRepository

    def get_profile(self, user_id: str | int) -> AccountProfile:
        """
        Look up the profile for a user id given as path text or int.

        Raises:
            ValidationFailed: user_id is not a positive integer (INVALID_USER_ID)
            ProfileNotFound: No unverified or active account has that id
        """
        parsed_id = self._parse_user_id(user_id)
        profile = self.accounts.find_profile(parsed_id)
        if profile is None:
            logger.info("Profile not found for user %s", parsed_id)
            raise ProfileNotFound()
        return profile

    def _parse_user_id(self, value: str | int) -> int:
        text = str(value).strip()
        if not (text.isascii() and text.isdigit()) or not 0 < int(text) <= MAX_USER_ID:
            raise ValidationFailed("Invalid user ID provided", code="INVALID_USER_ID")
        return int(text)
