"""
Unit tests for the password strength policy.
"""

import pytest

from heroes_portal.domain.password_policy import PasswordPolicy


@pytest.fixture
def policy() -> PasswordPolicy:
    return PasswordPolicy()


class TestPasswordPolicy:
    """Tests for PasswordPolicy.check rules."""

    def test_seven_characters_rejected(self, policy: PasswordPolicy) -> None:
        result = policy.check("Abc12!x")

        assert not result.is_valid
        assert "Password must be at least 8 characters" in result.errors

    def test_eight_characters_with_letter_digit_special_accepted(
        self, policy: PasswordPolicy
    ) -> None:
        result = policy.check("Abc12!xy")

        assert result.is_valid
        assert result.errors == []

    def test_repeated_characters_rejected(self, policy: PasswordPolicy) -> None:
        result = policy.check("aaaaaaaa1!")

        assert not result.is_valid
        assert result.errors == ["Password cannot contain more than 2 repeated characters"]

    def test_two_repeats_allowed(self, policy: PasswordPolicy) -> None:
        assert policy.check("aab12!cd").is_valid

    def test_common_password_rejected(self, policy: PasswordPolicy) -> None:
        result = policy.check("password1!")

        assert result.errors == ["Password cannot be a common password"]

    def test_common_password_match_is_case_insensitive(self, policy: PasswordPolicy) -> None:
        assert not policy.check("QWERTY9!z").is_valid

    def test_missing_classes_reported_individually(self, policy: PasswordPolicy) -> None:
        result = policy.check("abcdefgh")

        assert "Password must contain at least one number" in result.errors
        assert any("special character" in error for error in result.errors)
        assert "Password must contain at least one letter" not in result.errors

    def test_max_length_enforced(self, policy: PasswordPolicy) -> None:
        password = "Ab1!" + "xy" * 63  # 130 characters

        result = policy.check(password)

        assert "Password must be less than 128 characters" in result.errors

    def test_typical_strong_password_accepted(self, policy: PasswordPolicy) -> None:
        assert policy.check("Str0ng!pass").is_valid

    def test_custom_min_length(self) -> None:
        assert not PasswordPolicy(min_length=12).check("Str0ng!pass").is_valid


class TestForbiddenCharacters:
    """Tests for the input character filter."""

    @pytest.mark.parametrize(
        "password", ["Str0ng!<pass", "Str0ng;pass1", "Str0ng'pass!", " Str0ng!pass"]
    )
    def test_filtered_characters_detected(self, policy: PasswordPolicy, password: str) -> None:
        assert policy.has_forbidden_characters(password)

    def test_clean_password_passes_filter(self, policy: PasswordPolicy) -> None:
        assert not policy.has_forbidden_characters("Str0ng!pass")
