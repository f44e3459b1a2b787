# tests/services/auth/test_password.py
"""
Tests for password hashing and the password policy.
"""

import pytest

from cryptofolio.services.auth import PasswordService
from cryptofolio.services.exceptions import ValidationError


class TestHashing:
    """Tests for bcrypt hashing."""

    def test_hash_and_verify(self):
        hashed = PasswordService.hash_password("hodl4ever")

        assert hashed != "hodl4ever"
        assert hashed.startswith("$2")
        assert PasswordService.verify_password("hodl4ever", hashed) is True
        assert PasswordService.verify_password("hodl4never", hashed) is False

    def test_hashes_are_salted(self):
        assert PasswordService.hash_password("hodl4ever") != PasswordService.hash_password("hodl4ever")

    def test_fresh_hash_needs_no_rehash(self):
        assert PasswordService.needs_rehash(PasswordService.hash_password("hodl4ever")) is False


class TestValidateStrength:
    """Tests for the password policy."""

    def test_accepts_valid_password(self):
        PasswordService.validate_strength("satoshi21")

    @pytest.mark.parametrize(
        "password,message",
        [
            ("abc1", "at least 8 characters"),
            ("onlyletters", "one letter and one number"),
            ("12345678", "one letter and one number"),
            ("a1" * 37, "at most 72 bytes"),
        ],
    )
    def test_rejects_weak_password(self, password, message):
        with pytest.raises(ValidationError, match=message) as exc_info:
            PasswordService.validate_strength(password)

        assert exc_info.value.field == "password"

    def test_counts_bytes_not_characters(self):
        """Multi-byte characters count towards the bcrypt byte limit."""
        with pytest.raises(ValidationError, match="at most 72 bytes"):
            PasswordService.validate_strength("1" + "é" * 40)

    def test_reports_custom_field(self):
        with pytest.raises(ValidationError) as exc_info:
            PasswordService.validate_strength("short", field="new_password")

        assert exc_info.value.field == "new_password"
