"""
Password hashing, verification and strength policy.

Uses passlib with the bcrypt backend. Cost factor 12 in normal operation;
the test environment uses the minimum cost so suites stay fast.
"""

import re

from passlib.context import CryptContext

from cryptofolio.config import settings
from cryptofolio.services.constants import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH
from cryptofolio.services.exceptions import ValidationError

_pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=4 if settings.is_test else 12,
)

_LETTER = re.compile(r"[A-Za-z]")
_DIGIT = re.compile(r"\d")


class PasswordService:
    """
    Stateless password helpers.

    Example:
        >>> hashed = PasswordService.hash_password("hodl4ever")
        >>> PasswordService.verify_password("hodl4ever", hashed)
        True
    """

    @staticmethod
    def hash_password(password: str) -> str:
        return _pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Timing-safe comparison against a bcrypt hash."""
        return _pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def needs_rehash(hashed_password: str) -> bool:
        """True when the hash was made with outdated parameters."""
        return _pwd_context.needs_update(hashed_password)

    @staticmethod
    def validate_strength(password: str, field: str = "password") -> None:
        """
        Enforce the password policy.

        Rules: at least MIN_PASSWORD_LENGTH characters, at most
        MAX_PASSWORD_LENGTH bytes as UTF-8, at least
        one letter and at least one digit.

        Raises:
            ValidationError: naming the offending field
        """
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                field=field,
            )
        if len(password.encode("utf-8")) > MAX_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at most {MAX_PASSWORD_LENGTH} bytes",
                field=field,
            )
        if not _LETTER.search(password) or not _DIGIT.search(password):
            raise ValidationError(
                "Password must contain at least one letter and one number",
                field=field,
            )
