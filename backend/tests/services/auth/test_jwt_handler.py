# tests/services/auth/test_jwt_handler.py
"""
Tests for JWT access token handling.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from cryptofolio.config import settings
from cryptofolio.services.auth import JWTHandler
from cryptofolio.services.exceptions import InvalidCredentialsError, TokenExpiredError


def encode(payload: dict, secret: str | None = None) -> str:
    return jwt.encode(
        payload,
        secret or settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def base_payload(**overrides) -> dict:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "42",
        "email": "user@example.com",
        "role": "user",
        "iat": now,
        "exp": now + timedelta(minutes=5),
        "type": "access",
    }
    payload.update(overrides)
    return payload


class TestCreateAccessToken:
    """Tests for token creation."""

    def test_round_trip_claims(self):
        """Should carry sub, email, role and type claims."""
        token = JWTHandler.create_access_token(user_id=42, email="user@example.com", role="admin")

        payload = JWTHandler.validate_access_token(token)

        assert payload["sub"] == "42"
        assert payload["email"] == "user@example.com"
        assert payload["role"] == "admin"
        assert payload["type"] == "access"
        assert payload["exp"] > payload["iat"]

    def test_default_expiry_from_settings(self):
        token = JWTHandler.create_access_token(user_id=1, email="a@b.io")

        payload = JWTHandler.validate_access_token(token)

        assert payload["exp"] - payload["iat"] == settings.jwt_access_token_expire_minutes * 60


class TestValidateAccessToken:
    """Tests for token validation failures."""

    def test_expired(self):
        token = JWTHandler.create_access_token(
            user_id=1, email="a@b.io", expires_delta=timedelta(seconds=-1)
        )

        with pytest.raises(TokenExpiredError):
            JWTHandler.validate_access_token(token)

    def test_wrong_signature(self):
        token = encode(base_payload(), secret="another-secret-key-that-is-32-chars!!")

        with pytest.raises(InvalidCredentialsError, match="Invalid token"):
            JWTHandler.validate_access_token(token)

    def test_malformed(self):
        with pytest.raises(InvalidCredentialsError):
            JWTHandler.validate_access_token("not.a.jwt")

    def test_wrong_type(self):
        """Should reject tokens that are not access tokens."""
        with pytest.raises(InvalidCredentialsError, match="Invalid token type"):
            JWTHandler.validate_access_token(encode(base_payload(type="refresh")))

    @pytest.mark.parametrize("sub", ["abc", "", None])
    def test_invalid_subject(self, sub):
        payload = base_payload(sub=sub)
        if sub is None:
            del payload["sub"]

        with pytest.raises(InvalidCredentialsError):
            JWTHandler.validate_access_token(encode(payload))
