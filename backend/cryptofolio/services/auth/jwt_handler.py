"""
JWT access token creation and validation.

Access tokens are stateless: nothing is stored server-side, and a token
stays valid until it expires (JWT_ACCESS_TOKEN_EXPIRE_MINUTES, default 24h).
Uses HS256 by default.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from cryptofolio.config import settings
from cryptofolio.services.exceptions import TokenExpiredError, InvalidCredentialsError

ACCESS_TOKEN_TYPE = "access"


class JWTHandler:
    """
    Handles JWT token creation and validation.

    Access tokens contain:
    - sub: User ID (string)
    - email: User's email
    - role: "user" or "admin"
    - exp: Expiration timestamp
    - iat: Issued at timestamp
    - type: "access"
    """

    @staticmethod
    def create_access_token(
        user_id: int,
        email: str,
        role: str = "user",
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        Create a signed access token.

        Example:
            token = JWTHandler.create_access_token(user_id=1, email="a@b.io")
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "exp": now + expires_delta,
            "iat": now,
            "type": ACCESS_TOKEN_TYPE,
        }

        return jwt.encode(
            payload,
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

    @staticmethod
    def validate_access_token(token: str) -> dict[str, Any]:
        """
        Validate an access token and return its payload.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidCredentialsError: If the token is invalid, malformed,
                not an access token or has no usable subject
        """
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Access token has expired")
        except JWTError as e:
            raise InvalidCredentialsError(f"Invalid token: {str(e)}")

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidCredentialsError("Invalid token type")

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub.isdigit():
            raise InvalidCredentialsError("Invalid token subject")

        return payload
