"""
Authentication services for Cryptofolio.

This module provides:
- Password hashing, verification and policy (bcrypt)
- JWT access token creation and validation
- Account service (AuthService)

Usage:
    from cryptofolio.services.auth import AuthService, PasswordService, JWTHandler

    token = JWTHandler.create_access_token(user_id=1, email="user@example.com")
    payload = JWTHandler.validate_access_token(token)
"""

from cryptofolio.services.auth.password import PasswordService
from cryptofolio.services.auth.jwt_handler import JWTHandler
from cryptofolio.services.auth.service import AuthService, AuthResult

__all__ = [
    "PasswordService",
    "JWTHandler",
    "AuthService",
    "AuthResult",
]
