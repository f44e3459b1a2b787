"""
Authentication request/response schemas.

Password strength (letters and digits) is checked by PasswordService so the
same rule applies to registration and password changes; schemas only bound
the length.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cryptofolio.models import DisplayCurrency, Theme, UserRole
from cryptofolio.services.constants import MAX_PASSWORD_LENGTH


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================


class UserRegisterRequest(BaseModel):
    """Request body for user registration."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["satoshi@example.com"],
    )
    password: str = Field(
        ...,
        max_length=MAX_PASSWORD_LENGTH,
        description="Password (min 8 characters, at least one letter and one number)",
        examples=["hodl4ever"],
    )
    name: str | None = Field(
        None,
        max_length=255,
        description="Display name",
        examples=["Satoshi"],
    )


class UserLoginRequest(BaseModel):
    """Request body for user login."""

    email: EmailStr = Field(..., examples=["satoshi@example.com"])
    password: str = Field(..., max_length=MAX_PASSWORD_LENGTH, examples=["hodl4ever"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================


class UserResponse(BaseModel):
    """Public view of a user (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None
    role: UserRole
    is_active: bool
    theme: Theme
    currency: DisplayCurrency
    notifications: bool
    created_at: datetime


class AuthResponse(BaseModel):
    """Response for register and login."""

    user: UserResponse
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer")
