# backend/cryptofolio/schemas/users.py
"""
User profile and settings schemas.

PATCH bodies are partial: omitted fields are left unchanged.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cryptofolio.models import DisplayCurrency, Theme
from cryptofolio.services.constants import MAX_PASSWORD_LENGTH


# =============================================================================
# PROFILE
# =============================================================================


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None
    created_at: datetime
    updated_at: datetime


class ProfileUpdateRequest(BaseModel):
    """Partial profile update. An empty name clears it."""

    name: str | None = Field(None, max_length=255, examples=["Satoshi N."])
    email: EmailStr | None = Field(None, examples=["satoshi@example.com"])


# =============================================================================
# SETTINGS
# =============================================================================


class SettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    theme: Theme = Field(..., examples=["light"])
    currency: DisplayCurrency = Field(..., examples=["USD"])
    notifications: bool


class SettingsUpdateRequest(BaseModel):
    """Partial settings update."""

    theme: Theme | None = Field(None, examples=["dark"])
    currency: DisplayCurrency | None = Field(None, examples=["EUR"])
    notifications: bool | None = None


# =============================================================================
# PASSWORD
# =============================================================================


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_LENGTH)
    new_password: str = Field(..., max_length=MAX_PASSWORD_LENGTH)
