"""
Current-user endpoints.

- GET   /users/me/profile   - Profile
- PATCH /users/me/profile   - Update name/email
- GET   /users/me/settings  - Display settings
- PATCH /users/me/settings  - Update display settings
- POST  /users/me/password  - Change password
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from cryptofolio.database import get_db
from cryptofolio.dependencies import get_auth_service, get_current_user
from cryptofolio.middleware.rate_limit import limiter
from cryptofolio.models import User
from cryptofolio.schemas.users import (
    PasswordChangeRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    SettingsResponse,
    SettingsUpdateRequest,
)
from cryptofolio.services.auth import AuthService
from cryptofolio.services.constants import RATE_LIMIT_AUTH_LOGIN, RATE_LIMIT_WRITE

router = APIRouter(prefix="/users", tags=["Users"])


# =============================================================================
# PROFILE
# =============================================================================


@router.get("/me/profile", response_model=ProfileResponse)
def get_profile(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    return current_user


@router.patch("/me/profile", response_model=ProfileResponse)
@limiter.limit(RATE_LIMIT_WRITE)
def update_profile(
    request: Request,
    data: ProfileUpdateRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """Update name and/or email. Taking another account's email returns 409."""
    return auth_service.update_profile(
        db,
        current_user.id,
        name=data.name,
        email=data.email,
    )


# =============================================================================
# SETTINGS
# =============================================================================


@router.get("/me/settings", response_model=SettingsResponse)
def get_settings(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    return current_user


@router.patch("/me/settings", response_model=SettingsResponse)
@limiter.limit(RATE_LIMIT_WRITE)
def update_settings(
    request: Request,
    data: SettingsUpdateRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    return auth_service.update_settings(
        db,
        current_user.id,
        theme=data.theme,
        currency=data.currency,
        notifications=data.notifications,
    )


# =============================================================================
# PASSWORD
# =============================================================================


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMIT_AUTH_LOGIN)
def change_password(
    request: Request,
    data: PasswordChangeRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> None:
    """Existing tokens stay valid until they expire."""
    auth_service.change_password(
        db,
        current_user.id,
        current_password=data.current_password,
        new_password=data.new_password,
    )
