"""
Authentication endpoints.

Provides:
- POST /auth/register - Register and receive an access token
- POST /auth/login - Login with email/password
- GET /auth/me - Current user

Access tokens are returned in the response body and sent back as
`Authorization: Bearer <token>`.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from cryptofolio.database import get_db
from cryptofolio.dependencies import get_auth_service, get_current_user
from cryptofolio.middleware.rate_limit import limiter
from cryptofolio.models import User
from cryptofolio.schemas.auth import (
    AuthResponse,
    UserLoginRequest,
    UserRegisterRequest,
    UserResponse,
)
from cryptofolio.services.auth import AuthResult, AuthService
from cryptofolio.services.constants import RATE_LIMIT_AUTH_LOGIN, RATE_LIMIT_AUTH_REGISTER

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _to_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(result.user),
        access_token=result.access_token,
        token_type=result.token_type,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
@limiter.limit(RATE_LIMIT_AUTH_REGISTER)
def register(
    request: Request,  # Required for rate limiter
    data: UserRegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Create an account and return it with an access token.

    Password must be at least 8 characters with a letter and a number.
    A registered email returns 409.
    """
    result = auth_service.register(
        db=db,
        email=data.email,
        password=data.password,
        name=data.name,
    )
    return _to_response(result)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login with email and password",
)
@limiter.limit(RATE_LIMIT_AUTH_LOGIN)
def login(
    request: Request,
    data: UserLoginRequest,
    db: Annotated[Session, Depends(get_db)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    result = auth_service.login(db=db, email=data.email, password=data.password)
    return _to_response(result)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
def get_me(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    return current_user
