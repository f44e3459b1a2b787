# backend/cryptofolio/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

- auth: registration, login, user view
- users: profile, settings, password change
- portfolio: holdings, portfolio, valuation report
- market: market data envelopes and cache stats
- errors: error envelope

Usage:
    from cryptofolio.schemas import HoldingCreate, PortfolioResponse
"""

from cryptofolio.schemas.auth import (
    AuthResponse,
    UserLoginRequest,
    UserRegisterRequest,
    UserResponse,
)
from cryptofolio.schemas.errors import ErrorDetail
from cryptofolio.schemas.market import (
    CacheClearResponse,
    CacheStatsResponse,
    MarketDataResponse,
)
from cryptofolio.schemas.portfolio import (
    HoldingCreate,
    HoldingPerformanceResponse,
    HoldingResponse,
    HoldingUpdate,
    PerformanceResponse,
    PortfolioRename,
    PortfolioResponse,
    PortfolioWithPerformanceResponse,
)
from cryptofolio.schemas.users import (
    PasswordChangeRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    SettingsResponse,
    SettingsUpdateRequest,
)

__all__ = [
    # Auth
    "UserRegisterRequest",
    "UserLoginRequest",
    "UserResponse",
    "AuthResponse",
    # Users
    "ProfileResponse",
    "ProfileUpdateRequest",
    "SettingsResponse",
    "SettingsUpdateRequest",
    "PasswordChangeRequest",
    # Portfolio
    "HoldingCreate",
    "HoldingUpdate",
    "PortfolioRename",
    "HoldingResponse",
    "PortfolioResponse",
    "HoldingPerformanceResponse",
    "PerformanceResponse",
    "PortfolioWithPerformanceResponse",
    # Market
    "MarketDataResponse",
    "CacheClearResponse",
    "CacheStatsResponse",
    # Errors
    "ErrorDetail",
]
