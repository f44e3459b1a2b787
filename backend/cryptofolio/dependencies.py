# backend/cryptofolio/dependencies.py
"""
Dependency injection for FastAPI routes.

Services are process-wide singletons, created lazily on first use with
@lru_cache so that import has no side effects and the provider's circuit
breaker and the response cache are shared by every request.

Dependency order:
    get_market_data_provider
    ├── get_portfolio_service (provider as PriceFeed)
    └── get_market_data_service (provider + get_response_cache)
    get_auth_service

Tests swap implementations with app.dependency_overrides.
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from cryptofolio.config import settings
from cryptofolio.database import get_db
from cryptofolio.models import User
from cryptofolio.services.auth import AuthService
from cryptofolio.services.auth.jwt_handler import JWTHandler
from cryptofolio.services.exceptions import (
    TokenExpiredError,
    InvalidCredentialsError,
)
from cryptofolio.services.market_data import (
    CoinMarketCapProvider,
    MarketDataService,
    ResponseCache,
)
from cryptofolio.services.portfolio import PortfolioService

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================


@lru_cache(maxsize=1)
def get_market_data_provider() -> CoinMarketCapProvider:
    """
    Shared CoinMarketCap provider.

    One instance means one circuit breaker and one HTTP connection pool for
    the whole process.
    """
    logger.debug("Initializing singleton CoinMarketCapProvider")
    return CoinMarketCapProvider(
        api_key=settings.coinmarketcap_api_key,
        base_url=settings.coinmarketcap_base_url,
        timeout=settings.market_data_timeout_seconds,
        mock_fallback=settings.market_data_mock_fallback,
    )


@lru_cache(maxsize=1)
def get_response_cache() -> ResponseCache:
    logger.debug("Initializing singleton ResponseCache")
    return ResponseCache(
        default_ttl=settings.cache_listings_ttl_seconds,
        max_size=settings.cache_max_entries,
    )


@lru_cache(maxsize=1)
def get_market_data_service() -> MarketDataService:
    logger.debug("Initializing singleton MarketDataService")
    return MarketDataService(
        provider=get_market_data_provider(),
        cache=get_response_cache(),
        listings_ttl=settings.cache_listings_ttl_seconds,
        crypto_info_ttl=settings.cache_crypto_info_ttl_seconds,
        global_metrics_ttl=settings.cache_global_metrics_ttl_seconds,
    )


@lru_cache(maxsize=1)
def get_portfolio_service() -> PortfolioService:
    """Portfolio service pricing holdings through the shared provider."""
    logger.debug("Initializing singleton PortfolioService")
    return PortfolioService(price_feed=get_market_data_provider())


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    logger.debug("Initializing singleton AuthService")
    return AuthService()


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """
    Resolve the bearer token to an active user.

    Usage:
        @router.get("/protected")
        def protected_endpoint(current_user: User = Depends(get_current_user)):
            return {"user_id": current_user.id}

    Raises:
        HTTPException 401: Missing, invalid or expired token, or unknown user
        HTTPException 403: User account is inactive
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = JWTHandler.validate_access_token(credentials.credentials)
    except TokenExpiredError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.get(User, int(payload["sub"]))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return user


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def clear_service_caches() -> None:
    """
    Drop all singletons so the next request builds fresh ones.

    Used by tests to reset circuit breaker and cache state.
    """
    get_market_data_provider.cache_clear()
    get_response_cache.cache_clear()
    get_market_data_service.cache_clear()
    get_portfolio_service.cache_clear()
    get_auth_service.cache_clear()
    logger.info("Cleared all service singleton caches")
