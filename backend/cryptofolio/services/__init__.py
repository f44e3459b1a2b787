# backend/cryptofolio/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)

Architecture:
    services/
    ├── exceptions.py          # Domain exceptions
    ├── constants.py           # Business constants and limits
    ├── protocols.py           # PriceFeed / store interfaces
    ├── circuit_breaker.py     # Circuit breaker for CoinMarketCap
    ├── portfolio/             # Holdings domain, store, orchestration
    ├── valuation/             # Pure profit/loss engine
    ├── market_data/           # CoinMarketCap provider, mock data, cache
    └── auth/                  # Passwords, JWT, accounts

Subpackages are imported explicitly, e.g.
    from cryptofolio.services.portfolio import PortfolioService
"""

from cryptofolio.services.exceptions import (
    ServiceError,
    ValidationError,
    NotFoundError,
    ConflictError,
    MarketDataError,
    AuthenticationError,
)

__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "MarketDataError",
    "AuthenticationError",
]
