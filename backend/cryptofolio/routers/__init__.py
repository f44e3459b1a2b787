# backend/cryptofolio/routers/__init__.py
"""
API routers, all mounted under /api:
- auth: registration, login, current user
- users: profile, settings, password
- portfolio: the user's holdings and valuation
- market: CoinMarketCap listings, coin info, search, global metrics
"""

from cryptofolio.routers.auth import router as auth_router
from cryptofolio.routers.market import router as market_router
from cryptofolio.routers.portfolio import router as portfolio_router
from cryptofolio.routers.users import router as users_router

__all__ = [
    "auth_router",
    "users_router",
    "portfolio_router",
    "market_router",
]
