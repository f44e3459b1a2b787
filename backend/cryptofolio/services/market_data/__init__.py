# backend/cryptofolio/services/market_data/__init__.py
"""
Market data services package.

This package contains:
- Abstract interface for market data providers (base.py)
- CoinMarketCap implementation (coinmarketcap.py)
- Deterministic offline data (mock_data.py)
- TTL/LRU response cache (cache.py)
- Cached facade for the HTTP layer (service.py)

Architecture:
    MarketDataProvider (ABC)
    ├── CoinMarketCapProvider (live, falls back to mock data)
    └── MockMarketDataProvider

    MarketDataService
    └── MarketDataProvider + ResponseCache
"""

from cryptofolio.services.market_data.base import MarketDataProvider
from cryptofolio.services.market_data.cache import CacheStats, ResponseCache
from cryptofolio.services.market_data.coinmarketcap import CoinMarketCapProvider
from cryptofolio.services.market_data.mock_data import (
    MOCK_PRICES,
    POPULAR_CRYPTOS,
    MockMarketDataProvider,
)
from cryptofolio.services.market_data.service import MarketDataService

__all__ = [
    "MarketDataProvider",
    "CoinMarketCapProvider",
    "MockMarketDataProvider",
    "MOCK_PRICES",
    "POPULAR_CRYPTOS",
    "ResponseCache",
    "CacheStats",
    "MarketDataService",
]
