# backend/cryptofolio/services/market_data/service.py
"""
Market data service used by the /api/market endpoints.

Wraps a MarketDataProvider with a ResponseCache. Each operation has its own
key prefix and TTL:

    market:listings:{limit}:{convert}:{sort}:{sort_dir}   listings TTL
    market:info:{SYMBOL}:{convert}                        crypto info TTL
    market:search:{query}:{limit}                         listings TTL
    market:global:{convert}                               global metrics TTL

Errors are not cached.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from cryptofolio.services.constants import (
    DEFAULT_LISTINGS_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    QUOTE_CURRENCY,
)
from cryptofolio.services.market_data.base import MarketDataProvider
from cryptofolio.services.market_data.cache import CacheStats, ResponseCache

logger = logging.getLogger(__name__)

T = TypeVar('T')


class MarketDataService:
    """
    Cached facade over a market data provider.

    Example:
        service = MarketDataService(provider, ResponseCache(max_size=500))
        listings = service.get_listings(limit=20)     # provider call
        listings = service.get_listings(limit=20)     # served from cache
    """

    def __init__(
            self,
            provider: MarketDataProvider,
            cache: ResponseCache,
            listings_ttl: float = 60,
            crypto_info_ttl: float = 300,
            global_metrics_ttl: float = 120,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._listings_ttl = listings_ttl
        self._crypto_info_ttl = crypto_info_ttl
        self._global_metrics_ttl = global_metrics_ttl

    @property
    def provider(self) -> MarketDataProvider:
        return self._provider

    def get_listings(
            self,
            limit: int = DEFAULT_LISTINGS_LIMIT,
            convert: str = QUOTE_CURRENCY,
            sort: str = "market_cap",
            sort_dir: str = "desc",
    ) -> list[dict[str, Any]]:
        convert = convert.upper()
        return self._cached(
            f"market:listings:{limit}:{convert}:{sort}:{sort_dir}",
            self._listings_ttl,
            lambda: self._provider.get_latest_listings(limit, convert, sort, sort_dir),
        )

    def get_crypto_info(self, symbol: str, convert: str = QUOTE_CURRENCY) -> dict[str, Any]:
        symbol = symbol.strip().upper()
        convert = convert.upper()
        return self._cached(
            f"market:info:{symbol}:{convert}",
            self._crypto_info_ttl,
            lambda: self._provider.get_crypto_info(symbol, convert),
        )

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[dict[str, Any]]:
        normalized = query.strip().lower()
        return self._cached(
            f"market:search:{normalized}:{limit}",
            self._listings_ttl,
            lambda: self._provider.search(normalized, limit),
        )

    def get_global_metrics(self, convert: str = QUOTE_CURRENCY) -> dict[str, Any]:
        convert = convert.upper()
        return self._cached(
            f"market:global:{convert}",
            self._global_metrics_ttl,
            lambda: self._provider.get_global_metrics(convert),
        )

    def clear_cache(self) -> int:
        return self._cache.flush()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def _cached(self, key: str, ttl: float, loader: Callable[[], T]) -> T:
        value = self._cache.get(key)
        if value is not None:
            return value

        value = loader()
        self._cache.set(key, value, ttl=ttl)
        return value
