# backend/cryptofolio/services/market_data/base.py
"""
Abstract interface for cryptocurrency market data providers.

Every provider returns plain JSON-compatible dicts in CoinMarketCap's shape
(`id`, `name`, `symbol`, `cmc_rank`, `quote: {USD: {...}}`), so the HTTP
layer can pass them through unchanged and a mock provider can stand in
for the real API.

Retry logic lives here once: concrete providers wrap their network calls
in `_execute_with_retry`.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from cryptofolio.services.constants import (
    DEFAULT_LISTINGS_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    QUOTE_CURRENCY,
    SEARCH_LISTINGS_LIMIT,
)
from cryptofolio.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


class MarketDataProvider(ABC):
    """
    Abstract base class for market data providers.

    Retry Behavior:
        `_execute_with_retry` applies exponential backoff. Subclasses tune it
        through class attributes:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

    Retryable Exceptions:
        - ProviderUnavailableError: Network issues, timeouts, server errors
        - RateLimitError: API rate limit exceeded

    Non-Retryable Exceptions:
        - SymbolNotFoundError: Permanent failure (symbol doesn't exist)
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier used in logs and error messages."""
        pass

    @abstractmethod
    def get_latest_listings(
            self,
            limit: int = DEFAULT_LISTINGS_LIMIT,
            convert: str = QUOTE_CURRENCY,
            sort: str = "market_cap",
            sort_dir: str = "desc",
    ) -> list[dict[str, Any]]:
        """
        Fetch the latest ranked listings.

        Args:
            limit: Number of listings to return
            convert: Quote currency (e.g. "USD")
            sort: Sort field (market_cap, volume_24h, percent_change_24h, ...)
            sort_dir: "asc" or "desc"

        Returns:
            List of listing dicts, best ranked first
        """
        pass

    @abstractmethod
    def get_crypto_info(self, symbol: str, convert: str = QUOTE_CURRENCY) -> dict[str, Any]:
        """
        Fetch metadata and the latest quote for one symbol.

        Raises:
            SymbolNotFoundError: Symbol unknown to the provider
            ProviderUnavailableError: Network or API error
            RateLimitError: Rate limit exceeded
        """
        pass

    @abstractmethod
    def get_global_metrics(self, convert: str = QUOTE_CURRENCY) -> dict[str, Any]:
        """Fetch global market metrics (total market cap, dominance, ...)."""
        pass

    @abstractmethod
    def get_current_prices(self, symbols: set[str]) -> dict[str, Decimal]:
        """
        Fetch the current USD unit price of each symbol.

        Symbols the provider does not know are omitted from the result.
        """
        pass

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[dict[str, Any]]:
        """
        Case-insensitive substring search on name or symbol.

        Searches the top SEARCH_LISTINGS_LIMIT listings, keeping their rank
        order.
        """
        needle = query.strip().lower()
        if not needle:
            return []

        matches = [
            listing
            for listing in self.get_latest_listings(limit=SEARCH_LISTINGS_LIMIT)
            if needle in str(listing.get("name", "")).lower()
               or needle in str(listing.get("symbol", "")).lower()
        ]
        return matches[:limit]

    # =========================================================================
    # RETRY HELPER METHOD
    # =========================================================================

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Retries ProviderUnavailableError and RateLimitError with exponential
        backoff; anything else propagates on the first attempt.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()

    def is_available(self) -> bool:
        """Whether the provider can currently serve requests."""
        return True
