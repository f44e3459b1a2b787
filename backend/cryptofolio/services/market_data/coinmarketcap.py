# backend/cryptofolio/services/market_data/coinmarketcap.py
"""
CoinMarketCap market data provider.

Implements MarketDataProvider against the CoinMarketCap Pro API using a
synchronous httpx client.

Endpoints used:
    /v1/cryptocurrency/listings/latest   - ranked listings
    /v2/cryptocurrency/info              - coin metadata (logo, urls, tags)
    /v2/cryptocurrency/quotes/latest     - latest quotes by symbol
    /v1/global-metrics/quotes/latest     - total market cap, dominance

Error classification:
    429                  -> RateLimitError (retryable, carries Retry-After)
    5xx, timeouts, I/O   -> ProviderUnavailableError (retryable)
    400/404 for a symbol -> SymbolNotFoundError
    other 4xx            -> MarketDataError

Every request runs inside a CircuitBreaker; SymbolNotFoundError does not
count as a breaker failure.

Mock fallback:
    Without an API key every operation except global metrics is served
    from mock_data. With a key, a failed listings/info call falls back to
    mock data when `mock_fallback` is enabled. Price failures always
    propagate so portfolios are never valued at mock prices.
"""

import logging
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

import httpx

from cryptofolio.services.circuit_breaker import CircuitBreaker, CircuitBreakerOpen
from cryptofolio.services.constants import (
    CIRCUIT_BREAKER_FAILURE_THRESHOLD,
    CIRCUIT_BREAKER_FAILURE_WINDOW,
    CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS,
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
    CRYPTO_INFO_AUX_FIELDS,
    DEFAULT_LISTINGS_LIMIT,
    QUOTE_CURRENCY,
)
from cryptofolio.services.exceptions import (
    MarketDataError,
    ProviderUnavailableError,
    RateLimitError,
    SymbolNotFoundError,
)
from cryptofolio.services.market_data.base import MarketDataProvider
from cryptofolio.services.market_data.mock_data import MockMarketDataProvider

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_BASE_URL = "https://pro-api.coinmarketcap.com"
API_KEY_HEADER = "X-CMC_PRO_API_KEY"


class CoinMarketCapProvider(MarketDataProvider):
    """
    CoinMarketCap implementation of MarketDataProvider.

    Also satisfies the PriceFeed protocol through get_current_prices().

    Example:
        provider = CoinMarketCapProvider(api_key="...", timeout=10)

        listings = provider.get_latest_listings(limit=20)
        prices = provider.get_current_prices({"BTC", "ETH"})
        print(prices["BTC"])  # Decimal('65123.45')
    """

    def __init__(
            self,
            api_key: str | None = None,
            base_url: str = DEFAULT_BASE_URL,
            timeout: float = 10.0,
            mock_fallback: bool = True,
            transport: httpx.BaseTransport | None = None,
            circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        """
        Initialize the CoinMarketCap provider.

        Args:
            api_key: Pro API key; None or empty means mock-only mode
            base_url: API root (overridable for the sandbox environment)
            timeout: Request timeout in seconds
            mock_fallback: Serve mock data when a live call fails
            transport: Custom httpx transport (tests use httpx.MockTransport)
            circuit_breaker: Breaker instance (a default one is created)
        """
        self._api_key = api_key or None
        self._mock_fallback = mock_fallback
        self._mock = MockMarketDataProvider()
        self._breaker = circuit_breaker or CircuitBreaker(
            name="coinmarketcap",
            failure_threshold=CIRCUIT_BREAKER_FAILURE_THRESHOLD,
            recovery_timeout=CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
            half_open_max_calls=CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS,
            failure_window=CIRCUIT_BREAKER_FAILURE_WINDOW,
            excluded_exceptions=(SymbolNotFoundError,),
        )

        headers = {"Accept": "application/json"}
        if self._api_key:
            headers[API_KEY_HEADER] = self._api_key

        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

        mode = "live" if self.is_configured else "mock"
        logger.info(f"CoinMarketCapProvider initialized (mode={mode}, timeout={timeout}s)")

    @property
    def name(self) -> str:
        return "coinmarketcap"

    @property
    def is_configured(self) -> bool:
        return self._api_key is not None

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._breaker

    def is_available(self) -> bool:
        return not self._breaker.is_open

    def close(self) -> None:
        self._client.close()

    # =========================================================================
    # PUBLIC OPERATIONS
    # =========================================================================

    def get_latest_listings(
            self,
            limit: int = DEFAULT_LISTINGS_LIMIT,
            convert: str = QUOTE_CURRENCY,
            sort: str = "market_cap",
            sort_dir: str = "desc",
    ) -> list[dict[str, Any]]:
        return self._with_fallback(
            "listings",
            lambda: self._execute_with_retry(
                self._fetch_listings, limit, convert, sort, sort_dir
            ),
            lambda: self._mock.get_latest_listings(limit, convert),
        )

    def get_crypto_info(self, symbol: str, convert: str = QUOTE_CURRENCY) -> dict[str, Any]:
        symbol = symbol.strip().upper()
        return self._with_fallback(
            f"crypto info {symbol}",
            lambda: self._execute_with_retry(self._fetch_crypto_info, symbol, convert),
            lambda: self._mock.get_crypto_info(symbol, convert),
        )

    def get_current_prices(self, symbols: set[str]) -> dict[str, Decimal]:
        """
        Live failures always propagate, even with mock_fallback enabled, so
        valuation sees the outage and values holdings at 0.
        """
        normalized = {s.strip().upper() for s in symbols if s and s.strip()}
        if not normalized:
            return {}
        if not self.is_configured:
            logger.debug("No API key configured, serving mock prices")
            return self._mock.get_current_prices(normalized)
        try:
            return self._execute_with_retry(self._fetch_prices, normalized)
        except (MarketDataError, CircuitBreakerOpen) as e:
            logger.error(f"Error fetching prices for {len(normalized)} symbols: {e}")
            raise

    def get_global_metrics(self, convert: str = QUOTE_CURRENCY) -> dict[str, Any]:
        """Global metrics have no mock data; failures propagate."""
        if not self.is_configured:
            raise ProviderUnavailableError(
                provider=self.name,
                reason="COINMARKETCAP_API_KEY is not configured",
            )
        try:
            return self._execute_with_retry(self._fetch_global_metrics, convert)
        except (MarketDataError, CircuitBreakerOpen) as e:
            logger.error(f"Error fetching global market metrics: {e}")
            raise

    # =========================================================================
    # FETCHERS (called by the retry wrapper)
    # =========================================================================

    def _fetch_listings(
            self,
            limit: int,
            convert: str,
            sort: str,
            sort_dir: str,
    ) -> list[dict[str, Any]]:
        data = self._get(
            "/v1/cryptocurrency/listings/latest",
            {"limit": limit, "convert": convert, "sort": sort, "sort_dir": sort_dir},
        )
        return data if isinstance(data, list) else []

    def _fetch_crypto_info(self, symbol: str, convert: str) -> dict[str, Any]:
        info_data = self._get(
            "/v2/cryptocurrency/info",
            {"symbol": symbol, "aux": CRYPTO_INFO_AUX_FIELDS},
            symbol=symbol,
        )
        info = self._first_entry(info_data, symbol)
        if info is None:
            raise SymbolNotFoundError(symbol=symbol, provider=self.name)

        quote_data = self._get(
            "/v2/cryptocurrency/quotes/latest",
            {"symbol": symbol, "convert": convert},
            symbol=symbol,
        )
        quote = self._first_entry(quote_data, symbol)
        if quote is None:
            raise SymbolNotFoundError(symbol=symbol, provider=self.name)

        return {
            **info,
            "symbol": symbol,
            "cmc_rank": quote.get("cmc_rank"),
            "circulating_supply": quote.get("circulating_supply") or 0,
            "total_supply": quote.get("total_supply") or 0,
            "max_supply": quote.get("max_supply"),
            "quote": quote.get("quote") or {},
        }

    def _fetch_prices(self, symbols: set[str]) -> dict[str, Decimal]:
        data = self._get(
            "/v2/cryptocurrency/quotes/latest",
            {
                "symbol": ",".join(sorted(symbols)),
                "convert": QUOTE_CURRENCY,
                "skip_invalid": "true",
            },
        )

        prices: dict[str, Decimal] = {}
        for symbol in symbols:
            entry = self._first_entry(data, symbol, fallback_to_any=False)
            if entry is None:
                continue
            price = self._to_decimal(
                entry.get("quote", {}).get(QUOTE_CURRENCY, {}).get("price")
            )
            if price is not None and price.is_finite() and price >= 0:
                prices[symbol] = price

        missing = symbols - prices.keys()
        if missing:
            logger.debug(f"No CoinMarketCap price for {sorted(missing)}")
        return prices

    def _fetch_global_metrics(self, convert: str) -> dict[str, Any]:
        data = self._get("/v1/global-metrics/quotes/latest", {"convert": convert})
        return data if isinstance(data, dict) else {}

    # =========================================================================
    # HTTP AND ERROR CLASSIFICATION
    # =========================================================================

    def _get(self, path: str, params: dict[str, Any], symbol: str | None = None) -> Any:
        """GET `path` through the circuit breaker and return the `data` member."""
        with self._breaker:
            try:
                response = self._client.get(path, params=params)
            except httpx.TimeoutException as e:
                raise ProviderUnavailableError(
                    provider=self.name,
                    reason=f"timeout calling {path}",
                ) from e
            except httpx.HTTPError as e:
                raise ProviderUnavailableError(provider=self.name, reason=str(e)) from e

            self._raise_for_status(response, symbol)

            try:
                body = response.json()
            except ValueError as e:
                raise ProviderUnavailableError(
                    provider=self.name,
                    reason=f"invalid JSON from {path}",
                ) from e

        return body.get("data") if isinstance(body, dict) else None

    def _raise_for_status(self, response: httpx.Response, symbol: str | None) -> None:
        status = response.status_code
        if status < 400:
            return

        message = self._error_message(response)

        if status == 429:
            raise RateLimitError(
                provider=self.name,
                retry_after=self._retry_after(response),
            )
        if status >= 500:
            raise ProviderUnavailableError(
                provider=self.name,
                reason=f"HTTP {status}: {message}",
            )
        if symbol is not None and status in (400, 404):
            raise SymbolNotFoundError(symbol=symbol, provider=self.name)

        logger.error(f"CoinMarketCap rejected request ({status}): {message}")
        raise MarketDataError(
            f"CoinMarketCap request failed with HTTP {status}: {message}",
            provider=self.name,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _with_fallback(
            self,
            operation: str,
            live: Callable[[], T],
            fallback: Callable[[], T],
    ) -> T:
        if not self.is_configured:
            logger.debug(f"No API key configured, serving mock {operation}")
            return fallback()

        try:
            return live()
        except SymbolNotFoundError:
            raise
        except (MarketDataError, CircuitBreakerOpen) as e:
            if not self._mock_fallback:
                logger.error(f"CoinMarketCap {operation} failed: {e}")
                raise
            logger.warning(f"CoinMarketCap {operation} failed, using mock data: {e}")
            return fallback()

    @staticmethod
    def _first_entry(
            data: Any,
            symbol: str,
            fallback_to_any: bool = True,
    ) -> dict[str, Any] | None:
        """
        Pick the entry for `symbol` from a v2 response.

        v2 endpoints key results by symbol (or id) and map each key to a list
        of coins sharing that symbol; the first one is the highest ranked.
        """
        if not isinstance(data, dict) or not data:
            return None

        entry = data.get(symbol)
        if entry is None and fallback_to_any:
            entry = next(iter(data.values()))
        if isinstance(entry, list):
            entry = entry[0] if entry else None
        return entry if isinstance(entry, dict) else None

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        if value is None:
            return None
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None

    @staticmethod
    def _retry_after(response: httpx.Response) -> int | None:
        value = response.headers.get("Retry-After")
        if value and value.isdigit():
            return int(value)
        return None

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            status = response.json().get("status", {})
            return status.get("error_message") or response.reason_phrase
        except (ValueError, AttributeError):
            return response.reason_phrase
