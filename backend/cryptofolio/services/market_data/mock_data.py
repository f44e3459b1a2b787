# backend/cryptofolio/services/market_data/mock_data.py
"""
Deterministic mock market data.

Served when no CoinMarketCap API key is configured, or when a live call fails
and MARKET_DATA_MOCK_FALLBACK is on. Values are fixed so that the app can
be demoed and tested offline with reproducible results.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from cryptofolio.services.constants import (
    DEFAULT_LISTINGS_LIMIT,
    QUOTE_CURRENCY,
)
from cryptofolio.services.exceptions import ProviderUnavailableError
from cryptofolio.services.market_data.base import MarketDataProvider


# (symbol, name, price, change_24h %, market_cap, volume_24h)
POPULAR_CRYPTOS: tuple[tuple[str, str, str, float, float, float], ...] = (
    ("BTC", "Bitcoin", "65000", 2.5, 1_200_000_000_000, 25_000_000_000),
    ("ETH", "Ethereum", "3500", 1.8, 420_000_000_000, 15_000_000_000),
    ("BNB", "Binance Coin", "550", -0.5, 85_000_000_000, 2_000_000_000),
    ("SOL", "Solana", "120", 3.2, 50_000_000_000, 3_000_000_000),
    ("XRP", "XRP", "0.55", -1.2, 30_000_000_000, 1_500_000_000),
    ("ADA", "Cardano", "0.45", 0.8, 16_000_000_000, 800_000_000),
    ("DOGE", "Dogecoin", "0.12", 5.4, 15_000_000_000, 1_200_000_000),
    ("AVAX", "Avalanche", "35", -2.1, 12_000_000_000, 600_000_000),
    ("DOT", "Polkadot", "7.5", 1.0, 10_000_000_000, 500_000_000),
    ("SHIB", "Shiba Inu", "0.000025", 4.3, 9_000_000_000, 700_000_000),
)

MOCK_PRICES: dict[str, Decimal] = {
    symbol: Decimal(price) for symbol, _, price, *_ in POPULAR_CRYPTOS
}

_MOCK_DATE_ADDED = "2013-04-28T00:00:00.000Z"


def _quote(price: float, change_24h: float, market_cap: float, volume: float) -> dict[str, Any]:
    return {
        "price": price,
        "volume_24h": volume,
        "market_cap": market_cap,
        "percent_change_1h": change_24h / 2,
        "percent_change_24h": change_24h,
        "percent_change_7d": change_24h * 2,
        "percent_change_30d": change_24h * 4,
        "last_updated": datetime.now(timezone.utc).isoformat(),
    }


def _listing(
        rank: int,
        symbol: str,
        name: str,
        price: float,
        change_24h: float,
        market_cap: float,
        volume: float,
        convert: str,
) -> dict[str, Any]:
    return {
        "id": rank,
        "name": name,
        "symbol": symbol,
        "slug": name.lower().replace(" ", "-"),
        "cmc_rank": rank,
        "circulating_supply": int(market_cap / price) if price else 0,
        "quote": {convert: _quote(price, change_24h, market_cap, volume)},
    }


def mock_listings(limit: int = DEFAULT_LISTINGS_LIMIT, convert: str = QUOTE_CURRENCY) -> list[dict[str, Any]]:
    """
    Popular coins first, then synthetic CRYPTO<n> entries up to `limit`.

    Synthetic entries derive their numbers from their rank so repeated calls
    return identical data.
    """
    listings = [
        _listing(rank, symbol, name, float(price), change, cap, volume, convert)
        for rank, (symbol, name, price, change, cap, volume) in enumerate(POPULAR_CRYPTOS, start=1)
    ]

    for index in range(len(POPULAR_CRYPTOS), limit):
        rank = index + 1
        price = round(100 / rank, 6)
        market_cap = price * 100_000_000
        listings.append(_listing(
            rank,
            f"CRYPTO{index}",
            f"Cryptocurrency {index}",
            price,
            float((index * 7) % 21 - 10),
            market_cap,
            market_cap * 0.1,
            convert,
        ))

    return listings[:limit]


def mock_crypto_info(symbol: str, convert: str = QUOTE_CURRENCY) -> dict[str, Any]:
    """Metadata plus quote for a popular coin, or a generic placeholder entry."""
    symbol = symbol.strip().upper()
    for rank, (sym, name, price, change, cap, volume) in enumerate(POPULAR_CRYPTOS, start=1):
        if sym == symbol:
            listing = _listing(rank, sym, name, float(price), change, cap, volume, convert)
            break
    else:
        listing = _listing(
            len(POPULAR_CRYPTOS) + 1, symbol, f"{symbol} Coin", 1.0, 0.0, 0.0, 0.0, convert
        )

    return {
        **listing,
        "logo": f"https://s2.coinmarketcap.com/static/img/coins/64x64/{listing['id']}.png",
        "description": f"Mock data for {listing['name']} ({symbol}).",
        "date_added": _MOCK_DATE_ADDED,
        "tags": [],
        "urls": {},
        "total_supply": listing["circulating_supply"],
        "max_supply": None,
    }


def mock_prices(symbols: set[str]) -> dict[str, Decimal]:
    """Prices for the requested symbols that have a mock price."""
    return {
        symbol.upper(): MOCK_PRICES[symbol.upper()]
        for symbol in symbols
        if symbol.upper() in MOCK_PRICES
    }


class MockMarketDataProvider(MarketDataProvider):
    """
    Offline provider serving the mock data above.

    Global metrics have no mock counterpart and raise
    ProviderUnavailableError.
    """

    @property
    def name(self) -> str:
        return "mock"

    def get_latest_listings(
            self,
            limit: int = DEFAULT_LISTINGS_LIMIT,
            convert: str = QUOTE_CURRENCY,
            sort: str = "market_cap",
            sort_dir: str = "desc",
    ) -> list[dict[str, Any]]:
        return mock_listings(limit, convert)

    def get_crypto_info(self, symbol: str, convert: str = QUOTE_CURRENCY) -> dict[str, Any]:
        return mock_crypto_info(symbol, convert)

    def get_global_metrics(self, convert: str = QUOTE_CURRENCY) -> dict[str, Any]:
        raise ProviderUnavailableError(
            provider=self.name,
            reason="global metrics are not available without a CoinMarketCap API key",
        )

    def get_current_prices(self, symbols: set[str]) -> dict[str, Decimal]:
        return mock_prices(symbols)
