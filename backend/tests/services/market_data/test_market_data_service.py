# tests/services/market_data/test_market_data_service.py
"""
Tests for MarketDataService caching and the offline mock provider.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from cryptofolio.services.exceptions import ProviderUnavailableError, SymbolNotFoundError
from cryptofolio.services.market_data import (
    MOCK_PRICES,
    MarketDataService,
    MockMarketDataProvider,
    ResponseCache,
)


@pytest.fixture
def provider() -> MagicMock:
    mock = MagicMock(wraps=MockMarketDataProvider())
    return mock


@pytest.fixture
def service(provider) -> MarketDataService:
    return MarketDataService(provider=provider, cache=ResponseCache(max_size=50))


class TestCaching:
    """Repeated calls with the same parameters hit the cache."""

    def test_listings_cached(self, service, provider):
        first = service.get_listings(limit=20)
        second = service.get_listings(limit=20)

        assert first == second
        assert provider.get_latest_listings.call_count == 1

    def test_different_parameters_not_shared(self, service, provider):
        """Each parameter combination should get its own cache entry."""
        service.get_listings(limit=20)
        service.get_listings(limit=20, sort_dir="asc")
        service.get_listings(limit=50)

        assert provider.get_latest_listings.call_count == 3

    def test_crypto_info_key_is_case_insensitive(self, service, provider):
        service.get_crypto_info("btc")
        service.get_crypto_info("BTC")

        assert provider.get_crypto_info.call_count == 1

    def test_errors_not_cached(self, service, provider):
        """Should call the provider again after a failure."""
        provider.get_crypto_info.side_effect = SymbolNotFoundError("NOPE", "mock")

        for _ in range(2):
            with pytest.raises(SymbolNotFoundError):
                service.get_crypto_info("NOPE")

        assert provider.get_crypto_info.call_count == 2

    def test_clear_cache(self, service, provider):
        service.get_listings(limit=10)
        service.search("bit")

        assert service.clear_cache() == 2
        service.get_listings(limit=10)
        assert provider.get_latest_listings.call_count == 2

    def test_cache_stats(self, service):
        service.get_listings(limit=10)
        service.get_listings(limit=10)

        stats = service.cache_stats()
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.keys == 1


class TestMockProvider:
    """Tests for the deterministic offline provider."""

    def test_listings_start_with_popular_coins(self):
        listings = MockMarketDataProvider().get_latest_listings(limit=12)

        assert len(listings) == 12
        assert [entry["symbol"] for entry in listings[:3]] == ["BTC", "ETH", "BNB"]
        assert listings[10]["symbol"] == "CRYPTO10"
        assert listings[0]["quote"]["USD"]["price"] == 65000.0

    def test_listings_are_deterministic(self):
        provider = MockMarketDataProvider()
        first = provider.get_latest_listings(limit=30)
        second = provider.get_latest_listings(limit=30)

        assert [e["quote"]["USD"]["price"] for e in first] == [
            e["quote"]["USD"]["price"] for e in second
        ]

    def test_search_matches_name_or_symbol(self):
        """Should match case-insensitively on name or symbol."""
        provider = MockMarketDataProvider()

        assert [e["symbol"] for e in provider.search("BIT")] == ["BTC"]
        assert provider.search("doge")[0]["name"] == "Dogecoin"
        assert len(provider.search("crypto", limit=5)) == 5
        assert provider.search("   ") == []

    def test_crypto_info_for_unknown_symbol(self):
        """Should build a placeholder entry for symbols without mock data."""
        info = MockMarketDataProvider().get_crypto_info("xyz")

        assert info["symbol"] == "XYZ"
        assert info["name"] == "XYZ Coin"
        assert info["quote"]["USD"]["price"] == 1.0

    def test_prices_only_known_symbols(self):
        prices = MockMarketDataProvider().get_current_prices({"SHIB", "XYZ"})

        assert prices == {"SHIB": Decimal("0.000025")}
        assert MOCK_PRICES["XRP"] == Decimal("0.55")

    def test_global_metrics_unavailable(self):
        with pytest.raises(ProviderUnavailableError):
            MockMarketDataProvider().get_global_metrics()
