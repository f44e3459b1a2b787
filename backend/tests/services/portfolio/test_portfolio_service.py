# tests/services/portfolio/test_portfolio_service.py
"""
Tests for PortfolioService: load -> mutate -> save, valuation and
price feed fallback.
"""

from decimal import Decimal

import httpx
import pytest

from cryptofolio.services.circuit_breaker import CircuitBreaker, CircuitBreakerOpen
from cryptofolio.services.exceptions import ConflictError, HoldingNotFoundError
from cryptofolio.services.market_data import CoinMarketCapProvider
from cryptofolio.services.portfolio import HoldingPatch, PortfolioService, PortfolioStore
from cryptofolio.services.portfolio.service import MAX_SAVE_ATTEMPTS


class NoWaitCoinMarketCapProvider(CoinMarketCapProvider):
    RETRY_MIN_WAIT = 0
    RETRY_MAX_WAIT = 0
    RETRY_MULTIPLIER = 0


class ConflictingStore(PortfolioStore):
    """Store whose first `conflicts` saves fail with a version conflict."""

    conflicts = 0
    save_calls = 0

    def save(self, portfolio):
        ConflictingStore.save_calls += 1
        if ConflictingStore.save_calls <= ConflictingStore.conflicts:
            raise ConflictError("simulated", resource_type="Portfolio", resource_id=portfolio.id)
        return super().save(portfolio)


@pytest.fixture
def conflicting_store():
    ConflictingStore.conflicts = 0
    ConflictingStore.save_calls = 0
    return ConflictingStore


class TestGetOrCreate:
    """Tests for lazy portfolio creation."""

    def test_creates_on_first_access(self, db, portfolio_service, sample_user):
        """Should create an empty portfolio once and return it afterwards."""
        first = portfolio_service.get_or_create(db, sample_user.id)
        second = portfolio_service.get_or_create(db, sample_user.id)

        assert first.id == second.id
        assert first.holdings == []


class TestWrites:
    """Tests for the write operations."""

    def test_add_holding_persists(self, db, portfolio_service, sample_user, make_holding_input):
        """Should save the holding and bump the version."""
        portfolio = portfolio_service.add_holding(db, sample_user.id, make_holding_input())

        assert portfolio.version == 2
        reloaded = portfolio_service.get_or_create(db, sample_user.id)
        assert reloaded.holdings[0].symbol == "BTC"
        assert reloaded.total_cost_basis == Decimal("60000")

    def test_update_and_remove(self, db, portfolio_service, sample_user, make_holding_input):
        """Should update then remove a holding by id."""
        portfolio = portfolio_service.add_holding(db, sample_user.id, make_holding_input())
        holding_id = portfolio.holdings[0].id

        portfolio = portfolio_service.update_holding(
            db, sample_user.id, holding_id, HoldingPatch(unit_cost=Decimal("50000"))
        )
        assert portfolio.total_cost_basis == Decimal("75000")

        portfolio = portfolio_service.remove_holding(db, sample_user.id, holding_id)
        assert portfolio.holdings == []

    def test_remove_unknown_holding(self, db, portfolio_service, sample_user):
        """Should propagate HoldingNotFoundError."""
        with pytest.raises(HoldingNotFoundError):
            portfolio_service.remove_holding(db, sample_user.id, "nope")

    def test_rename(self, db, portfolio_service, sample_user):
        portfolio = portfolio_service.rename(db, sample_user.id, "Moonbag")

        assert portfolio.display_name == "Moonbag"


class TestConflictRetry:
    """Writes are replayed on a fresh copy after a version conflict."""

    def test_retries_after_conflict(
            self, db, price_feed, sample_user, make_holding_input, conflicting_store
    ):
        """Should succeed when a later attempt saves cleanly."""
        conflicting_store.conflicts = 1
        service = PortfolioService(price_feed=price_feed, store_factory=conflicting_store)

        portfolio = service.add_holding(db, sample_user.id, make_holding_input())

        assert conflicting_store.save_calls == 2
        assert len(portfolio.holdings) == 1

    def test_gives_up_after_max_attempts(
            self, db, price_feed, sample_user, make_holding_input, conflicting_store
    ):
        """Should raise ConflictError after MAX_SAVE_ATTEMPTS conflicts."""
        conflicting_store.conflicts = MAX_SAVE_ATTEMPTS
        service = PortfolioService(price_feed=price_feed, store_factory=conflicting_store)

        with pytest.raises(ConflictError):
            service.add_holding(db, sample_user.id, make_holding_input())

        assert conflicting_store.save_calls == MAX_SAVE_ATTEMPTS


class TestValuation:
    """Tests for get_performance and the price feed fallback."""

    def test_values_against_feed(self, db, portfolio_service, price_feed, sample_user, make_holding_input):
        """Should value holdings at the feed's prices."""
        portfolio_service.add_holding(db, sample_user.id, make_holding_input())

        _, report = portfolio_service.get_performance(db, sample_user.id)

        assert report.total_market_value == Decimal("67500")
        assert report.total_gain_percent == Decimal("12.5")
        assert price_feed.calls[-1] == {"BTC"}

    def test_empty_portfolio_skips_feed(self, db, portfolio_service, price_feed, sample_user):
        """Should not call the feed when there is nothing to price."""
        _, report = portfolio_service.get_performance(db, sample_user.id)

        assert report.holdings_count == 0
        assert price_feed.calls == []

    def test_feed_failure_values_at_zero(
            self, db, failing_price_feed, sample_user, make_holding_input
    ):
        """Should value at 0 instead of failing when the feed is down."""
        service = PortfolioService(price_feed=failing_price_feed)
        service.add_holding(db, sample_user.id, make_holding_input())

        _, report = service.get_performance(db, sample_user.id)

        assert report.total_market_value == 0
        assert report.total_cost_basis == Decimal("60000")
        assert report.missing_prices == ("BTC",)

    def test_open_circuit_values_at_zero(self, price_feed):
        """Should treat an open circuit breaker like a feed outage."""
        price_feed.fail_with(CircuitBreakerOpen("coinmarketcap", 30.0))
        service = PortfolioService(price_feed=price_feed)

        assert service.fetch_prices({"BTC"}) == {}

    def test_coinmarketcap_outage_values_at_zero(
            self, db, sample_user, make_holding_input
    ):
        """A live CoinMarketCap outage never values holdings at mock prices."""
        provider = NoWaitCoinMarketCapProvider(
            api_key="test-key",
            base_url="https://cmc.test",
            mock_fallback=True,
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
            circuit_breaker=CircuitBreaker(name="test", failure_threshold=100),
        )
        service = PortfolioService(price_feed=provider)
        service.add_holding(db, sample_user.id, make_holding_input())

        _, report = service.get_performance(db, sample_user.id)

        assert report.total_market_value == 0
        assert report.holdings[0].has_price is False
        assert report.missing_prices == ("BTC",)
