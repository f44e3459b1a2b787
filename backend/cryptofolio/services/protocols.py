# backend/cryptofolio/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- CoinMarketCapProvider satisfies PriceFeed without inheriting from it
- Test doubles work without explicit inheritance
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from cryptofolio.services.portfolio.types import Portfolio


class PriceFeed(Protocol):
    """
    Source of current unit prices (USD) keyed by symbol.

    May return fewer symbols than requested. Raises only on total failure
    (MarketDataError or CircuitBreakerOpen).
    """

    def get_current_prices(self, symbols: set[str]) -> dict[str, Decimal]:
        ...


class PortfolioStoreProtocol(Protocol):
    """Persistence interface required by PortfolioService."""

    def get_by_owner(self, owner_id: int) -> Portfolio | None:
        ...

    def create(self, owner_id: int, display_name: str = ...) -> Portfolio:
        ...

    def save(self, portfolio: Portfolio) -> Portfolio:
        ...
