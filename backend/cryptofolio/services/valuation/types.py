# backend/cryptofolio/services/valuation/types.py
"""
Result types for the valuation engine.

Both types are frozen: a performance report is a value computed from a
portfolio snapshot and a price map, never edited afterwards. Amounts keep
full Decimal precision; rounding happens in the response schemas.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class HoldingPerformance:
    """
    Profit/loss of one holding at the given price.

    Carries every Holding field plus the computed figures.

    Attributes:
        current_price: Price used (0 when the feed had no price)
        market_value: amount * current_price
        cost_basis: amount * unit_cost
        gain: market_value - cost_basis
        gain_percent: gain / cost_basis * 100 (0 when cost_basis is 0)
        has_price: False when the symbol was missing from the price map
    """

    id: str
    asset_id: str
    name: str
    symbol: str
    amount: Decimal
    unit_cost: Decimal
    acquired_at: datetime
    note: str | None
    current_price: Decimal
    market_value: Decimal
    cost_basis: Decimal
    gain: Decimal
    gain_percent: Decimal
    has_price: bool


@dataclass(frozen=True)
class PortfolioPerformance:
    """
    Aggregate profit/loss of a portfolio.

    Invariant: total_cost_basis equals the portfolio's own cached total.
    """

    portfolio_id: int | None
    display_name: str
    holdings: tuple[HoldingPerformance, ...]
    total_market_value: Decimal
    total_cost_basis: Decimal
    total_gain: Decimal
    total_gain_percent: Decimal

    @property
    def holdings_count(self) -> int:
        return len(self.holdings)

    @property
    def missing_prices(self) -> tuple[str, ...]:
        """Symbols valued at 0 because the price feed had no quote."""
        return tuple(h.symbol for h in self.holdings if not h.has_price)
