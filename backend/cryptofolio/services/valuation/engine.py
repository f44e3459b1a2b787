# backend/cryptofolio/services/valuation/engine.py
"""
Valuation engine: pure profit/loss calculation.

valuate() takes a Portfolio and a {symbol: price} map and returns a frozen
PortfolioPerformance. It performs no I/O, does not mutate its inputs and
never raises for incomplete price data: a symbol absent from the map is
valued at 0, because price feeds are best-effort.

Formulas (per holding):
    market_value = amount * price
    cost_basis   = amount * unit_cost
    gain         = market_value - cost_basis
    gain_percent = gain / cost_basis * 100      (0 if cost_basis == 0)

Aggregates sum market_value and cost_basis and apply the same gain formulas.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import TYPE_CHECKING

from cryptofolio.services.constants import HUNDRED, ZERO
from cryptofolio.services.valuation.types import HoldingPerformance, PortfolioPerformance

if TYPE_CHECKING:
    from cryptofolio.services.portfolio.types import Holding, Portfolio


def gain_percent(gain: Decimal, cost_basis: Decimal) -> Decimal:
    """Gain as a percentage of cost basis; 0 when cost basis is not positive."""
    if cost_basis <= ZERO:
        return ZERO
    return gain / cost_basis * HUNDRED


def value_holding(holding: Holding, current_prices: Mapping[str, Decimal]) -> HoldingPerformance:
    price = current_prices.get(holding.symbol)
    has_price = price is not None
    price = price if has_price else ZERO

    market_value = holding.amount * price
    cost_basis = holding.cost_basis
    gain = market_value - cost_basis

    return HoldingPerformance(
        id=holding.id,
        asset_id=holding.asset_id,
        name=holding.name,
        symbol=holding.symbol,
        amount=holding.amount,
        unit_cost=holding.unit_cost,
        acquired_at=holding.acquired_at,
        note=holding.note,
        current_price=price,
        market_value=market_value,
        cost_basis=cost_basis,
        gain=gain,
        gain_percent=gain_percent(gain, cost_basis),
        has_price=has_price,
    )


def valuate(portfolio: Portfolio, current_prices: Mapping[str, Decimal]) -> PortfolioPerformance:
    """
    Compute per-holding and aggregate performance.

    Args:
        portfolio: Portfolio snapshot (not modified)
        current_prices: Symbol -> current unit price in USD (>= 0)

    Returns:
        PortfolioPerformance; all-zero aggregates for an empty portfolio

    Example:
        >>> # 1.5 BTC bought at 40000, now 45000
        >>> report = valuate(portfolio, {"BTC": Decimal("45000")})
        >>> report.total_gain == 7500 and report.total_gain_percent == Decimal("12.5")
        True
    """
    performances = tuple(value_holding(h, current_prices) for h in portfolio.holdings)

    total_market_value = sum((p.market_value for p in performances), ZERO)
    total_cost_basis = sum((p.cost_basis for p in performances), ZERO)
    total_gain = total_market_value - total_cost_basis

    return PortfolioPerformance(
        portfolio_id=portfolio.id,
        display_name=portfolio.display_name,
        holdings=performances,
        total_market_value=total_market_value,
        total_cost_basis=total_cost_basis,
        total_gain=total_gain,
        total_gain_percent=gain_percent(total_gain, total_cost_basis),
    )
