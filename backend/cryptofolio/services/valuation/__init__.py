# backend/cryptofolio/services/valuation/__init__.py
"""
Valuation package: pure profit/loss over a portfolio and a price map.

Usage:
    from cryptofolio.services.valuation import valuate

    report = valuate(portfolio, {"BTC": Decimal("45000")})
    report.total_gain_percent
"""

from cryptofolio.services.valuation.engine import gain_percent, valuate, value_holding
from cryptofolio.services.valuation.types import HoldingPerformance, PortfolioPerformance

__all__ = [
    "valuate",
    "value_holding",
    "gain_percent",
    "HoldingPerformance",
    "PortfolioPerformance",
]
