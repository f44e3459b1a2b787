# backend/cryptofolio/services/portfolio/__init__.py
"""
Portfolio domain package.

- types: Holding / Portfolio dataclasses and mutator inputs
- mutators: add/update/remove holding, rename (pure, in-memory)
- store: SQLAlchemy persistence with optimistic locking
- service: PortfolioService used by the HTTP layer

Usage:
    from cryptofolio.services.portfolio import PortfolioService, HoldingInput
"""

from cryptofolio.services.portfolio.mutators import (
    add_holding,
    remove_holding,
    rename_portfolio,
    update_holding,
)
from cryptofolio.services.portfolio.service import PortfolioService
from cryptofolio.services.portfolio.store import PortfolioStore
from cryptofolio.services.portfolio.types import (
    Holding,
    HoldingInput,
    HoldingPatch,
    Portfolio,
)

__all__ = [
    "Holding",
    "HoldingInput",
    "HoldingPatch",
    "Portfolio",
    "add_holding",
    "update_holding",
    "remove_holding",
    "rename_portfolio",
    "PortfolioStore",
    "PortfolioService",
]
