# backend/cryptofolio/services/portfolio/service.py
"""
Portfolio service: orchestrates store, mutators, price feed and valuation.

Each write follows load -> mutate -> save. When save() reports a version
conflict the whole cycle is replayed on a freshly loaded copy, up to
MAX_SAVE_ATTEMPTS times, so a mutator is never applied to a stale copy.

Reads value the portfolio against live prices. A price feed outage is not
an error for the caller: the portfolio is valued against an empty price
map and every market value is 0.
"""

import logging
from collections.abc import Callable
from decimal import Decimal

from sqlalchemy.orm import Session

from cryptofolio.services.circuit_breaker import CircuitBreakerOpen
from cryptofolio.services.exceptions import ConflictError, MarketDataError
from cryptofolio.services.portfolio import mutators
from cryptofolio.services.portfolio.store import PortfolioStore
from cryptofolio.services.portfolio.types import HoldingInput, HoldingPatch, Portfolio
from cryptofolio.services.protocols import PortfolioStoreProtocol, PriceFeed
from cryptofolio.services.valuation import PortfolioPerformance, valuate

logger = logging.getLogger(__name__)

MAX_SAVE_ATTEMPTS = 3


class PortfolioService:
    """
    Application service behind the /api/portfolio endpoints.

    Stateless apart from the shared price feed, so one instance serves all
    requests (see dependencies.get_portfolio_service).
    """

    def __init__(
            self,
            price_feed: PriceFeed,
            store_factory: Callable[[Session], PortfolioStoreProtocol] = PortfolioStore,
    ) -> None:
        self._price_feed = price_feed
        self._store_factory = store_factory

    # =========================================================================
    # READS
    # =========================================================================

    def get_or_create(self, db: Session, owner_id: int) -> Portfolio:
        """Return the owner's portfolio, creating an empty one on first access."""
        store = self._store_factory(db)
        portfolio = store.get_by_owner(owner_id)
        if portfolio is not None:
            return portfolio

        try:
            return store.create(owner_id)
        except ConflictError:
            # Lost a creation race; the other request's portfolio is the one
            logger.info(f"Portfolio for user {owner_id} created concurrently, reloading")
            return store.get_by_owner(owner_id)

    def get_performance(
            self,
            db: Session,
            owner_id: int,
    ) -> tuple[Portfolio, PortfolioPerformance]:
        portfolio = self.get_or_create(db, owner_id)
        return portfolio, self.valuate(portfolio)

    def valuate(self, portfolio: Portfolio) -> PortfolioPerformance:
        return valuate(portfolio, self.fetch_prices(portfolio.symbols))

    def fetch_prices(self, symbols: set[str]) -> dict[str, Decimal]:
        """Best-effort price lookup; returns {} if the feed is down."""
        if not symbols:
            return {}
        try:
            return self._price_feed.get_current_prices(symbols)
        except (MarketDataError, CircuitBreakerOpen) as e:
            logger.warning(f"Price feed unavailable, valuing at zero: {e}")
            return {}

    # =========================================================================
    # WRITES
    # =========================================================================

    def add_holding(self, db: Session, owner_id: int, holding_input: HoldingInput) -> Portfolio:
        portfolio = self._apply(
            db, owner_id, lambda p: mutators.add_holding(p, holding_input)
        )
        logger.info(
            f"Added {holding_input.amount} {holding_input.symbol} "
            f"to portfolio {portfolio.id}"
        )
        return portfolio

    def update_holding(
            self,
            db: Session,
            owner_id: int,
            holding_id: str,
            patch: HoldingPatch,
    ) -> Portfolio:
        portfolio = self._apply(
            db, owner_id, lambda p: mutators.update_holding(p, holding_id, patch)
        )
        logger.info(f"Updated holding {holding_id} in portfolio {portfolio.id}")
        return portfolio

    def remove_holding(self, db: Session, owner_id: int, holding_id: str) -> Portfolio:
        portfolio = self._apply(
            db, owner_id, lambda p: mutators.remove_holding(p, holding_id)
        )
        logger.info(f"Removed holding {holding_id} from portfolio {portfolio.id}")
        return portfolio

    def rename(self, db: Session, owner_id: int, new_name: str) -> Portfolio:
        return self._apply(
            db, owner_id, lambda p: mutators.rename_portfolio(p, new_name)
        )

    def _apply(
            self,
            db: Session,
            owner_id: int,
            mutation: Callable[[Portfolio], Portfolio],
    ) -> Portfolio:
        store = self._store_factory(db)
        attempt = 1
        while True:
            portfolio = mutation(self.get_or_create(db, owner_id))
            try:
                return store.save(portfolio)
            except ConflictError:
                if attempt >= MAX_SAVE_ATTEMPTS:
                    raise
                logger.warning(
                    f"Retrying write to portfolio {portfolio.id} "
                    f"after version conflict (attempt {attempt})"
                )
                attempt += 1
