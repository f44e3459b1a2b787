# backend/cryptofolio/services/portfolio/types.py
"""
In-memory domain types for portfolios and holdings.

These are plain dataclasses with no database or HTTP knowledge. The
mutators in mutators.py are the only code that changes a Portfolio;
the store converts to and from ORM rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from cryptofolio.services.constants import DEFAULT_PORTFOLIO_NAME, ZERO


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Holding:
    """
    A single position in one asset.

    Attributes:
        id: UUID4 string, immutable
        asset_id: External asset key (CoinMarketCap id), immutable
        name: Display name (e.g. "Bitcoin"), immutable
        symbol: Ticker symbol, upper case (e.g. "BTC"), joins to live prices
        amount: Quantity owned, always > 0
        unit_cost: Purchase price per unit in USD, always > 0
        acquired_at: When the position was bought (may be backdated)
        note: Optional free text
    """

    id: str
    asset_id: str
    name: str
    symbol: str
    amount: Decimal
    unit_cost: Decimal
    acquired_at: datetime
    note: str | None = None

    @property
    def cost_basis(self) -> Decimal:
        return self.amount * self.unit_cost


@dataclass
class Portfolio:
    """
    A user's ordered collection of holdings.

    `total_cost_basis` is a cached aggregate; every mutator recomputes it
    and the store refuses to persist a portfolio where it is stale.
    `version` is owned by the store (optimistic locking).
    """

    id: int | None
    owner_id: int
    display_name: str = DEFAULT_PORTFOLIO_NAME
    holdings: list[Holding] = field(default_factory=list)
    total_cost_basis: Decimal = ZERO
    updated_at: datetime = field(default_factory=utcnow)
    version: int = 1

    def find_holding(self, holding_id: str) -> Holding | None:
        return next((h for h in self.holdings if h.id == holding_id), None)

    def find_by_asset(self, asset_id: str) -> Holding | None:
        return next((h for h in self.holdings if h.asset_id == asset_id), None)

    def compute_cost_basis(self) -> Decimal:
        """Fresh sum of amount * unit_cost over all holdings."""
        return sum((h.cost_basis for h in self.holdings), ZERO)

    @property
    def symbols(self) -> set[str]:
        return {h.symbol for h in self.holdings}


@dataclass(frozen=True)
class HoldingInput:
    """
    A purchase submitted for add_holding.

    Required fields are typed optional so that the mutator, not the
    constructor, reports which one is missing.
    """

    asset_id: str | None
    name: str | None
    symbol: str | None
    amount: Decimal | None
    unit_cost: Decimal | None
    acquired_at: datetime | None = None
    note: str | None = None


@dataclass(frozen=True)
class HoldingPatch:
    """
    Partial update for update_holding.

    A field left as None is not touched. An empty-string note clears the note.
    """

    amount: Decimal | None = None
    unit_cost: Decimal | None = None
    note: str | None = None
