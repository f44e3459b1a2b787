# backend/cryptofolio/schemas/portfolio.py
"""
Pydantic schemas for the portfolio endpoints.

Validation layers:
- Schema: types and precision (at most 8 decimal places, as stored)
- Domain mutators: required fields, positivity, holding existence,
  merged amounts and the portfolio cost basis bound
  (so the API reports "missing field: symbol" and similar as 400)

Money in responses is rounded by the router's mappers: currency values
to 2 decimals, percentages to 2 decimals, amounts and unit costs kept at
8 decimals. Valuation itself runs at full precision.

IMPORTANT: All financial values use Decimal. Never use float for money!
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from cryptofolio.services.constants import MAX_HOLDING_QUANTITY, MAX_PORTFOLIO_NAME_LENGTH


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class HoldingCreate(BaseModel):
    """
    Body of POST /api/portfolio/holdings.

    Fields are typed here but presence is enforced by the domain, which
    reports the first missing field by name.
    """

    asset_id: str | None = Field(
        None,
        max_length=100,
        description="CoinMarketCap id or slug",
        examples=["1", "bitcoin"],
    )
    name: str | None = Field(None, max_length=200, examples=["Bitcoin"])
    symbol: str | None = Field(
        None,
        max_length=20,
        description="Ticker symbol; stored upper-case",
        examples=["BTC"],
    )
    amount: Decimal | None = Field(
        None,
        max_digits=24,
        decimal_places=8,
        le=MAX_HOLDING_QUANTITY,
        description="Units bought (must be positive)",
        examples=["1.5", "0.00012345"],
    )
    unit_cost: Decimal | None = Field(
        None,
        max_digits=24,
        decimal_places=8,
        le=MAX_HOLDING_QUANTITY,
        description="Purchase price per unit in USD (must be positive)",
        examples=["40000", "0.000025"],
    )
    acquired_at: datetime | None = Field(
        None,
        description="Purchase time; defaults to now, may be backdated",
        examples=["2024-03-01T12:00:00Z"],
    )
    note: str | None = Field(None, max_length=1000)

    @field_validator("acquired_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Naive timestamps are taken as UTC."""
        return _as_utc(v)


class HoldingUpdate(BaseModel):
    """
    Body of PUT /api/portfolio/holdings/{id}.

    Omitted fields are unchanged. An empty note clears the note.
    """

    amount: Decimal | None = Field(
        None, max_digits=24, decimal_places=8, le=MAX_HOLDING_QUANTITY, examples=["2"]
    )
    unit_cost: Decimal | None = Field(
        None, max_digits=24, decimal_places=8, le=MAX_HOLDING_QUANTITY, examples=["42000"]
    )
    note: str | None = Field(None, max_length=1000)


class PortfolioRename(BaseModel):
    """Body of PATCH /api/portfolio."""

    name: str = Field(
        ...,
        max_length=MAX_PORTFOLIO_NAME_LENGTH,
        examples=["Long-term bag"],
    )


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class HoldingResponse(BaseModel):
    """A stored position."""

    id: str
    asset_id: str
    name: str
    symbol: str
    amount: Decimal
    unit_cost: Decimal
    cost_basis: Decimal = Field(..., description="amount * unit_cost, in USD")
    acquired_at: datetime
    note: str | None


class PortfolioResponse(BaseModel):
    """Portfolio as stored (returned by write endpoints)."""

    id: int
    display_name: str
    holdings: list[HoldingResponse]
    total_cost_basis: Decimal
    updated_at: datetime
    version: int = Field(..., description="Optimistic locking version")


class HoldingPerformanceResponse(HoldingResponse):
    """A position valued at the current market price."""

    current_price: Decimal = Field(..., description="0 when no price is available")
    market_value: Decimal
    gain: Decimal
    gain_percent: Decimal
    has_price: bool = Field(..., description="False if the price feed had no quote")


class PerformanceResponse(BaseModel):
    """Valuation report (GET /api/portfolio/performance)."""

    portfolio_id: int
    display_name: str
    holdings: list[HoldingPerformanceResponse]
    holdings_count: int
    total_market_value: Decimal
    total_cost_basis: Decimal
    total_gain: Decimal
    total_gain_percent: Decimal
    missing_prices: list[str] = Field(
        default_factory=list,
        description="Symbols valued at 0 because no price was available",
    )


class PortfolioWithPerformanceResponse(PortfolioResponse):
    """Portfolio plus its valuation (GET /api/portfolio)."""

    performance: PerformanceResponse
