# backend/cryptofolio/routers/portfolio.py
"""
Portfolio endpoints for the authenticated user.

Each user has exactly one portfolio, created on first access:
- GET    /portfolio                      - Portfolio with live valuation
- PATCH  /portfolio                      - Rename
- GET    /portfolio/performance          - Valuation report only
- POST   /portfolio/holdings             - Add (or merge) a holding
- PUT    /portfolio/holdings/{id}        - Update amount/unit cost/note
- DELETE /portfolio/holdings/{id}        - Remove a holding

Write endpoints return the stored portfolio without prices; reads value it
against CoinMarketCap. A price feed outage values holdings at 0 instead of
failing the request.
"""

from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from cryptofolio.database import get_db
from cryptofolio.dependencies import get_current_user, get_portfolio_service
from cryptofolio.middleware.rate_limit import limiter
from cryptofolio.models import User
from cryptofolio.schemas.portfolio import (
    HoldingCreate,
    HoldingPerformanceResponse,
    HoldingResponse,
    HoldingUpdate,
    PerformanceResponse,
    PortfolioRename,
    PortfolioResponse,
    PortfolioWithPerformanceResponse,
)
from cryptofolio.services.constants import (
    CURRENCY_PRECISION,
    DISPLAY_PERCENTAGE_PRECISION,
    RATE_LIMIT_WRITE,
    SHARE_PRECISION,
)
from cryptofolio.services.portfolio import (
    Holding,
    HoldingInput,
    HoldingPatch,
    Portfolio,
    PortfolioService,
)
from cryptofolio.services.valuation import HoldingPerformance, PortfolioPerformance

router = APIRouter(
    prefix="/portfolio",
    tags=["Portfolio"],
)


# =============================================================================
# MAPPER FUNCTIONS (Domain Types -> Pydantic Schemas)
# =============================================================================

# Wide enough for any Numeric(38, 16) value quantized to 8 places
_DISPLAY_CONTEXT_PRECISION = 60


def _round(value: Decimal, exponent: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _DISPLAY_CONTEXT_PRECISION
        return value.quantize(exponent, rounding=ROUND_HALF_UP)


def _money(value: Decimal) -> Decimal:
    return _round(value, CURRENCY_PRECISION)


def _units(value: Decimal) -> Decimal:
    return _round(value, SHARE_PRECISION)


def _percent(value: Decimal) -> Decimal:
    return _round(value, DISPLAY_PERCENTAGE_PRECISION)


def _map_holding(holding: Holding) -> HoldingResponse:
    return HoldingResponse(
        id=holding.id,
        asset_id=holding.asset_id,
        name=holding.name,
        symbol=holding.symbol,
        amount=_units(holding.amount),
        unit_cost=_units(holding.unit_cost),
        cost_basis=_money(holding.cost_basis),
        acquired_at=holding.acquired_at,
        note=holding.note,
    )


def _map_portfolio(portfolio: Portfolio) -> PortfolioResponse:
    return PortfolioResponse(
        id=portfolio.id,
        display_name=portfolio.display_name,
        holdings=[_map_holding(h) for h in portfolio.holdings],
        total_cost_basis=_money(portfolio.total_cost_basis),
        updated_at=portfolio.updated_at,
        version=portfolio.version,
    )


def _map_holding_performance(perf: HoldingPerformance) -> HoldingPerformanceResponse:
    return HoldingPerformanceResponse(
        id=perf.id,
        asset_id=perf.asset_id,
        name=perf.name,
        symbol=perf.symbol,
        amount=_units(perf.amount),
        unit_cost=_units(perf.unit_cost),
        cost_basis=_money(perf.cost_basis),
        acquired_at=perf.acquired_at,
        note=perf.note,
        current_price=_units(perf.current_price),
        market_value=_money(perf.market_value),
        gain=_money(perf.gain),
        gain_percent=_percent(perf.gain_percent),
        has_price=perf.has_price,
    )


def _map_performance(report: PortfolioPerformance) -> PerformanceResponse:
    return PerformanceResponse(
        portfolio_id=report.portfolio_id,
        display_name=report.display_name,
        holdings=[_map_holding_performance(h) for h in report.holdings],
        holdings_count=report.holdings_count,
        total_market_value=_money(report.total_market_value),
        total_cost_basis=_money(report.total_cost_basis),
        total_gain=_money(report.total_gain),
        total_gain_percent=_percent(report.total_gain_percent),
        missing_prices=list(report.missing_prices),
    )


# =============================================================================
# READ ENDPOINTS
# =============================================================================

@router.get(
    "",
    response_model=PortfolioWithPerformanceResponse,
    summary="Get my portfolio",
)
def get_portfolio(
        db: Annotated[Session, Depends(get_db)],
        current_user: Annotated[User, Depends(get_current_user)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> PortfolioWithPerformanceResponse:
    """
    Return the portfolio (created empty on first access) valued at current
    prices.
    """
    portfolio, report = service.get_performance(db, current_user.id)
    return PortfolioWithPerformanceResponse(
        **_map_portfolio(portfolio).model_dump(),
        performance=_map_performance(report),
    )


@router.get(
    "/performance",
    response_model=PerformanceResponse,
    summary="Get portfolio performance",
)
def get_performance(
        db: Annotated[Session, Depends(get_db)],
        current_user: Annotated[User, Depends(get_current_user)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> PerformanceResponse:
    """
    Per-holding and total market value, cost basis and gain.

    Holdings without a price are valued at 0 and listed in missing_prices.
    """
    _, report = service.get_performance(db, current_user.id)
    return _map_performance(report)


# =============================================================================
# WRITE ENDPOINTS
# =============================================================================

@router.patch(
    "",
    response_model=PortfolioResponse,
    summary="Rename my portfolio",
)
@limiter.limit(RATE_LIMIT_WRITE)
def rename_portfolio(
        request: Request,
        data: PortfolioRename,
        db: Annotated[Session, Depends(get_db)],
        current_user: Annotated[User, Depends(get_current_user)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> PortfolioResponse:
    return _map_portfolio(service.rename(db, current_user.id, data.name))


@router.post(
    "/holdings",
    response_model=PortfolioResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a holding",
)
@limiter.limit(RATE_LIMIT_WRITE)
def add_holding(
        request: Request,
        data: HoldingCreate,
        db: Annotated[Session, Depends(get_db)],
        current_user: Annotated[User, Depends(get_current_user)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> PortfolioResponse:
    """
    Record a purchase.

    A purchase of an asset already held is merged into the existing holding:
    amounts are summed and the unit cost becomes the amount-weighted average.
    """
    holding_input = HoldingInput(
        asset_id=data.asset_id,
        name=data.name,
        symbol=data.symbol,
        amount=data.amount,
        unit_cost=data.unit_cost,
        acquired_at=data.acquired_at,
        note=data.note,
    )
    return _map_portfolio(service.add_holding(db, current_user.id, holding_input))


@router.put(
    "/holdings/{holding_id}",
    response_model=PortfolioResponse,
    summary="Update a holding",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_holding(
        request: Request,
        holding_id: str,
        data: HoldingUpdate,
        db: Annotated[Session, Depends(get_db)],
        current_user: Annotated[User, Depends(get_current_user)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> PortfolioResponse:
    patch = HoldingPatch(
        amount=data.amount,
        unit_cost=data.unit_cost,
        note=data.note,
    )
    return _map_portfolio(service.update_holding(db, current_user.id, holding_id, patch))


@router.delete(
    "/holdings/{holding_id}",
    response_model=PortfolioResponse,
    summary="Remove a holding",
)
@limiter.limit(RATE_LIMIT_WRITE)
def remove_holding(
        request: Request,
        holding_id: str,
        db: Annotated[Session, Depends(get_db)],
        current_user: Annotated[User, Depends(get_current_user)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> PortfolioResponse:
    return _map_portfolio(service.remove_holding(db, current_user.id, holding_id))
