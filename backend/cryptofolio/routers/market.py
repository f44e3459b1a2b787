# backend/cryptofolio/routers/market.py
"""
Market data endpoints (CoinMarketCap proxy).

Public:
- GET /market/listings          - Ranked listings
- GET /market/crypto/{symbol}   - Metadata and quote for one coin
- GET /market/search            - Search by name or symbol
- GET /market/global            - Global market metrics

Authenticated:
- POST /market/cache/clear      - Flush the response cache
- GET  /market/cache/stats      - Cache hit/miss counters

Responses are cached in-process (see MarketDataService for TTLs).
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Path, Query, Request

from cryptofolio.dependencies import get_current_user, get_market_data_service
from cryptofolio.middleware.rate_limit import limiter
from cryptofolio.models import User
from cryptofolio.schemas.market import (
    CacheClearResponse,
    CacheStatsResponse,
    MarketDataResponse,
)
from cryptofolio.services.constants import (
    DEFAULT_LISTINGS_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    MAX_LISTINGS_LIMIT,
    MAX_SEARCH_LIMIT,
    QUOTE_CURRENCY,
    RATE_LIMIT_MARKET,
    RATE_LIMIT_WRITE,
)
from cryptofolio.services.market_data import MarketDataService

router = APIRouter(
    prefix="/market",
    tags=["Market"],
)

ConvertQuery = Annotated[
    str,
    Query(min_length=3, max_length=5, pattern=r"^[A-Za-z]+$", description="Quote currency"),
]


@router.get("/listings", response_model=MarketDataResponse)
@limiter.limit(RATE_LIMIT_MARKET)
def get_listings(
        request: Request,
        service: Annotated[MarketDataService, Depends(get_market_data_service)],
        limit: int = Query(default=DEFAULT_LISTINGS_LIMIT, ge=1, le=MAX_LISTINGS_LIMIT),
        convert: ConvertQuery = QUOTE_CURRENCY,
        sort: Literal[
            "market_cap", "name", "symbol", "price", "volume_24h",
            "percent_change_1h", "percent_change_24h", "percent_change_7d",
        ] = "market_cap",
        sort_dir: Literal["asc", "desc"] = "desc",
) -> MarketDataResponse:
    return MarketDataResponse(data=service.get_listings(limit, convert, sort, sort_dir))


@router.get("/crypto/{symbol}", response_model=MarketDataResponse)
@limiter.limit(RATE_LIMIT_MARKET)
def get_crypto_info(
        request: Request,
        service: Annotated[MarketDataService, Depends(get_market_data_service)],
        symbol: str = Path(..., min_length=1, max_length=20, pattern=r"^[A-Za-z0-9]+$"),
        convert: ConvertQuery = QUOTE_CURRENCY,
) -> MarketDataResponse:
    """Unknown symbols return 404."""
    return MarketDataResponse(data=service.get_crypto_info(symbol, convert))


@router.get("/search", response_model=MarketDataResponse)
@limiter.limit(RATE_LIMIT_MARKET)
def search(
        request: Request,
        service: Annotated[MarketDataService, Depends(get_market_data_service)],
        query: str = Query(..., min_length=1, max_length=100),
        limit: int = Query(default=DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_SEARCH_LIMIT),
) -> MarketDataResponse:
    """Case-insensitive substring match on name or symbol."""
    return MarketDataResponse(data=service.search(query, limit))


@router.get("/global", response_model=MarketDataResponse)
@limiter.limit(RATE_LIMIT_MARKET)
def get_global_metrics(
        request: Request,
        service: Annotated[MarketDataService, Depends(get_market_data_service)],
        convert: ConvertQuery = QUOTE_CURRENCY,
) -> MarketDataResponse:
    """Returns 503 when CoinMarketCap is unavailable or not configured."""
    return MarketDataResponse(data=service.get_global_metrics(convert))


@router.post("/cache/clear", response_model=CacheClearResponse)
@limiter.limit(RATE_LIMIT_WRITE)
def clear_cache(
        request: Request,
        current_user: Annotated[User, Depends(get_current_user)],
        service: Annotated[MarketDataService, Depends(get_market_data_service)],
) -> CacheClearResponse:
    return CacheClearResponse(cleared=service.clear_cache())


@router.get("/cache/stats", response_model=CacheStatsResponse)
def get_cache_stats(
        current_user: Annotated[User, Depends(get_current_user)],
        service: Annotated[MarketDataService, Depends(get_market_data_service)],
) -> CacheStatsResponse:
    stats = service.cache_stats()
    return CacheStatsResponse(
        hits=stats.hits,
        misses=stats.misses,
        keys=stats.keys,
        max_size=stats.max_size,
    )
