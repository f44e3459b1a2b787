# backend/cryptofolio/schemas/market.py
"""
Schemas for the market data endpoints.

Listings and coin info are passed through in CoinMarketCap's JSON shape,
wrapped in a {"success": true, "data": ...} envelope.
"""

from typing import Any

from pydantic import BaseModel, Field


class MarketDataResponse(BaseModel):
    success: bool = True
    data: Any = Field(..., description="CoinMarketCap-shaped payload")


class CacheClearResponse(BaseModel):
    success: bool = True
    cleared: int = Field(..., description="Number of cache entries removed")


class CacheStatsResponse(BaseModel):
    hits: int
    misses: int
    keys: int
    max_size: int
