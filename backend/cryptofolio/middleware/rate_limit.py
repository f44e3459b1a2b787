# backend/cryptofolio/middleware/rate_limit.py
"""
Per-client rate limiting with slowapi.

Protects the CoinMarketCap quota and the auth endpoints from abuse.
Limits per endpoint class live in services/constants.py; the global default
("100 per 15 minutes") comes from settings.rate_limit_default.

Key by: Client IP (forwarded headers only from trusted proxies)
Storage: In-memory, per process

Usage:
    @router.post("/holdings")
    @limiter.limit(RATE_LIMIT_WRITE)
    def add_holding(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from cryptofolio.config import settings

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60


def _is_trusted_proxy(request: Request) -> bool:
    if settings.trust_proxy_headers:
        return True
    return get_remote_address(request) in settings.trusted_proxy_ips


def _get_client_ip(request: Request) -> str:
    """
    Client IP used as the rate limit key.

    X-Forwarded-For / X-Real-IP are honoured only when the direct peer is a
    trusted proxy, otherwise clients could spoof their own key.
    """
    if _is_trusted_proxy(request):
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return get_remote_address(request)


limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the standard error envelope, with a Retry-After header."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"
    logger.warning(f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {"retry_after": DEFAULT_RETRY_AFTER_SECONDS},
        },
        headers={"Retry-After": str(DEFAULT_RETRY_AFTER_SECONDS)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
]
