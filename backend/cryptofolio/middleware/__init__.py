# backend/cryptofolio/middleware/__init__.py
"""
ASGI middleware: correlation ids and rate limiting.

Usage:
    from cryptofolio.middleware import CorrelationIdMiddleware, limiter

    app.add_middleware(CorrelationIdMiddleware)
    app.state.limiter = limiter
"""

from cryptofolio.middleware.correlation import CorrelationIdMiddleware
from cryptofolio.middleware.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
)

__all__ = [
    "CorrelationIdMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
]
