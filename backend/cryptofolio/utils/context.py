# backend/cryptofolio/utils/context.py
"""
Request-scoped context.

Holds the current request's correlation id in a contextvar, which is
async-safe and follows the request through awaits and threadpool calls
made by FastAPI for sync endpoints.

Usage:
    set_correlation_id("abc-123")   # middleware
    get_correlation_id()            # anywhere during the request
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Correlation id of the current request, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)
