# backend/cryptofolio/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

The id is taken from X-Correlation-ID, then X-Request-ID, and generated
as a UUID4 when neither is present. It is stored in a contextvar for the
duration of the request (so every log line carries it) and echoed back in
the X-Correlation-ID response header.

Client Usage:
    curl -H "X-Correlation-ID: trace-123" http://localhost:8000/api/portfolio
"""

import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cryptofolio.utils.context import set_correlation_id, clear_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

# Longer incoming ids are replaced to keep log lines bounded
MAX_CORRELATION_ID_LENGTH = 128


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to the request context and the response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = self._get_correlation_id(request)
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()

    @staticmethod
    def _get_correlation_id(request: Request) -> str:
        for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
            value = request.headers.get(header, "").strip()
            if value and len(value) <= MAX_CORRELATION_ID_LENGTH:
                return value
        return str(uuid.uuid4())
