# backend/cryptofolio/schemas/errors.py
"""
Error response envelope.

Every error the API returns, whether raised by a service, by FastAPI
validation or by the rate limiter, has the shape
{"error": ..., "message": ..., "details": ...}.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error response body."""

    error: str = Field(
        ...,
        description="Error type (e.g. 'HoldingNotFoundError')",
        examples=["HoldingNotFoundError"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] | list[dict[str, Any]] | None = Field(
        default=None,
        description="Additional context: offending field, resource id, or validation errors",
    )
