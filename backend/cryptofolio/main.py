# backend/cryptofolio/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers under /api
- Defines global endpoints (health checks)
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from cryptofolio.config import settings
from cryptofolio.database import engine, get_db
from cryptofolio.dependencies import get_market_data_provider
from cryptofolio.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
)
from cryptofolio.models import Base
from cryptofolio.routers import (
    auth_router,
    market_router,
    portfolio_router,
    users_router,
)
from cryptofolio.schemas.errors import ErrorDetail
from cryptofolio.services.constants import RATE_LIMIT_HEALTH
from cryptofolio.services.exceptions import (
    ServiceError,
    ValidationError,
    NotFoundError,
    ConflictError,
    MarketDataError,
    ProviderUnavailableError,
    SymbolNotFoundError,
    RateLimitError,
    CircuitBreakerOpen,
    AuthenticationError,
    UserInactiveError,
    UserExistsError,
)
from cryptofolio.utils import setup_logging

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


# =============================================================================
# APPLICATION SETUP
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    Base.metadata.create_all(bind=engine)
    logger.info(f"{settings.app_name} started (environment={settings.environment})")
    yield
    if get_market_data_provider.cache_info().currsize:
        get_market_data_provider().close()
        get_market_data_provider.cache_clear()
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(
    title=settings.app_name,
    description="Cryptocurrency portfolio tracker with CoinMarketCap market data",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================
# Origins are configured via CORS_ORIGINS environment variable

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Starlette picks the handler registered for the closest class in the
# exception's MRO, so subclasses below override their base handlers.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


def _error_response(
        status_code: int,
        error: str,
        message: str,
        details: dict | list | None = None,
        headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(error=error, message=message, details=details).model_dump(),
        headers=headers,
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle domain validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return _error_response(
        400,
        "ValidationError",
        str(exc),
        {"field": exc.field} if exc.field else None,
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle portfolio, holding and user not found errors (404)."""
    logger.warning(f"Not found: {exc}")
    return _error_response(
        404,
        type(exc).__name__,
        str(exc),
        {"resource_type": exc.resource_type, "resource_id": exc.resource_id},
    )


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """Handle concurrent modification errors (409)."""
    logger.warning(f"Conflict: {exc}")
    return _error_response(
        409,
        "ConflictError",
        str(exc),
        {"resource_type": exc.resource_type, "resource_id": exc.resource_id},
    )


@app.exception_handler(SymbolNotFoundError)
async def symbol_not_found_handler(request: Request, exc: SymbolNotFoundError) -> JSONResponse:
    """Handle unknown cryptocurrency symbols (404)."""
    logger.warning(f"Symbol not found on provider: {exc.symbol}")
    return _error_response(404, "SymbolNotFoundError", str(exc), {"symbol": exc.symbol})


@app.exception_handler(ProviderUnavailableError)
async def provider_unavailable_handler(
        request: Request, exc: ProviderUnavailableError
) -> JSONResponse:
    """Handle market data provider unavailable (503)."""
    logger.error(f"Provider unavailable: {exc}")
    return _error_response(503, "ProviderUnavailableError", str(exc), {"provider": exc.provider})


@app.exception_handler(RateLimitError)
async def provider_rate_limit_handler(request: Request, exc: RateLimitError) -> JSONResponse:
    """Handle the upstream provider's rate limit (429)."""
    logger.warning(f"Provider rate limit exceeded: {exc}")
    headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
    return _error_response(
        429,
        "RateLimitError",
        str(exc),
        {"retry_after": exc.retry_after} if exc.retry_after else None,
        headers,
    )


@app.exception_handler(CircuitBreakerOpen)
async def circuit_breaker_handler(request: Request, exc: CircuitBreakerOpen) -> JSONResponse:
    """Handle circuit breaker open (503 with Retry-After)."""
    logger.warning(f"Circuit breaker open: {exc.breaker_name}")
    retry_after = int(exc.time_remaining) + 1  # Round up
    return _error_response(
        503,
        "CircuitBreakerOpen",
        f"Service temporarily unavailable. The {exc.breaker_name} circuit breaker is open.",
        {"breaker_name": exc.breaker_name, "retry_after": retry_after},
        {"Retry-After": str(retry_after)},
    )


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    """Handle generic market data errors (500)."""
    logger.error(f"Market data error: {exc}")
    return _error_response(500, "MarketDataError", str(exc))


# =============================================================================
# AUTHENTICATION EXCEPTION HANDLERS
# =============================================================================


@app.exception_handler(UserExistsError)
async def user_exists_handler(request: Request, exc: UserExistsError) -> JSONResponse:
    """Handle user already exists errors (409)."""
    logger.warning(f"Email already registered: {exc.email}")
    return _error_response(409, "UserExistsError", str(exc), {"email": exc.email})


@app.exception_handler(UserInactiveError)
async def user_inactive_handler(request: Request, exc: UserInactiveError) -> JSONResponse:
    """Handle inactive user errors (403)."""
    logger.warning("Login attempt by inactive user")
    return _error_response(403, "UserInactiveError", str(exc))


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(
        request: Request, exc: AuthenticationError
) -> JSONResponse:
    """Handle invalid credentials and expired tokens (401)."""
    logger.warning(f"Authentication failed: {type(exc).__name__}")
    return _error_response(
        401,
        type(exc).__name__,
        str(exc),
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return _error_response(500, "ServiceError", str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with consistent error format.

    Converts FastAPI's default {"detail": "..."} format to the ErrorDetail
    envelope.
    """
    error_types = {
        400: "BadRequestError",
        401: "UnauthorizedError",
        403: "ForbiddenError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        409: "ConflictError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    return _error_response(
        exc.status_code,
        error_types.get(exc.status_code, "HTTPError"),
        str(exc.detail) if exc.detail else "An error occurred",
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
        request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render Pydantic request validation errors (422) as a list of field errors."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return _error_response(422, "ValidationError", "Request validation failed", errors)


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(auth_router, prefix=API_PREFIX)  # /api/auth/*
app.include_router(users_router, prefix=API_PREFIX)  # /api/users/me/*
app.include_router(portfolio_router, prefix=API_PREFIX)  # /api/portfolio/*
app.include_router(market_router, prefix=API_PREFIX)  # /api/market/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """API root - returns basic application info."""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Health of the database (critical) and CoinMarketCap (non-critical).

    **Response Status Codes:**
    - 200: healthy, or degraded when the CoinMarketCap circuit breaker is open
    - 503: database unreachable
    """
    checks = {}
    critical_healthy = True
    overall_status = "healthy"

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = {"status": "healthy", "critical": True}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = {"status": "unhealthy", "critical": True, "error": str(e)}
        critical_healthy = False
        overall_status = "unhealthy"

    provider = get_market_data_provider()
    breaker = provider.circuit_breaker
    cb_stats = breaker.stats
    checks["coinmarketcap"] = {
        "status": "healthy" if provider.is_available() else "unhealthy",
        "critical": False,
        "configured": provider.is_configured,
        "circuit_breaker_state": breaker.state.value,
        "total_calls": cb_stats.total_calls,
        "failed_calls": cb_stats.failed_calls,
        "rejected_calls": cb_stats.rejected_calls,
    }
    if breaker.is_open and overall_status == "healthy":
        overall_status = "degraded"

    response_data = {"status": overall_status, "checks": checks}
    if not critical_healthy:
        return JSONResponse(status_code=503, content=response_data)
    return response_data


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """Liveness probe. Does not check dependencies."""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """Readiness probe: 503 while the database is unreachable."""
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": "Database unavailable"},
        )
