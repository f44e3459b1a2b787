# backend/cryptofolio/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The global handlers in main.py map them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── NotFoundError
    │   ├── PortfolioNotFoundError
    │   ├── HoldingNotFoundError
    │   └── UserNotFoundError
    ├── ConflictError
    ├── MarketDataError
    │   ├── ProviderUnavailableError
    │   ├── SymbolNotFoundError
    │   └── RateLimitError
    ├── AuthenticationError
    │   ├── InvalidCredentialsError
    │   ├── TokenExpiredError
    │   └── UserInactiveError
    └── UserExistsError

    CircuitBreakerOpen (from circuit_breaker module)
        - Raised when circuit breaker is open and blocking requests
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when a domain operation receives an invalid value.

    Request-shape validation is done by Pydantic at the HTTP boundary; this
    covers the rules the domain enforces itself (required holding fields,
    positive amounts and prices, non-empty portfolio name).

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Portfolio", "Holding")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class PortfolioNotFoundError(NotFoundError):
    """Raised when a portfolio row no longer exists."""

    def __init__(self, portfolio_id: int) -> None:
        self.portfolio_id = portfolio_id
        super().__init__(
            f"Portfolio {portfolio_id} not found",
            resource_type="Portfolio",
            resource_id=portfolio_id,
        )


class HoldingNotFoundError(NotFoundError):
    """Raised when a holding id does not match any holding in the portfolio."""

    def __init__(self, holding_id: str) -> None:
        self.holding_id = holding_id
        super().__init__(
            f"Holding {holding_id} not found",
            resource_type="Holding",
            resource_id=holding_id,
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int) -> None:
        super().__init__(
            f"User {user_id} not found",
            resource_type="User",
            resource_id=user_id,
        )


# =============================================================================
# CONCURRENCY ERRORS
# =============================================================================


class ConflictError(ServiceError):
    """
    Raised when a concurrent write invalidated the version being saved.

    The caller should re-fetch the resource and retry the operation.
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable
    (timeouts, 5xx responses, connection errors).

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class SymbolNotFoundError(MarketDataError):
    """
    Raised when the provider does not know a cryptocurrency symbol.

    This is NOT a retryable error.
    """

    def __init__(self, symbol: str, provider: str) -> None:
        message = f"Cryptocurrency '{symbol}' not found by {provider}"
        super().__init__(message, provider=provider)
        self.symbol = symbol


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded.

    This is a retryable error (with backoff).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


# =============================================================================
# AUTHENTICATION ERRORS
# =============================================================================


class AuthenticationError(ServiceError):
    """Base exception for authentication failures."""
    pass


class InvalidCredentialsError(AuthenticationError):
    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class TokenExpiredError(AuthenticationError):
    def __init__(self, message: str = "Token has expired", token_type: str = "access") -> None:
        self.token_type = token_type
        super().__init__(message)


class UserInactiveError(AuthenticationError):
    def __init__(self, message: str = "User account is inactive") -> None:
        super().__init__(message)


class UserExistsError(ServiceError):
    """Raised when registering (or changing to) an email that is already taken."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"User already exists with email {email}")


# =============================================================================
# CIRCUIT BREAKER (re-exported for convenience)
# =============================================================================

from cryptofolio.services.circuit_breaker import CircuitBreakerOpen  # noqa: E402

__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "PortfolioNotFoundError",
    "HoldingNotFoundError",
    "UserNotFoundError",
    "ConflictError",
    "MarketDataError",
    "ProviderUnavailableError",
    "SymbolNotFoundError",
    "RateLimitError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "UserInactiveError",
    "UserExistsError",
    "CircuitBreakerOpen",
]
