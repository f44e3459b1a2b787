# backend/cryptofolio/services/constants.py
"""
Centralized constants for the Cryptofolio services.

Usage:
    from cryptofolio.services.constants import ZERO, CURRENCY_PRECISION
"""

from decimal import Decimal


# =============================================================================
# PORTFOLIO DEFAULTS
# =============================================================================

# Display name given to a portfolio created lazily on first access
DEFAULT_PORTFOLIO_NAME: str = "My Portfolio"

# Maximum length of a portfolio display name
MAX_PORTFOLIO_NAME_LENGTH: int = 100

# Reference currency for unit costs and live prices
QUOTE_CURRENCY: str = "USD"


# =============================================================================
# DECIMAL PRECISION CONSTANTS
# =============================================================================

# Currency amounts in API responses: 2 decimal places
CURRENCY_PRECISION: Decimal = Decimal("0.01")

# Amounts and unit costs: 8 decimal places (satoshi precision)
# Merged (weighted-average) unit costs are rounded to this precision so they
# round-trip exactly through the Numeric(24, 8) columns
SHARE_PRECISION: Decimal = Decimal("0.00000001")

# Percentages in API responses: 2 decimal places (e.g. 12.50%)
DISPLAY_PERCENTAGE_PRECISION: Decimal = Decimal("0.01")

# Largest amount or unit cost a Numeric(24, 8) column holds
MAX_HOLDING_QUANTITY: Decimal = Decimal("9999999999999999.99999999")

# Upper bound on a portfolio's total cost basis (USD); keeps every cost
# basis and its display rounding well within Decimal's default precision
MAX_TOTAL_COST_BASIS: Decimal = Decimal("1000000000000000000")


# =============================================================================
# UTILITY CONSTANTS
# =============================================================================

ZERO: Decimal = Decimal("0")
HUNDRED: Decimal = Decimal("100")


# =============================================================================
# CIRCUIT BREAKER SETTINGS
# =============================================================================

# Failures before the CoinMarketCap breaker opens
CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5

# Seconds to wait before a trial call is allowed
CIRCUIT_BREAKER_RECOVERY_TIMEOUT: float = 60.0

# Trial calls allowed while half-open
CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS: int = 3

# Only failures within the last 5 minutes count towards the threshold
CIRCUIT_BREAKER_FAILURE_WINDOW: float = 300.0


# =============================================================================
# MARKET DATA SETTINGS
# =============================================================================

# Listings fetched to back a symbol/name search
SEARCH_LISTINGS_LIMIT: int = 2000

# Default and maximum page sizes for the listings endpoint
DEFAULT_LISTINGS_LIMIT: int = 100
MAX_LISTINGS_LIMIT: int = 5000

# Default and maximum result counts for search
DEFAULT_SEARCH_LIMIT: int = 10
MAX_SEARCH_LIMIT: int = 100

# Extra metadata requested from /v2/cryptocurrency/info
CRYPTO_INFO_AUX_FIELDS: str = "logo,description,urls,tags,platform,date_added,notice"


# =============================================================================
# RATE LIMITING CONSTANTS
# =============================================================================
# Format follows slowapi/limits syntax: "100/minute", "100 per 15 minutes"
# The application-wide default comes from settings.rate_limit_default

# Write endpoints (POST, PUT, PATCH, DELETE)
RATE_LIMIT_WRITE: str = "30/minute"

# Market data endpoints proxy a quota-limited third-party API
RATE_LIMIT_MARKET: str = "60/minute"

# Health check endpoints, polled by monitors
RATE_LIMIT_HEALTH: str = "300/minute"

# Login: allows retries but blocks brute force
RATE_LIMIT_AUTH_LOGIN: str = "10/minute"

# Registration: prevent mass account creation
RATE_LIMIT_AUTH_REGISTER: str = "5/minute"


# =============================================================================
# PASSWORD POLICY
# =============================================================================

MIN_PASSWORD_LENGTH: int = 8

# bcrypt only hashes the first 72 bytes
MAX_PASSWORD_LENGTH: int = 72
