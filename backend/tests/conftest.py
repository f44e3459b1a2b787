# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Mock price feed and market data provider
- TestClient with dependency overrides
- Sample data factories (users, auth headers, holding inputs)
"""

import os

# Set required environment variables BEFORE importing app modules
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_NAME", "Test App")

from collections.abc import Iterator
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cryptofolio.database import get_db
from cryptofolio.dependencies import (
    clear_service_caches,
    get_market_data_service,
    get_portfolio_service,
)
from cryptofolio.main import app
from cryptofolio.models import Base, User
from cryptofolio.services.auth.jwt_handler import JWTHandler
from cryptofolio.services.auth.password import PasswordService
from cryptofolio.services.exceptions import ProviderUnavailableError
from cryptofolio.services.market_data import (
    MarketDataService,
    MockMarketDataProvider,
    ResponseCache,
)
from cryptofolio.services.portfolio import HoldingInput, PortfolioService


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# MOCK PRICE FEED
# =============================================================================

class MockPriceFeed:
    """
    PriceFeed test double.

    Returns configured prices for requested symbols and can be switched to
    fail every call, to exercise the zero-valuation fallback.
    """

    def __init__(self, prices: dict[str, Decimal] | None = None):
        self.prices: dict[str, Decimal] = dict(prices or {})
        self.error: Exception | None = None
        self.calls: list[set[str]] = []

    def set_price(self, symbol: str, price: str | Decimal) -> None:
        self.prices[symbol.upper()] = Decimal(price)

    def fail_with(self, error: Exception) -> None:
        self.error = error

    def get_current_prices(self, symbols: set[str]) -> dict[str, Decimal]:
        self.calls.append(set(symbols))
        if self.error is not None:
            raise self.error
        return {s: self.prices[s] for s in symbols if s in self.prices}


@pytest.fixture
def price_feed() -> MockPriceFeed:
    """Price feed knowing BTC and ETH."""
    return MockPriceFeed({"BTC": Decimal("45000"), "ETH": Decimal("3000")})


@pytest.fixture
def failing_price_feed() -> MockPriceFeed:
    feed = MockPriceFeed()
    feed.fail_with(ProviderUnavailableError(provider="mock", reason="connection refused"))
    return feed


@pytest.fixture
def portfolio_service(price_feed: MockPriceFeed) -> PortfolioService:
    return PortfolioService(price_feed=price_feed)


@pytest.fixture
def market_data_service() -> MarketDataService:
    """Market data service over the offline mock provider with a fresh cache."""
    return MarketDataService(
        provider=MockMarketDataProvider(),
        cache=ResponseCache(default_ttl=60, max_size=100),
    )


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture(scope="function")
def client(
        db: Session,
        portfolio_service: PortfolioService,
        market_data_service: MarketDataService,
) -> Iterator[TestClient]:
    """Create TestClient with database and service dependency overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_portfolio_service] = lambda: portfolio_service
    app.dependency_overrides[get_market_data_service] = lambda: market_data_service

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    clear_service_caches()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_user(
        db: Session,
        email: str = "test@example.com",
        password: str = "password123",
        name: str | None = "Test User",
        is_active: bool = True,
) -> User:
    """Factory function for creating User entities in the database."""
    user = User(
        email=email.lower(),
        hashed_password=PasswordService.hash_password(password),
        name=name,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_auth_headers(user: User) -> dict[str, str]:
    """Generate auth headers for a user."""
    token = JWTHandler.create_access_token(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


def holding_input(
        asset_id: str = "1",
        name: str = "Bitcoin",
        symbol: str = "BTC",
        amount: str | Decimal | None = "1.5",
        unit_cost: str | Decimal | None = "40000",
        note: str | None = None,
) -> HoldingInput:
    """Factory function for HoldingInput; pass None to omit a numeric field."""
    return HoldingInput(
        asset_id=asset_id,
        name=name,
        symbol=symbol,
        amount=Decimal(amount) if amount is not None else None,
        unit_cost=Decimal(unit_cost) if unit_cost is not None else None,
        note=note,
    )


@pytest.fixture
def sample_user(db: Session) -> User:
    """Provide a sample User for tests."""
    return create_user(db)


@pytest.fixture
def auth_headers(sample_user: User) -> dict[str, str]:
    return get_auth_headers(sample_user)


@pytest.fixture
def make_user(db: Session):
    """Factory fixture: make_user(email=..., password=..., is_active=...)."""

    def _make(**kwargs) -> User:
        return create_user(db, **kwargs)

    return _make


@pytest.fixture
def make_auth_headers():
    return get_auth_headers


@pytest.fixture
def make_holding_input():
    return holding_input
