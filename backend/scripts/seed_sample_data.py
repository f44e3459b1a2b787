#!/usr/bin/env python3
# backend/scripts/seed_sample_data.py
"""
Seed a demo account with a small crypto portfolio.

    python backend/scripts/seed_sample_data.py

Login afterwards with demo@example.com / demo12345.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal

from cryptofolio.database import SessionLocal, engine
from cryptofolio.models import Base
from cryptofolio.services.auth import AuthService
from cryptofolio.services.market_data import MockMarketDataProvider
from cryptofolio.services.portfolio import HoldingInput, PortfolioService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo12345"

SAMPLE_HOLDINGS = [
    HoldingInput(
        asset_id="bitcoin",
        name="Bitcoin",
        symbol="BTC",
        amount=Decimal("0.5"),
        unit_cost=Decimal("42000"),
        acquired_at=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        note="DCA January",
    ),
    HoldingInput(
        asset_id="ethereum",
        name="Ethereum",
        symbol="ETH",
        amount=Decimal("4"),
        unit_cost=Decimal("2300"),
        acquired_at=datetime(2024, 2, 20, 11, 0, tzinfo=timezone.utc),
    ),
    HoldingInput(
        asset_id="solana",
        name="Solana",
        symbol="SOL",
        amount=Decimal("25"),
        unit_cost=Decimal("95.5"),
    ),
]


def seed() -> None:
    Base.metadata.create_all(bind=engine)
    auth_service = AuthService()
    portfolio_service = PortfolioService(price_feed=MockMarketDataProvider())

    db = SessionLocal()
    try:
        logger.info("Starting database seeding...")

        user = auth_service.get_user_by_email(db, DEMO_EMAIL)
        if user is None:
            user = auth_service.register(db, DEMO_EMAIL, DEMO_PASSWORD, name="Demo User").user
            logger.info(f"Created user: {user.email}")
        else:
            logger.info(f"User exists: {user.email}")

        portfolio = portfolio_service.get_or_create(db, user.id)
        if portfolio.holdings:
            logger.info(f"Portfolio already has {len(portfolio.holdings)} holdings, skipping")
            return

        for holding_input in SAMPLE_HOLDINGS:
            portfolio = portfolio_service.add_holding(db, user.id, holding_input)
            logger.info(f"Added {holding_input.amount} {holding_input.symbol}")

        report = portfolio_service.valuate(portfolio)
        logger.info(
            f"Seeding complete: cost basis {report.total_cost_basis}, "
            f"mock market value {report.total_market_value}"
        )
    finally:
        db.close()


if __name__ == "__main__":
    seed()
