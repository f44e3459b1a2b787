# backend/cryptofolio/services/portfolio/store.py
"""
SQLAlchemy-backed Portfolio store.

Converts between PortfolioRecord/HoldingRecord rows and the in-memory
Portfolio/Holding dataclasses.

Optimistic locking:
    Every saved portfolio carries the `version` it was loaded with. save()
    issues a conditional UPDATE ... WHERE version = :loaded_version and
    bumps the version. If no row matched, another request saved first and
    ConflictError is raised; the caller re-fetches and retries.
"""

import logging
from dataclasses import replace

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cryptofolio.models import HoldingRecord, PortfolioRecord
from cryptofolio.services.constants import DEFAULT_PORTFOLIO_NAME
from cryptofolio.services.exceptions import (
    ConflictError,
    PortfolioNotFoundError,
    ValidationError,
)
from cryptofolio.services.portfolio.mutators import is_consistent, recompute_totals
from cryptofolio.services.portfolio.types import Holding, Portfolio, utcnow

logger = logging.getLogger(__name__)


class PortfolioStore:
    """
    Persists portfolios for one database session.

    Usage:
        store = PortfolioStore(db)
        portfolio = store.get_by_owner(user.id) or store.create(user.id)
        add_holding(portfolio, holding_input)
        portfolio = store.save(portfolio)
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    # =========================================================================
    # READ
    # =========================================================================

    def get_by_owner(self, owner_id: int) -> Portfolio | None:
        record = self._db.scalar(
            select(PortfolioRecord).where(PortfolioRecord.owner_id == owner_id)
        )
        if record is None:
            return None
        return self._to_domain(record)

    # =========================================================================
    # WRITE
    # =========================================================================

    def create(self, owner_id: int, display_name: str = DEFAULT_PORTFOLIO_NAME) -> Portfolio:
        """
        Insert an empty portfolio for an owner.

        Raises:
            ConflictError: the owner already has a portfolio (e.g. created
                concurrently by another request)
        """
        now = utcnow()
        record = PortfolioRecord(
            owner_id=owner_id,
            display_name=display_name,
            total_cost_basis=0,
            version=1,
            created_at=now,
            updated_at=now,
        )
        self._db.add(record)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise ConflictError(
                f"Portfolio for user {owner_id} already exists",
                resource_type="Portfolio",
                resource_id=owner_id,
            )
        self._db.refresh(record)

        logger.info(f"Created portfolio {record.id} for user {owner_id}")
        return self._to_domain(record)

    def save(self, portfolio: Portfolio) -> Portfolio:
        """
        Persist the portfolio and its holdings atomically.

        Returns:
            A copy of the portfolio carrying the new version

        Raises:
            ValidationError: cached total_cost_basis is stale
            ConflictError: the stored version changed since it was loaded
            PortfolioNotFoundError: the portfolio row no longer exists
        """
        if not is_consistent(portfolio):
            raise ValidationError(
                "total cost basis does not match holdings",
                field="total_cost_basis",
            )

        new_version = portfolio.version + 1
        result = self._db.execute(
            update(PortfolioRecord)
            .where(
                PortfolioRecord.id == portfolio.id,
                PortfolioRecord.version == portfolio.version,
            )
            .values(
                display_name=portfolio.display_name,
                total_cost_basis=portfolio.total_cost_basis,
                updated_at=portfolio.updated_at,
                version=new_version,
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            self._db.rollback()
            if self._db.get(PortfolioRecord, portfolio.id) is None:
                raise PortfolioNotFoundError(portfolio.id)
            logger.warning(
                f"Version conflict saving portfolio {portfolio.id} "
                f"(loaded version {portfolio.version})"
            )
            raise ConflictError(
                f"Portfolio {portfolio.id} was modified by another request",
                resource_type="Portfolio",
                resource_id=portfolio.id,
            )

        self._sync_holdings(portfolio)
        self._db.commit()
        self._db.expire_all()

        logger.debug(f"Saved portfolio {portfolio.id} at version {new_version}")
        return replace(portfolio, version=new_version)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _sync_holdings(self, portfolio: Portfolio) -> None:
        """Apply inserts, updates and deletes so rows mirror portfolio.holdings."""
        rows = {
            row.id: row
            for row in self._db.scalars(
                select(HoldingRecord).where(HoldingRecord.portfolio_id == portfolio.id)
            )
        }

        for position, holding in enumerate(portfolio.holdings):
            row = rows.pop(holding.id, None)
            if row is None:
                row = HoldingRecord(id=holding.id, portfolio_id=portfolio.id)
                self._db.add(row)
            row.position = position
            row.asset_id = holding.asset_id
            row.name = holding.name
            row.symbol = holding.symbol
            row.amount = holding.amount
            row.unit_cost = holding.unit_cost
            row.acquired_at = holding.acquired_at
            row.note = holding.note

        for stale in rows.values():
            self._db.delete(stale)

    @staticmethod
    def _to_domain(record: PortfolioRecord) -> Portfolio:
        holdings = [
            Holding(
                id=row.id,
                asset_id=row.asset_id,
                name=row.name,
                symbol=row.symbol,
                amount=row.amount,
                unit_cost=row.unit_cost,
                acquired_at=row.acquired_at,
                note=row.note,
            )
            for row in record.holdings
        ]
        portfolio = Portfolio(
            id=record.id,
            owner_id=record.owner_id,
            display_name=record.display_name,
            holdings=holdings,
            updated_at=record.updated_at,
            version=record.version,
        )
        # Derive the aggregate from the rows rather than trusting the cached column
        return recompute_totals(portfolio)
