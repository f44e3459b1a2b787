# backend/cryptofolio/models.py
import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Enum, Numeric, Boolean, Integer, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class Theme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class DisplayCurrency(str, enum.Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String)
    name: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), default=UserRole.USER)

    # Display preferences (flattened from the settings document)
    theme: Mapped[Theme] = mapped_column(Enum(Theme), default=Theme.LIGHT)
    currency: Mapped[DisplayCurrency] = mapped_column(Enum(DisplayCurrency), default=DisplayCurrency.USD)
    notifications: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # One user owns exactly one portfolio
    portfolio: Mapped["PortfolioRecord | None"] = relationship(
        back_populates="owner",
        uselist=False,
        cascade="all, delete-orphan",
    )


class PortfolioRecord(Base):
    """
    Persisted portfolio row.

    The in-memory domain object lives in services.portfolio.types; this row
    only stores it. `version` is bumped on every save and checked by the
    store's conditional UPDATE (optimistic locking).
    """
    __tablename__ = "portfolios"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String, default="My Portfolio")

    # Cached aggregate: sum(amount * unit_cost) over holdings
    # Scale 16 holds the exact product of two 8-decimal values
    total_cost_basis: Mapped[Decimal] = mapped_column(Numeric(38, 16), default=Decimal(0))

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    owner: Mapped["User"] = relationship(back_populates="portfolio")
    holdings: Mapped[list["HoldingRecord"]] = relationship(
        back_populates="portfolio",
        cascade="all, delete-orphan",
        order_by="HoldingRecord.position",
    )


class HoldingRecord(Base):
    __tablename__ = "holdings"
    __table_args__ = (
        Index("ix_holding_portfolio_position", "portfolio_id", "position"),
    )

    # UUID4 string assigned by the domain layer
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    portfolio_id: Mapped[int] = mapped_column(ForeignKey("portfolios.id"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)

    asset_id: Mapped[str] = mapped_column(String)
    name: Mapped[str] = mapped_column(String)
    symbol: Mapped[str] = mapped_column(String, index=True)

    # Numeric(24, 8) supports crypto precision (BTC has 8 decimals)
    amount: Mapped[Decimal] = mapped_column(Numeric(24, 8))
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(24, 8))

    acquired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    note: Mapped[str | None] = mapped_column(String, nullable=True, default=None)

    portfolio: Mapped["PortfolioRecord"] = relationship(back_populates="holdings")
