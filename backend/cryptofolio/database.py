# backend/cryptofolio/database.py
"""
Database connection and session management.

SQLite (test mode) shares one in-memory connection through StaticPool;
PostgreSQL uses a QueuePool sized from the DB_POOL_* settings.
"""

import logging
from collections.abc import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool, QueuePool

from cryptofolio.config import settings

logger = logging.getLogger(__name__)


def _create_engine() -> Engine:
    """Create the SQLAlchemy engine for the configured database."""
    if settings.is_sqlite:
        logger.info("Configuring SQLite database")
        return create_engine(
            settings.database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    logger.info(
        f"Configuring PostgreSQL database pool: "
        f"size={settings.db_pool_size}, "
        f"max_overflow={settings.db_pool_max_overflow}, "
        f"recycle={settings.db_pool_recycle}s"
    )
    return create_engine(
        settings.database_url,
        poolclass=QueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_timeout=30,
        echo=settings.debug,
    )


engine = _create_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Usage:
        @router.get("/portfolio")
        def read_portfolio(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
