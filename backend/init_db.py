#!/usr/bin/env python3
# backend/init_db.py
"""
Database initialization script.

Requires the package to be installed (pip install -e .):
    python backend/init_db.py
"""
from cryptofolio.database import engine
from cryptofolio.models import Base


def init_db() -> None:
    """Create all database tables defined in models."""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created successfully!")


if __name__ == "__main__":
    init_db()
