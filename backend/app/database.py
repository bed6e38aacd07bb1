"""
Database connection and session management module.

Uses SQLAlchemy for the key/value table that backs the default persistence
slot. Supports PostgreSQL (production/Docker) and SQLite (local default).
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

# Read database URL from environment
# Fallback to SQLite for local development when PostgreSQL is not available
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./student_records.db"
)


def build_engine(url: str):
    """Create an engine with options suited to the database type."""
    engine_kwargs = {"echo": False}

    if url.startswith("postgresql"):
        engine_kwargs.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
        })
    elif url.startswith("sqlite"):
        # SQLite needs check_same_thread=False for FastAPI (multi-threaded)
        engine_kwargs["connect_args"] = {"check_same_thread": False}

    new_engine = create_engine(url, **engine_kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return new_engine


engine = build_engine(DATABASE_URL)

# Session factory - creates new database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def create_tables(bind=None):
    """
    Create all database tables directly.

    Only the kv_store table exists, so there is no migration tooling.
    """
    # Import models so they are registered with Base.metadata
    from app.models import kv_entry  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
