"""
Database connection and session management module.

The durable key-value table lives in a SQL database reached through
SQLAlchemy. Supports PostgreSQL (production/Docker) and SQLite (local
development default).
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

# Fallback to SQLite for local development when no DATABASE_URL is set
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./eduregister.db"
)

# SQLite does not support pool_size, max_overflow, or pool_pre_ping
engine_kwargs = {"echo": False}

if DATABASE_URL.startswith("postgresql"):
    engine_kwargs.update({
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
    })
elif DATABASE_URL.startswith("sqlite"):
    # FastAPI runs sync routes in a threadpool
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, **engine_kwargs)

if DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

# Session factory - creates new database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def create_tables(bind=None):
    """
    Create all database tables directly.

    There is no migration history: the only table is the key-value
    table and its shape never changes.
    """
    # Register models with Base.metadata before creating
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
