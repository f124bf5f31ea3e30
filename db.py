# db.py
# Role: Database bootstrap for the ledger tracker.
#       Defines the SQLAlchemy engine, session factory, and declarative Base.
#       Also ensures the on-disk database directory exists when the default
#       SQLite location is used.

"""
Database setup for the ledger tracker.

- Uses DATABASE_URL from settings (SQLite at <project_root>/database/ledger.db
  unless overridden).
- Ensures the 'database' folder exists for the default SQLite file.
- Turns on foreign-key enforcement for SQLite connections.
"""

import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

import settings


def build_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    """
    Create an engine for `url`.

    For SQLite we need check_same_thread=False for FastAPI (threaded request
    handling) and an explicit PRAGMA to enforce foreign keys.
    """
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args

    new_engine = create_engine(url, echo=echo, **kwargs)

    if is_sqlite:
        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_fks(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


if settings.DATABASE_URL == f"sqlite:///{settings.DB_PATH}":
    os.makedirs(settings.DB_DIR, exist_ok=True)  # ensure folder exists

engine = build_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

# Standard session factory used via dependency injection (see ledger/deps.py:get_db)
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Declarative base class for ORM models
Base = declarative_base()
