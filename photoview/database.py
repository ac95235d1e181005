"""Database connection and engine management using SQLModel."""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from .config import DATA_DIR

DB_PATH = DATA_DIR / "photoview.db"
SQLITE_URL = f"sqlite:///{DB_PATH}"


def make_engine(url: str = SQLITE_URL) -> Engine:
    """Create an engine usable from scan threads, with FK enforcement on."""
    # check_same_thread=False: scans run on their own threads
    new_engine = create_engine(url, connect_args={"check_same_thread": False})

    # SQLite only enforces foreign keys per connection
    @event.listens_for(new_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.close()

    return new_engine


engine = make_engine()


def init_db() -> None:
    """Create database tables."""
    # Import models to ensure they are registered with SQLModel.metadata
    from . import models  # noqa: F401

    current = get_engine()
    with current.connect() as conn:
        conn.exec_driver_sql("PRAGMA journal_mode=WAL;")

    SQLModel.metadata.create_all(current)


def reset_database() -> None:
    """Delete the database file and recreate it."""
    get_engine().dispose()
    if DB_PATH.exists():
        DB_PATH.unlink()
    init_db()


def get_engine() -> Engine:
    """Return the global engine instance."""
    return engine
