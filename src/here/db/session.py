"""Database engine configuration for the lease file."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def sqlite_url(path: str | Path) -> str:
    """Return the SQLAlchemy URL of the SQLite file at ``path``."""
    return f"sqlite:///{Path(path)}"


def open_engine(path: str | Path) -> Engine:
    """Create an engine for one store operation.

    ``NullPool`` closes the connection as soon as it is released, so no handle
    on the file outlives the operation that opened it.
    """
    return create_engine(sqlite_url(path), poolclass=NullPool)


def create_tables(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    # Ensure model modules are imported so that metadata is populated.
    import here.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
