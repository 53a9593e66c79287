# src/here/db/__init__.py
"""Database configuration and utilities."""

from .session import Base, create_tables, open_engine

__all__ = ["Base", "create_tables", "open_engine"]
