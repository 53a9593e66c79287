# src/here/models/__init__.py
"""SQLAlchemy models for the Here registry."""

from .lease import LeaseRow

__all__ = ["LeaseRow"]
