# src/here/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .here import router as here_router

__all__ = ["here_router"]
