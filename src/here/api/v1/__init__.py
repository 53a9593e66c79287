# src/here/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import here_router

__all__ = ["here_router"]
