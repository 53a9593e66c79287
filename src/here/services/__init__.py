# src/here/services/__init__.py
"""Lease storage, eviction and registry services."""

from .lease_store import LeaseStore
from .reaper import LeaseReaper, ReaperConfig, clean_outdated
from .registry import RegistryService

__all__ = [
    "LeaseStore",
    "LeaseReaper", "ReaperConfig", "clean_outdated",
    "RegistryService",
]
