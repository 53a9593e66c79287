# src/here/schemas/__init__.py
"""
Pydantic schemas for presence data and API request/response models.
"""

from .presence import Lease, PresenceRecord
from .registry import AppInfo, GetClientInfoResponse, PostClientInfoResponse, ResponseMessage

__all__ = [
    "Lease", "PresenceRecord",
    "AppInfo", "GetClientInfoResponse", "PostClientInfoResponse", "ResponseMessage",
]
