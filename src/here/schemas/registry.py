"""Request and response schemas for the registry API."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from .presence import PresenceRecord


class AppInfo(BaseModel):
    """Name and version reported by the server."""

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}, version {self.version}."


class ResponseMessage(str, Enum):
    """Machine-readable reason attached to a registry response."""

    NOT_FOUND = "NotFound"
    # Part of the wire vocabulary; no current handler replies with it.
    ALREADY_OCCUPIED_ID = "AlreadyOccupiedId"
    INVALID_PASSWORD = "InvalidPassword"
    DATABASE_ERROR = "DatabaseError"


class GetClientInfoResponse(BaseModel):
    """Reply to a presence lookup."""

    is_ok: bool = False
    message: ResponseMessage | None = None
    data: PresenceRecord | None = None


class PostClientInfoResponse(BaseModel):
    """Reply to a presence registration."""

    id: int
    account: str
    passwd: str | None = None
    is_ok: bool = False
    message: ResponseMessage | None = None
    lifetime: int = Field(0, ge=0, description="Seconds until the new lease expires")

    @classmethod
    def for_record(cls, record: PresenceRecord, **fields: object) -> PostClientInfoResponse:
        """Echo the identifying fields of ``record`` back to the client."""
        return cls(
            id=record.id,
            account=record.account,
            passwd=record.password_hash,
            **fields,
        )
