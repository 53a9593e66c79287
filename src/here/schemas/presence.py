"""Presence record and lease schemas."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from ipaddress import IPv4Address, IPv6Address

from pydantic import BaseModel, ConfigDict, Field, field_validator

from here.db.time import as_utc

SESSION_ID_BITS = 128


class PresenceRecord(BaseModel):
    """One client's claimed identity and location.

    Built once from its recognized fields and never mutated. Wire names follow
    the registry protocol (``passwd``, ``ipv4s``, ``ipv6s``).
    """

    id: int = Field(
        ...,
        ge=0,
        lt=2**SESSION_ID_BITS,
        description="Random 128-bit session identifier chosen by the client",
    )
    account: str = Field(..., description="Account name used as the lookup key")
    password_hash: str | None = Field(
        None,
        alias="passwd",
        description="SHA-256 hex digest of the account password, if protected",
    )
    ipv4_addresses: tuple[IPv4Address, ...] = Field((), alias="ipv4s")
    ipv6_addresses: tuple[IPv6Address, ...] = Field((), alias="ipv6s")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def from_addresses(
        cls,
        id: int,
        account: str,
        password_hash: str | None,
        addresses: Iterable[IPv4Address | IPv6Address],
    ) -> PresenceRecord:
        """Build a record, sorting ``addresses`` into v4 and v6 in order."""
        ipv4s: list[IPv4Address] = []
        ipv6s: list[IPv6Address] = []
        for address in addresses:
            if isinstance(address, IPv4Address):
                ipv4s.append(address)
            else:
                ipv6s.append(address)
        return cls(
            id=id,
            account=account,
            password_hash=password_hash,
            ipv4_addresses=tuple(ipv4s),
            ipv6_addresses=tuple(ipv6s),
        )

    @property
    def is_protected(self) -> bool:
        return self.password_hash is not None


class Lease(BaseModel):
    """A presence record wrapped with expiry metadata."""

    record: PresenceRecord
    created_at: datetime
    lifetime_seconds: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def lifetime(self) -> timedelta:
        return timedelta(seconds=self.lifetime_seconds)

    @property
    def expires_at(self) -> datetime:
        return self.created_at + self.lifetime

    def is_outdated(self, now: datetime) -> bool:
        """Return True once more than ``lifetime_seconds`` have elapsed."""
        return as_utc(now) - self.created_at > self.lifetime
