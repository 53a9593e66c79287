# src/here/models/lease.py
"""SQLAlchemy model for persisted presence leases."""

from __future__ import annotations

from datetime import datetime
from ipaddress import IPv4Address, IPv6Address

from sqlalchemy import JSON, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from here.db.session import Base
from here.schemas.presence import Lease, PresenceRecord


class LeaseRow(Base):
    """One lease. Row order follows ``seq``, the insertion order."""

    __tablename__ = "leases"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # 128-bit ids do not fit SQLite integers, keep the decimal form.
    session_id: Mapped[str] = mapped_column(Text, nullable=False)
    account: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    ipv4s: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    ipv6s: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    lifetime_seconds: Mapped[int] = mapped_column(Integer, nullable=False)

    @classmethod
    def from_lease(cls, lease: Lease) -> LeaseRow:
        record = lease.record
        return cls(
            session_id=str(record.id),
            account=record.account,
            password_hash=record.password_hash,
            ipv4s=[str(address) for address in record.ipv4_addresses],
            ipv6s=[str(address) for address in record.ipv6_addresses],
            created_at=lease.created_at,
            lifetime_seconds=lease.lifetime_seconds,
        )

    def to_lease(self) -> Lease:
        """Rebuild the immutable lease. Raises ``ValueError`` on bad content."""
        if not isinstance(self.ipv4s, list) or not isinstance(self.ipv6s, list):
            raise ValueError(f"Address columns of lease row {self.seq} are not lists")
        record = PresenceRecord(
            id=int(self.session_id),
            account=self.account,
            password_hash=self.password_hash,
            ipv4_addresses=tuple(IPv4Address(address) for address in self.ipv4s),
            ipv6_addresses=tuple(IPv6Address(address) for address in self.ipv6s),
        )
        return Lease(
            record=record,
            created_at=self.created_at,
            lifetime_seconds=self.lifetime_seconds,
        )
