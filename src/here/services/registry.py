"""Registry operations behind the HTTP API.

Every call opens the lease store afresh, performs one logical operation and
closes it again. Store failures propagate as ``StoreError`` subclasses; the
HTTP layer maps them to responses.
"""

from __future__ import annotations

import logging
from pathlib import Path

from here.core.errors import InvalidPasswordError
from here.core.settings import Settings
from here.db.time import Clock, utcnow
from here.schemas.presence import Lease, PresenceRecord
from here.schemas.registry import AppInfo
from here.services.lease_store import LeaseStore
from here.utils.hash import verify_password

# Configure logger for this module
logger = logging.getLogger(__name__)


class RegistryService:
    """Look up and register presence leases."""

    def __init__(
        self,
        database_path: str | Path,
        default_lifetime: int,
        app_info: AppInfo,
        clock: Clock = utcnow,
    ) -> None:
        self.database_path = Path(database_path)
        self.default_lifetime = default_lifetime
        self.app_info = app_info
        self._clock = clock

    @classmethod
    def from_settings(cls, source: Settings, clock: Clock = utcnow) -> RegistryService:
        return cls(
            database_path=source.database_path,
            default_lifetime=source.default_lifetime_seconds,
            app_info=AppInfo(name=source.app_name, version=source.app_version),
            clock=clock,
        )

    def server_info(self) -> AppInfo:
        return self.app_info

    def lookup(self, account: str, passwd: str | None = None) -> PresenceRecord | None:
        """Return the presence of ``account`` if the caller may see it.

        The first lease registered for ``account`` wins. A record without a
        password may be confirmed without one, but its details are only
        returned when a password is supplied and verifies.

        Returns:
            The record when ``passwd`` verifies, ``None`` when an unprotected
            record is confirmed without a password.

        Raises:
            NotFoundError: If no lease exists for ``account``.
            InvalidPasswordError: If the password is missing or wrong.
            StoreError: If the store cannot be read.
        """
        with LeaseStore.open_or_create(self.database_path) as store:
            lease = store.query_first(lambda s: s.record.account == account)

        record = lease.record
        if passwd is None:
            if record.is_protected:
                raise InvalidPasswordError(f"Password required for account {account!r}")
            return None

        if not verify_password(passwd, record.password_hash):
            raise InvalidPasswordError(f"Invalid password for account {account!r}")
        return record

    def register(self, record: PresenceRecord) -> Lease:
        """Store a new lease for ``record`` under the default lifetime.

        Registration never updates an existing lease; a refresh adds another.

        Raises:
            StoreError: If opening, adding or flushing fails.
        """
        lease = Lease(
            record=record,
            created_at=self._clock(),
            lifetime_seconds=self.default_lifetime,
        )
        with LeaseStore.open_or_create(self.database_path) as store:
            store.add(lease)
            store.flush()
        logger.debug("Registered session %d for account %r", record.id, record.account)
        return lease
