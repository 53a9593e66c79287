"""Background eviction of expired leases.

The reaper handles one lease per pass: it opens the store, selects the first
lease created under the configured default lifetime, and removes it once that
lifetime has elapsed. The delay before the next pass depends on the outcome,
so the store is rescanned quickly while there is work and rarely otherwise.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from here.core.errors import NotFoundError, StoreError
from here.core.settings import Settings, settings
from here.db.time import Clock, utcnow
from here.schemas.presence import Lease
from here.services.lease_store import LeaseStore

# Configure logger for this module
logger = logging.getLogger(__name__)


def clean_outdated(path: str | Path, lifetime: int, now: datetime) -> Lease | None:
    """Run one eviction pass against the store at ``path``.

    Only leases whose ``lifetime_seconds`` equals ``lifetime`` are selected.

    Returns:
        The removed lease, or ``None`` if the selected lease is still live.

    Raises:
        NotFoundError: If no lease carries ``lifetime``.
        StoreError: If the store cannot be opened or written.
    """
    with LeaseStore.open_or_create(path) as store:
        lease = store.query_first(lambda s: s.lifetime_seconds == lifetime)
        if not lease.is_outdated(now):
            return None
        logger.debug("Found an outdated lease for account %r", lease.record.account)
        store.remove(lease)
        # Changes are only visible to other operations after the flush.
        store.flush()
    return lease


@dataclass(frozen=True)
class ReaperConfig:
    """Immutable configuration for the reaper loop."""

    database_path: str
    lifetime_seconds: int
    clean_interval: float = 0.5
    finished_delay: float = 10.0
    error_delay: float = 10.0

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> ReaperConfig:
        source = source or settings
        return cls(
            database_path=source.database_path,
            lifetime_seconds=source.default_lifetime_seconds,
            clean_interval=source.reaper_clean_interval,
            finished_delay=source.reaper_finished_delay,
            error_delay=source.reaper_error_delay,
        )


class LeaseReaper:
    """Periodically evicts expired leases without blocking request handling.

    Store I/O runs in a worker thread. The loop only ends through ``stop()``
    or task cancellation.
    """

    def __init__(self, config: ReaperConfig, clock: Clock = utcnow) -> None:
        self.config = config
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background eviction loop."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the loop, interrupting any pending delay."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def run_once(self) -> float:
        """Run one pass and return the delay before the next one."""
        try:
            removed = await asyncio.to_thread(
                clean_outdated,
                self.config.database_path,
                self.config.lifetime_seconds,
                self._clock(),
            )
        except NotFoundError:
            logger.debug("Finished cleaning outdated leases")
            return self.config.finished_delay
        except StoreError as e:
            logger.error("Failed to clean outdated leases: %s", e)
            return self.config.error_delay

        if removed is not None:
            logger.info(
                "Removed outdated lease of account %r (session %d)",
                removed.record.account,
                removed.record.id,
            )
        return self.config.clean_interval

    async def _run(self) -> None:
        while not self._stopping.is_set():
            delay = await self.run_once()
            await self._wait(delay)

    async def _wait(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)
        except TimeoutError:
            pass
