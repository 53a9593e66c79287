"""Client agent keeping one account's presence lease alive.

The agent is a small state machine::

    PROBING -> CONNECTED -> REGISTERING <-> RETRYING

It probes the server until it answers, then registers its presence and
refreshes it every time the server-assigned lifetime runs out. Any failure is
retried after a fixed delay. Waits and in-flight requests are cancelled by
``stop()``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import secrets
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum
from typing import TypeVar

from here.client.api import RegistryClient
from here.client.info import IPAddress, my_ips
from here.core.errors import HereError
from here.schemas.presence import SESSION_ID_BITS, PresenceRecord
from here.schemas.registry import AppInfo
from here.utils.hash import optional_password_digest

# Configure logger for this module
logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY = 1.0

AddressDiscovery = Callable[[], Sequence[IPAddress]]

T = TypeVar("T")


class AgentState(Enum):
    """Lifecycle states of the client agent."""

    PROBING = "probing"
    CONNECTED = "connected"
    REGISTERING = "registering"
    RETRYING = "retrying"
    STOPPED = "stopped"


def new_session_id() -> int:
    """Return a random 128-bit session identifier."""
    return secrets.randbits(SESSION_ID_BITS)


class ClientAgent:
    """Registers and refreshes the presence of one account."""

    def __init__(
        self,
        client: RegistryClient,
        account: str,
        password: str | None = None,
        *,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        discover_addresses: AddressDiscovery = my_ips,
        session_id: int | None = None,
    ) -> None:
        self.client = client
        self.account = account
        # Digest once; the plaintext is not kept.
        self.password_hash = optional_password_digest(password)
        self.retry_delay = retry_delay
        self.session_id = new_session_id() if session_id is None else session_id
        self._discover_addresses = discover_addresses
        self._stopping = asyncio.Event()
        self.state = AgentState.PROBING
        self.server_info: AppInfo | None = None

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    def stop(self) -> None:
        """Ask the agent to stop; pending waits and requests end immediately."""
        self._stopping.set()

    async def run(self) -> None:
        """Probe the server, then keep the lease alive until stopped."""
        try:
            if await self.probe() is None:
                return
            while not self.stopping:
                await self.refresh_once()
        finally:
            self.state = AgentState.STOPPED

    async def probe(self) -> AppInfo | None:
        """Ask for the server info every ``retry_delay`` until it answers.

        Returns ``None`` if the agent was stopped first.
        """
        self.state = AgentState.PROBING
        while not self.stopping:
            try:
                info = await self._unless_stopped(self.client.get_server_info())
            except HereError as e:
                logger.warning(
                    "Cannot get the app information from the server yet (%s). "
                    "Retry after %s second(s).",
                    e,
                    self.retry_delay,
                )
                await self._wait(self.retry_delay)
                continue
            if info is None:
                break
            self.server_info = info
            self.state = AgentState.CONNECTED
            logger.info("Got the app information: %s", info)
            return info
        return None

    def build_record(self) -> PresenceRecord:
        """Discover local addresses and build a fresh presence record.

        Raises:
            OSError: If no local address can be found.
        """
        return PresenceRecord.from_addresses(
            id=self.session_id,
            account=self.account,
            password_hash=self.password_hash,
            addresses=self._discover_addresses(),
        )

    async def refresh_once(self) -> int | None:
        """Register once, retrying until it succeeds, then wait out the lease.

        Returns the lifetime granted by the server, or ``None`` if the agent
        was stopped or no local address could be found.
        """
        self.state = AgentState.REGISTERING
        try:
            record = self.build_record()
        except OSError as e:
            logger.error("Cannot read my IP (%s). Retry after %s second(s).", e, self.retry_delay)
            self.state = AgentState.RETRYING
            await self._wait(self.retry_delay)
            return None

        while not self.stopping:
            try:
                reply = await self._unless_stopped(self.client.post_client_info(record))
            except HereError as e:
                logger.warning(
                    "Cannot post my information (%s). Retry after %s second(s).",
                    e,
                    self.retry_delay,
                )
                self.state = AgentState.RETRYING
                await self._wait(self.retry_delay)
                self.state = AgentState.REGISTERING
                continue
            if reply is None:
                break

            logger.info("Successfully posted. Redo post after %d second(s).", reply.lifetime)
            await self._wait(reply.lifetime)
            return reply.lifetime
        return None

    async def _wait(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)
        except TimeoutError:
            pass

    async def _unless_stopped(self, request: Awaitable[T]) -> T | None:
        """Await ``request``, or cancel it and return ``None`` once stopped."""
        request_task = asyncio.ensure_future(request)
        stop_task = asyncio.ensure_future(self._stopping.wait())
        try:
            await asyncio.wait({request_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()
            if not request_task.done():
                request_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await request_task
        if request_task.cancelled():
            return None
        return request_task.result()
