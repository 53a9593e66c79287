"""Tests for the client agent state machine."""

from __future__ import annotations

import asyncio
import time
from ipaddress import ip_address
from unittest.mock import AsyncMock, MagicMock

import pytest

from here.client.agent import AgentState, ClientAgent, new_session_id
from here.client.api import RegistryClient
from here.core.errors import TransportError
from here.schemas.registry import AppInfo, PostClientInfoResponse
from here.utils.hash import password_digest

RETRY_DELAY = 1.0
LIFETIME = 60
APP_INFO = AppInfo(name="Here", version="0.1.0")


def _reply(lifetime: int = LIFETIME) -> PostClientInfoResponse:
    return PostClientInfoResponse(id=1, account="alice", is_ok=True, lifetime=lifetime)


@pytest.fixture
def mock_registry_client():
    client = AsyncMock(spec=RegistryClient)
    client.get_server_info.return_value = APP_INFO
    client.post_client_info.return_value = _reply()
    return client


@pytest.fixture
def discover():
    return MagicMock(return_value=[ip_address("192.168.1.10"), ip_address("2001:db8::1")])


@pytest.fixture
def agent(mock_registry_client, discover):
    return ClientAgent(
        mock_registry_client,
        "alice",
        retry_delay=RETRY_DELAY,
        discover_addresses=discover,
        session_id=42,
    )


def test_session_id_is_128_bit():
    ids = {new_session_id() for _ in range(20)}
    assert all(0 <= i < 2**128 for i in ids)
    assert len(ids) == 20


def test_password_is_digested_once(mock_registry_client, discover):
    agent = ClientAgent(mock_registry_client, "bob", "secret", discover_addresses=discover)

    record = agent.build_record()

    assert agent.password_hash == password_digest("secret")
    assert record.password_hash == password_digest("secret")
    assert "secret" not in record.model_dump_json(by_alias=True)


def test_build_record_splits_addresses(agent):
    record = agent.build_record()

    assert record.id == 42
    assert record.account == "alice"
    assert record.password_hash is None
    assert [str(a) for a in record.ipv4_addresses] == ["192.168.1.10"]
    assert [str(a) for a in record.ipv6_addresses] == ["2001:db8::1"]


class TestProbe:
    """Connectivity probe loop."""

    @pytest.mark.asyncio
    async def test_probe_succeeds_after_failures(self, agent, mock_registry_client, mocker):
        failures = 3
        mock_registry_client.get_server_info.side_effect = [
            TransportError("connection refused")
        ] * failures + [APP_INFO]
        wait = mocker.patch.object(agent, "_wait", new=AsyncMock())

        info = await agent.probe()

        assert info == APP_INFO
        assert agent.server_info == APP_INFO
        assert agent.state is AgentState.CONNECTED
        assert mock_registry_client.get_server_info.await_count == failures + 1
        assert wait.await_count == failures
        assert all(call.args == (RETRY_DELAY,) for call in wait.await_args_list)

    @pytest.mark.asyncio
    async def test_probe_retry_time_is_bounded(self, mock_registry_client, discover):
        failures, delay = 3, 0.02
        mock_registry_client.get_server_info.side_effect = [
            TransportError("down")
        ] * failures + [APP_INFO]
        agent = ClientAgent(
            mock_registry_client, "alice", retry_delay=delay, discover_addresses=discover
        )

        started = time.monotonic()
        assert await agent.probe() == APP_INFO
        elapsed = time.monotonic() - started

        assert failures * delay <= elapsed < failures * delay + 1.0

    @pytest.mark.asyncio
    async def test_probe_returns_none_when_stopped(self, agent, mock_registry_client):
        mock_registry_client.get_server_info.side_effect = TransportError("down")
        agent.retry_delay = 3600
        task = asyncio.create_task(agent.probe())
        await asyncio.sleep(0.05)

        agent.stop()

        assert await asyncio.wait_for(task, timeout=1.0) is None
        assert mock_registry_client.get_server_info.await_count == 1


class TestRefresh:
    """Registration and refresh cycle."""

    @pytest.mark.asyncio
    async def test_success_waits_for_lifetime(self, agent, mock_registry_client, mocker):
        wait = mocker.patch.object(agent, "_wait", new=AsyncMock())

        lifetime = await agent.refresh_once()

        assert lifetime == LIFETIME
        wait.assert_awaited_once_with(LIFETIME)
        record = mock_registry_client.post_client_info.await_args.args[0]
        assert record.account == "alice"
        assert record.id == 42

    @pytest.mark.asyncio
    async def test_failure_retries_same_record(self, agent, mock_registry_client, discover, mocker):
        mock_registry_client.post_client_info.side_effect = [
            TransportError("500"),
            TransportError("timeout"),
            _reply(),
        ]
        wait = mocker.patch.object(agent, "_wait", new=AsyncMock())

        assert await agent.refresh_once() == LIFETIME

        assert discover.call_count == 1
        posted = [call.args[0] for call in mock_registry_client.post_client_info.await_args_list]
        assert len(posted) == 3
        assert posted[0] == posted[1] == posted[2]
        assert [call.args for call in wait.await_args_list] == [
            (RETRY_DELAY,),
            (RETRY_DELAY,),
            (LIFETIME,),
        ]

    @pytest.mark.asyncio
    async def test_address_failure_skips_registration(self, agent, mock_registry_client, discover, mocker):
        discover.side_effect = OSError("network unreachable")
        wait = mocker.patch.object(agent, "_wait", new=AsyncMock())

        assert await agent.refresh_once() is None

        mock_registry_client.post_client_info.assert_not_awaited()
        wait.assert_awaited_once_with(RETRY_DELAY)
        assert agent.state is AgentState.RETRYING

    @pytest.mark.asyncio
    async def test_each_cycle_rediscovers_addresses(self, agent, discover, mocker):
        mocker.patch.object(agent, "_wait", new=AsyncMock())

        await agent.refresh_once()
        await agent.refresh_once()

        assert discover.call_count == 2


class TestRun:
    """Full agent lifecycle."""

    @pytest.mark.asyncio
    async def test_run_refreshes_until_stopped(self, agent, mock_registry_client, mocker):
        mocker.patch.object(agent, "_wait", new=AsyncMock())
        cycles = 3

        async def _post(record):
            if mock_registry_client.post_client_info.await_count >= cycles:
                agent.stop()
            return _reply()

        mock_registry_client.post_client_info.side_effect = _post

        await asyncio.wait_for(agent.run(), timeout=1.0)

        assert mock_registry_client.get_server_info.await_count == 1
        assert mock_registry_client.post_client_info.await_count == cycles
        assert agent.state is AgentState.STOPPED

    @pytest.mark.asyncio
    async def test_stop_interrupts_lifetime_wait(self, agent, mock_registry_client):
        posted = asyncio.Event()

        async def _post(record):
            posted.set()
            return _reply(lifetime=3600)

        mock_registry_client.post_client_info.side_effect = _post
        task = asyncio.create_task(agent.run())
        await asyncio.wait_for(posted.wait(), timeout=1.0)

        agent.stop()

        await asyncio.wait_for(task, timeout=1.0)
        assert agent.state is AgentState.STOPPED

    @pytest.mark.asyncio
    async def test_stop_cancels_in_flight_probe(self, agent, mock_registry_client):
        started = asyncio.Event()

        async def _hang():
            started.set()
            await asyncio.sleep(3600)

        mock_registry_client.get_server_info.side_effect = _hang
        task = asyncio.create_task(agent.run())
        await asyncio.wait_for(started.wait(), timeout=1.0)

        agent.stop()

        await asyncio.wait_for(task, timeout=1.0)
        assert agent.server_info is None
        assert agent.state is AgentState.STOPPED

    @pytest.mark.asyncio
    async def test_stop_cancels_in_flight_registration(self, agent, mock_registry_client):
        started = asyncio.Event()

        async def _hang(record):
            started.set()
            await asyncio.sleep(3600)

        mock_registry_client.post_client_info.side_effect = _hang
        task = asyncio.create_task(agent.run())
        await asyncio.wait_for(started.wait(), timeout=1.0)

        agent.stop()

        await asyncio.wait_for(task, timeout=1.0)
        assert agent.state is AgentState.STOPPED
        mock_registry_client.post_client_info.assert_awaited_once()
