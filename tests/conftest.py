# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from ipaddress import ip_address
from itertools import count
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import text

from here.core.settings import Settings
from here.db.session import open_engine
from here.main import create_app
from here.schemas.presence import Lease, PresenceRecord
from here.services.lease_store import LeaseStore

TEST_LIFETIME = 60
BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

_SESSION_IDS = count(1)

RecordFactory = Callable[..., PresenceRecord]
LeaseFactory = Callable[..., Lease]


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "client-info.db"


@pytest.fixture()
def test_settings(db_path: Path) -> Settings:
    """Settings pointing at a temporary lease file, reaper off."""
    return Settings(
        database_path=str(db_path),
        default_lifetime_seconds=TEST_LIFETIME,
        reaper_enabled=False,
    )


@pytest.fixture()
def app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_record() -> RecordFactory:
    def _make(
        account: str = "alice",
        password_hash: str | None = None,
        addresses: tuple[str, ...] = ("192.168.1.10",),
        session_id: int | None = None,
    ) -> PresenceRecord:
        return PresenceRecord.from_addresses(
            id=next(_SESSION_IDS) if session_id is None else session_id,
            account=account,
            password_hash=password_hash,
            addresses=[ip_address(a) for a in addresses],
        )

    return _make


@pytest.fixture()
def make_lease(make_record: RecordFactory) -> LeaseFactory:
    def _make(
        account: str = "alice",
        created_at: datetime = BASE_TIME,
        lifetime_seconds: int = TEST_LIFETIME,
        **record_fields: object,
    ) -> Lease:
        return Lease(
            record=make_record(account=account, **record_fields),
            created_at=created_at,
            lifetime_seconds=lifetime_seconds,
        )

    return _make


@pytest.fixture()
def seed_store(db_path: Path) -> Callable[..., None]:
    """Write leases straight into the lease file."""

    def _seed(*leases: Lease) -> None:
        with LeaseStore.open_or_create(db_path) as store:
            for lease in leases:
                store.add(lease)
            store.flush()

    return _seed


@pytest.fixture()
def overwrite_column(db_path: Path) -> Callable[[str, str], None]:
    """Write raw SQL text into one column of every stored lease row."""

    def _overwrite(column: str, raw: str) -> None:
        engine = open_engine(db_path)
        try:
            with engine.begin() as conn:
                conn.execute(text(f"UPDATE leases SET {column} = :raw"), {"raw": raw})
        finally:
            engine.dispose()

    return _overwrite
