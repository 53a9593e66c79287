"""Tests for presence schemas."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from here.schemas.presence import Lease, PresenceRecord
from here.schemas.registry import AppInfo
from tests.conftest import BASE_TIME, TEST_LIFETIME


def test_record_wire_names(make_record):
    record = make_record(account="alice", password_hash="ff", addresses=("10.0.0.1", "::2"))

    dumped = record.model_dump(mode="json", by_alias=True)

    assert dumped == {
        "id": record.id,
        "account": "alice",
        "passwd": "ff",
        "ipv4s": ["10.0.0.1"],
        "ipv6s": ["::2"],
    }
    assert PresenceRecord.model_validate(dumped) == record


def test_record_is_immutable(make_record):
    record = make_record()

    with pytest.raises(ValidationError):
        record.account = "mallory"


def test_record_keeps_duplicate_addresses(make_record):
    record = make_record(addresses=("10.0.0.1", "10.0.0.1"))

    assert len(record.ipv4_addresses) == 2


def test_record_rejects_id_above_128_bits():
    with pytest.raises(ValidationError):
        PresenceRecord(id=2**128, account="alice")


def test_lease_expiry_boundary(make_lease):
    lease = make_lease()

    assert lease.expires_at == BASE_TIME + timedelta(seconds=TEST_LIFETIME)
    assert not lease.is_outdated(BASE_TIME)
    assert not lease.is_outdated(lease.expires_at)
    assert lease.is_outdated(lease.expires_at + timedelta(microseconds=1))


def test_lease_naive_timestamp_is_utc(make_record):
    lease = Lease(
        record=make_record(),
        created_at=datetime(2024, 1, 1, 12, 0, 0),
        lifetime_seconds=TEST_LIFETIME,
    )

    assert lease.created_at == BASE_TIME


def test_app_info_str():
    assert str(AppInfo(name="Here", version="1.2.3")) == "Here, version 1.2.3."
