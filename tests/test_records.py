from __future__ import annotations

import json

import pytest

from clientid.stores.base import Err, Ok, highest_available_domain
from clientid.stores.memory import MemoryKeyValueStore
from clientid.stores.records import BaseCidRecord, BaseCidStore, ScopeCookieRecord


@pytest.mark.asyncio
async def test_record_wire_format() -> None:
    storage = MemoryKeyValueStore()
    store = BaseCidStore(storage, "amp-cid")

    assert await store.write(BaseCidRecord(value="abc", time=1000)) == Ok(None)
    assert json.loads(storage.snapshot()["amp-cid"]) == {"time": 1000, "cid": "abc"}
    assert await store.read() == Ok(BaseCidRecord(value="abc", time=1000))


@pytest.mark.asyncio
async def test_missing_record_is_ok_none() -> None:
    store = BaseCidStore(MemoryKeyValueStore(), "amp-cid")
    assert await store.read() == Ok(None)


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{oops", "[]", '{"cid": "x"}', '{"time": 1}', '{"time": true, "cid": "x"}'])
async def test_malformed_record_is_err(raw: str) -> None:
    store = BaseCidStore(MemoryKeyValueStore({"amp-cid": raw}), "amp-cid")
    assert isinstance(await store.read(), Err)


@pytest.mark.asyncio
async def test_storage_faults_become_err() -> None:
    storage = MemoryKeyValueStore()
    storage.fail_reads = True
    storage.fail_writes = True
    store = BaseCidStore(storage, "amp-cid")

    read = await store.read()
    write = await store.write(BaseCidRecord(value="abc", time=1))

    assert isinstance(read, Err) and "storage disabled" in read.reason
    assert isinstance(write, Err)


def test_expiry_and_refresh_boundaries() -> None:
    day = 24 * 3600 * 1000
    record = BaseCidRecord(value="abc", time=0)

    assert not record.is_expired(365 * day, 365 * day)
    assert record.is_expired(365 * day + 1, 365 * day)
    assert not record.needs_refresh(day, day)
    assert record.needs_refresh(day + 1, day)


def test_cookie_marker() -> None:
    assert ScopeCookieRecord.from_value("s", "amp-xyz", "amp-").self_generated
    assert not ScopeCookieRecord.from_value("s", "GA1.1.2", "amp-").self_generated


@pytest.mark.parametrize(
    "host,domain",
    [
        ("www.example.com", "example.com"),
        ("a.b.example.com", "example.com"),
        ("example.com", "example.com"),
        ("localhost", "localhost"),
        ("127.0.0.1", "127.0.0.1"),
        ("www.example.co.uk", "example.co.uk"),
        ("news.example.co.uk", "example.co.uk"),
        ("co.uk", "co.uk"),
        ("blog.example.github.io", "example.github.io"),
    ],
)
def test_highest_available_domain(host: str, domain: str) -> None:
    assert highest_available_domain(host) == domain
