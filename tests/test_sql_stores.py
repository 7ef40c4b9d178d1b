from __future__ import annotations

import json

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from clientid.config import Settings
from clientid.db import models  # noqa: F401
from clientid.db.base import Base
from clientid.services.cid import create_cid_service
from clientid.services.request import ScopeRequest
from clientid.stores.sql import SqlCookieStore, SqlKeyValueStore
from support import DAY, PROXY_URL, PUBLISHER_URL, StubViewer, granted


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'clientid.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


@pytest.mark.asyncio
async def test_key_value_roundtrip(session_maker) -> None:
    store = SqlKeyValueStore(session_maker)

    assert await store.get("amp-cid") is None
    await store.set("amp-cid", "one")
    await store.set("amp-cid", "two")
    assert await store.get("amp-cid") == "two"


@pytest.mark.asyncio
async def test_cookie_visible_from_sibling_subdomain(session_maker) -> None:
    now = 1_000_000
    www = SqlCookieStore("www.example.com", session_maker, clock=lambda: now)
    blog = SqlCookieStore("blog.example.com", session_maker, clock=lambda: now)
    other = SqlCookieStore("www.example.org", session_maker, clock=lambda: now)

    await www.set("analytics", "amp-x", now + DAY, highest_available_domain=True)
    await www.set("local", "only-www", now + DAY)

    assert await blog.get("analytics") == "amp-x"
    assert await blog.get("local") is None
    assert await www.get("local") == "only-www"
    assert await other.get("analytics") is None


@pytest.mark.asyncio
async def test_expired_cookie_not_returned(session_maker) -> None:
    clock = {"now": 1_000_000}
    jar = SqlCookieStore("www.example.com", session_maker, clock=lambda: clock["now"])

    await jar.set("analytics", "amp-x", clock["now"] + 10)
    clock["now"] += 11

    assert await jar.get("analytics") is None


@pytest.mark.asyncio
async def test_sql_backed_service_converges_across_sessions(session_maker) -> None:
    cfg = Settings()
    first = create_cid_service(PROXY_URL, settings=cfg, session_maker=session_maker, viewer=StubViewer())
    try:
        cid = await first.resolve("analytics", granted())
        await first.flush()
    finally:
        await first.aclose()

    second = create_cid_service(PROXY_URL, settings=cfg, session_maker=session_maker, viewer=StubViewer())
    try:
        assert await second.resolve("analytics", granted()) == cid
    finally:
        await second.aclose()

    stored = json.loads(await SqlKeyValueStore(session_maker).get(cfg.storage_key))
    assert set(stored) == {"time", "cid"}


@pytest.mark.asyncio
async def test_sql_backed_scope_cookie(session_maker) -> None:
    service = create_cid_service(PUBLISHER_URL, settings=Settings(), session_maker=session_maker, viewer=StubViewer())
    try:
        cid = await service.resolve(ScopeRequest("analytics", create_if_missing=True), granted())
        await service.flush()
        assert await service.resolve("analytics", granted()) == cid
    finally:
        await service.aclose()
