from __future__ import annotations

from typing import List, Optional

import pytest
import pytest_asyncio

from clientid.config import Settings
from clientid.services.cid import CidService
from clientid.services.entropy import EntropySource
from clientid.stores.memory import MemoryCookieStore, MemoryKeyValueStore
from support import PROXY_URL, ManualClock, StubViewer, counting_urandom


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def storage() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def cookies(clock: ManualClock) -> MemoryCookieStore:
    return MemoryCookieStore("www.example.com", clock=clock)


@pytest_asyncio.fixture
async def make_service(clock: ManualClock, storage: MemoryKeyValueStore, cookies: MemoryCookieStore):
    created: List[CidService] = []
    # One entropy sequence per test so separate sessions never mint the same id
    urandom = counting_urandom()

    def _make(
        url: str = PROXY_URL,
        *,
        viewer: Optional[StubViewer] = None,
    ) -> CidService:
        service = CidService(
            url,
            storage=storage,
            cookies=cookies,
            viewer=viewer or StubViewer(),
            entropy=EntropySource(url, clock=clock, urandom=urandom),
            clock=clock,
            settings=Settings(),
        )
        created.append(service)
        return service

    yield _make

    for service in created:
        await service.aclose()
