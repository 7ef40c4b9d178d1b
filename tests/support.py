from __future__ import annotations

import asyncio
import itertools
from typing import Callable, Optional

PROXY_URL = "https://cdn.ampproject.org/c/s/www.example.com/news/article.html"
PUBLISHER_URL = "https://www.example.com/news/article.html"
SOURCE_ORIGIN = "https://www.example.com"

DAY = 24 * 3600 * 1000
START = 1_700_000_000_000


class ManualClock:
    def __init__(self, now: int = START) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


class StubViewer:
    def __init__(self, embedded: bool = False, base_cid: Optional[str] = None) -> None:
        self.embedded = embedded
        self.base_cid = base_cid
        self.calls = 0
        self.closed = False

    def is_embedded(self) -> bool:
        return self.embedded

    async def get_base_cid(self) -> Optional[str]:
        self.calls += 1
        return self.base_cid

    async def aclose(self) -> None:
        self.closed = True


def counting_urandom() -> Callable[[int], bytes]:
    counter = itertools.count(1)
    return lambda n: next(counter).to_bytes(n, "big")


def granted() -> "asyncio.Future[None]":
    fut = asyncio.get_running_loop().create_future()
    fut.set_result(None)
    return fut


def pending() -> "asyncio.Future[None]":
    return asyncio.get_running_loop().create_future()


async def settle() -> None:
    # Let spawned jobs run up to their next suspension point
    for _ in range(5):
        await asyncio.sleep(0)
