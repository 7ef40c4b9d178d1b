from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from clientid.stores.base import CookieStore, Err, KeyValueStore, Ok, Result


@dataclass(frozen=True)
class BaseCidRecord:
    value: str
    # epoch milliseconds of creation or last refresh
    time: int

    def is_expired(self, now: int, max_age: int) -> bool:
        return self.time + max_age < now

    def needs_refresh(self, now: int, interval: int) -> bool:
        return self.time + interval < now

    def to_json(self) -> str:
        return json.dumps({"time": self.time, "cid": self.value})

    @classmethod
    def from_json(cls, data: str) -> "BaseCidRecord":
        item = json.loads(data)
        if not isinstance(item, dict):
            raise ValueError("base cid record is not an object")
        cid = item.get("cid")
        created = item.get("time")
        if not isinstance(cid, str) or not cid:
            raise ValueError("base cid record has no cid")
        if isinstance(created, bool) or not isinstance(created, (int, float)):
            raise ValueError("base cid record has no time")
        return cls(value=cid, time=int(created))


class BaseCidStore:
    """JSON codec for the base cid record over a key/value store.

    Never raises: every storage or decoding fault comes back as ``Err``.
    """

    def __init__(self, storage: KeyValueStore, key: str) -> None:
        self._storage = storage
        self.key = key

    async def read(self) -> Result[Optional[BaseCidRecord]]:
        try:
            data = await self._storage.get(self.key)
        except Exception as e:
            return Err(f"read failed: {e!r}")
        if not data:
            return Ok(None)
        try:
            return Ok(BaseCidRecord.from_json(data))
        except (ValueError, TypeError) as e:
            return Err(f"corrupt record: {e}")

    async def write(self, record: BaseCidRecord) -> Result[None]:
        try:
            await self._storage.set(self.key, record.to_json())
        except Exception as e:
            return Err(f"write failed: {e!r}")
        return Ok(None)


@dataclass(frozen=True)
class ScopeCookieRecord:
    scope: str
    value: str
    # True when this service minted the value (it carries the marker prefix)
    self_generated: bool

    @classmethod
    def from_value(cls, scope: str, value: str, prefix: str) -> "ScopeCookieRecord":
        return cls(scope=scope, value=value, self_generated=value.startswith(prefix))


class ScopeCookieJar:
    """Scope cookie reads and writes as ``Ok`` / ``Err`` results."""

    def __init__(self, cookies: CookieStore, prefix: str) -> None:
        self._cookies = cookies
        self.prefix = prefix

    async def read(self, scope: str) -> Result[Optional[ScopeCookieRecord]]:
        try:
            value = await self._cookies.get(scope)
        except Exception as e:
            return Err(f"cookie read failed: {e!r}")
        if not value:
            return Ok(None)
        return Ok(ScopeCookieRecord.from_value(scope, value, self.prefix))

    async def write(self, record: ScopeCookieRecord, expires_at: int) -> Result[None]:
        try:
            await self._cookies.set(record.scope, record.value, expires_at, highest_available_domain=True)
        except Exception as e:
            return Err(f"cookie write failed: {e!r}")
        return Ok(None)
