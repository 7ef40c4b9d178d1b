from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from clientid.stores.base import domain_matches
from clientid.stores.base import highest_available_domain as broadest_domain
from clientid.utils.time import now_millis


class StorageUnavailableError(OSError):
    pass


class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self.writes: List[Tuple[str, str]] = []
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise StorageUnavailableError("storage disabled")
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageUnavailableError("quota exceeded")
        self._data[key] = value
        self.writes.append((key, value))

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


@dataclass
class StoredCookie:
    name: str
    domain: str
    value: str
    expires_at: int


class MemoryCookieStore:
    """Cookie jar for a single document host."""

    def __init__(self, host: str, clock: Callable[[], int] = now_millis) -> None:
        self.host = host.lower()
        self._clock = clock
        self._jar: Dict[Tuple[str, str], StoredCookie] = {}
        self.writes: List[StoredCookie] = []
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, name: str) -> Optional[str]:
        if self.fail_reads:
            raise StorageUnavailableError("cookies disabled")
        now = self._clock()
        for cookie in sorted(self._jar.values(), key=lambda c: len(c.domain), reverse=True):
            if cookie.name != name or not domain_matches(self.host, cookie.domain):
                continue
            if cookie.expires_at <= now:
                continue
            return cookie.value
        return None

    async def set(
        self,
        name: str,
        value: str,
        expires_at: int,
        *,
        highest_available_domain: bool = False,
    ) -> None:
        if self.fail_writes:
            raise StorageUnavailableError("cookies disabled")
        domain = broadest_domain(self.host) if highest_available_domain else self.host
        cookie = StoredCookie(name=name, domain=domain, value=value, expires_at=expires_at)
        self._jar[(name, domain)] = cookie
        self.writes.append(cookie)

    def cookies(self, name: Optional[str] = None) -> List[StoredCookie]:
        return [c for c in self._jar.values() if name is None or c.name == name]
