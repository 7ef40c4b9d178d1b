from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clientid.db.models import Cookie, StorageItem
from clientid.db.session import session_scope
from clientid.stores.base import domain_matches
from clientid.stores.base import highest_available_domain as broadest_domain
from clientid.utils.time import now_millis


class SqlKeyValueStore:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_maker = session_maker

    async def get(self, key: str) -> Optional[str]:
        async with session_scope(self._session_maker) as session:
            row = await session.get(StorageItem, key)
            if not row:
                return None
            return row.value

    async def set(self, key: str, value: str) -> None:
        async with session_scope(self._session_maker) as session:
            row = await session.get(StorageItem, key)
            if not row:
                session.add(StorageItem(key=key, value=value))
            else:
                row.value = value
            await session.commit()


class SqlCookieStore:
    """Cookie jar for one document host, persisted in the ``cookies`` table."""

    def __init__(
        self,
        host: str,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.host = host.lower()
        self._session_maker = session_maker
        self._clock = clock

    async def get(self, name: str) -> Optional[str]:
        now = self._clock()
        async with session_scope(self._session_maker) as session:
            rows = (
                await session.execute(
                    select(Cookie).where(Cookie.name == name, Cookie.expires_at > now)
                )
            ).scalars().all()
        # Most specific domain first, like a browser sending the narrowest match
        for row in sorted(rows, key=lambda r: len(r.domain), reverse=True):
            if domain_matches(self.host, row.domain):
                return row.value
        return None

    async def set(
        self,
        name: str,
        value: str,
        expires_at: int,
        *,
        highest_available_domain: bool = False,
    ) -> None:
        domain = broadest_domain(self.host) if highest_available_domain else self.host
        async with session_scope(self._session_maker) as session:
            row = await session.get(Cookie, (name, domain))
            if not row:
                session.add(Cookie(name=name, domain=domain, value=value, expires_at=expires_at))
            else:
                row.value = value
                row.expires_at = expires_at
            await session.commit()
