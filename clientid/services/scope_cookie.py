from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from clientid.services.entropy import EntropySource
from clientid.services.jobs import PersistenceJobs
from clientid.services.request import ScopeRequest
from clientid.stores.base import Err
from clientid.stores.records import ScopeCookieJar, ScopeCookieRecord

logger = logging.getLogger(__name__)


class ScopeCookieManager:
    """Per-scope cookie identifiers for documents served by the publisher."""

    def __init__(
        self,
        jar: ScopeCookieJar,
        entropy: EntropySource,
        jobs: PersistenceJobs,
        clock: Callable[[], int],
        max_age: int,
    ) -> None:
        self._jar = jar
        self._entropy = entropy
        self._jobs = jobs
        self._clock = clock
        self._max_age = max_age

    async def get_or_create(self, request: ScopeRequest, persistence_consent: Awaitable[None]) -> Optional[str]:
        existing = await self._read(request.scope)

        if existing is None and not request.create_if_missing:
            return None

        if existing is not None:
            # Only cookies we minted get their expiry extended
            if existing.self_generated:
                await self._write(existing)
            return existing.value

        new_cookie = ScopeCookieRecord(
            scope=request.scope,
            value=self._entropy.new_id(prefix=self._jar.prefix),
            self_generated=True,
        )
        await self._jobs.spawn(self._persist(new_cookie, persistence_consent))
        return new_cookie.value

    async def _read(self, scope: str) -> Optional[ScopeCookieRecord]:
        result = await self._jar.read(scope)
        if isinstance(result, Err):
            logger.warning("scope cookie read failed, treating as absent", extra={"extra": {"scope": scope, "reason": result.reason}})
            return None
        return result.value

    async def _write(self, record: ScopeCookieRecord) -> None:
        result = await self._jar.write(record, self._clock() + self._max_age)
        if isinstance(result, Err):
            logger.warning("scope cookie write failed", extra={"extra": {"scope": record.scope, "reason": result.reason}})

    async def _persist(self, record: ScopeCookieRecord, persistence_consent: Awaitable[None]) -> None:
        try:
            await asyncio.shield(persistence_consent)
        except Exception as e:
            logger.info("persistence consent rejected, cookie not stored: %s", type(e).__name__)
            return
        # Creation is racy; whoever gets consent first wins
        if await self._read(record.scope) is not None:
            logger.debug("scope cookie already set", extra={"extra": {"scope": record.scope}})
            return
        await self._write(record)
