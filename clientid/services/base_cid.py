from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from clientid.errors import NoCidError
from clientid.services.entropy import EntropySource
from clientid.services.jobs import PersistenceJobs
from clientid.stores.base import Err
from clientid.stores.records import BaseCidRecord, BaseCidStore
from clientid.viewer.client import ViewerBridge

logger = logging.getLogger(__name__)


class BaseCidManager:
    """Owns the base cid: session cache, expiry, refresh and persistence.

    The base cid must never leave this package unhashed. On a proxy it is
    the same for a user across all source origins.

    First-time persistence is optimistic: after persistence consent the
    store is re-read and the new value is written only if no valid record
    appeared in the meantime. Two callers can both see "absent" and both
    write; the later write wins and every later read converges on it.
    """

    def __init__(
        self,
        store: BaseCidStore,
        viewer: ViewerBridge,
        entropy: EntropySource,
        jobs: PersistenceJobs,
        clock: Callable[[], int],
        max_age: int,
        refresh_interval: int,
    ) -> None:
        self._store = store
        self._viewer = viewer
        self._entropy = entropy
        self._jobs = jobs
        self._clock = clock
        self._max_age = max_age
        self._refresh_interval = refresh_interval
        # Base cid once read from storage, for the lifetime of this session
        self._cached: Optional[str] = None

    @property
    def cached(self) -> Optional[str]:
        return self._cached

    async def get_base_cid(self, persistence_consent: Awaitable[None]) -> str:
        if self._cached:
            return self._cached

        stored = await self._read_valid()
        if stored is not None:
            if stored.needs_refresh(self._clock(), self._refresh_interval):
                # Mark the cid as used, at most once per interval
                await self._jobs.spawn(self._write(stored.value))
            self._cached = stored.value
            return stored.value

        # Embedded: the host owns the base cid and its persistence
        if self._viewer.is_embedded():
            cid = await self._viewer.get_base_cid()
            if not cid:
                raise NoCidError("No CID")
            return cid

        new_val = self._entropy.new_id()
        await self._jobs.spawn(self._persist(new_val, persistence_consent))
        return new_val

    async def _read_valid(self) -> Optional[BaseCidRecord]:
        result = await self._store.read()
        if isinstance(result, Err):
            logger.warning("base cid read failed, treating as absent", extra={"extra": {"reason": result.reason}})
            return None
        record = result.value
        if record is None:
            return None
        if record.is_expired(self._clock(), self._max_age):
            logger.info("stored base cid expired", extra={"extra": {"stored_at": record.time}})
            return None
        return record

    async def _write(self, value: str) -> None:
        result = await self._store.write(BaseCidRecord(value=value, time=self._clock()))
        if isinstance(result, Err):
            logger.warning("base cid write failed, not persisted", extra={"extra": {"reason": result.reason}})

    async def _persist(self, value: str, persistence_consent: Awaitable[None]) -> None:
        try:
            # Closing the job must not cancel a consent the caller shares
            await asyncio.shield(persistence_consent)
        except Exception as e:
            logger.info("persistence consent rejected, base cid not stored: %s", type(e).__name__)
            return
        # First one that gets consent wins
        if await self._read_valid() is not None:
            logger.debug("base cid already persisted by another resolution")
            return
        await self._write(value)
        logger.info("new base cid persisted")
