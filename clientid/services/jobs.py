from __future__ import annotations

import logging
from typing import Any, Coroutine, List, Optional

import aiojobs

logger = logging.getLogger(__name__)


class PersistenceJobs:
    """Fire-and-forget work spawned by a cid resolution.

    Resolutions never wait on these jobs. ``flush`` waits for everything
    spawned so far; ``close`` cancels whatever is still pending, e.g. a
    persistence job whose consent never arrived.
    """

    def __init__(self) -> None:
        self._scheduler: Optional[aiojobs.Scheduler] = None
        self._jobs: List[aiojobs.Job[Any]] = []

    def _get_scheduler(self) -> aiojobs.Scheduler:
        # Created lazily: the scheduler binds to the running event loop
        if self._scheduler is None:
            self._scheduler = aiojobs.Scheduler(limit=None)
        return self._scheduler

    async def spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        self._jobs = [j for j in self._jobs if not j.closed]
        job = await self._get_scheduler().spawn(coro)
        self._jobs.append(job)

    async def flush(self) -> None:
        while self._jobs:
            job = self._jobs.pop(0)
            await job.wait()

    async def close(self) -> None:
        self._jobs.clear()
        if self._scheduler is not None:
            await self._scheduler.close()
            self._scheduler = None
