"""Per document source origin and per scope client identifiers.

One ``CidService`` is built for each document session and handed to the
integrations that need identifiers. ``resolve`` returns a future that:

- resolves to a string identifier,
- resolves to ``None`` when no identifier exists and creation was not
  requested (not an error),
- fails with ``NoCidError`` when an embedding host owns the base cid and
  has none to give.

Nothing here times out. A consent awaitable that never settles leaves the
returned future pending forever; bounding the wait is the caller's job.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Union
from urllib.parse import urlsplit

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clientid.config import Settings, settings as default_settings
from clientid.services.base_cid import BaseCidManager
from clientid.services.entropy import EntropySource
from clientid.services.jobs import PersistenceJobs
from clientid.services.origin import OriginClassifier
from clientid.services.request import ScopeRequest, validate_scope
from clientid.services.scope_cookie import ScopeCookieManager
from clientid.stores.base import CookieStore, KeyValueStore
from clientid.stores.records import BaseCidStore, ScopeCookieJar
from clientid.stores.sql import SqlCookieStore, SqlKeyValueStore
from clientid.utils.correlation import set_correlation_id
from clientid.utils.hashing import sha384_base64
from clientid.utils.time import now_millis
from clientid.viewer.client import StandaloneViewer, ViewerBridge, get_viewer

logger = logging.getLogger(__name__)


def _retrieve_exception(fut: "asyncio.Future[None]") -> None:
    if not fut.cancelled():
        fut.exception()


class CidService:
    def __init__(
        self,
        url: str,
        *,
        storage: KeyValueStore,
        cookies: CookieStore,
        viewer: Optional[ViewerBridge] = None,
        classifier: Optional[OriginClassifier] = None,
        entropy: Optional[EntropySource] = None,
        clock: Callable[[], int] = now_millis,
        settings: Optional[Settings] = None,
    ) -> None:
        cfg = settings or default_settings
        self.url = url
        self._viewer = viewer or StandaloneViewer()
        self._classifier = classifier or OriginClassifier(settings=cfg)
        self._entropy = entropy or EntropySource(url, clock=clock)
        self._jobs = PersistenceJobs()
        self.base_cids = BaseCidManager(
            BaseCidStore(storage, cfg.storage_key),
            self._viewer,
            self._entropy,
            self._jobs,
            clock,
            max_age=cfg.max_age_millis,
            refresh_interval=cfg.refresh_millis,
        )
        self.scope_cookies = ScopeCookieManager(
            ScopeCookieJar(cookies, cfg.cookie_prefix),
            self._entropy,
            self._jobs,
            clock,
            max_age=cfg.max_age_millis,
        )

    def resolve(
        self,
        request: Union[str, ScopeRequest],
        consent: Awaitable[None],
        persistence_consent: Optional[Awaitable[None]] = None,
    ) -> "asyncio.Future[Optional[str]]":
        """Identifier for ``request`` within this document's source origin.

        The scope is validated before anything is awaited, so a bad scope
        raises ``InvalidScopeError`` right here. ``persistence_consent``
        gates only durable storage of a new identifier; it defaults to
        ``consent`` and, when given separately, ``consent`` should itself
        depend on it. Must be called with a running event loop.
        """
        req = ScopeRequest.of(request)
        validate_scope(req.scope)
        consent_fut = asyncio.ensure_future(consent)
        if persistence_consent is None:
            persist_fut = consent_fut
        else:
            persist_fut = asyncio.ensure_future(persistence_consent)
            # Most paths never await it; a rejection there is expected
            persist_fut.add_done_callback(_retrieve_exception)
        return asyncio.ensure_future(self._resolve(req, consent_fut, persist_fut))

    async def _resolve(
        self,
        request: ScopeRequest,
        consent: "asyncio.Future[None]",
        persistence_consent: "asyncio.Future[None]",
    ) -> Optional[str]:
        set_correlation_id()
        await asyncio.shield(consent)
        if not self._classifier.is_proxy_origin(self.url):
            return await self.scope_cookies.get_or_create(request, persistence_consent)
        base_cid = await self.base_cids.get_base_cid(persistence_consent)
        source_origin = self._classifier.get_proxy_source_origin(self.url)
        logger.debug("derived scope cid", extra={"extra": {"scope": request.scope, "source_origin": source_origin}})
        return sha384_base64(base_cid + source_origin + request.scope)

    async def flush(self) -> None:
        """Wait until every pending refresh or persistence job has finished."""
        await self._jobs.flush()

    async def aclose(self) -> None:
        await self._jobs.close()
        await self._viewer.aclose()


def create_cid_service(
    url: str,
    *,
    viewport: Tuple[int, int] = (0, 0),
    settings: Optional[Settings] = None,
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
    viewer: Optional[ViewerBridge] = None,
) -> CidService:
    """Production wiring: SQL-backed storage and cookies, HTTP viewer bridge."""
    cfg = settings or default_settings
    host = urlsplit(url).hostname or ""
    return CidService(
        url,
        storage=SqlKeyValueStore(session_maker),
        cookies=SqlCookieStore(host, session_maker),
        viewer=viewer or get_viewer(cfg),
        entropy=EntropySource(url, viewport=viewport),
        settings=cfg,
    )
