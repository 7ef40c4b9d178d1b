from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional, Protocol

import httpx

from clientid.config import Settings, settings as default_settings


class ViewerBridge(Protocol):
    """Channel to the host that embeds a proxy-served document."""

    def is_embedded(self) -> bool: ...

    async def get_base_cid(self) -> Optional[str]: ...

    async def aclose(self) -> None: ...


class StandaloneViewer:
    """Document opened directly, no embedding host."""

    def is_embedded(self) -> bool:
        return False

    async def get_base_cid(self) -> Optional[str]:
        return None

    async def aclose(self) -> None:
        return None


class HttpViewerBridge:
    """Asks the embedding host for the base cid it owns.

    ``GET {base_url}/cid/base`` answers ``{"cid": "..."}``; 404 or an empty
    value means the host has none.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_attempts: int = 3,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)))
        self._max_attempts = max(1, max_attempts)
        self._backoff_base = 0.5  # seconds

    def is_embedded(self) -> bool:
        return True

    def _headers(self) -> dict[str, str]:
        return {"accept": "application/json"}

    async def _request(self, method: str, path: str) -> Optional[httpx.Response]:
        url = f"{self.base_url}{path}"
        for attempt in range(1, self._max_attempts + 1):
            try:
                resp = await self._client.request(method, url, headers=self._headers())
                if resp.status_code in {429, 502, 503, 504} and attempt < self._max_attempts:
                    delay = self._backoff_base * (2 ** (attempt - 1)) + random.uniform(0, 0.25)
                    logging.warning("Retryable status %s on %s %s, attempt %d/%d, sleeping %.2fs", resp.status_code, method, url, attempt, self._max_attempts, delay)
                    await asyncio.sleep(delay)
                    continue
                return resp
            except httpx.TransportError as e:
                if attempt < self._max_attempts:
                    delay = self._backoff_base * (2 ** (attempt - 1)) + random.uniform(0, 0.25)
                    logging.warning("Network error on %s %s: %s, attempt %d/%d, sleeping %.2fs", method, url, e, attempt, self._max_attempts, delay)
                    await asyncio.sleep(delay)
                    continue
                logging.error("Viewer unreachable on %s %s after %d attempts: %s", method, url, attempt, e)
                return None
        return None

    async def get_base_cid(self) -> Optional[str]:
        resp = await self._request("GET", "/cid/base")
        if resp is None or resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            logging.warning("Viewer refused base cid request: status %s", resp.status_code)
            return None
        try:
            cid = resp.json().get("cid")
        except (ValueError, AttributeError):
            logging.warning("Viewer sent malformed base cid response")
            return None
        return cid if isinstance(cid, str) and cid else None

    async def aclose(self) -> None:
        await self._client.aclose()


def get_viewer(settings: Optional[Settings] = None) -> ViewerBridge:
    cfg = settings or default_settings
    if cfg.viewer_embedded and cfg.viewer_base_url:
        return HttpViewerBridge(
            cfg.viewer_base_url,
            timeout=cfg.viewer_timeout_seconds,
            max_attempts=cfg.viewer_max_attempts,
        )
    if cfg.viewer_embedded:
        logging.warning("VIEWER_EMBEDDED is set but VIEWER_BASE_URL is empty; running standalone")
    return StandaloneViewer()
