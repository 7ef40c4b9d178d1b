from __future__ import annotations

from typing import Iterable, Optional
from urllib.parse import unquote, urlsplit

from clientid.config import Settings, settings as default_settings
from clientid.errors import OriginError


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}".lower()


class OriginClassifier:
    """Tells proxy-served documents apart from publisher-served ones.

    A proxy serves publisher content under paths like
    ``https://cdn.ampproject.org/c/s/www.example.com/article`` where ``/s/``
    marks an https source. ``http://localhost:<port>/c/...`` and ``/v/...``
    count as a development proxy.
    """

    def __init__(self, proxy_origins: Optional[Iterable[str]] = None, settings: Optional[Settings] = None) -> None:
        if proxy_origins is None:
            proxy_origins = (settings or default_settings).proxy_origins
        self.proxy_origins = {o.rstrip("/").lower() for o in proxy_origins}

    def is_proxy_origin(self, url: str) -> bool:
        origin = _origin(url)
        if origin in self.proxy_origins:
            return True
        path = urlsplit(url).path
        return origin.startswith("http://localhost:") and (path.startswith("/c/") or path.startswith("/v/"))

    def get_source_origin(self, url: str) -> str:
        if not self.is_proxy_origin(url):
            raise OriginError(f"Expected proxy origin {_origin(url)}")
        path = urlsplit(url).path.split("/")
        prefix = path[1] if len(path) > 1 else ""
        if prefix not in {"c", "v"}:
            raise OriginError(f"Unknown path prefix in url {url}")
        signal = path[2] if len(path) > 2 else ""
        if signal == "s":
            host = unquote(path[3]) if len(path) > 3 else ""
            origin = f"https://{host}"
        else:
            origin = f"http://{unquote(signal)}"
        if "." not in origin.split("://", 1)[1]:
            raise OriginError(f"Expected a . in origin {origin}")
        return origin

    def get_proxy_source_origin(self, url: str) -> str:
        """Publisher origin of a proxy-served document.

        Raises ``OriginError`` when ``url`` is not on a proxy origin.
        """
        if not self.is_proxy_origin(url):
            raise OriginError(f"Expected proxy origin {_origin(url)}")
        return self.get_source_origin(url)
