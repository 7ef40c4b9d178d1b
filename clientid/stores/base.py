from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Generic, Optional, Protocol, TypeVar, Union

import tldextract

T = TypeVar("T")

# Bundled public suffix snapshot, private suffixes included (github.io)
_extract = tldextract.TLDExtract(suffix_list_urls=(), cache_dir=None, include_psl_private_domains=True)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    reason: str


Result = Union[Ok[T], Err]


class KeyValueStore(Protocol):
    """Durable string slots. Both calls may raise when storage is unavailable."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...


class CookieStore(Protocol):
    async def get(self, name: str) -> Optional[str]: ...

    async def set(
        self,
        name: str,
        value: str,
        expires_at: int,
        *,
        highest_available_domain: bool = False,
    ) -> None: ...


def highest_available_domain(host: str) -> str:
    """Broadest domain a cookie set from ``host`` can be bound to.

    That is the registrable domain, one label below the public suffix, so
    ``www.example.co.uk`` maps to ``example.co.uk`` and never to ``co.uk``.
    IPs, single-label hosts and hosts under an unknown suffix stay as-is.
    """
    host = (host or "").strip().lower().rstrip(".")
    try:
        ipaddress.ip_address(host.strip("[]"))
        return host
    except ValueError:
        pass
    parts = _extract(host)
    if not parts.domain or not parts.suffix:
        return host
    return f"{parts.domain}.{parts.suffix}"


def domain_matches(host: str, domain: str) -> bool:
    host = host.lower()
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)
