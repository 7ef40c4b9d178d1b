from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from clientid.errors import InvalidScopeError

_SCOPE_RE = re.compile(r"[a-zA-Z0-9_-]+")


@dataclass(frozen=True)
class ScopeRequest:
    scope: str
    # Whether a missing scope cookie may be created (publisher-served docs)
    create_if_missing: bool = False

    @classmethod
    def of(cls, request: Union[str, "ScopeRequest"]) -> "ScopeRequest":
        if isinstance(request, ScopeRequest):
            return request
        if isinstance(request, str):
            return cls(scope=request)
        raise TypeError(f"Expected scope name or ScopeRequest, got {type(request).__name__}")


def validate_scope(scope: str) -> None:
    if not isinstance(scope, str) or not _SCOPE_RE.fullmatch(scope):
        raise InvalidScopeError(
            "The client id name must only use the characters "
            f"[a-zA-Z0-9-_]+\nInstead found: {scope}"
        )
