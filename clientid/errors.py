from __future__ import annotations


class CidError(Exception):
    pass


class InvalidScopeError(CidError, ValueError):
    pass


class OriginError(CidError, ValueError):
    pass


class NoCidError(CidError):
    """The embedding host owns the base cid and did not provide one."""
