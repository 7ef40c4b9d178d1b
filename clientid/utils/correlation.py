from __future__ import annotations

import uuid
import contextvars

# Task-local correlation id, one per cid resolution
_cid = contextvars.ContextVar("correlation_id", default="")


def set_correlation_id(value: str | None = None) -> str:
    """Set a correlation id for the current task (generate if not provided)."""
    corr = value or uuid.uuid4().hex
    _cid.set(corr)
    return corr


def get_correlation_id() -> str:
    """Get current correlation id (empty string if not set)."""
    return _cid.get("")


def clear_correlation_id() -> None:
    _cid.set("")
