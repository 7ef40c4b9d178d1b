from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from clientid.utils.time import days_to_millis


def _parse_csv(raw: str) -> List[str]:
    return [part.strip().rstrip("/") for part in raw.split(",") if part.strip()]


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass
class Settings:
    app_env: str = field(default_factory=lambda: os.getenv("APP_ENV", "production"))

    db_url: str = field(default_factory=lambda: os.getenv("DB_URL", "sqlite+aiosqlite:///./clientid.db"))

    # Base cid record and cookie fallback
    storage_key: str = field(default_factory=lambda: os.getenv("CID_STORAGE_KEY", "amp-cid"))
    cookie_prefix: str = field(default_factory=lambda: os.getenv("CID_COOKIE_PREFIX", "amp-"))
    max_age_days: int = field(default_factory=lambda: int(os.getenv("CID_MAX_AGE_DAYS", "365")))
    refresh_hours: int = field(default_factory=lambda: int(os.getenv("CID_REFRESH_HOURS", "24")))

    proxy_origins: List[str] = field(
        default_factory=lambda: _parse_csv(os.getenv("CID_PROXY_ORIGINS", "https://cdn.ampproject.org"))
    )

    # Embedding host (viewer) that owns the base cid for delegated documents
    viewer_base_url: str = field(default_factory=lambda: os.getenv("VIEWER_BASE_URL", ""))
    viewer_embedded: bool = field(default_factory=lambda: _env_bool("VIEWER_EMBEDDED", False))
    viewer_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("VIEWER_TIMEOUT_SECONDS", "10")))
    viewer_max_attempts: int = field(default_factory=lambda: int(os.getenv("VIEWER_MAX_ATTEMPTS", "3")))

    @property
    def max_age_millis(self) -> int:
        return days_to_millis(self.max_age_days)

    @property
    def refresh_millis(self) -> int:
        return self.refresh_hours * 3600 * 1000


settings = Settings()
