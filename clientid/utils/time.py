from __future__ import annotations

import time

ONE_DAY_MILLIS = 24 * 3600 * 1000


def now_millis() -> int:
    return int(time.time() * 1000)


def days_to_millis(days: int) -> int:
    return int(days) * ONE_DAY_MILLIS
