import os
import sys
import asyncio

import httpx
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from clientid.config import settings

# Healthcheck: DB connectivity (SELECT 1) and, when VIEWER_BASE_URL is set,
# reachability of the embedding host.
#
# You can skip the viewer check by setting HEALTHCHECK_SKIP_VIEWER=1.


async def _check_db() -> bool:
    db_url = settings.db_url
    if not db_url:
        return False
    try:
        engine = create_async_engine(db_url, pool_pre_ping=True)
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        await engine.dispose()
        return True
    except Exception:
        return False


async def _check_viewer() -> bool:
    base = (os.getenv("VIEWER_BASE_URL", "") or "").rstrip("/")
    if not base:
        return True
    try:
        timeout = httpx.Timeout(12.0, connect=6.0, read=6.0)
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(f"{base}/cid/base", headers={"accept": "application/json"})
            # 404 just means the host has no cid for us; it still answered
            return resp.status_code < 500
    except httpx.HTTPError:
        return False


def main() -> int:
    ok_db = asyncio.run(_check_db())
    if not ok_db:
        print("db not ready", file=sys.stderr)
        return 1

    skip_viewer = (os.getenv("HEALTHCHECK_SKIP_VIEWER", "0").strip().lower() in {"1", "true", "yes", "on"})
    if not skip_viewer:
        ok_viewer = asyncio.run(_check_viewer())
        if not ok_viewer:
            print("viewer not ready", file=sys.stderr)
            return 1

    print("ok")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
