import argparse
import asyncio
import logging
import sys
from typing import List, Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv

# .env must be loaded before settings are read
load_dotenv()

from clientid.config import settings  # noqa: E402
from clientid.db.session import dispose_engine, init_models  # noqa: E402
from clientid.errors import CidError, InvalidScopeError, NoCidError  # noqa: E402
from clientid.logging_config import setup_logging  # noqa: E402
from clientid.services.cid import CidService, create_cid_service  # noqa: E402
from clientid.services.request import ScopeRequest  # noqa: E402
from clientid.stores.memory import MemoryCookieStore, MemoryKeyValueStore  # noqa: E402


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="clientid", description="Resolve scoped client identifiers")
    sub = parser.add_subparsers(dest="command", required=True)

    res = sub.add_parser("resolve", help="resolve the cid for a document url and scope")
    res.add_argument("url", help="document url")
    res.add_argument("scope", help="scope name, [A-Za-z0-9_-]+")
    res.add_argument("--create", action="store_true", help="create the scope cookie if missing")
    res.add_argument("--memory", action="store_true", help="use throwaway in-memory storage")
    res.add_argument("--init-db", action="store_true", help="create missing tables first")
    return parser.parse_args(argv)


def _build_service(args: argparse.Namespace) -> CidService:
    if args.memory:
        host = urlsplit(args.url).hostname or ""
        return CidService(
            args.url,
            storage=MemoryKeyValueStore(),
            cookies=MemoryCookieStore(host),
            settings=settings,
        )
    return create_cid_service(args.url, settings=settings)


async def _resolve(args: argparse.Namespace) -> int:
    if args.init_db and not args.memory:
        await init_models()

    service = _build_service(args)
    try:
        granted = asyncio.get_running_loop().create_future()
        granted.set_result(None)
        request = ScopeRequest(scope=args.scope, create_if_missing=args.create)
        try:
            cid = await service.resolve(request, granted)
        except InvalidScopeError as e:
            logging.error("invalid scope: %s", e)
            return 1
        except NoCidError:
            logging.error("embedding host has no cid for this document")
            return 2
        if cid is not None:
            print(cid)
        await service.flush()
        return 0
    finally:
        await service.aclose()
        if not args.memory:
            await dispose_engine()


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    args = _parse_args(argv)
    try:
        return asyncio.run(_resolve(args))
    except CidError as e:
        logging.error("cid resolution failed: %s", e)
        return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
