#!/usr/bin/env python3
"""
Session table setup and maintenance script.

Creates the session table if needed and optionally sweeps expired sessions,
either once or on a fixed interval.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from sessionstore.core.config import settings
from sessionstore.core.session_store import SessionStore
from sessionstore.core.utils.database_helpers import get_database_info
from sessionstore.core.utils.logging_config import init_logging
from sessionstore.db.session import create_session_engine


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create and maintain the session table")
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument("--collect", action="store_true", help="delete expired sessions once")
    parser.add_argument(
        "--interval", type=float, default=None,
        help="keep deleting expired sessions every INTERVAL seconds",
    )
    return parser.parse_args(argv)


async def run(args) -> bool:
    engine = create_session_engine(args.database_url)
    store = SessionStore(engine, sync=True, gc_frequency=0)

    db_info = get_database_info(engine, schema=store.table.schema)
    print(f"Database Type: {db_info['type']}")
    print(f"Connected: {db_info['connected']}")
    if db_info['error']:
        print(f"Connection Error: {db_info['error']}")
        return False
    if db_info['version']:
        print(f"Database Version: {db_info['version']}")

    try:
        async with store:
            print(f"Session table '{store.table.name}' is ready")

            if args.collect:
                deleted = await store.collect()
                print(f"Removed {deleted} expired sessions")

            if args.interval:
                store.gc.start(args.interval)
                print(f"Sweeping every {args.interval}s, press Ctrl+C to stop")
                await asyncio.Event().wait()
    finally:
        engine.dispose()

    return True


def main(argv=None) -> bool:
    init_logging()
    args = parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
