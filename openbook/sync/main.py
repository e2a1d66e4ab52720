"""Main entrypoint for the catalog sync command."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
from pathlib import Path

from openbook.openlibrary import OpenLibraryClient
from openbook.shared.config import AppSettings
from openbook.shared.converters import split_csv_list
from openbook.shared.logs import configure_logging
from openbook.sync.db.pool import ConnectionPool
from openbook.sync.models import SyncSummary
from openbook.sync.synchronizer import CatalogSynchronizer, seed_if_empty


def build_settings(args: argparse.Namespace) -> AppSettings:
    """
    Merge CLI overrides into environment settings.

    Args:
        args: Parsed CLI arguments.

    Returns:
        Effective application settings.
    """
    settings = AppSettings.from_env()
    sync = settings.sync
    overrides: dict[str, object] = {}
    genres = split_csv_list(args.genres)
    if genres:
        overrides["genres"] = tuple(genres)
    if args.target is not None:
        overrides["target_per_genre"] = args.target
    if args.timeout is not None:
        overrides["request_timeout"] = args.timeout
    if overrides:
        sync = dataclasses.replace(sync, **overrides)
    db_path = Path(args.db) if args.db else settings.db_path
    return dataclasses.replace(settings, db_path=db_path, sync=sync)


async def async_main(args: argparse.Namespace) -> SyncSummary | None:
    """
    Run one synchronization against the configured database.

    Args:
        args: Parsed CLI arguments.

    Returns:
        Run summary, or None when skipped because books already exist.
    """
    settings = build_settings(args)
    sync = settings.sync
    client = OpenLibraryClient(
        base_url=sync.api_base_url,
        timeout=sync.request_timeout,
        retries=sync.retries,
        retry_base_delay=sync.retry_base_delay,
    )
    try:
        async with ConnectionPool(settings.db_path, settings.pool_size) as pool:
            synchronizer = CatalogSynchronizer(sync, pool, client)
            if args.if_empty:
                return await seed_if_empty(synchronizer)
            return await synchronizer.sync_all(show_progress=args.progress)
    finally:
        await client.aclose()


def build_parser() -> argparse.ArgumentParser:
    """
    Build CLI parser.

    Returns:
        Argument parser.
    """
    parser = argparse.ArgumentParser(
        description="Import Open Library subjects into the OpenBook catalog"
    )
    parser.add_argument(
        "--genres",
        "-g",
        type=str,
        default="",
        help="Comma-separated genres. Defaults to the GENRES variable.",
    )
    parser.add_argument(
        "--target",
        "-t",
        type=int,
        default=None,
        help="Books to import per genre (default: SYNC_TARGET_PER_GENRE or 100)",
    )
    parser.add_argument(
        "--db",
        type=str,
        default="",
        help="SQLite database path (default: OPENBOOK_DB_PATH or data/openbook.sqlite)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="HTTP request timeout in seconds",
    )
    parser.add_argument(
        "--if-empty",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Only sync when the catalog has no books",
    )
    parser.add_argument(
        "--progress",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Show genre progress with tqdm",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Log level name",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """
    Parse CLI arguments and run the importer.

    Args:
        argv: Arguments to parse, defaults to the process arguments.

    Returns:
        None.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.target is not None and args.target < 0:
        parser.error("--target must not be negative")
    configure_logging(args.log_level)

    summary = asyncio.run(async_main(args))
    if summary is not None and summary.all_failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
