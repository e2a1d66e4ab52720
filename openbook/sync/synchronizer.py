"""Catalog synchronization workflows: page import, genre loop, orchestration."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import aiosqlite
from tqdm import tqdm

from openbook.openlibrary import OpenLibraryClient
from openbook.shared.config import SyncSettings
from openbook.shared.converters import chunked
from openbook.sync.db.operations import (
    count_books,
    link_book_genre,
    upsert_book,
    upsert_genre,
)
from openbook.sync.db.pool import ConnectionPool
from openbook.sync.db.retry import commit_with_retry, execute_with_retry
from openbook.sync.models import (
    BatchFailure,
    GenreReport,
    GenreStatus,
    PageOutcome,
    SyncSummary,
)
from openbook.sync.transforms import describe_record, normalize_record

logger = logging.getLogger(__name__)

# Failures scoped to a single record; anything else aborts the page.
RECORD_ERRORS = (
    sqlite3.IntegrityError,
    sqlite3.DataError,
    sqlite3.InterfaceError,
    LookupError,
    ValueError,
    TypeError,
)

Sleep = Callable[[float], Awaitable[Any]]


class CatalogSynchronizer:
    """
    Import Open Library subject pages into the catalog.

    Args:
        settings: Sync settings.
        pool: Open connection pool.
        client: Open Library client.
        sleep: Pause function, replaced in tests.
    """

    def __init__(
        self,
        settings: SyncSettings,
        pool: ConnectionPool,
        client: OpenLibraryClient,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        Initialize the synchronizer.

        Args:
            settings: Sync settings.
            pool: Open connection pool.
            client: Open Library client.
            sleep: Pause function, replaced in tests.
        """
        self.settings = settings
        self.pool = pool
        self.client = client
        self._sleep = sleep

    async def fetch_page(
        self, genre: str, page_size: int | None = None, offset: int = 0
    ) -> PageOutcome:
        """
        Fetch one page of works for a genre and persist it atomically.

        Args:
            genre: Genre (subject) name.
            page_size: Works per page, defaults to the configured size.
            offset: Index of the first work.

        Returns:
            Saved and skipped counts for the committed page.

        Raises:
            BatchFailure: The page transaction was rolled back.
        """
        limit = self.settings.page_size if page_size is None else page_size
        logger.info("Fetching page genre=%s limit=%d offset=%d", genre, limit, offset)
        works = await self.client.get_subject_works(genre, limit, offset)

        async with self.pool.acquire() as db:
            if not works:
                logger.info("No works returned genre=%s offset=%d", genre, offset)
                return PageOutcome()

            try:
                await execute_with_retry(db, "BEGIN IMMEDIATE")
                outcome = await self._save_works(db, genre, works)
                await commit_with_retry(db)
            except Exception as exc:
                if db.in_transaction:
                    await db.rollback()
                logger.error(
                    "Page rolled back genre=%s offset=%d error=%r", genre, offset, exc
                )
                raise BatchFailure(genre, offset, exc) from exc

        logger.info(
            "Page committed genre=%s offset=%d saved=%d skipped=%d",
            genre,
            offset,
            outcome.saved,
            outcome.skipped,
        )
        return outcome

    async def _save_works(
        self, db: aiosqlite.Connection, genre: str, works: list[Any]
    ) -> PageOutcome:
        """
        Normalize and upsert works inside the caller's transaction.

        Each record runs under its own savepoint so a record-scoped failure
        leaves no partial rows behind.

        Args:
            db: Connection with an open transaction.
            genre: Genre name.
            works: Raw works in response order.

        Returns:
            Saved and skipped counts.
        """
        genre_id = await upsert_genre(db, genre)
        saved = 0
        skipped = 0
        for raw in works:
            book = normalize_record(raw)
            if book is None:
                skipped += 1
                logger.warning(
                    "Skipped incomplete record genre=%s title=%r",
                    genre,
                    describe_record(raw),
                )
                continue

            await execute_with_retry(db, "SAVEPOINT record")
            try:
                book_id = await upsert_book(db, book)
                await link_book_genre(db, book_id, genre_id)
            except RECORD_ERRORS as exc:
                await execute_with_retry(db, "ROLLBACK TO SAVEPOINT record")
                await execute_with_retry(db, "RELEASE SAVEPOINT record")
                skipped += 1
                logger.warning(
                    "Skipped record genre=%s key=%s error=%r", genre, book.key, exc
                )
                continue
            await execute_with_retry(db, "RELEASE SAVEPOINT record")

            saved += 1
            every = self.settings.throttle_every
            if every > 0 and saved % every == 0:
                await self._sleep(self.settings.throttle_pause)
        return PageOutcome(saved=saved, skipped=skipped)

    async def sync_genre(self, genre: str, target: int | None = None) -> GenreReport:
        """
        Page through a genre until the target, repeated errors or exhaustion.

        Args:
            genre: Genre name.
            target: Books to save, defaults to the configured target.

        Returns:
            Genre report; failures are reported, never raised.
        """
        settings = self.settings
        goal = settings.target_per_genre if target is None else target
        logger.info("Starting genre genre=%s target=%d", genre, goal)

        offset = 0
        total_saved = 0
        pages = 0
        consecutive_errors = 0
        empty_pages = 0
        status = GenreStatus.COMPLETED

        while total_saved < goal and consecutive_errors < settings.max_consecutive_errors:
            try:
                outcome = await self.fetch_page(genre, settings.page_size, offset)
            except Exception as exc:
                consecutive_errors += 1
                logger.warning(
                    "Page failed genre=%s offset=%d attempt=%d/%d error=%r",
                    genre,
                    offset,
                    consecutive_errors,
                    settings.max_consecutive_errors,
                    exc,
                )
                await self._sleep(settings.error_pause)
                continue

            pages += 1
            if outcome.saved == 0:
                empty_pages += 1
                if empty_pages >= settings.max_empty_pages:
                    status = GenreStatus.EXHAUSTED
                    logger.info("No more books available genre=%s", genre)
                    break
            else:
                empty_pages = 0

            total_saved += outcome.saved
            offset += settings.page_size
            consecutive_errors = 0
            await self._sleep(settings.page_pause)
            logger.info("Progress genre=%s saved=%d/%d", genre, total_saved, goal)

        if consecutive_errors >= settings.max_consecutive_errors:
            status = GenreStatus.FAILED
            logger.error(
                "Genre failed genre=%s errors=%d saved=%d",
                genre,
                consecutive_errors,
                total_saved,
            )
        else:
            logger.info(
                "Genre finished genre=%s status=%s saved=%d pages=%d",
                genre,
                status,
                total_saved,
                pages,
            )
        return GenreReport(genre=genre, saved=total_saved, pages=pages, status=status)

    async def _run_chunk(
        self, chunk: list[str], target: int, summary: SyncSummary
    ) -> int:
        """
        Run one chunk of genres concurrently and record their reports.

        Args:
            chunk: Genres to run together.
            target: Per-genre target.
            summary: Summary updated in place.

        Returns:
            Books saved by the chunk.
        """
        results = await asyncio.gather(
            *(self.sync_genre(genre, target) for genre in chunk),
            return_exceptions=True,
        )
        chunk_saved = 0
        for genre, result in zip(chunk, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error("Genre crashed genre=%s error=%r", genre, result)
                summary.failed_genres.append(genre)
                continue
            summary.reports.append(result)
            chunk_saved += result.saved
            if result.status is GenreStatus.FAILED:
                summary.failed_genres.append(genre)
        return chunk_saved

    async def sync_all(
        self,
        genres: Iterable[str] | None = None,
        per_genre_target: int | None = None,
        show_progress: bool = False,
    ) -> SyncSummary:
        """
        Synchronize every genre, a fixed number at a time.

        Args:
            genres: Genres to import, defaults to the configured list.
            per_genre_target: Books per genre, defaults to the configured target.
            show_progress: Whether to display chunk progress with tqdm.

        Returns:
            Aggregate summary.
        """
        settings = self.settings
        genre_list = list(settings.genres if genres is None else genres)
        target = (
            settings.target_per_genre
            if per_genre_target is None
            else per_genre_target
        )
        chunks = list(chunked(genre_list, settings.concurrency))
        summary = SyncSummary()
        started = time.monotonic()
        logger.info(
            "Starting catalog sync genres=%d target=%d", len(genre_list), target
        )

        progress = None
        if show_progress:
            progress = tqdm(total=len(genre_list), desc="Genres", unit="genre")

        for index, chunk in enumerate(chunks, start=1):
            logger.info(
                "Processing chunk %d/%d genres=%s", index, len(chunks), ", ".join(chunk)
            )
            try:
                chunk_saved = await self._run_chunk(chunk, target, summary)
                summary.total_saved += chunk_saved
                logger.info("Chunk finished index=%d saved=%d", index, chunk_saved)
            except Exception:
                logger.exception("Chunk failed index=%d genres=%s", index, chunk)
            if progress:
                progress.update(len(chunk))
            if index < len(chunks):
                await self._sleep(settings.chunk_pause)

        if progress:
            progress.close()

        summary.elapsed = time.monotonic() - started
        logger.info(
            "Catalog sync finished saved=%d failed=%d elapsed=%.1fs rate=%.1f/s",
            summary.total_saved,
            len(summary.failed_genres),
            summary.elapsed,
            summary.rate,
        )
        return summary


async def seed_if_empty(synchronizer: CatalogSynchronizer) -> SyncSummary | None:
    """
    Run a full synchronization when the catalog holds no books.

    Args:
        synchronizer: Configured synchronizer.

    Returns:
        Summary of the run, or None when books already exist.
    """
    async with synchronizer.pool.acquire() as db:
        existing = await count_books(db)
    if existing:
        logger.info("Catalog already seeded books=%d", existing)
        return None
    logger.info("Catalog is empty, starting initial sync")
    return await synchronizer.sync_all()
