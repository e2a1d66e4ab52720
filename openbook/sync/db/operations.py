"""Catalog write operations used by the synchronizer.

None of these commit; the caller owns the transaction boundary.
"""

from __future__ import annotations

import aiosqlite

from openbook.sync.db.retry import execute_with_retry, fetch_one_with_retry
from openbook.sync.db.schema import BOOK_GENRE_LINK, BOOK_UPSERT, GENRE_UPSERT
from openbook.sync.models import NormalizedBook


async def upsert_genre(db: aiosqlite.Connection, name: str) -> int:
    """
    Insert a genre by name if missing and return its id.

    Args:
        db: Connection holding the caller's transaction.
        name: Genre name.

    Returns:
        Genre id.
    """
    await execute_with_retry(db, GENRE_UPSERT, (name,))
    row = await fetch_one_with_retry(
        db, "SELECT genre_id FROM genres WHERE genre_name = ?", (name,)
    )
    if row is None:
        raise LookupError(f"Genre {name!r} missing after upsert")
    return int(row[0])


async def upsert_book(db: aiosqlite.Connection, book: NormalizedBook) -> int:
    """
    Insert or update a book by external key and return its id.

    Args:
        db: Connection holding the caller's transaction.
        book: Normalized book.

    Returns:
        Book id.
    """
    await execute_with_retry(
        db,
        BOOK_UPSERT,
        (
            book.key,
            book.title,
            book.author,
            book.description,
            book.cover_url,
            book.year,
        ),
    )
    row = await fetch_one_with_retry(
        db, "SELECT book_id FROM books WHERE external_key = ?", (book.key,)
    )
    if row is None:
        raise LookupError(f"Book {book.key!r} missing after upsert")
    return int(row[0])


async def link_book_genre(db: aiosqlite.Connection, book_id: int, genre_id: int) -> None:
    """
    Link a book to a genre unless the pair already exists.

    Args:
        db: Connection holding the caller's transaction.
        book_id: Book id.
        genre_id: Genre id.

    Returns:
        None.
    """
    await execute_with_retry(db, BOOK_GENRE_LINK, (book_id, genre_id))


async def count_books(db: aiosqlite.Connection) -> int:
    """
    Count catalog books.

    Args:
        db: Open connection.

    Returns:
        Number of rows in ``books``.
    """
    row = await fetch_one_with_retry(db, "SELECT COUNT(*) FROM books")
    return int(row[0]) if row else 0
