"""Catalog schema definitions and initialization."""

from __future__ import annotations

import aiosqlite

from openbook.shared.constants import DB_TIMEOUT_SECONDS
from openbook.sync.db.retry import commit_with_retry, execute_with_retry

BOOK_COLUMNS = [
    "external_key",
    "title",
    "author",
    "description",
    "cover_url",
    "published_year",
]

BOOK_UPSERT = f"""
INSERT INTO books ({", ".join(BOOK_COLUMNS)}, created_at, updated_at)
VALUES ({", ".join(["?"] * len(BOOK_COLUMNS))}, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
ON CONFLICT(external_key) DO UPDATE SET
{", ".join(f"{col}=excluded.{col}" for col in BOOK_COLUMNS[1:])},
updated_at=CURRENT_TIMESTAMP
"""

GENRE_UPSERT = """
INSERT INTO genres (genre_name) VALUES (?)
ON CONFLICT(genre_name) DO UPDATE SET genre_name=excluded.genre_name
"""

BOOK_GENRE_LINK = """
INSERT OR IGNORE INTO books_genres (book_id, genre_id) VALUES (?, ?)
"""


async def configure_connection(db: aiosqlite.Connection) -> None:
    """
    Apply per-connection pragmas.

    Args:
        db: Open aiosqlite connection.

    Returns:
        None.
    """
    await execute_with_retry(db, "PRAGMA foreign_keys=ON;")
    await execute_with_retry(db, "PRAGMA synchronous=NORMAL;")
    await execute_with_retry(db, f"PRAGMA busy_timeout={DB_TIMEOUT_SECONDS * 1000};")


async def init_db(db: aiosqlite.Connection) -> None:
    """
    Initialize catalog tables and indexes.

    Args:
        db: Open aiosqlite connection.

    Returns:
        None.
    """
    await execute_with_retry(db, "PRAGMA journal_mode=WAL;")
    await configure_connection(db)

    await execute_with_retry(
        db,
        """
        CREATE TABLE IF NOT EXISTS books (
            book_id INTEGER PRIMARY KEY AUTOINCREMENT,
            external_key TEXT NOT NULL UNIQUE,
            title TEXT NOT NULL,
            author TEXT NOT NULL,
            description TEXT,
            cover_url TEXT,
            published_year INTEGER,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        """,
    )

    await execute_with_retry(
        db,
        """
        CREATE TABLE IF NOT EXISTS genres (
            genre_id INTEGER PRIMARY KEY AUTOINCREMENT,
            genre_name TEXT NOT NULL UNIQUE
        );
        """,
    )

    await execute_with_retry(
        db,
        """
        CREATE TABLE IF NOT EXISTS books_genres (
            book_id INTEGER NOT NULL,
            genre_id INTEGER NOT NULL,
            PRIMARY KEY (book_id, genre_id),
            FOREIGN KEY (book_id) REFERENCES books(book_id)
                ON DELETE CASCADE,
            FOREIGN KEY (genre_id) REFERENCES genres(genre_id)
                ON DELETE CASCADE
        );
        """,
    )

    await execute_with_retry(
        db, "CREATE INDEX IF NOT EXISTS idx_books_title ON books(title);"
    )
    await execute_with_retry(
        db, "CREATE INDEX IF NOT EXISTS idx_books_author ON books(author);"
    )
    await execute_with_retry(
        db,
        "CREATE INDEX IF NOT EXISTS idx_books_genres_genre "
        "ON books_genres(genre_id);",
    )
    if db.in_transaction:
        await commit_with_retry(db)
