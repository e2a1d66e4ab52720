"""Book query handlers."""

from __future__ import annotations

from typing import Annotated, Any

import aiosqlite
from fastapi import Depends, HTTPException, Query

from openbook.api.dependencies import fetch_all, fetch_one, get_db_dependency
from openbook.api.models import BookDetail, BookPage, BookRecord
from openbook.api.pagination import (
    BOOK_SORT_FIELDS,
    apply_sort,
    build_page_meta,
    parse_sort,
)
from openbook.shared.constants import MAX_LIMIT

BOOK_SELECT = """
SELECT
    b.book_id,
    b.external_key,
    b.title,
    b.author,
    b.description,
    b.cover_url,
    b.published_year,
    b.created_at,
    b.updated_at
FROM books b
"""

GENRE_FILTER = (
    "EXISTS (SELECT 1 FROM books_genres bg "
    "JOIN genres g ON g.genre_id = bg.genre_id "
    "WHERE bg.book_id = b.book_id AND g.genre_name = ?)"
)


async def query_books(
    db: aiosqlite.Connection,
    genre: str | None,
    q: str | None,
    year_min: int | None,
    year_max: int | None,
    sort: str | None,
    limit: int,
    offset: int,
) -> BookPage:
    """
    Run a filtered, sorted and paginated book query.

    Args:
        db: Database connection.
        genre: Exact genre name.
        q: Substring matched against title and author.
        year_min: Minimum publication year.
        year_max: Maximum publication year.
        sort: Multi-column sort string.
        limit: Page size.
        offset: Page offset.

    Returns:
        Paginated book list.
    """
    where_clauses: list[str] = []
    params: list[Any] = []

    if genre:
        where_clauses.append(GENRE_FILTER)
        params.append(genre)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        where_clauses.append("(b.title LIKE ? OR b.author LIKE ?)")
        params.extend([pattern, pattern])
    if year_min is not None:
        where_clauses.append("b.published_year >= ?")
        params.append(year_min)
    if year_max is not None:
        where_clauses.append("b.published_year <= ?")
        params.append(year_max)
    where_sql = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
    order_sql = apply_sort(parse_sort(sort, BOOK_SORT_FIELDS), tiebreaker="b.book_id")

    count_row = await fetch_one(
        db, f"SELECT COUNT(*) AS total FROM books b {where_sql}", params
    )
    total = int(count_row["total"]) if count_row else 0

    rows = await fetch_all(
        db,
        f"""
        {BOOK_SELECT}
        {where_sql}
        {order_sql}
        LIMIT ? OFFSET ?
        """,
        params + [limit, offset],
    )
    return BookPage(
        items=[BookRecord(**row) for row in rows],
        page=build_page_meta(total, limit, offset),
    )


async def list_books(
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
    genre: str | None = Query(default=None),
    q: str | None = Query(default=None, max_length=200),
    year_min: int | None = Query(default=None),
    year_max: int | None = Query(default=None),
    sort: str | None = Query(default="title"),
    limit: int = Query(default=50, ge=1, le=MAX_LIMIT),
    offset: int = Query(default=0, ge=0),
) -> BookPage:
    """
    List books with filtering and sorting.

    Args:
        genre: Filter by genre name.
        q: Case-insensitive title or author substring.
        year_min: Minimum publication year.
        year_max: Maximum publication year.
        sort: Multi-column sort string.
        limit: Page size.
        offset: Page offset.
        db: Database connection.

    Returns:
        Paginated book list.
    """
    return await query_books(db, genre, q, year_min, year_max, sort, limit, offset)


async def get_book(
    book_id: int,
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
) -> BookDetail:
    """
    Fetch a single book with its genres.

    Args:
        book_id: Book identifier.
        db: Database connection.

    Returns:
        Book detail.
    """
    row = await fetch_one(db, f"{BOOK_SELECT} WHERE b.book_id = ?", [book_id])
    if not row:
        raise HTTPException(status_code=404, detail="Book not found")
    genre_rows = await fetch_all(
        db,
        """
        SELECT g.genre_name
        FROM genres g
        JOIN books_genres bg ON bg.genre_id = g.genre_id
        WHERE bg.book_id = ?
        ORDER BY g.genre_name ASC
        """,
        [book_id],
    )
    return BookDetail(**row, genres=[item["genre_name"] for item in genre_rows])
