"""Genre query handlers."""

from __future__ import annotations

from typing import Annotated

import aiosqlite
from fastapi import Depends, HTTPException, Query

from openbook.api.dependencies import fetch_all, fetch_one, get_db_dependency
from openbook.api.models import BookPage, GenreRecord
from openbook.api.queries.books import query_books
from openbook.shared.constants import MAX_LIMIT


async def list_genres(
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
) -> list[GenreRecord]:
    """
    List genres with book counts.

    Args:
        db: Database connection.

    Returns:
        Genres ordered by name.
    """
    rows = await fetch_all(
        db,
        """
        SELECT g.genre_id, g.genre_name, COUNT(bg.book_id) AS book_count
        FROM genres g
        LEFT JOIN books_genres bg ON bg.genre_id = g.genre_id
        GROUP BY g.genre_id, g.genre_name
        ORDER BY g.genre_name ASC
        """,
        [],
    )
    return [GenreRecord(**row) for row in rows]


async def list_genre_books(
    genre_name: str,
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
    sort: str | None = Query(default="title"),
    limit: int = Query(default=50, ge=1, le=MAX_LIMIT),
    offset: int = Query(default=0, ge=0),
) -> BookPage:
    """
    List the books linked to one genre.

    Args:
        genre_name: Genre name.
        sort: Multi-column sort string.
        limit: Page size.
        offset: Page offset.
        db: Database connection.

    Returns:
        Paginated book list.
    """
    genre = await fetch_one(
        db, "SELECT genre_id FROM genres WHERE genre_name = ?", [genre_name]
    )
    if not genre:
        raise HTTPException(status_code=404, detail="Genre not found")
    return await query_books(db, genre_name, None, None, None, sort, limit, offset)
