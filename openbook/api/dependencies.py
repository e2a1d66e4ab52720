"""Database dependencies and query utilities."""

from __future__ import annotations

import sqlite3
from collections.abc import AsyncGenerator
from typing import Any

import aiosqlite
from fastapi import Request

from openbook.shared.constants import DB_TIMEOUT_SECONDS
from openbook.sync.db.schema import configure_connection


async def get_db_dependency(
    request: Request,
) -> AsyncGenerator[aiosqlite.Connection, None]:
    """
    Provide a request-scoped SQLite connection and close it afterwards.

    Args:
        request: Incoming request, used to reach the application settings.

    Returns:
        Open database connection.
    """
    settings = request.app.state.settings
    connection = await aiosqlite.connect(settings.db_path, timeout=DB_TIMEOUT_SECONDS)
    connection.row_factory = sqlite3.Row
    await configure_connection(connection)
    try:
        yield connection
    finally:
        await connection.close()


async def fetch_all(
    db: aiosqlite.Connection, query: str, params: list[Any]
) -> list[dict[str, Any]]:
    """
    Fetch all rows and return dictionaries.

    Args:
        db: Database connection.
        query: SQL query.
        params: Query parameters.

    Returns:
        List of row dictionaries.
    """
    cursor = await db.execute(query, params)
    rows = await cursor.fetchall()
    await cursor.close()
    return [dict(row) for row in rows]


async def fetch_one(
    db: aiosqlite.Connection, query: str, params: list[Any]
) -> dict[str, Any] | None:
    """
    Fetch a single row and return a dictionary.

    Args:
        db: Database connection.
        query: SQL query.
        params: Query parameters.

    Returns:
        Row dictionary or None.
    """
    cursor = await db.execute(query, params)
    row = await cursor.fetchone()
    await cursor.close()
    return dict(row) if row else None
