"""SQLite lock retry helpers for catalog writes."""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiosqlite

from openbook.shared.constants import DB_RETRY_ATTEMPTS, DB_RETRY_BASE_DELAY

T = TypeVar("T")


def is_locked_error(exc: sqlite3.OperationalError) -> bool:
    """
    Check whether an operational error is a transient lock conflict.

    Args:
        exc: Raised SQLite error.

    Returns:
        True for "database is locked" and "database table is locked".
    """
    return "is locked" in str(exc).lower()


async def run_with_retry(operation: Callable[[], Awaitable[T]]) -> T:
    """
    Run a database coroutine, retrying on lock errors with linear backoff.

    Args:
        operation: Zero-argument coroutine factory.

    Returns:
        Operation result.
    """
    for attempt in range(DB_RETRY_ATTEMPTS):
        try:
            return await operation()
        except sqlite3.OperationalError as exc:
            if not is_locked_error(exc) or attempt >= DB_RETRY_ATTEMPTS - 1:
                raise
            await asyncio.sleep(DB_RETRY_BASE_DELAY * (attempt + 1))
    raise RuntimeError("unreachable")


async def execute_with_retry(
    db: aiosqlite.Connection, sql: str, params: tuple[Any, ...] | None = None
) -> None:
    """
    Execute a SQL statement with retries on database lock errors.

    Args:
        db: Open aiosqlite connection.
        sql: SQL statement to execute.
        params: SQL parameters.

    Returns:
        None.
    """

    async def operation() -> None:
        cursor = await db.execute(sql, params or ())
        await cursor.close()

    await run_with_retry(operation)


async def fetch_one_with_retry(
    db: aiosqlite.Connection, sql: str, params: tuple[Any, ...] | None = None
) -> tuple[Any, ...] | None:
    """
    Fetch a single row with retries on database lock errors.

    Args:
        db: Open aiosqlite connection.
        sql: SQL query.
        params: SQL parameters.

    Returns:
        Row tuple or None.
    """

    async def operation() -> tuple[Any, ...] | None:
        cursor = await db.execute(sql, params or ())
        row = await cursor.fetchone()
        await cursor.close()
        return tuple(row) if row is not None else None

    return await run_with_retry(operation)


async def commit_with_retry(db: aiosqlite.Connection) -> None:
    """
    Commit a transaction with retries on database lock errors.

    Args:
        db: Open aiosqlite connection.

    Returns:
        None.
    """
    await run_with_retry(db.commit)
