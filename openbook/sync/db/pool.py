"""Fixed-size pool of aiosqlite connections."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from openbook.shared.constants import DB_POOL_SIZE, DB_TIMEOUT_SECONDS
from openbook.sync.db.schema import configure_connection, init_db

logger = logging.getLogger(__name__)


class ConnectionPool:
    """
    Bound the number of open connections to one catalog database.

    Connections run in autocommit mode so callers open transactions
    explicitly with ``BEGIN``.

    Args:
        db_path: SQLite database path.
        size: Number of connections.
    """

    def __init__(self, db_path: Path | str, size: int = DB_POOL_SIZE) -> None:
        """
        Initialize an unopened pool.

        Args:
            db_path: SQLite database path.
            size: Number of connections.
        """
        self.db_path = Path(db_path)
        self.size = max(1, size)
        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._connections: list[aiosqlite.Connection] = []

    @property
    def available(self) -> int:
        """
        Number of idle connections.

        Returns:
            Idle connection count.
        """
        return self._idle.qsize()

    async def open(self, initialize: bool = True) -> None:
        """
        Open every connection and optionally bootstrap the schema.

        Args:
            initialize: Whether to create tables on the first connection.

        Returns:
            None.
        """
        if self._connections:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        for index in range(self.size):
            connection = await aiosqlite.connect(
                self.db_path, timeout=DB_TIMEOUT_SECONDS, isolation_level=None
            )
            if index == 0 and initialize:
                await init_db(connection)
            else:
                await configure_connection(connection)
            self._connections.append(connection)
            self._idle.put_nowait(connection)
        logger.info("Opened database pool path=%s size=%d", self.db_path, self.size)

    async def close(self) -> None:
        """
        Close every connection.

        Returns:
            None.
        """
        connections, self._connections = self._connections, []
        while not self._idle.empty():
            self._idle.get_nowait()
        for connection in connections:
            await connection.close()

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Check out a connection, waiting until one is idle.

        Returns:
            Async context manager yielding a connection that is returned to
            the pool on exit.
        """
        if not self._connections:
            raise RuntimeError("Connection pool is not open")
        connection = await self._idle.get()
        try:
            yield connection
        finally:
            try:
                if connection.in_transaction:
                    await connection.rollback()
            finally:
                self._idle.put_nowait(connection)

    async def __aenter__(self) -> ConnectionPool:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
