"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from openbook.api.schema import init_accounts_db
from openbook.openlibrary import OpenLibraryClient
from openbook.shared.config import AppSettings
from openbook.shared.constants import API_PREFIX
from openbook.sync.db.pool import ConnectionPool
from openbook.sync.synchronizer import CatalogSynchronizer, seed_if_empty

logger = logging.getLogger(__name__)


class CacheControlMiddleware(BaseHTTPMiddleware):
    """
    Add cache control headers to catalog responses.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        is_books = request.url.path.startswith(f"{API_PREFIX}/books")
        is_genres = request.url.path.startswith(f"{API_PREFIX}/genres")
        if (is_books or is_genres) and response.status_code == 200:
            response.headers["Cache-Control"] = (
                "public, max-age=60, stale-while-revalidate=300"
            )
        return response


def _log_seed_result(task: asyncio.Task) -> None:
    """
    Report the outcome of the startup seeding task.

    Args:
        task: Finished seeding task.

    Returns:
        None.
    """
    if task.cancelled():
        logger.warning("Startup catalog seeding cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Startup catalog seeding failed", exc_info=exc)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """
    Open the database pool, create account tables and seed an empty
    catalog in the background.

    Args:
        application: FastAPI application.

    Returns:
        Async iterator for the application lifetime.
    """
    settings: AppSettings = application.state.settings
    pool = ConnectionPool(settings.db_path, settings.pool_size)
    await pool.open()
    async with pool.acquire() as db:
        await init_accounts_db(db)
    sync = settings.sync
    client = OpenLibraryClient(
        base_url=sync.api_base_url,
        timeout=sync.request_timeout,
        retries=sync.retries,
        retry_base_delay=sync.retry_base_delay,
    )
    application.state.pool = pool

    seed_task: asyncio.Task | None = None
    if settings.seed_on_startup:
        synchronizer = CatalogSynchronizer(sync, pool, client)
        seed_task = asyncio.create_task(seed_if_empty(synchronizer))
        seed_task.add_done_callback(_log_seed_result)
    application.state.seed_task = seed_task
    try:
        yield
    finally:
        if seed_task is not None and not seed_task.done():
            seed_task.cancel()
        if seed_task is not None:
            await asyncio.gather(seed_task, return_exceptions=True)
        await client.aclose()
        await pool.close()


def build_app(settings: AppSettings | None = None) -> FastAPI:
    """
    Build and configure the FastAPI application.

    Args:
        settings: Application settings, read from the environment when omitted.

    Returns:
        Configured FastAPI application.
    """
    application = FastAPI(title="OpenBook API", version="1.0.0", lifespan=lifespan)
    application.state.settings = settings or AppSettings.from_env()
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(CacheControlMiddleware)
    return application
