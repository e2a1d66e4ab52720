import sqlite3
from contextlib import asynccontextmanager

import httpx
import pytest
from fastapi.testclient import TestClient

from helpers import TEST_JWT_SECRET, SleepRecorder, seed_catalog
from openbook.api.main import create_app
from openbook.openlibrary import OpenLibraryClient
from openbook.shared.config import AppSettings, SyncSettings
from openbook.sync.db.pool import ConnectionPool
from openbook.sync.synchronizer import CatalogSynchronizer

CATALOG_BASE_URL = "https://catalog.test"


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "catalog.sqlite"


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def query(db_path):
    """Run a read query against the test database with a plain sqlite3 connection."""

    def _query(sql, params=()):
        connection = sqlite3.connect(db_path)
        try:
            return connection.execute(sql, params).fetchall()
        finally:
            connection.close()

    return _query


@pytest.fixture
def synchronizer_factory(db_path, sleeps):
    """Build a synchronizer wired to a mock catalog transport and a temp database."""

    @asynccontextmanager
    async def _factory(handler, settings=None, pool_size=2):
        client = OpenLibraryClient(
            base_url=CATALOG_BASE_URL,
            retries=3,
            retry_base_delay=0,
            transport=httpx.MockTransport(handler),
        )
        try:
            async with ConnectionPool(db_path, pool_size) as pool:
                yield CatalogSynchronizer(
                    settings or SyncSettings(), pool, client, sleep=sleeps
                )
        finally:
            await client.aclose()

    return _factory


@pytest.fixture
def app_settings(db_path):
    return AppSettings(
        db_path=db_path,
        seed_on_startup=False,
        jwt_secret=TEST_JWT_SECRET,
        password_hash_rounds=4,
    )


@pytest.fixture
def client(db_path, app_settings):
    """API client over a database holding the sample catalog."""
    seed_catalog(db_path)
    with TestClient(create_app(app_settings)) as test_client:
        yield test_client
