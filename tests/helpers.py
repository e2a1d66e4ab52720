"""Shared builders for the test suite."""
import asyncio

import httpx

from openbook.sync.db.operations import link_book_genre, upsert_book, upsert_genre
from openbook.sync.db.pool import ConnectionPool
from openbook.sync.transforms import normalize_record

TEST_JWT_SECRET = "openbook-test-secret-0123456789abcdef"

CATALOG = [
    ("OL1", "Dune", "Frank Herbert", 1965, ["science_fiction"]),
    ("OL2", "Emma", "Jane Austen", 1815, ["romance", "classics"]),
    ("OL3", "Foundation", "Isaac Asimov", 1951, ["science_fiction"]),
    ("OL4", "Hyperion", "Dan Simmons", 1989, ["science_fiction"]),
]


class SleepRecorder:
    """Stands in for asyncio.sleep and remembers the requested pauses."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_work(key, title="A Title", author="Some Author", year=1990, cover_id=None):
    work = {"key": key, "title": title, "authors": [{"name": author}]}
    if year is not None:
        work["first_publish_year"] = year
    if cover_id is not None:
        work["cover_id"] = cover_id
    return work


def works_response(works):
    return httpx.Response(200, json={"works": works})


def subject_handler(catalog):
    """Serve pages of a per-genre work list, sliced by limit and offset."""

    def handler(request):
        genre = request.url.path.rsplit("/", 1)[-1].removesuffix(".json")
        limit = int(request.url.params["limit"])
        offset = int(request.url.params["offset"])
        return works_response(catalog.get(genre, [])[offset : offset + limit])

    return handler


def seed_catalog(db_path):
    """Write the CATALOG books plus an empty "poetry" genre."""

    async def _run():
        async with ConnectionPool(db_path, 1) as pool:
            async with pool.acquire() as db:
                await db.execute("BEGIN")
                await upsert_genre(db, "poetry")
                for key, title, author, year, genres in CATALOG:
                    book = normalize_record(
                        {
                            "key": key,
                            "title": title,
                            "authors": [{"name": author}],
                            "first_publish_year": year,
                            "cover_id": 42,
                        }
                    )
                    book_id = await upsert_book(db, book)
                    for genre in genres:
                        await link_book_genre(db, book_id, await upsert_genre(db, genre))
                await db.commit()

    asyncio.run(_run())


TEACHER = {
    "full_name": "Ana Torres",
    "national_id": "10000001",
    "email": "ana@maestro.edu.co",
    "password": "Teacher123",
    "role_id": 1,
}
STUDENT = {
    "full_name": "Bruno Diaz",
    "national_id": "20000001",
    "email": "bruno@estudiante.edu.co",
    "password": "Student123",
    "role_id": 2,
}


def register(client, account, **overrides):
    return client.post("/api/auth/register", json={**account, **overrides})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
