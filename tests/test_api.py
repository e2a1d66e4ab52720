"""Tests for the catalog REST API."""
import dataclasses
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from helpers import make_work, seed_catalog, subject_handler
from openbook.api import app as app_module
from openbook.api.main import create_app
from openbook.openlibrary import OpenLibraryClient
from openbook.shared.config import SyncSettings


def titles(response):
    return [item["title"] for item in response.json()["items"]]


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "cache-control" not in response.headers


def test_list_books_defaults_to_title_order(client):
    response = client.get("/api/books")

    assert response.status_code == 200
    assert titles(response) == ["Dune", "Emma", "Foundation", "Hyperion"]
    assert response.json()["page"] == {"total": 4, "limit": 50, "offset": 0}
    assert response.headers["cache-control"] == "public, max-age=60, stale-while-revalidate=300"


def test_list_books_pagination(client):
    response = client.get("/api/books", params={"limit": 2, "offset": 1})

    assert titles(response) == ["Emma", "Foundation"]
    assert response.json()["page"] == {"total": 4, "limit": 2, "offset": 1}


def test_list_books_rejects_oversized_limit(client):
    assert client.get("/api/books", params={"limit": 500}).status_code == 422


@pytest.mark.parametrize(
    ("sort", "expected"),
    [
        ("-published_year", ["Hyperion", "Dune", "Foundation", "Emma"]),
        ("published_year:asc", ["Emma", "Foundation", "Dune", "Hyperion"]),
        ("author,title", ["Hyperion", "Dune", "Foundation", "Emma"]),
    ],
)
def test_list_books_sorting(client, sort, expected):
    assert titles(client.get("/api/books", params={"sort": sort})) == expected


def test_unsupported_sort_field(client):
    response = client.get("/api/books", params={"sort": "rating"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported sort field: rating"
    assert "cache-control" not in response.headers


def test_filters(client):
    by_genre = client.get("/api/books", params={"genre": "science_fiction"})
    assert titles(by_genre) == ["Dune", "Foundation", "Hyperion"]
    assert by_genre.json()["page"]["total"] == 3

    assert titles(client.get("/api/books", params={"q": "asimov"})) == ["Foundation"]
    assert titles(client.get("/api/books", params={"q": "DUNE"})) == ["Dune"]

    years = client.get("/api/books", params={"year_min": 1900, "year_max": 1970})
    assert titles(years) == ["Dune", "Foundation"]


def test_book_detail(client):
    emma = next(
        item for item in client.get("/api/books").json()["items"] if item["title"] == "Emma"
    )

    response = client.get(f"/api/books/{emma['book_id']}")

    assert response.status_code == 200
    body = response.json()
    assert body["external_key"] == "OL2"
    assert body["author"] == "Jane Austen"
    assert body["published_year"] == 1815
    assert body["cover_url"] == "https://covers.openlibrary.org/b/id/42-L.jpg"
    assert body["description"] == '"Emma" is a work written by Jane Austen, first published in 1815.'
    assert body["genres"] == ["classics", "romance"]


def test_missing_book(client):
    response = client.get("/api/books/9999")

    assert response.status_code == 404
    assert response.json() == {"detail": "Book not found"}


def test_list_genres_with_counts(client):
    response = client.get("/api/genres")

    assert response.status_code == 200
    counts = {item["genre_name"]: item["book_count"] for item in response.json()}
    assert counts == {"classics": 1, "poetry": 0, "romance": 1, "science_fiction": 3}
    assert [item["genre_name"] for item in response.json()] == sorted(counts)


def test_genre_books(client):
    response = client.get("/api/genres/science_fiction/books", params={"sort": "-title"})

    assert response.status_code == 200
    assert titles(response) == ["Hyperion", "Foundation", "Dune"]

    empty = client.get("/api/genres/poetry/books")
    assert empty.status_code == 200
    assert empty.json()["items"] == []


def test_unknown_genre(client):
    response = client.get("/api/genres/westerns/books")

    assert response.status_code == 404
    assert response.json() == {"detail": "Genre not found"}


@pytest.fixture
def seeding_app(monkeypatch, app_settings):
    """App that seeds on startup from a mock catalog; returns it with the request log."""
    requests = []
    catalog = {"fantasy": [make_work(f"F{index}", title=f"Fantasy {index}") for index in range(5)]}
    handler = subject_handler(catalog)

    def record(request):
        requests.append(request.url.path)
        return handler(request)

    def client_factory(**kwargs):
        return OpenLibraryClient(**kwargs, transport=httpx.MockTransport(record))

    monkeypatch.setattr(app_module, "OpenLibraryClient", client_factory)
    settings = dataclasses.replace(
        app_settings,
        seed_on_startup=True,
        sync=SyncSettings(genres=("fantasy",), target_per_genre=3, page_size=3, page_pause=0),
    )
    return create_app(settings), requests


def wait_for_seed(app, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not app.state.seed_task.done():
        assert time.monotonic() < deadline, "startup seeding did not finish"
        time.sleep(0.01)
    return app.state.seed_task.result()


def test_startup_seeds_empty_catalog(seeding_app):
    app, requests = seeding_app

    with TestClient(app) as test_client:
        summary = wait_for_seed(app)
        response = test_client.get("/api/books")

    assert summary.total_saved == 3
    assert requests == ["/subjects/fantasy.json"]
    assert response.json()["page"]["total"] == 3
    assert titles(response) == ["Fantasy 0", "Fantasy 1", "Fantasy 2"]


def test_startup_leaves_seeded_catalog_alone(seeding_app, db_path):
    seed_catalog(db_path)
    app, requests = seeding_app

    with TestClient(app) as test_client:
        summary = wait_for_seed(app)
        response = test_client.get("/api/books")

    assert summary is None
    assert requests == []
    assert response.json()["page"]["total"] == 4


def test_no_seeding_when_disabled(client):
    assert client.app.state.seed_task is None
