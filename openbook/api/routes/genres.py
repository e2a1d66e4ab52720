"""Genre route registration."""

from __future__ import annotations

from fastapi import APIRouter

from openbook.api.models import BookPage, GenreRecord
from openbook.api.queries.genres import list_genre_books, list_genres
from openbook.shared.constants import API_PREFIX

router = APIRouter(prefix=API_PREFIX)

router.add_api_route(
    "/genres",
    list_genres,
    methods=["GET"],
    response_model=list[GenreRecord],
)
router.add_api_route(
    "/genres/{genre_name}/books",
    list_genre_books,
    methods=["GET"],
    response_model=BookPage,
)
