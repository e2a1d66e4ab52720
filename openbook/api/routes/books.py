"""Book route registration."""

from __future__ import annotations

from fastapi import APIRouter

from openbook.api.models import BookDetail, BookPage
from openbook.api.queries.books import get_book, list_books
from openbook.shared.constants import API_PREFIX

router = APIRouter(prefix=API_PREFIX)

router.add_api_route(
    "/books",
    list_books,
    methods=["GET"],
    response_model=BookPage,
)
router.add_api_route(
    "/books/{book_id}",
    get_book,
    methods=["GET"],
    response_model=BookDetail,
)
