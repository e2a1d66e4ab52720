"""Normalization of raw Open Library works into catalog books."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from openbook.shared.constants import (
    COVER_URL_TEMPLATE,
    UNKNOWN_AUTHOR,
    UNSPECIFIED_YEAR,
)
from openbook.shared.converters import to_clean_text, to_int
from openbook.sync.models import NormalizedBook


def build_cover_url(cover_id: Any) -> str | None:
    """
    Build the large cover image URL for a cover id.

    Args:
        cover_id: Open Library cover identifier.

    Returns:
        Cover URL, or None when no cover id is present.
    """
    if cover_id is None or cover_id == "" or cover_id == 0:
        return None
    return COVER_URL_TEMPLATE.format(cover_id=cover_id)


def build_description(title: str, author: str | None, year: int | None) -> str:
    """
    Generate the catalog description sentence for a book.

    Args:
        title: Book title.
        author: Author name.
        year: First publication year.

    Returns:
        Description text.
    """
    author_text = author or UNKNOWN_AUTHOR
    year_text = str(year) if year else UNSPECIFIED_YEAR
    return f'"{title}" is a work written by {author_text}, first published in {year_text}.'


def is_valid_record(raw: Any) -> bool:
    """
    Check that a raw work carries the fields a catalog book requires.

    Args:
        raw: Raw work payload.

    Returns:
        True when key, a non-blank title and at least one author are present.
    """
    if not isinstance(raw, Mapping):
        return False
    if not raw.get("key"):
        return False
    if to_clean_text(raw.get("title")) is None:
        return False
    authors = raw.get("authors")
    return isinstance(authors, list) and len(authors) > 0


def first_author_name(authors: list[Any]) -> str:
    """
    Pick the first author's trimmed name.

    Args:
        authors: Raw author list.

    Returns:
        Author name, or the unknown-author placeholder.
    """
    first = authors[0]
    if isinstance(first, Mapping):
        name = to_clean_text(first.get("name"))
        if name:
            return name
    return UNKNOWN_AUTHOR


def normalize_record(raw: Any) -> NormalizedBook | None:
    """
    Validate and clean one raw work.

    Args:
        raw: Raw work payload from the subjects endpoint.

    Returns:
        Normalized book, or None when the record is rejected.
    """
    if not is_valid_record(raw):
        return None

    title = raw["title"].strip()
    author = first_author_name(raw["authors"])
    year = to_int(raw.get("first_publish_year")) or None
    return NormalizedBook(
        key=str(raw["key"]),
        title=title,
        author=author,
        year=year,
        cover_url=build_cover_url(raw.get("cover_id")),
        description=build_description(title, author, year),
    )


def describe_record(raw: Any) -> str:
    """
    Label a raw work for log messages.

    Args:
        raw: Raw work payload.

    Returns:
        Title text or ``"untitled"``.
    """
    if isinstance(raw, Mapping):
        title = to_clean_text(raw.get("title"))
        if title:
            return title
    return "untitled"
