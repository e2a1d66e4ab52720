"""Pagination and sorting helpers."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException

from openbook.api.models import PageMeta


@dataclass(frozen=True)
class SortSpec:
    """
    Sort specification entry.
    """

    column: str
    direction: str


def parse_sort(sort: str | None, allowed: dict[str, str]) -> list[SortSpec]:
    """
    Parse a multi-column sort string into SQL-safe specs.

    Accepts ``field``, ``-field`` and ``field:desc`` parts separated by commas.

    Args:
        sort: Comma-separated sort string.
        allowed: Mapping of public fields to SQL columns.

    Returns:
        List of sort specifications.
    """
    if not sort:
        return []
    specs: list[SortSpec] = []
    for raw_part in sort.split(","):
        part = raw_part.strip()
        if not part:
            continue
        direction = "ASC"
        field = part
        if part.startswith("-"):
            field = part[1:]
            direction = "DESC"
        elif ":" in part:
            field, raw_dir = part.split(":", 1)
            direction = "DESC" if raw_dir.strip().lower() == "desc" else "ASC"
        field = field.strip()
        column = allowed.get(field)
        if not column:
            raise HTTPException(
                status_code=400, detail=f"Unsupported sort field: {field}"
            )
        specs.append(SortSpec(column=column, direction=direction))
    return specs


def apply_sort(specs: list[SortSpec], tiebreaker: str | None = None) -> str:
    """
    Convert sort specs into an ORDER BY clause.

    Args:
        specs: List of sort specifications.
        tiebreaker: Column appended last for a stable order.

    Returns:
        ORDER BY clause or empty string.
    """
    parts = [f"{spec.column} {spec.direction}" for spec in specs]
    if tiebreaker and all(spec.column != tiebreaker for spec in specs):
        parts.append(f"{tiebreaker} ASC")
    if not parts:
        return ""
    return f" ORDER BY {', '.join(parts)}"


def build_page_meta(total: int, limit: int, offset: int) -> PageMeta:
    """
    Build pagination metadata.

    Args:
        total: Total rows.
        limit: Page size.
        offset: Page offset.

    Returns:
        Page metadata.
    """
    return PageMeta(total=total, limit=limit, offset=offset)


BOOK_SORT_FIELDS = {
    "book_id": "b.book_id",
    "title": "b.title",
    "author": "b.author",
    "published_year": "b.published_year",
    "updated_at": "b.updated_at",
}
