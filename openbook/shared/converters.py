"""Shared conversion helpers for openbook modules."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, TypeVar

from openbook.shared.constants import SQLITE_INT_MAX, SQLITE_INT_MIN

T = TypeVar("T")


def to_int(value: Any) -> int | None:
    """
    Convert a value to an integer within SQLite integer bounds.

    Booleans are rejected so that JSON ``true`` never becomes a year.

    Args:
        value: Input value.

    Returns:
        Parsed integer when valid, otherwise None.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    if SQLITE_INT_MIN <= parsed <= SQLITE_INT_MAX:
        return parsed
    return None


def to_bool(value: Any, default: bool = False) -> bool:
    """
    Interpret an environment-style flag.

    Args:
        value: Raw flag value.
        default: Result when the value is empty or unrecognized.

    Returns:
        Parsed flag.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in {"true", "1", "yes", "on"}:
        return True
    if lowered in {"false", "0", "no", "off"}:
        return False
    return default


def to_clean_text(value: Any) -> str | None:
    """
    Trim a string value.

    Args:
        value: Input value.

    Returns:
        Stripped text, or None for non-strings and blank strings.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def split_csv_list(value: str | None) -> list[str]:
    """
    Split a comma-separated string into trimmed, non-empty items.

    Args:
        value: Comma-separated text.

    Returns:
        Items in their original order.
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def chunked(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """
    Yield iterable values in fixed-size chunks.

    Args:
        items: Input iterable.
        size: Chunk size.

    Returns:
        Iterator of chunk lists.
    """
    if size <= 0:
        size = 1
    bucket: list[T] = []
    for item in items:
        bucket.append(item)
        if len(bucket) >= size:
            yield bucket
            bucket = []
    if bucket:
        yield bucket
