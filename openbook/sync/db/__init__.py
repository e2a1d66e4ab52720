"""Database subpackage exports."""

from openbook.sync.db.operations import (
    count_books,
    link_book_genre,
    upsert_book,
    upsert_genre,
)
from openbook.sync.db.pool import ConnectionPool
from openbook.sync.db.retry import (
    commit_with_retry,
    execute_with_retry,
    fetch_one_with_retry,
)
from openbook.sync.db.schema import init_db

__all__ = [
    "ConnectionPool",
    "execute_with_retry",
    "fetch_one_with_retry",
    "commit_with_retry",
    "init_db",
    "upsert_genre",
    "upsert_book",
    "link_book_genre",
    "count_books",
]
