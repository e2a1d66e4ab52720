"""Runtime settings for the importer and the API service."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from openbook.shared.constants import (
    API_PORT,
    DB_POOL_SIZE,
    DEFAULT_DB_PATH,
    DEFAULT_GENRES,
    DEFAULT_JWT_SECRET,
    HTTP_RETRIES,
    HTTP_RETRY_BASE_DELAY,
    HTTP_TIMEOUT_SECONDS,
    JWT_EXPIRES_HOURS,
    OPENLIBRARY_BASE_URL,
    PASSWORD_HASH_ROUNDS,
    SYNC_CHUNK_PAUSE,
    SYNC_CONCURRENCY,
    SYNC_ERROR_PAUSE,
    SYNC_MAX_CONSECUTIVE_ERRORS,
    SYNC_MAX_EMPTY_PAGES,
    SYNC_PAGE_PAUSE,
    SYNC_PAGE_SIZE,
    SYNC_TARGET_PER_GENRE,
    SYNC_THROTTLE_EVERY,
    SYNC_THROTTLE_PAUSE,
)
from openbook.shared.converters import split_csv_list, to_bool


def _read_int(environ: Mapping[str, str], name: str, default: int) -> int:
    """
    Read a positive integer from the environment.

    Args:
        environ: Environment mapping.
        name: Variable name.
        default: Value used when the variable is unset or blank.

    Returns:
        Parsed integer.

    Raises:
        ValueError: The variable is set but is not a positive integer.
    """
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class SyncSettings:
    """
    Settings for one catalog synchronization run.

    Pauses are in seconds.
    """

    api_base_url: str = OPENLIBRARY_BASE_URL
    genres: tuple[str, ...] = DEFAULT_GENRES
    target_per_genre: int = SYNC_TARGET_PER_GENRE
    page_size: int = SYNC_PAGE_SIZE
    concurrency: int = SYNC_CONCURRENCY
    request_timeout: float = HTTP_TIMEOUT_SECONDS
    retries: int = HTTP_RETRIES
    retry_base_delay: float = HTTP_RETRY_BASE_DELAY
    max_consecutive_errors: int = SYNC_MAX_CONSECUTIVE_ERRORS
    max_empty_pages: int = SYNC_MAX_EMPTY_PAGES
    throttle_every: int = SYNC_THROTTLE_EVERY
    throttle_pause: float = SYNC_THROTTLE_PAUSE
    page_pause: float = SYNC_PAGE_PAUSE
    error_pause: float = SYNC_ERROR_PAUSE
    chunk_pause: float = SYNC_CHUNK_PAUSE

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SyncSettings:
        """
        Build settings from environment variables.

        Args:
            environ: Environment mapping, defaults to ``os.environ``.

        Returns:
            Sync settings.
        """
        env = os.environ if environ is None else environ
        genres = tuple(split_csv_list(env.get("GENRES"))) or DEFAULT_GENRES
        base_url = (env.get("BOOKS_API_URL") or "").strip() or OPENLIBRARY_BASE_URL
        return cls(
            api_base_url=base_url.rstrip("/"),
            genres=genres,
            target_per_genre=_read_int(
                env, "SYNC_TARGET_PER_GENRE", SYNC_TARGET_PER_GENRE
            ),
            page_size=_read_int(env, "SYNC_PAGE_SIZE", SYNC_PAGE_SIZE),
            request_timeout=_read_int(
                env, "SYNC_REQUEST_TIMEOUT", HTTP_TIMEOUT_SECONDS
            ),
        )


@dataclass(frozen=True)
class AppSettings:
    """
    Settings for the API service and its database.
    """

    db_path: Path = DEFAULT_DB_PATH
    pool_size: int = DB_POOL_SIZE
    api_host: str = "127.0.0.1"
    api_port: int = API_PORT
    seed_on_startup: bool = True
    jwt_secret: str = DEFAULT_JWT_SECRET
    token_ttl_hours: int = JWT_EXPIRES_HOURS
    password_hash_rounds: int = PASSWORD_HASH_ROUNDS
    sync: SyncSettings = field(default_factory=SyncSettings)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppSettings:
        """
        Build settings from environment variables.

        Args:
            environ: Environment mapping, defaults to ``os.environ``.

        Returns:
            Application settings.
        """
        env = os.environ if environ is None else environ
        db_path = (env.get("OPENBOOK_DB_PATH") or "").strip()
        return cls(
            db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
            pool_size=_read_int(env, "OPENBOOK_DB_POOL_SIZE", DB_POOL_SIZE),
            api_host=(env.get("API_HOST") or "").strip() or "127.0.0.1",
            api_port=_read_int(env, "API_PORT", API_PORT),
            seed_on_startup=to_bool(env.get("OPENBOOK_SEED_ON_STARTUP"), True),
            jwt_secret=(env.get("JWT_SECRET") or "").strip() or DEFAULT_JWT_SECRET,
            token_ttl_hours=_read_int(env, "JWT_EXPIRES_HOURS", JWT_EXPIRES_HOURS),
            password_hash_rounds=_read_int(
                env, "PASSWORD_HASH_ROUNDS", PASSWORD_HASH_ROUNDS
            ),
            sync=SyncSettings.from_env(env),
        )
