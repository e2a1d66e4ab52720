"""Synchronization models and result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


@dataclass(frozen=True)
class NormalizedBook:
    """
    Cleaned catalog book ready for persistence.

    Args:
        key: External catalog key.
        title: Trimmed title.
        author: First author's name or the unknown-author placeholder.
        year: First publication year when known.
        cover_url: Large cover image URL when a cover id was present.
        description: Generated description sentence.
    """

    key: str
    title: str
    author: str
    year: int | None
    cover_url: str | None
    description: str


@dataclass(frozen=True)
class PageOutcome:
    """
    Result of one committed page.

    Args:
        saved: Books written and linked to the genre.
        skipped: Records rejected or failed individually.
    """

    saved: int = 0
    skipped: int = 0


class BatchFailure(Exception):
    """
    A page aborted and its transaction was rolled back.

    Args:
        genre: Genre being synchronized.
        offset: Page offset.
        cause: Underlying exception.
    """

    def __init__(self, genre: str, offset: int, cause: BaseException) -> None:
        super().__init__(f"Batch failed for {genre!r} at offset {offset}: {cause}")
        self.genre = genre
        self.offset = offset
        self.cause = cause


class GenreStatus(StrEnum):
    """
    Terminal state of a genre synchronization.
    """

    COMPLETED = "completed"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass(frozen=True)
class GenreReport:
    """
    Summary of one genre synchronization.

    Args:
        genre: Genre name.
        saved: Books saved across all pages.
        pages: Pages fetched successfully.
        status: Terminal state.
    """

    genre: str
    saved: int
    pages: int
    status: GenreStatus


@dataclass
class SyncSummary:
    """
    Aggregate result of a full synchronization run.
    """

    total_saved: int = 0
    reports: list[GenreReport] = field(default_factory=list)
    failed_genres: list[str] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def rate(self) -> float:
        """
        Books saved per second.

        Returns:
            Average rate, 0 when no time elapsed.
        """
        if self.elapsed <= 0:
            return 0.0
        return self.total_saved / self.elapsed

    @property
    def all_failed(self) -> bool:
        """
        Whether every genre of the run failed.

        Returns:
            True when failures exist and no genre finished successfully.
        """
        if not self.failed_genres:
            return False
        return all(report.status is GenreStatus.FAILED for report in self.reports)
