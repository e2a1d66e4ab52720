"""Shared assignment queries."""

from __future__ import annotations

from typing import Any

import aiosqlite

from openbook.api.dependencies import fetch_all, fetch_one
from openbook.api.models import AssignmentRecord, AssignmentStats
from openbook.shared.constants import (
    ASSIGNMENT_COMPLETED,
    ASSIGNMENT_IN_PROGRESS,
    ASSIGNMENT_PENDING,
)

ASSIGNMENT_STATUSES = (ASSIGNMENT_PENDING, ASSIGNMENT_IN_PROGRESS, ASSIGNMENT_COMPLETED)

ASSIGNMENT_SELECT = """
SELECT
    a.assignment_id,
    a.book_id,
    b.title,
    b.author,
    b.cover_url,
    a.teacher_id,
    t.full_name AS teacher_name,
    a.student_id,
    s.full_name AS student_name,
    a.progress,
    a.status,
    a.assigned_at,
    a.updated_at
FROM assignments a
JOIN books b ON b.book_id = a.book_id
JOIN users t ON t.user_id = a.teacher_id
JOIN users s ON s.user_id = a.student_id
"""


def progress_status(progress: int) -> str:
    """
    Derive an assignment status from reading progress.

    Args:
        progress: Percent read, 0 to 100.

    Returns:
        ``pending`` at 0, ``completed`` at 100, otherwise ``in_progress``.
    """
    if progress <= 0:
        return ASSIGNMENT_PENDING
    if progress >= 100:
        return ASSIGNMENT_COMPLETED
    return ASSIGNMENT_IN_PROGRESS


async def fetch_assignments(
    db: aiosqlite.Connection, where_sql: str, params: list[Any]
) -> list[AssignmentRecord]:
    """
    Load assignments matching a filter, newest first.

    Args:
        db: Database connection.
        where_sql: SQL condition over the ``a`` alias.
        params: Condition parameters.

    Returns:
        Assignments with book and account names.
    """
    rows = await fetch_all(
        db,
        f"""
        {ASSIGNMENT_SELECT}
        WHERE {where_sql}
        ORDER BY a.assigned_at DESC, a.assignment_id DESC
        """,
        params,
    )
    return [AssignmentRecord(**row) for row in rows]


async def fetch_assignment(
    db: aiosqlite.Connection, assignment_id: int
) -> AssignmentRecord | None:
    row = await fetch_one(
        db, f"{ASSIGNMENT_SELECT} WHERE a.assignment_id = ?", [assignment_id]
    )
    return AssignmentRecord(**row) if row else None


async def count_by_status(
    db: aiosqlite.Connection, column: str, user_id: int
) -> AssignmentStats:
    """
    Count assignments of one account by status.

    Args:
        db: Database connection.
        column: ``student_id`` or ``teacher_id``.
        user_id: Account identifier.

    Returns:
        Per-status counts and their total.
    """
    rows = await fetch_all(
        db,
        f"SELECT status, COUNT(*) AS total FROM assignments "
        f"WHERE {column} = ? GROUP BY status",
        [user_id],
    )
    counts = {row["status"]: row["total"] for row in rows}
    return AssignmentStats(
        total=sum(counts.values()),
        **{status: counts.get(status, 0) for status in ASSIGNMENT_STATUSES},
    )
