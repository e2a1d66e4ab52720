"""Dashboard and reading progress handlers for signed-in accounts."""

from __future__ import annotations

import logging
from typing import Annotated

import aiosqlite
from fastapi import Depends, Query

from openbook.api.dependencies import get_db_dependency
from openbook.api.models import AssignmentRecord, Dashboard, ProgressUpdate, UserProfile
from openbook.api.queries.assignments import (
    ASSIGNMENT_STATUSES,
    count_by_status,
    fetch_assignment,
    fetch_assignments,
    progress_status,
)
from openbook.api.queries.auth import fetch_account
from openbook.api.security import CurrentUser, StudentUser, api_error
from openbook.shared.constants import ROLE_TEACHER
from openbook.sync.db.retry import commit_with_retry, execute_with_retry

logger = logging.getLogger(__name__)


async def get_dashboard(
    user: CurrentUser,
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
) -> Dashboard:
    """
    Load the account profile with its assignment counts.

    Teachers see the assignments they created; students see their own.

    Args:
        user: Token claims.
        db: Database connection.

    Returns:
        Profile and per-status counts.
    """
    account = await fetch_account(db, "user_id", user["user_id"])
    if not account:
        raise api_error(404, "USER_NOT_FOUND", "Account no longer exists")
    column = "teacher_id" if account["role_id"] == ROLE_TEACHER else "student_id"
    stats = await count_by_status(db, column, account["user_id"])
    return Dashboard(user=UserProfile(**account), stats=stats)


async def list_my_assignments(
    user: StudentUser,
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
    status: str | None = Query(default=None),
) -> list[AssignmentRecord]:
    """
    List the books assigned to the signed-in student.

    Args:
        user: Student token claims.
        db: Database connection.
        status: Optional status filter.

    Returns:
        Assignments, newest first.
    """
    where_sql = "a.student_id = ?"
    params: list = [user["user_id"]]
    if status is not None:
        if status not in ASSIGNMENT_STATUSES:
            raise api_error(
                400,
                "INVALID_STATUS",
                f"Status must be one of: {', '.join(ASSIGNMENT_STATUSES)}",
            )
        where_sql += " AND a.status = ?"
        params.append(status)
    return await fetch_assignments(db, where_sql, params)


async def update_progress(
    assignment_id: int,
    payload: ProgressUpdate,
    user: StudentUser,
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
) -> AssignmentRecord:
    """
    Record reading progress on one of the student's assignments.

    Args:
        assignment_id: Assignment identifier.
        payload: New progress percentage.
        user: Student token claims.
        db: Database connection.

    Returns:
        Updated assignment.
    """
    assignment = await fetch_assignment(db, assignment_id)
    if assignment is None or assignment.student_id != user["user_id"]:
        raise api_error(404, "ASSIGNMENT_NOT_FOUND", "Assignment not found")

    status = progress_status(payload.progress)
    await execute_with_retry(
        db,
        """
        UPDATE assignments
        SET progress = ?, status = ?, updated_at = CURRENT_TIMESTAMP
        WHERE assignment_id = ?
        """,
        (payload.progress, status, assignment_id),
    )
    await commit_with_retry(db)
    logger.info(
        "Progress updated assignment_id=%d progress=%d status=%s",
        assignment_id,
        payload.progress,
        status,
    )
    return await fetch_assignment(db, assignment_id)
