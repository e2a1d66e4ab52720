"""Teacher handlers for students and book assignments."""

from __future__ import annotations

import logging
import sqlite3
from typing import Annotated

import aiosqlite
from fastapi import Depends

from openbook.api.dependencies import fetch_all, fetch_one, get_db_dependency
from openbook.api.models import (
    AssignmentCreate,
    AssignmentRecord,
    MessageResponse,
    StudentRecord,
)
from openbook.api.queries.assignments import fetch_assignment, fetch_assignments
from openbook.api.security import TeacherUser, api_error
from openbook.shared.constants import ROLE_STUDENT
from openbook.sync.db.retry import (
    commit_with_retry,
    execute_with_retry,
    run_with_retry,
)

logger = logging.getLogger(__name__)


async def list_students(
    user: TeacherUser,
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
) -> list[StudentRecord]:
    """
    List students of the teacher's institution.

    Args:
        user: Teacher token claims.
        db: Database connection.

    Returns:
        Students ordered by name, with how many books each was assigned.
    """
    rows = await fetch_all(
        db,
        """
        SELECT
            u.user_id,
            u.full_name,
            u.email,
            COUNT(a.assignment_id) AS assignment_count
        FROM users u
        LEFT JOIN assignments a ON a.student_id = u.user_id
        WHERE u.role_id = ? AND u.institution_id = ?
        GROUP BY u.user_id, u.full_name, u.email
        ORDER BY u.full_name ASC, u.user_id ASC
        """,
        [ROLE_STUDENT, user["institution_id"]],
    )
    return [StudentRecord(**row) for row in rows]


async def list_created_assignments(
    user: TeacherUser,
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
) -> list[AssignmentRecord]:
    return await fetch_assignments(db, "a.teacher_id = ?", [user["user_id"]])


async def create_assignment(
    payload: AssignmentCreate,
    user: TeacherUser,
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
) -> AssignmentRecord:
    """
    Assign a catalog book to a student of the same institution.

    Args:
        payload: Student and book identifiers.
        user: Teacher token claims.
        db: Database connection.

    Returns:
        Created assignment.
    """
    student = await fetch_one(
        db,
        "SELECT user_id FROM users "
        "WHERE user_id = ? AND role_id = ? AND institution_id = ?",
        [payload.student_id, ROLE_STUDENT, user["institution_id"]],
    )
    if not student:
        raise api_error(404, "STUDENT_NOT_FOUND", "Student not found")
    book = await fetch_one(
        db, "SELECT book_id FROM books WHERE book_id = ?", [payload.book_id]
    )
    if not book:
        raise api_error(404, "BOOK_NOT_FOUND", "Book not found")

    async def insert() -> int:
        cursor = await db.execute(
            "INSERT INTO assignments (teacher_id, student_id, book_id) VALUES (?, ?, ?)",
            (user["user_id"], payload.student_id, payload.book_id),
        )
        row_id = cursor.lastrowid
        await cursor.close()
        return row_id

    try:
        assignment_id = await run_with_retry(insert)
        await commit_with_retry(db)
    except sqlite3.IntegrityError as exc:
        raise api_error(
            409, "ASSIGNMENT_EXISTS", "Book is already assigned to this student"
        ) from exc

    logger.info(
        "Assigned book book_id=%d student_id=%d teacher_id=%d",
        payload.book_id,
        payload.student_id,
        user["user_id"],
    )
    return await fetch_assignment(db, assignment_id)


async def delete_assignment(
    assignment_id: int,
    user: TeacherUser,
    db: Annotated[aiosqlite.Connection, Depends(get_db_dependency)],
) -> MessageResponse:
    """
    Remove an assignment the teacher created.

    Args:
        assignment_id: Assignment identifier.
        user: Teacher token claims.
        db: Database connection.

    Returns:
        Acknowledgement.
    """
    assignment = await fetch_assignment(db, assignment_id)
    if assignment is None or assignment.teacher_id != user["user_id"]:
        raise api_error(404, "ASSIGNMENT_NOT_FOUND", "Assignment not found")
    await execute_with_retry(
        db, "DELETE FROM assignments WHERE assignment_id = ?", (assignment_id,)
    )
    await commit_with_retry(db)
    logger.info("Deleted assignment assignment_id=%d", assignment_id)
    return MessageResponse(message="Assignment deleted")
