"""Account and assignment tables served by the API."""

from __future__ import annotations

import aiosqlite

from openbook.shared.constants import (
    DEFAULT_INSTITUTION_NAME,
    ROLE_NAMES,
    ROLE_STUDENT,
    ROLE_TEACHER,
)
from openbook.sync.db.retry import commit_with_retry, execute_with_retry

ROLE_DESCRIPTIONS = {
    ROLE_TEACHER: "Assigns catalog books to students",
    ROLE_STUDENT: "Reads assigned books and reports progress",
}


async def init_accounts_db(db: aiosqlite.Connection) -> None:
    """
    Create account tables and seed the fixed roles.

    Args:
        db: Open aiosqlite connection.

    Returns:
        None.
    """
    await execute_with_retry(
        db,
        """
        CREATE TABLE IF NOT EXISTS roles (
            role_id INTEGER PRIMARY KEY,
            role_name TEXT NOT NULL UNIQUE,
            role_description TEXT
        );
        """,
    )
    await execute_with_retry(
        db,
        """
        CREATE TABLE IF NOT EXISTS institutions (
            institution_id INTEGER PRIMARY KEY AUTOINCREMENT,
            institution_name TEXT NOT NULL UNIQUE,
            institution_address TEXT
        );
        """,
    )
    await execute_with_retry(
        db,
        """
        CREATE TABLE IF NOT EXISTS users (
            user_id INTEGER PRIMARY KEY AUTOINCREMENT,
            full_name TEXT NOT NULL,
            national_id TEXT NOT NULL UNIQUE,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            role_id INTEGER NOT NULL,
            institution_id INTEGER NOT NULL,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            last_login TEXT,
            last_logout TEXT,
            FOREIGN KEY (role_id) REFERENCES roles(role_id),
            FOREIGN KEY (institution_id) REFERENCES institutions(institution_id)
        );
        """,
    )
    await execute_with_retry(
        db,
        """
        CREATE TABLE IF NOT EXISTS assignments (
            assignment_id INTEGER PRIMARY KEY AUTOINCREMENT,
            teacher_id INTEGER NOT NULL,
            student_id INTEGER NOT NULL,
            book_id INTEGER NOT NULL,
            progress INTEGER NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'pending',
            assigned_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (student_id, book_id),
            FOREIGN KEY (teacher_id) REFERENCES users(user_id)
                ON DELETE CASCADE,
            FOREIGN KEY (student_id) REFERENCES users(user_id)
                ON DELETE CASCADE,
            FOREIGN KEY (book_id) REFERENCES books(book_id)
                ON DELETE CASCADE
        );
        """,
    )
    await execute_with_retry(
        db,
        "CREATE INDEX IF NOT EXISTS idx_assignments_teacher "
        "ON assignments(teacher_id);",
    )

    for role_id, role_name in ROLE_NAMES.items():
        await execute_with_retry(
            db,
            "INSERT OR IGNORE INTO roles (role_id, role_name, role_description) "
            "VALUES (?, ?, ?)",
            (role_id, role_name, ROLE_DESCRIPTIONS[role_id]),
        )
    await execute_with_retry(
        db,
        "INSERT OR IGNORE INTO institutions (institution_name) VALUES (?)",
        (DEFAULT_INSTITUTION_NAME,),
    )
    if db.in_transaction:
        await commit_with_retry(db)
