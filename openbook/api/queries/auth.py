"""Account registration, login and profile handlers."""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from typing import Annotated, Any

import aiosqlite
from fastapi import Depends, Request

from openbook.api.dependencies import fetch_all, fetch_one, get_db_dependency
from openbook.api.models import (
    AuthResponse,
    EmailAvailability,
    EmailCheckRequest,
    InstitutionRecord,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenStatus,
    UserProfile,
    UserSummary,
)
from openbook.api.security import (
    CurrentUser,
    TOKEN_CLAIMS,
    api_error,
    email_matches_role,
    hash_password,
    is_valid_email,
    is_valid_national_id,
    issue_token,
    normalize_email,
    password_problems,
    verify_password,
)
from openbook.shared.config import AppSettings
from openbook.shared.constants import ROLE_DASHBOARDS, ROLE_EMAIL_DOMAINS, ROLE_NAMES
from openbook.sync.db.retry import commit_with_retry, execute_with_retry

logger = logging.getLogger(__name__)

PROFILE_SELECT = """
SELECT
    u.user_id,
    u.full_name,
    u.national_id,
    u.email,
    u.password_hash,
    u.role_id,
    u.institution_id,
    u.created_at,
    u.last_login,
    u.last_logout,
    i.institution_name,
    i.institution_address,
    r.role_name,
    r.role_description
FROM users u
JOIN institutions i ON i.institution_id = u.institution_id
JOIN roles r ON r.role_id = u.role_id
"""

REGISTER_FIELDS = ("full_name", "national_id", "email", "password", "role_id")

Database = Annotated[aiosqlite.Connection, Depends(get_db_dependency)]


async def fetch_account(
    db: aiosqlite.Connection, column: str, value: Any
) -> dict[str, Any] | None:
    """
    Load one account with its institution and role names.

    Args:
        db: Database connection.
        column: Lookup column, ``user_id`` or ``email``.
        value: Column value.

    Returns:
        Account row including the password hash, or None.
    """
    return await fetch_one(db, f"{PROFILE_SELECT} WHERE u.{column} = ?", [value])


def summarize(account: dict[str, Any]) -> UserSummary:
    return UserSummary(
        **{name: account[name] for name in TOKEN_CLAIMS},
        institution_name=account.get("institution_name"),
        role_name=account.get("role_name"),
    )


def _auth_response(
    account: dict[str, Any], settings: AppSettings, message: str
) -> AuthResponse:
    token, expires_at = issue_token(
        account, settings.jwt_secret, settings.token_ttl_hours
    )
    return AuthResponse(
        message=message,
        token=token,
        expires_at=expires_at,
        user=summarize(account),
        redirect=ROLE_DASHBOARDS[account["role_id"]],
    )


async def _default_institution(db: aiosqlite.Connection) -> int:
    row = await fetch_one(
        db,
        "SELECT institution_id FROM institutions ORDER BY institution_id LIMIT 1",
        [],
    )
    if not row:
        raise api_error(400, "INVALID_INSTITUTION", "No institution is available")
    return row["institution_id"]


async def register(
    payload: RegisterRequest, request: Request, db: Database
) -> AuthResponse:
    """
    Create an account and sign its first token.

    Args:
        payload: Registration fields.
        request: Incoming request, used to reach the application settings.
        db: Database connection.

    Returns:
        Token, account summary and dashboard path.
    """
    missing = [
        name
        for name in REGISTER_FIELDS
        if getattr(payload, name) is None or str(getattr(payload, name)).strip() == ""
    ]
    if missing:
        raise api_error(
            400,
            "MISSING_FIELDS",
            "Required fields are missing",
            missing_fields=missing,
        )

    full_name = payload.full_name.strip()
    national_id = payload.national_id.strip()
    email = normalize_email(payload.email)
    role_id = payload.role_id

    if len(full_name) < 3:
        raise api_error(400, "INVALID_NAME", "Full name must have at least 3 characters")
    if not is_valid_national_id(national_id):
        raise api_error(
            400, "INVALID_NATIONAL_ID", "National id must have 7 to 12 digits"
        )
    if role_id not in ROLE_NAMES:
        raise api_error(400, "INVALID_ROLE", "Role must be teacher or student")
    if not is_valid_email(email) or not email_matches_role(email, role_id):
        raise api_error(
            400,
            "EMAIL_FORMAT_INVALID",
            f"{ROLE_NAMES[role_id].capitalize()} emails must end with "
            f"@{ROLE_EMAIL_DOMAINS[role_id]}",
        )
    problems = password_problems(payload.password)
    if problems:
        raise api_error(
            400,
            "WEAK_PASSWORD",
            f"Password needs {', '.join(problems)}",
            requirements=problems,
        )

    if await fetch_one(db, "SELECT 1 FROM users WHERE email = ?", [email]):
        raise api_error(409, "EMAIL_EXISTS", "Email is already registered")
    if await fetch_one(
        db, "SELECT 1 FROM users WHERE national_id = ?", [national_id]
    ):
        raise api_error(409, "NATIONAL_ID_EXISTS", "National id is already registered")

    if payload.institution_id is None:
        institution_id = await _default_institution(db)
    else:
        institution_id = payload.institution_id
        if not await fetch_one(
            db,
            "SELECT 1 FROM institutions WHERE institution_id = ?",
            [institution_id],
        ):
            raise api_error(400, "INVALID_INSTITUTION", "Institution does not exist")

    settings: AppSettings = request.app.state.settings
    password_hash = await hash_password(payload.password, settings.password_hash_rounds)
    try:
        await execute_with_retry(
            db,
            """
            INSERT INTO users
                (full_name, national_id, email, password_hash, role_id, institution_id)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (full_name, national_id, email, password_hash, role_id, institution_id),
        )
        await commit_with_retry(db)
    except sqlite3.IntegrityError as exc:
        # Lost a race with a concurrent registration.
        if "national_id" in str(exc):
            raise api_error(
                409, "NATIONAL_ID_EXISTS", "National id is already registered"
            ) from exc
        raise api_error(409, "EMAIL_EXISTS", "Email is already registered") from exc

    account = await fetch_account(db, "email", email)
    logger.info(
        "Registered account user_id=%d role=%s", account["user_id"], ROLE_NAMES[role_id]
    )
    return _auth_response(account, settings, "Account created")


async def login(payload: LoginRequest, request: Request, db: Database) -> AuthResponse:
    """
    Check credentials and sign a token.

    Args:
        payload: Email and password.
        request: Incoming request, used to reach the application settings.
        db: Database connection.

    Returns:
        Token, account summary and dashboard path.
    """
    if not payload.email or not payload.password:
        raise api_error(400, "MISSING_CREDENTIALS", "Email and password are required")

    account = await fetch_account(db, "email", normalize_email(payload.email))
    if not account or not await verify_password(
        payload.password, account["password_hash"]
    ):
        logger.warning("Rejected login email=%s", normalize_email(payload.email))
        raise api_error(401, "INVALID_CREDENTIALS", "Email or password is incorrect")

    await execute_with_retry(
        db,
        "UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE user_id = ?",
        (account["user_id"],),
    )
    await commit_with_retry(db)
    logger.info("Login user_id=%d", account["user_id"])
    settings: AppSettings = request.app.state.settings
    return _auth_response(account, settings, "Login successful")


async def logout(user: CurrentUser, db: Database) -> MessageResponse:
    """
    Record the logout time of the token's account.

    Args:
        user: Token claims.
        db: Database connection.

    Returns:
        Acknowledgement.
    """
    await execute_with_retry(
        db,
        "UPDATE users SET last_logout = CURRENT_TIMESTAMP WHERE user_id = ?",
        (user["user_id"],),
    )
    await commit_with_retry(db)
    logger.info("Logout user_id=%d", user["user_id"])
    return MessageResponse(message="Logged out")


async def verify_token(user: CurrentUser) -> TokenStatus:
    """
    Echo the claims of a valid token.

    Args:
        user: Token claims.

    Returns:
        Account summary and expiry time.
    """
    return TokenStatus(
        user=UserSummary(**{name: user[name] for name in TOKEN_CLAIMS}),
        expires_at=datetime.fromtimestamp(user["exp"], UTC),
    )


async def get_profile(user: CurrentUser, db: Database) -> UserProfile:
    """
    Load the profile of the token's account.

    Args:
        user: Token claims.
        db: Database connection.

    Returns:
        Account profile.
    """
    account = await fetch_account(db, "user_id", user["user_id"])
    if not account:
        raise api_error(404, "USER_NOT_FOUND", "Account no longer exists")
    return UserProfile(**account)


async def check_email(payload: EmailCheckRequest, db: Database) -> EmailAvailability:
    """
    Report whether an email is well formed and still free.

    Args:
        payload: Email and optional role used to check the domain.
        db: Database connection.

    Returns:
        Email and its availability.
    """
    if not payload.email or not payload.email.strip():
        raise api_error(400, "MISSING_EMAIL", "Email is required")
    email = normalize_email(payload.email)
    if not is_valid_email(email):
        raise api_error(400, "FORMAT_INVALID", "Email format is invalid")
    if payload.role_id is not None and not email_matches_role(email, payload.role_id):
        raise api_error(
            400,
            "FORMAT_INVALID",
            "Email domain does not match the role",
            expected_domain=ROLE_EMAIL_DOMAINS.get(payload.role_id),
        )
    taken = await fetch_one(db, "SELECT 1 FROM users WHERE email = ?", [email])
    return EmailAvailability(email=email, available=taken is None)


async def list_institutions(db: Database) -> list[InstitutionRecord]:
    rows = await fetch_all(
        db,
        """
        SELECT institution_id, institution_name, institution_address
        FROM institutions
        ORDER BY institution_name ASC
        """,
        [],
    )
    return [InstitutionRecord(**row) for row in rows]
