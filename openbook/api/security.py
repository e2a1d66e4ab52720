"""Password hashing, access tokens and account validation rules."""

from __future__ import annotations

import asyncio
import re
from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from openbook.shared.config import AppSettings
from openbook.shared.constants import (
    EMAIL_PATTERN,
    JWT_ALGORITHM,
    JWT_AUDIENCE,
    JWT_ISSUER,
    NATIONAL_ID_PATTERN,
    PASSWORD_MAX_BYTES,
    PASSWORD_MIN_LENGTH,
    ROLE_EMAIL_DOMAINS,
    ROLE_NAMES,
    ROLE_STUDENT,
    ROLE_TEACHER,
)

# Claims copied from the account row into every token.
TOKEN_CLAIMS = ("user_id", "email", "role_id", "full_name", "institution_id")

bearer_scheme = HTTPBearer(auto_error=False)


def api_error(
    status_code: int, code: str, message: str, **extra: Any
) -> HTTPException:
    """
    Build an HTTP error carrying a machine-readable code.

    Args:
        status_code: HTTP status.
        code: Stable error code, such as ``EMAIL_EXISTS``.
        message: Human-readable message.
        **extra: Additional detail fields.

    Returns:
        Exception to raise from a handler.
    """
    return HTTPException(
        status_code=status_code,
        detail={"error": code, "message": message, **extra},
    )


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    return re.match(EMAIL_PATTERN, email) is not None


def email_matches_role(email: str, role_id: int) -> bool:
    """
    Check that an email belongs to the domain reserved for a role.

    Args:
        email: Normalized email.
        role_id: Role identifier.

    Returns:
        True when the email ends with the role's domain.
    """
    domain = ROLE_EMAIL_DOMAINS.get(role_id)
    return domain is not None and email.endswith(f"@{domain}")


def is_valid_national_id(national_id: str) -> bool:
    return re.match(NATIONAL_ID_PATTERN, national_id) is not None


def password_problems(password: str) -> list[str]:
    """
    List the strength rules a password breaks.

    Args:
        password: Candidate password.

    Returns:
        Broken rules, empty when the password is acceptable.
    """
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"at least {PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        problems.append(f"at most {PASSWORD_MAX_BYTES} bytes")
    if not re.search(r"[A-Z]", password):
        problems.append("an uppercase letter")
    if not re.search(r"[a-z]", password):
        problems.append("a lowercase letter")
    if not re.search(r"\d", password):
        problems.append("a digit")
    return problems


async def hash_password(password: str, rounds: int) -> str:
    """
    Hash a password with bcrypt off the event loop.

    Args:
        password: Plain password.
        rounds: bcrypt cost factor.

    Returns:
        Encoded hash.
    """
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = await asyncio.to_thread(bcrypt.hashpw, password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


async def verify_password(password: str, password_hash: str) -> bool:
    """
    Compare a password against a stored bcrypt hash.

    Args:
        password: Plain password.
        password_hash: Stored hash.

    Returns:
        True when the password matches.
    """
    try:
        return await asyncio.to_thread(
            bcrypt.checkpw, password.encode("utf-8"), password_hash.encode("utf-8")
        )
    except ValueError:
        return False


def issue_token(
    account: dict[str, Any], secret: str, ttl_hours: int
) -> tuple[str, datetime]:
    """
    Sign an access token for an account.

    Args:
        account: Account row holding at least the token claims.
        secret: HMAC signing secret.
        ttl_hours: Token lifetime.

    Returns:
        Encoded token and its expiry time.
    """
    issued_at = datetime.now(UTC)
    expires_at = issued_at + timedelta(hours=ttl_hours)
    payload = {name: account[name] for name in TOKEN_CLAIMS}
    payload.update(
        sub=str(account["user_id"]),
        iat=issued_at,
        exp=expires_at,
        iss=JWT_ISSUER,
        aud=JWT_AUDIENCE,
    )
    token = jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)
    return token, expires_at.replace(microsecond=0)


def decode_token(token: str, secret: str) -> dict[str, Any]:
    """
    Verify a token's signature, expiry, issuer and audience.

    Args:
        token: Encoded token.
        secret: HMAC signing secret.

    Returns:
        Token claims.

    Raises:
        jwt.InvalidTokenError: The token is not acceptable.
    """
    return jwt.decode(
        token,
        secret,
        algorithms=[JWT_ALGORITHM],
        audience=JWT_AUDIENCE,
        issuer=JWT_ISSUER,
        options={"require": ["exp", "iat", "sub"]},
    )


async def get_current_user(
    request: Request,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> dict[str, Any]:
    """
    Resolve the bearer token into its claims.

    Args:
        request: Incoming request, used to reach the application settings.
        credentials: Parsed ``Authorization`` header.

    Returns:
        Token claims.
    """
    if credentials is None:
        raise api_error(401, "MISSING_TOKEN", "Authorization token is required")
    settings: AppSettings = request.app.state.settings
    try:
        return decode_token(credentials.credentials, settings.jwt_secret)
    except jwt.ExpiredSignatureError as exc:
        raise api_error(401, "TOKEN_EXPIRED", "Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise api_error(401, "INVALID_TOKEN", "Token is invalid") from exc


def require_role(role_id: int):
    """
    Build a dependency that admits only one role.

    Args:
        role_id: Required role identifier.

    Returns:
        Dependency returning the token claims.
    """

    async def dependency(
        user: Annotated[dict[str, Any], Depends(get_current_user)],
    ) -> dict[str, Any]:
        if user.get("role_id") != role_id:
            raise api_error(
                403,
                "FORBIDDEN",
                f"Only {ROLE_NAMES[role_id]} accounts can use this endpoint",
            )
        return user

    return dependency


CurrentUser = Annotated[dict[str, Any], Depends(get_current_user)]
TeacherUser = Annotated[dict[str, Any], Depends(require_role(ROLE_TEACHER))]
StudentUser = Annotated[dict[str, Any], Depends(require_role(ROLE_STUDENT))]
