"""Shared constants used across openbook modules."""

from __future__ import annotations

from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_DB_PATH = DATA_DIR / "openbook.sqlite"

OPENLIBRARY_BASE_URL = "https://openlibrary.org"
COVER_URL_TEMPLATE = "https://covers.openlibrary.org/b/id/{cover_id}-L.jpg"
DEFAULT_GENRES = (
    "fantasy",
    "science_fiction",
    "mystery",
    "romance",
    "history",
    "biography",
)

UNKNOWN_AUTHOR = "Unknown"
UNSPECIFIED_YEAR = "an unspecified year"

SYNC_PAGE_SIZE = 20
SYNC_TARGET_PER_GENRE = 100
SYNC_CONCURRENCY = 2
SYNC_MAX_CONSECUTIVE_ERRORS = 3
SYNC_MAX_EMPTY_PAGES = 3
SYNC_THROTTLE_EVERY = 5
SYNC_THROTTLE_PAUSE = 0.2
SYNC_PAGE_PAUSE = 1.0
SYNC_ERROR_PAUSE = 3.0
SYNC_CHUNK_PAUSE = 3.0

HTTP_TIMEOUT_SECONDS = 60
HTTP_RETRIES = 3
HTTP_RETRY_BASE_DELAY = 0.1

DB_TIMEOUT_SECONDS = 30
DB_RETRY_ATTEMPTS = 6
DB_RETRY_BASE_DELAY = 0.5
DB_POOL_SIZE = 4
SQLITE_INT_MAX = (1 << 63) - 1
SQLITE_INT_MIN = -(1 << 63)

MAX_LIMIT = 200
API_PREFIX = "/api"
API_PORT = 8000

ROLE_TEACHER = 1
ROLE_STUDENT = 2
ROLE_NAMES = {ROLE_TEACHER: "teacher", ROLE_STUDENT: "student"}
ROLE_EMAIL_DOMAINS = {
    ROLE_TEACHER: "maestro.edu.co",
    ROLE_STUDENT: "estudiante.edu.co",
}
ROLE_DASHBOARDS = {
    ROLE_TEACHER: "/teacher-dashboard",
    ROLE_STUDENT: "/student-dashboard",
}
DEFAULT_INSTITUTION_NAME = "OpenBook Institute"

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72
PASSWORD_HASH_ROUNDS = 12
NATIONAL_ID_PATTERN = r"^\d{7,12}$"
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

JWT_ALGORITHM = "HS256"
JWT_ISSUER = "openbook-auth"
JWT_AUDIENCE = "openbook-platform"
JWT_EXPIRES_HOURS = 24
DEFAULT_JWT_SECRET = "openbook-development-secret-change-me"

ASSIGNMENT_PENDING = "pending"
ASSIGNMENT_IN_PROGRESS = "in_progress"
ASSIGNMENT_COMPLETED = "completed"
