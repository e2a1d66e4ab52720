"""API response models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class BookRecord(BaseModel):
    """
    Catalog book record.
    """

    book_id: int
    external_key: str
    title: str
    author: str
    description: str | None = None
    cover_url: str | None = None
    published_year: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


class BookDetail(BookRecord):
    """
    Catalog book with its genre names.
    """

    genres: list[str] = []


class GenreRecord(BaseModel):
    """
    Genre with the number of linked books.
    """

    genre_id: int
    genre_name: str
    book_count: int


class PageMeta(BaseModel):
    """
    Pagination metadata.
    """

    total: int
    limit: int
    offset: int


class BookPage(BaseModel):
    """
    Paginated books response.
    """

    items: list[BookRecord]
    page: PageMeta


class RegisterRequest(BaseModel):
    """
    Account registration payload.

    Fields are optional so missing values are reported together.
    """

    full_name: str | None = None
    national_id: str | None = None
    email: str | None = None
    password: str | None = None
    role_id: int | None = None
    institution_id: int | None = None


class LoginRequest(BaseModel):
    """
    Credentials for a login attempt.
    """

    email: str | None = None
    password: str | None = None


class EmailCheckRequest(BaseModel):
    """
    Email availability query.
    """

    email: str | None = None
    role_id: int | None = None


class UserSummary(BaseModel):
    """
    Non-sensitive account fields carried in tokens and responses.
    """

    user_id: int
    email: str
    role_id: int
    full_name: str
    institution_id: int
    institution_name: str | None = None
    role_name: str | None = None


class AuthResponse(BaseModel):
    """
    Issued token with the authenticated account.
    """

    message: str
    token: str
    expires_at: datetime
    user: UserSummary
    redirect: str


class TokenStatus(BaseModel):
    """
    Claims of a valid token.
    """

    user: UserSummary
    expires_at: datetime


class UserProfile(BaseModel):
    """
    Full account profile.
    """

    user_id: int
    full_name: str
    national_id: str
    email: str
    role_id: int
    institution_id: int
    created_at: str | None = None
    last_login: str | None = None
    last_logout: str | None = None
    institution_name: str | None = None
    institution_address: str | None = None
    role_name: str | None = None
    role_description: str | None = None


class EmailAvailability(BaseModel):
    """
    Whether an email can still be registered.
    """

    email: str
    available: bool


class MessageResponse(BaseModel):
    """
    Plain acknowledgement.
    """

    message: str


class InstitutionRecord(BaseModel):
    """
    Institution that accounts belong to.
    """

    institution_id: int
    institution_name: str
    institution_address: str | None = None


class AssignmentRecord(BaseModel):
    """
    Book assigned by a teacher to a student, with reading progress.
    """

    assignment_id: int
    book_id: int
    title: str
    author: str
    cover_url: str | None = None
    teacher_id: int
    teacher_name: str
    student_id: int
    student_name: str
    progress: int
    status: str
    assigned_at: str | None = None
    updated_at: str | None = None


class AssignmentCreate(BaseModel):
    """
    Teacher request to assign a book.
    """

    student_id: int
    book_id: int


class ProgressUpdate(BaseModel):
    """
    Student reading progress in percent.
    """

    progress: int = Field(ge=0, le=100)


class StudentRecord(BaseModel):
    """
    Student visible to a teacher of the same institution.
    """

    user_id: int
    full_name: str
    email: str
    assignment_count: int


class AssignmentStats(BaseModel):
    """
    Assignment counts by status.
    """

    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


class Dashboard(BaseModel):
    """
    Account profile with assignment counts.
    """

    user: UserProfile
    stats: AssignmentStats
