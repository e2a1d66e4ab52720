"""Tests for registration, login and token handling."""
import sqlite3
from contextlib import closing

import pytest

from helpers import STUDENT, TEACHER, TEST_JWT_SECRET, bearer, register
from openbook.api.security import decode_token, issue_token


def execute(db_path, sql, params=()):
    with closing(sqlite3.connect(db_path)) as connection, connection:
        connection.execute(sql, params)


def error_code(response):
    return response.json()["detail"]["error"]


def test_register_teacher(client, query):
    response = register(client, TEACHER)

    assert response.status_code == 201
    body = response.json()
    assert body["redirect"] == "/teacher-dashboard"
    assert body["user"]["email"] == "ana@maestro.edu.co"
    assert body["user"]["role_name"] == "teacher"
    assert body["user"]["institution_name"] == "OpenBook Institute"

    claims = decode_token(body["token"], TEST_JWT_SECRET)
    assert claims["sub"] == str(body["user"]["user_id"])
    assert claims["role_id"] == 1
    assert claims["iss"] == "openbook-auth"

    [(stored,)] = query("SELECT password_hash FROM users")
    assert stored.startswith("$2b$04$")
    assert "Teacher123" not in stored


def test_register_student_redirects_to_student_dashboard(client):
    response = register(client, STUDENT, email="  Bruno@Estudiante.edu.co ")

    assert response.status_code == 201
    assert response.json()["redirect"] == "/student-dashboard"
    assert response.json()["user"]["email"] == "bruno@estudiante.edu.co"


def test_register_reports_every_missing_field(client):
    response = client.post("/api/auth/register", json={"email": "ana@maestro.edu.co", "full_name": " "})

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "MISSING_FIELDS"
    assert response.json()["detail"]["missing_fields"] == [
        "full_name",
        "national_id",
        "password",
        "role_id",
    ]


@pytest.mark.parametrize(
    ("overrides", "code"),
    [
        ({"full_name": "Al"}, "INVALID_NAME"),
        ({"national_id": "12ab5678"}, "INVALID_NATIONAL_ID"),
        ({"national_id": "123456"}, "INVALID_NATIONAL_ID"),
        ({"role_id": 3}, "INVALID_ROLE"),
        ({"email": "ana@estudiante.edu.co"}, "EMAIL_FORMAT_INVALID"),
        ({"email": "ana at maestro.edu.co"}, "EMAIL_FORMAT_INVALID"),
        ({"password": "Short1"}, "WEAK_PASSWORD"),
        ({"password": "alllowercase1"}, "WEAK_PASSWORD"),
        ({"password": "NoDigitsHere"}, "WEAK_PASSWORD"),
        ({"institution_id": 999}, "INVALID_INSTITUTION"),
    ],
)
def test_register_validation(client, overrides, code):
    response = register(client, TEACHER, **overrides)

    assert response.status_code == 400
    assert error_code(response) == code


def test_weak_password_lists_requirements(client):
    response = register(client, TEACHER, password="lowercase")

    assert response.json()["detail"]["requirements"] == ["an uppercase letter", "a digit"]


def test_register_rejects_duplicates(client):
    assert register(client, TEACHER).status_code == 201

    same_email = register(client, TEACHER, email="ANA@maestro.edu.co", national_id="10000002")
    assert same_email.status_code == 409
    assert error_code(same_email) == "EMAIL_EXISTS"

    same_id = register(client, TEACHER, email="other@maestro.edu.co")
    assert same_id.status_code == 409
    assert error_code(same_id) == "NATIONAL_ID_EXISTS"


def test_login(client, query):
    register(client, TEACHER)

    response = client.post(
        "/api/auth/login", json={"email": "Ana@Maestro.edu.co", "password": "Teacher123"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["redirect"] == "/teacher-dashboard"
    assert body["user"]["full_name"] == "Ana Torres"
    assert query("SELECT last_login IS NOT NULL FROM users") == [(1,)]


@pytest.mark.parametrize(
    ("credentials", "status", "code"),
    [
        ({"email": "ana@maestro.edu.co", "password": "Wrong1234"}, 401, "INVALID_CREDENTIALS"),
        ({"email": "nobody@maestro.edu.co", "password": "Teacher123"}, 401, "INVALID_CREDENTIALS"),
        ({"email": "ana@maestro.edu.co"}, 400, "MISSING_CREDENTIALS"),
        ({}, 400, "MISSING_CREDENTIALS"),
    ],
)
def test_login_failures(client, credentials, status, code):
    register(client, TEACHER)

    response = client.post("/api/auth/login", json=credentials)

    assert response.status_code == status
    assert error_code(response) == code


def test_verify_token(client):
    registered = register(client, STUDENT).json()

    response = client.get("/api/auth/verify-token", headers=bearer(registered["token"]))

    assert response.status_code == 200
    assert response.json()["user"]["user_id"] == registered["user"]["user_id"]
    assert response.json()["expires_at"] == registered["expires_at"]


def test_missing_token(client):
    response = client.get("/api/auth/verify-token")

    assert response.status_code == 401
    assert error_code(response) == "MISSING_TOKEN"


def test_rejected_tokens(client):
    account = register(client, STUDENT).json()["user"]
    foreign, _ = issue_token(account, "another-secret-0123456789abcdefghij", 1)
    expired, _ = issue_token(account, TEST_JWT_SECRET, -1)

    garbage = client.get("/api/auth/verify-token", headers=bearer("not-a-token"))
    assert garbage.status_code == 401
    assert error_code(garbage) == "INVALID_TOKEN"

    wrong_key = client.get("/api/auth/verify-token", headers=bearer(foreign))
    assert error_code(wrong_key) == "INVALID_TOKEN"

    stale = client.get("/api/auth/verify-token", headers=bearer(expired))
    assert stale.status_code == 401
    assert error_code(stale) == "TOKEN_EXPIRED"


def test_profile(client, db_path):
    token = register(client, STUDENT).json()["token"]

    response = client.get("/api/auth/profile", headers=bearer(token))

    assert response.status_code == 200
    body = response.json()
    assert body["national_id"] == "20000001"
    assert body["role_description"] == "Reads assigned books and reports progress"
    assert "password_hash" not in body

    execute(db_path, "DELETE FROM users")
    gone = client.get("/api/auth/profile", headers=bearer(token))
    assert gone.status_code == 404
    assert error_code(gone) == "USER_NOT_FOUND"


def test_logout_records_time(client, query):
    token = register(client, TEACHER).json()["token"]

    response = client.post("/api/auth/logout", headers=bearer(token))

    assert response.status_code == 200
    assert response.json() == {"message": "Logged out"}
    assert query("SELECT last_logout IS NOT NULL FROM users") == [(1,)]


def test_check_email(client):
    free = client.post("/api/auth/check-email", json={"email": "ana@maestro.edu.co"})
    assert free.json() == {"email": "ana@maestro.edu.co", "available": True}

    register(client, TEACHER)
    taken = client.post("/api/auth/check-email", json={"email": " ANA@maestro.edu.co"})
    assert taken.json() == {"email": "ana@maestro.edu.co", "available": False}


@pytest.mark.parametrize(
    ("payload", "code"),
    [
        ({}, "MISSING_EMAIL"),
        ({"email": "   "}, "MISSING_EMAIL"),
        ({"email": "not-an-email"}, "FORMAT_INVALID"),
        ({"email": "ana@gmail.com", "role_id": 1}, "FORMAT_INVALID"),
    ],
)
def test_check_email_rejections(client, payload, code):
    response = client.post("/api/auth/check-email", json=payload)

    assert response.status_code == 400
    assert error_code(response) == code


def test_institutions(client, db_path):
    execute(
        db_path,
        "INSERT INTO institutions (institution_name, institution_address) VALUES (?, ?)",
        ("Alpha College", "1 Main St"),
    )

    response = client.get("/api/auth/institutions")

    assert response.json() == [
        {"institution_id": 2, "institution_name": "Alpha College", "institution_address": "1 Main St"},
        {"institution_id": 1, "institution_name": "OpenBook Institute", "institution_address": None},
    ]
