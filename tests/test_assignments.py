"""Tests for teacher assignments and student reading progress."""
import sqlite3
from contextlib import closing

import pytest

from helpers import STUDENT, TEACHER, bearer, register


@pytest.fixture
def classroom(client, db_path):
    """A teacher, two students of the same institution and one outsider."""
    with closing(sqlite3.connect(db_path)) as connection, connection:
        connection.execute("INSERT INTO institutions (institution_name) VALUES ('Elsewhere')")

    teacher = register(client, TEACHER).json()
    bruno = register(client, STUDENT).json()
    carla = register(
        client,
        STUDENT,
        full_name="Carla Ruiz",
        national_id="20000002",
        email="carla@estudiante.edu.co",
    ).json()
    outsider = register(
        client,
        STUDENT,
        full_name="Zoe Outsider",
        national_id="20000003",
        email="zoe@estudiante.edu.co",
        institution_id=2,
    ).json()
    books = {item["title"]: item["book_id"] for item in client.get("/api/books").json()["items"]}
    return {
        "teacher": teacher,
        "bruno": bruno,
        "carla": carla,
        "outsider": outsider,
        "books": books,
    }


def user_id(account):
    return account["user"]["user_id"]


def assign(client, classroom, student, title):
    return client.post(
        "/api/teacher/assignments",
        json={"student_id": user_id(classroom[student]), "book_id": classroom["books"][title]},
        headers=bearer(classroom["teacher"]["token"]),
    )


def test_teacher_lists_students_of_own_institution(client, classroom):
    assign(client, classroom, "bruno", "Dune")

    response = client.get(
        "/api/teacher/students", headers=bearer(classroom["teacher"]["token"])
    )

    assert response.status_code == 200
    assert [(item["full_name"], item["assignment_count"]) for item in response.json()] == [
        ("Bruno Diaz", 1),
        ("Carla Ruiz", 0),
    ]


def test_create_assignment(client, classroom):
    response = assign(client, classroom, "bruno", "Dune")

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Dune"
    assert body["author"] == "Frank Herbert"
    assert body["teacher_name"] == "Ana Torres"
    assert body["student_name"] == "Bruno Diaz"
    assert body["progress"] == 0
    assert body["status"] == "pending"


def test_duplicate_assignment(client, classroom):
    assign(client, classroom, "bruno", "Dune")

    response = assign(client, classroom, "bruno", "Dune")

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "ASSIGNMENT_EXISTS"


@pytest.mark.parametrize(
    ("student", "book", "code"),
    [
        ("outsider", "Dune", "STUDENT_NOT_FOUND"),
        ("teacher", "Dune", "STUDENT_NOT_FOUND"),
        (None, "Dune", "STUDENT_NOT_FOUND"),
        ("bruno", None, "BOOK_NOT_FOUND"),
    ],
)
def test_create_assignment_not_found(client, classroom, student, book, code):
    payload = {
        "student_id": user_id(classroom[student]) if student else 9999,
        "book_id": classroom["books"][book] if book else 9999,
    }

    response = client.post(
        "/api/teacher/assignments",
        json=payload,
        headers=bearer(classroom["teacher"]["token"]),
    )

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == code


def test_student_cannot_use_teacher_routes(client, classroom):
    response = client.get(
        "/api/teacher/students", headers=bearer(classroom["bruno"]["token"])
    )

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "FORBIDDEN"


def test_teacher_cannot_use_student_routes(client, classroom):
    response = client.get(
        "/api/users/assignments", headers=bearer(classroom["teacher"]["token"])
    )

    assert response.status_code == 403


def test_student_sees_only_own_assignments(client, classroom):
    assign(client, classroom, "bruno", "Dune")
    assign(client, classroom, "bruno", "Emma")
    assign(client, classroom, "carla", "Hyperion")

    response = client.get("/api/users/assignments", headers=bearer(classroom["bruno"]["token"]))

    assert response.status_code == 200
    assert sorted(item["title"] for item in response.json()) == ["Dune", "Emma"]


@pytest.mark.parametrize(
    ("progress", "status"),
    [(0, "pending"), (1, "in_progress"), (40, "in_progress"), (99, "in_progress"), (100, "completed")],
)
def test_progress_sets_status(client, classroom, progress, status):
    assignment_id = assign(client, classroom, "bruno", "Dune").json()["assignment_id"]

    response = client.put(
        f"/api/users/assignments/{assignment_id}",
        json={"progress": progress},
        headers=bearer(classroom["bruno"]["token"]),
    )

    assert response.status_code == 200
    assert response.json()["progress"] == progress
    assert response.json()["status"] == status


def test_progress_out_of_range(client, classroom):
    assignment_id = assign(client, classroom, "bruno", "Dune").json()["assignment_id"]

    response = client.put(
        f"/api/users/assignments/{assignment_id}",
        json={"progress": 101},
        headers=bearer(classroom["bruno"]["token"]),
    )

    assert response.status_code == 422


def test_progress_on_someone_elses_assignment(client, classroom):
    assignment_id = assign(client, classroom, "bruno", "Dune").json()["assignment_id"]

    response = client.put(
        f"/api/users/assignments/{assignment_id}",
        json={"progress": 50},
        headers=bearer(classroom["carla"]["token"]),
    )

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "ASSIGNMENT_NOT_FOUND"


def test_filter_assignments_by_status(client, classroom):
    token = classroom["bruno"]["token"]
    assign(client, classroom, "bruno", "Dune")
    emma = assign(client, classroom, "bruno", "Emma").json()["assignment_id"]
    client.put(f"/api/users/assignments/{emma}", json={"progress": 100}, headers=bearer(token))

    completed = client.get(
        "/api/users/assignments", params={"status": "completed"}, headers=bearer(token)
    )
    assert [item["title"] for item in completed.json()] == ["Emma"]

    invalid = client.get(
        "/api/users/assignments", params={"status": "archived"}, headers=bearer(token)
    )
    assert invalid.status_code == 400
    assert invalid.json()["detail"]["error"] == "INVALID_STATUS"


def test_dashboards_count_assignments(client, classroom):
    token = classroom["bruno"]["token"]
    assign(client, classroom, "bruno", "Dune")
    emma = assign(client, classroom, "bruno", "Emma").json()["assignment_id"]
    assign(client, classroom, "carla", "Dune")
    client.put(f"/api/users/assignments/{emma}", json={"progress": 30}, headers=bearer(token))

    student = client.get("/api/users/dashboard", headers=bearer(token))
    assert student.status_code == 200
    assert student.json()["user"]["full_name"] == "Bruno Diaz"
    assert student.json()["stats"] == {"total": 2, "pending": 1, "in_progress": 1, "completed": 0}

    teacher = client.get("/api/users/dashboard", headers=bearer(classroom["teacher"]["token"]))
    assert teacher.json()["stats"] == {"total": 3, "pending": 2, "in_progress": 1, "completed": 0}


def test_teacher_lists_and_deletes_assignments(client, classroom):
    headers = bearer(classroom["teacher"]["token"])
    dune = assign(client, classroom, "bruno", "Dune").json()["assignment_id"]
    assign(client, classroom, "carla", "Emma")

    listed = client.get("/api/teacher/assignments", headers=headers)
    assert sorted(item["student_name"] for item in listed.json()) == ["Bruno Diaz", "Carla Ruiz"]

    deleted = client.delete(f"/api/teacher/assignments/{dune}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Assignment deleted"}

    again = client.delete(f"/api/teacher/assignments/{dune}", headers=headers)
    assert again.status_code == 404
    assert again.json()["detail"]["error"] == "ASSIGNMENT_NOT_FOUND"
    assert [item["title"] for item in client.get("/api/teacher/assignments", headers=headers).json()] == ["Emma"]
