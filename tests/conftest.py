import os

# main builds a module-level app on import; keep it off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from models.admins import Admin
from models.students import Student
from security import hash_password
from services.registration import default_password

ADMIN_PASSWORD = "secret123"


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", secret_key="test-secret", environment="development")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    session = app.state.context.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin_headers(client):
    res = client.post("/api/admin/register", json={
        "username": "examcell",
        "password": ADMIN_PASSWORD,
        "fullName": "Exam Cell",
        "designation": "Exam Controller",
    })
    assert res.status_code == 201, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
def clerk_headers(client, db, admin_headers):
    db.add(Admin(username="clerk", password_hash=hash_password(ADMIN_PASSWORD), designation="Clerk"))
    db.commit()
    res = client.post("/api/admin/login", json={"username": "clerk", "password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
def make_student(db):
    def factory(roll_number="BSC2024001", dob=date(2002, 5, 15), department="Science", **extra):
        fields = {
            "first_name": "Asha",
            "last_name": "Verma",
            "gender": "Female",
            "current_semester": 1,
            "batch": "2024-27",
        }
        fields.update(extra)
        student = Student(
            roll_number=roll_number,
            date_of_birth=dob,
            department=department,
            password_hash=hash_password(default_password(dob)),
            is_verified=True,
            **fields,
        )
        db.add(student)
        db.commit()
        db.refresh(student)
        return student

    return factory


def subject(name, internal, external, credits=None, code=None, max_marks=None):
    marks = {"internal": internal, "external": external}
    if max_marks is not None:
        marks["maxMarks"] = max_marks
    body = {"name": name, "marks": marks}
    if credits is not None:
        body["credits"] = credits
    if code is not None:
        body["code"] = code
    return body


@pytest.fixture
def enter_result(client, admin_headers):
    """POST a manual result and return the stored result JSON."""

    def post(roll_number, semester=1, subjects=None, academic_year="2024-25", **extra):
        body = {
            "rollNumber": roll_number,
            "semester": semester,
            "academicYear": academic_year,
            "subjects": subjects or [subject("Physics", 20, 60, credits=4)],
        }
        body.update(extra)
        res = client.post("/api/results/manual", json=body, headers=admin_headers)
        assert res.status_code == 201, res.text
        return res.json()["data"]

    return post


@pytest.fixture
def publish(client, admin_headers):
    def toggle(result_id):
        res = client.patch(f"/api/admin/results/{result_id}/publish", headers=admin_headers)
        assert res.status_code == 200, res.text
        return res.json()["data"]

    return toggle
