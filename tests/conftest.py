import os

# 앱/설정 모듈을 import 하기 전에 테스트용 DB 지정 (메모리 SQLite)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"

from datetime import date

import pytest
from fastapi.testclient import TestClient

from database.db import Base, SessionLocal, engine, init_db
from main import app
from models.users import ROLE_ADMIN, ROLE_FACULTY, ROLE_ACADEMIC_HEAD
from services import auth_service, course_service

PASSWORD = "s3cret-pass"


@pytest.fixture
def db():
    init_db()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    return TestClient(app)


def _headers(db, email, role):
    auth_service.create_user(db, email, email.split("@")[0], PASSWORD, role)
    session = auth_service.login(db, email, PASSWORD)
    return {"Authorization": f"Bearer {session.token}"}


@pytest.fixture
def admin_headers(db):
    return _headers(db, "admin@school.edu", ROLE_ADMIN)


@pytest.fixture
def faculty_headers(db):
    return _headers(db, "faculty@school.edu", ROLE_FACULTY)


@pytest.fixture
def head_headers(db):
    return _headers(db, "head@school.edu", ROLE_ACADEMIC_HEAD)


@pytest.fixture
def course(db):
    return course_service.create_course(
        db,
        {"code": "IT101", "title": "Intro to Computing", "section": "A", "semester": "1st Semester"},
        [{"day": "Monday", "from_time": "08:00", "to_time": "10:00"}],
    )


@pytest.fixture
def other_course(db):
    return course_service.create_course(db, {"code": "IT102", "title": "Programming 1", "section": "B"})


def _make_students(db, course, count):
    students = []
    for i in range(count):
        student = course_service.create_student(db, {
            "student_number": f"{course.code}-{i:03d}",
            "first_name": f"First{i}",
            "last_name": f"Last{i:02d}",
        })
        course_service.enroll(db, course, student.id)
        students.append(student)
    return students


@pytest.fixture
def students(db, course):
    return _make_students(db, course, 10)


@pytest.fixture
def day():
    return date(2025, 3, 3)


@pytest.fixture
def make_students(db):
    """다른 강좌용 수강생 생성: make_students(course, count)"""
    return lambda course, count: _make_students(db, course, count)
