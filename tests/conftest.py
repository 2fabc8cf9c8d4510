import os
from datetime import datetime, time, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.user import User
from app.utils.auth import create_access_token


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make(username, role="student", full_name=None):
        user = User(
            username=username,
            password_hash="x",
            full_name=full_name or username.title(),
            email=f"{username}@example.edu",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture()
def make_course(db):
    def _make(code, days, start, end, instructor=None, name=None, **extra):
        course = Course(
            code=code,
            name=name or f"Course {code}",
            days=list(days),
            start_time=time.fromisoformat(start),
            end_time=time.fromisoformat(end),
            instructor_id=instructor.id if instructor else None,
            **extra,
        )
        db.add(course)
        db.commit()
        db.refresh(course)
        return course
    return _make


@pytest.fixture()
def enroll(db):
    base = datetime(2025, 1, 6, 8, 0, 0)
    counter = {"n": 0}

    def _enroll(student, course, status="enrolled"):
        counter["n"] += 1
        row = Enrollment(
            student_id=student.id,
            course_id=course.id,
            status=status,
            enrolled_at=base + timedelta(minutes=counter["n"]),
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    return _enroll


def auth_headers(user):
    token = create_access_token({"sub": user.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers_for():
    return auth_headers
