import os

# Must be set before attendsync is imported: the session module builds its engine at import time.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from attendsync.api.deps import get_db
from attendsync.db.base import Base
from attendsync.main import app
from attendsync.models.batch import Batch
from attendsync.models.department import Department
from attendsync.models.student import Student
from attendsync.models.subject import Subject
from attendsync.models.timetable import Weekday
from tests.factories import make_schedule, make_teacher, slot


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
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def campus(db_session):
    """One department with two batches, two subjects and three teachers.

    T1 teaches Networks to batch B on Monday 09:00-10:00. T2 has no Monday
    commitments. T3 teaches batch C on Monday 09:30-10:30.
    """
    db = db_session
    department = Department(name="Computer Science", code="CSE")
    db.add(department)
    db.flush()

    batch_b = Batch(name="CSE 2024 A", year=2024, department_id=department.id)
    batch_c = Batch(name="CSE 2024 B", year=2024, department_id=department.id)
    db.add_all([batch_b, batch_c])
    db.flush()

    networks = Subject(name="Networks", code="CS301", department_id=department.id)
    databases = Subject(name="Databases", code="CS302", department_id=department.id)
    db.add_all([networks, databases])
    db.flush()

    t1 = make_teacher(db, "Alice Rao", department_ids=[department.id], subject_ids=[networks.id])
    t2 = make_teacher(db, "Bina Shah", department_ids=[department.id], subject_ids=[networks.id, databases.id])
    t3 = make_teacher(db, "Chetan Iyer", department_ids=[department.id], subject_ids=[databases.id])

    make_schedule(
        db,
        batch_b.id,
        Weekday.monday,
        [
            slot("09:00", "10:00", t1.id, networks.id, roomNumber="R101"),
            slot("10:00", "10:15", isBreak=True),
        ],
    )
    make_schedule(db, batch_c.id, Weekday.monday, [slot("09:30", "10:30", t3.id, databases.id)])

    students = [
        Student(
            name="Deepa Nair",
            email="deepa@example.edu",
            roll_number="CSE001",
            batch_id=batch_b.id,
            department_id=department.id,
        ),
        Student(
            name="Arjun Menon",
            email="arjun@example.edu",
            roll_number="CSE002",
            batch_id=batch_b.id,
            department_id=department.id,
        ),
    ]
    db.add_all(students)
    db.commit()

    return SimpleNamespace(
        department=department,
        batch_b=batch_b,
        batch_c=batch_c,
        networks=networks,
        databases=databases,
        t1=t1,
        t2=t2,
        t3=t3,
        students=students,
    )
