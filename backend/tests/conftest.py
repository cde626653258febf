import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import classdesk.models  # noqa: F401
from classdesk import main
from classdesk.api.deps import get_db
from classdesk.core.calendar import WeekCalendar
from classdesk.core.config import DEFAULT_WEEK_DATES, Settings
from classdesk.db.base import Base
from classdesk.models.student import Student
from classdesk.models.teacher import Teacher
from classdesk.schemas.assignment import AssignmentCreate, StudentRef, TeacherRef
from classdesk.services.reconciler import DaySetReconciler
from classdesk.services.slots import list_time_slots, seed_default_time_slots
from classdesk.services.store import SqlAssignmentStore
from classdesk.services.validation import StoreValidationGate


def _memory_engine():
    return create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture()
def client(monkeypatch):
    engine = _memory_engine()
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestingSessionLocal() as db:
        seed_default_time_slots(db)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    # Keep the lifespan bootstrap away from the configured database file.
    monkeypatch.setattr(main, "ensure_runtime_schema", lambda: None)
    main.app.dependency_overrides[get_db] = override_get_db

    with TestClient(main.app) as test_client:
        yield test_client

    main.app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture()
def db_session():
    engine = _memory_engine()
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    seed_default_time_slots(db)
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture()
def settings():
    return Settings(_env_file=None)


@pytest.fixture()
def calendar():
    return WeekCalendar(DEFAULT_WEEK_DATES)


@pytest.fixture()
def slot_ids(db_session):
    return [slot.id for slot in list_time_slots(db_session)]


@pytest.fixture()
def people(db_session):
    """Three teachers and six students, keyed T1..T3 and S1..S6."""
    ids = {}
    for label in ("T1", "T2", "T3"):
        teacher = Teacher(name=f"Teacher {label}", is_active=True)
        db_session.add(teacher)
        db_session.flush()
        ids[label] = teacher.id
    for label in ("S1", "S2", "S3", "S4", "S5", "S6"):
        student = Student(name=f"Student {label}", is_active=True)
        db_session.add(student)
        db_session.flush()
        ids[label] = student.id
    db_session.commit()
    return ids


@pytest.fixture()
def store(db_session, calendar):
    return SqlAssignmentStore(db_session, calendar)


@pytest.fixture()
def gate(store, settings):
    return StoreValidationGate(store, settings)


@pytest.fixture()
def reconciler(store, gate, settings, calendar):
    return DaySetReconciler(store, gate, settings, calendar)


@pytest.fixture()
def schedule(store, people):
    """Create one assignment row per day; labels resolve through ``people``."""

    def _schedule(days, slot_id, teachers, students, subject="Phonics", notes=None):
        created = []
        for day in days:
            payload = AssignmentCreate(
                day=day,
                time_slot_id=slot_id,
                teachers=[TeacherRef(teacher_id=people[label]) for label in teachers],
                students=[StudentRef(student_id=people[label]) for label in students],
                subject=subject,
                notes=notes,
            )
            created.append(asyncio.run(store.create(payload)))
        return created

    return _schedule
