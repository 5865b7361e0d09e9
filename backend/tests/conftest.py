"""Pytest fixtures: SQLite database per test, fake calendar gateway."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

from datetime import datetime  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from labx.database import Base, get_db  # noqa: E402
from labx.main import app  # noqa: E402
from labx.routers.consultations import get_gateway_factory  # noqa: E402
from labx.routers.users import get_verification_sender  # noqa: E402
from labx.services.calendar_gateway import BusyInterval, CalendarGateway  # noqa: E402
from labx.errors import NetworkError  # noqa: E402

# Import all models so they register with Base.metadata
from labx.models.user import STAFF_CLASS_NAME, User   # noqa: E402
from labx.models.consultation import Consultation     # noqa: F401,E402
from labx.models.chat_message import ChatMessage      # noqa: F401,E402
from labx.models.lab_booking import LabBooking        # noqa: F401,E402

SQLITE_URL = "sqlite:///./test.db"

TEACHER = {"name": "Ms Tan", "email": "tan_mei@sst.edu.sg"}
OTHER_TEACHER = {"name": "Mr Lim", "email": "lim_wei@sst.edu.sg"}
STUDENT = "alex_ng@s2024.ssts.edu.sg"
OTHER_STUDENT = "jo_koh@s2024.ssts.edu.sg"


class FakeCalendarGateway(CalendarGateway):
    """Records calls; optionally reports busy blocks or fails."""

    def __init__(self, busy: Optional[list[BusyInterval]] = None, fail_events: bool = False,
                 fail_free_busy: bool = False):
        self.busy = busy or []
        self.fail_events = fail_events
        self.fail_free_busy = fail_free_busy
        self.free_busy_calls = []
        self.events = []

    def query_free_busy(self, time_min, time_max, time_zone):
        self.free_busy_calls.append((time_min, time_max, time_zone))
        if self.fail_free_busy:
            raise NetworkError("calendar unreachable")
        return list(self.busy)

    def create_event(self, summary, description, start, end, time_zone):
        if self.fail_events:
            raise NetworkError("calendar unreachable")
        self.events.append({"summary": summary, "description": description, "start": start, "end": end,
                            "time_zone": time_zone})
        return True


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


def _staff_user(profile: dict) -> User:
    first_name, _, last_name = profile["name"].partition(" ")
    return User(first_name=first_name, last_name=last_name, email=profile["email"],
                class_name=STAFF_CLASS_NAME, register_number=STAFF_CLASS_NAME, email_verified=True)


@pytest.fixture(scope="function")
def staff(db_engine):
    """Staff profiles for TEACHER and OTHER_TEACHER."""
    session = sessionmaker(bind=db_engine)()
    try:
        session.add_all([_staff_user(TEACHER), _staff_user(OTHER_TEACHER)])
        session.commit()
    finally:
        session.close()


@pytest.fixture(scope="function")
def gateway():
    return FakeCalendarGateway()


@pytest.fixture(scope="function")
def outbox():
    """Verification tokens handed to the sender, keyed by email."""
    return {}


@pytest.fixture(scope="function")
def client(db_engine, gateway, outbox):
    """FastAPI TestClient with the database, calendar and mail dependencies overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    def _override_gateway_factory():
        return lambda token: gateway if token else None

    def _override_verification_sender():
        def _send(email, token):
            outbox[email] = token
        return _send

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_gateway_factory] = _override_gateway_factory
    app.dependency_overrides[get_verification_sender] = _override_verification_sender
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def create_test_consultation(client: TestClient, scheduled_at: str, teacher: dict = TEACHER,
                             student: str = STUDENT, comment: str = "Project feedback") -> dict:
    """Helper: POST /api/consultations and return response JSON."""
    resp = client.post("/api/consultations/", json={
        "teacher": teacher,
        "student": student,
        "scheduled_at": scheduled_at,
        "location": "Staff Room",
        "comment": comment,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def approve(client: TestClient, consultation_id: str, approver: str = TEACHER["email"], **extra):
    return client.post(f"/api/consultations/{consultation_id}/approve", json={"approver": approver, **extra})


def create_test_user(client: TestClient, outbox: dict, first_name: str = "Alex", email: str = STUDENT,
                     is_staff: bool = False, verify: bool = True) -> dict:
    """Helper: sign up (and verify, with the token from ``outbox``) a user, returns the user JSON."""
    resp = client.post("/api/users/signup", json={
        "first_name": first_name,
        "last_name": "Ng",
        "email": email,
        "password": "s3cret-pass",
        "confirm_password": "s3cret-pass",
        "is_staff": is_staff,
        "class_name": "" if is_staff else "S3-01",
        "register_number": "" if is_staff else "7",
    })
    assert resp.status_code == 201, resp.text
    if verify:
        verified = client.post("/api/users/verify", json={"token": outbox[email]})
        assert verified.status_code == 200, verified.text
        return verified.json()
    return resp.json()


def sgt(text: str) -> datetime:
    """Parse an ISO timestamp (tests always give an explicit offset)."""
    return datetime.fromisoformat(text)
