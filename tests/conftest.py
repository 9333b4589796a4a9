"""
Shared fixtures – in-memory SQLite store, Flask app/client and seeded accounts.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from training_api import courses, schedules
from training_api.api.app import create_app
from training_api.api.auth import generate_token
from training_api.database import configure_engine
from training_api.models import Identity
from training_api.schema import create_schema
from training_api.users import insert_user

PASSWORD = "secret123"

# (key, email, role)
ACCOUNTS = [
    ("admin", "admin@test.com", "admin"),
    ("trainer", "trainer@test.com", "trainer"),
    ("trainer2", "trainer2@test.com", "trainer"),
    ("learner", "learner@test.com", "learner"),
    ("learner2", "learner2@test.com", "learner"),
]


@pytest.fixture
def engine():
    engine = configure_engine(create_engine(
        "sqlite://",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    ))
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def app(engine):
    app = create_app(engine)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user_ids(engine):
    """Insert one account per ACCOUNTS entry; returns key -> user id."""
    return {
        key: insert_user(engine, email, PASSWORD, key.title(), role)
        for key, email, role in ACCOUNTS
    }


@pytest.fixture
def identities(user_ids):
    return {
        key: Identity(id=user_ids[key], role=role, email=email)
        for key, email, role in ACCOUNTS
    }


@pytest.fixture
def headers(user_ids):
    """key -> Authorization header carrying a valid token for that account."""
    return {
        key: {"Authorization": f"Bearer {generate_token(user_ids[key], email, role)}"}
        for key, email, role in ACCOUNTS
    }


# ── Record factories ─────────────────────────────────────────────────

@pytest.fixture
def make_course(engine, identities):
    def _make(course_type="in-class", **overrides):
        payload = {
            "title": "Fire Safety",
            "description": "Annual refresher",
            "duration": 4,
            "category": "Compliance",
            "courseType": course_type,
            **overrides,
        }
        return courses.create_course(engine, identities["admin"], payload)
    return _make


@pytest.fixture
def make_schedule(engine, identities, make_course):
    def _make(trainer="trainer", course_id=None, **overrides):
        payload = {
            "courseId": course_id or make_course()["id"],
            "title": "Morning session",
            "type": "single",
            "startDate": "2030-01-10",
            "endDate": "2030-01-10",
            "startTime": "09:00",
            "endTime": "17:00",
            "sessionMode": "face-to-face",
            **overrides,
        }
        return schedules.create_schedule(engine, identities[trainer], payload)
    return _make
