"""Pytest fixtures — per-test SQLite database, FastAPI TestClient, both storage backends."""
import datetime as dt
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from eventify.clock import local_today
from eventify.database import Base, enable_sqlite_foreign_keys, get_db
from eventify.domain import UserProfile
from eventify.main import app
from eventify.repositories.local import LocalBackend
from eventify.repositories.sql import SqlBackend

# Import all models so they register with Base.metadata
from eventify.models.user import User                   # noqa: F401
from eventify.models.event import Event                 # noqa: F401
from eventify.models.registration import Registration   # noqa: F401


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    enable_sqlite_foreign_keys(engine)

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


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def api_client(client):
    """Same app, rooted at /api — what RemoteClient expects as its base URL."""
    return TestClient(app, base_url="http://testserver/api")


@pytest.fixture(params=["sql", "local"])
def backend(request, db, tmp_path):
    """Each storage backend in turn; ledger tests run against both."""
    if request.param == "sql":
        return SqlBackend(db)
    return LocalBackend(tmp_path / "offline.json")


def add_profile(backend, profile: UserProfile) -> UserProfile:
    """Store a user profile in whichever backend the test runs on."""
    if isinstance(backend, SqlBackend):
        backend.db.add(User(
            user_id=profile.user_id,
            name=profile.name,
            email=profile.email,
            phone=profile.phone,
            birthdate=profile.birthdate,
            is_admin=profile.is_admin,
        ))
        backend.db.commit()
        return profile
    return backend.profiles.put(profile)


# ---------------------------------------------------------------------------
# Helpers for API tests
# ---------------------------------------------------------------------------
def days_from_today(days: int) -> dt.date:
    return local_today() + dt.timedelta(days=days)


def participant(name: str = "Ayşe Demir", email: str = "ayse@example.com", birthdate: str = "1990-04-12") -> dict:
    return {"name": name, "email": email, "phone": "+90 533 123 4567", "birthdate": birthdate}


def auth(user: dict) -> dict:
    """Headers identifying ``user`` to the API."""
    return {"X-User-Id": user["user_id"]}


def create_test_user(client: TestClient, name: str = "Test User", email: str = None,
                     is_admin: bool = False) -> dict:
    """Helper — POST /api/users and return response JSON."""
    resp = client.post("/api/users", json={
        "name": name,
        "email": email or f"{name.lower().replace(' ', '.')}@example.com",
        "phone": "+90 533 000 0000",
        "birthdate": "1985-06-01",
        "is_admin": is_admin,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_event(client: TestClient, admin: dict, **overrides) -> dict:
    """Helper — POST /api/events as ``admin`` and return response JSON."""
    payload = {
        "title": "Harbour Clean-up",
        "city": "Kyrenia",
        "category": "Environment",
        "date": days_from_today(10).isoformat(),
        "time": "09:30",
        "location": "Old Harbour",
        "capacity": 2,
        "description": "Bring gloves and a water bottle.",
    }
    payload.update(overrides)
    resp = client.post("/api/events", json=payload, headers=auth(admin))
    assert resp.status_code == 201, resp.text
    return resp.json()
