# tests/conftest.py

import itertools
from datetime import datetime, timedelta

import pytest
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session, sessionmaker
from starlette.testclient import TestClient

from eventhub.database import create_db_engine, get_db, init_db
from eventhub.dependencies.permissions import get_current_user, get_optional_user
from eventhub.main import app
from eventhub.models.enums import EventCategory, EventStatus
from eventhub.models.event import Event
from eventhub.models.rsvp import RSVP
from eventhub.models.user import User
from eventhub.utils.limiter import limiter


# --- Test Database Setup ---
# Each test gets its own SQLite file so worker threads can share it


@pytest.fixture
def engine(tmp_path):
    test_engine = create_db_engine(f"sqlite:///{tmp_path / 'eventhub_test.db'}")
    init_db(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Sessions configured exactly like the application's SessionLocal"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(engine):
    """Session for arranging data in a test.

    Objects keep their attributes after commit, so reading ids later does not
    open a new transaction that would hold SQLite's write lock.
    """
    session = sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
    )()
    yield session
    session.close()


# --- Factories ---


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make_user(**overrides):
        n = next(counter)
        user = User(
            email=overrides.pop("email", f"user{n}@example.com"),
            name=overrides.pop("name", f"Test User {n}"),
            supabase_id=overrides.pop("supabase_id", f"sb-user-{n}"),
            is_active=True,
            **overrides,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def make_event(db):
    def _make_event(creator, capacity=10, **overrides):
        fields = {
            "title": "Community Jazz Night",
            "description": "An evening of live jazz in the park.",
            "start_date": datetime.utcnow() + timedelta(days=7),
            "location": "Riverside Park",
            "category": EventCategory.MUSIC.value,
            "status": EventStatus.UPCOMING.value,
            "current_attendees": 0,
        }
        fields.update(overrides)
        event = Event(capacity=capacity, created_by=creator.id, **fields)
        db.add(event)
        db.commit()
        return event

    return _make_event


@pytest.fixture
def seat_count(session_factory):
    """Read current_attendees through a fresh session"""

    def _seat_count(event_id):
        with session_factory() as session:
            return session.get(Event, event_id).current_attendees

    return _seat_count


@pytest.fixture
def rsvp_count(session_factory):
    def _rsvp_count(event_id):
        with session_factory() as session:
            return session.query(RSVP).filter(RSVP.event_id == event_id).count()

    return _rsvp_count


# --- Test Client Fixtures ---


@pytest.fixture
def auth_state():
    return {"user_id": None}


@pytest.fixture
def login(auth_state):
    """Make subsequent requests authenticate as the given user (or nobody)"""

    def _login(user):
        auth_state["user_id"] = user.id if user is not None else None

    return _login


@pytest.fixture
def app_with_db(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Request counts are kept in memory across tests
    limiter.reset()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_with_db, auth_state):
    """
    TestClient backed by the test database, with Supabase token checks replaced
    by whatever user `login` selected.
    """

    def override_get_current_user(db: Session = Depends(get_db)):
        user_id = auth_state["user_id"]
        user = db.get(User, user_id) if user_id is not None else None
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
            )
        return user

    def override_get_optional_user(db: Session = Depends(get_db)):
        user_id = auth_state["user_id"]
        return db.get(User, user_id) if user_id is not None else None

    app_with_db.dependency_overrides[get_current_user] = override_get_current_user
    app_with_db.dependency_overrides[get_optional_user] = override_get_optional_user

    return TestClient(app_with_db)
