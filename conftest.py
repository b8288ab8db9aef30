# conftest.py

import os

# Keep module-level engine creation off the real database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, Place, SmartTask, CategoryEnum, PriorityEnum, StatusEnum

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_task(db):
    """
    Insert a task directly, bypassing the classifier.

    created_at defaults to a strictly increasing sequence so that ordering
    by creation time is deterministic.
    """
    counter = {"n": 0}

    def _make(
        text="buy milk",
        category=CategoryEnum.GROCERY,
        priority=PriorityEnum.MEDIUM,
        status=StatusEnum.PENDING,
        triggered_at=None,
        cooldown_minutes=60,
        created_at=None,
    ):
        counter["n"] += 1
        if created_at is None:
            created_at = NOW - timedelta(days=1) + timedelta(seconds=counter["n"])
        task = SmartTask(
            id=str(uuid.uuid4()),
            text=text,
            category=category,
            priority=priority,
            status=status,
            triggered_at=triggered_at,
            cooldown_minutes=cooldown_minutes,
            created_at=created_at,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    return _make


class FakeProximity:
    """
    In-memory ProximityIndex for engine tests.

    - places: category -> place name (a hit) ; missing category -> no match
    - errors: category -> exception raised on query
    - on_query: optional hook called before answering, used to simulate
      concurrent writers
    """

    def __init__(self, places=None, errors=None, on_query=None):
        self.places = dict(places or {})
        self.errors = dict(errors or {})
        self.on_query = on_query
        self.calls = []

    def query(self, category, point, radius_meters):
        self.calls.append((category, point.lat, point.lng, radius_meters))
        if self.on_query is not None:
            self.on_query(category)
        if category in self.errors:
            raise self.errors[category]
        name = self.places.get(category)
        if name is None:
            return None
        return Place(name=name, category=category)


@pytest.fixture()
def fake_proximity():
    return FakeProximity
