"""
Shared pytest fixtures.

Uses an in-memory SQLite database (one shared connection via StaticPool) so
no Postgres is required for tests. The schema is rebuilt for every test.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recruit_timeline.core.config import Settings
from recruit_timeline.db.base import Base, get_db
from recruit_timeline.main import app
from recruit_timeline.models import AthleteProfile, SeasonalEvent, TaskDefinition, TaskPriority
from recruit_timeline.routers.timeline import get_clock
from recruit_timeline.services.catalog import SqlTaskCatalog
from recruit_timeline.services.profile_facts import SqlProfileFactsProvider
from recruit_timeline.services.store import SqlTimelineStore
from recruit_timeline.services.timeline_engine import TimelineEngine

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Mid-October: recruiting_season, inside the recruiting_season_peak window.
DEFAULT_NOW = datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = DEFAULT_NOW):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def clock():
    return FixedClock()


@pytest.fixture()
def test_settings():
    return Settings(DATABASE_URL="sqlite://")


@pytest.fixture()
def timeline_engine(db, clock, test_settings):
    return TimelineEngine(
        store=SqlTimelineStore(db),
        facts_provider=SqlProfileFactsProvider(db),
        catalog=SqlTaskCatalog(db),
        clock=clock,
        cfg=test_settings,
    )


@pytest.fixture()
def client(db, clock):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

@pytest.fixture()
def make_profile(db):
    def _make(user_id: int = 1, **overrides) -> AthleteProfile:
        values = {
            "user_id": user_id,
            "role": "high_school",
            "sport": "football",
            "first_name": "Jordan",
            "position": "WR",
            "high_school_name": "Central High",
            "graduation_year": 2027,
        }
        values.update(overrides)
        profile = AthleteProfile(**values)
        db.add(profile)
        db.commit()
        return profile

    return _make


@pytest.fixture()
def make_definition(db):
    def _make(task_key: str, triggers: list, **overrides) -> TaskDefinition:
        values = {
            "task_key": task_key,
            "title": task_key.replace("_", " ").title(),
            "description": f"Do {task_key}.",
            "why_it_matters": "",
            "how_to_complete": "",
            "estimated_minutes": 10,
            "base_priority": TaskPriority.medium,
            "dependencies": [],
            "triggers": triggers,
            "blocks_sharing": False,
            "applicable_sports": ["football"],
            "applicable_roles": ["high_school", "transfer_portal"],
        }
        values.update(overrides)
        definition = TaskDefinition(**values)
        db.add(definition)
        db.commit()
        return definition

    return _make


@pytest.fixture()
def make_seasonal_event(db):
    def _make(event_key: str, start: tuple[int, int], end: tuple[int, int], **overrides) -> SeasonalEvent:
        values = {
            "event_key": event_key,
            "title": event_key.replace("_", " ").title(),
            "start_month": start[0],
            "start_day": start[1],
            "end_month": end[0],
            "end_day": end[1],
            "sport": "football",
            "priority_boost": 1,
        }
        values.update(overrides)
        event = SeasonalEvent(**values)
        db.add(event)
        db.commit()
        return event

    return _make
