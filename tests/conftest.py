"""
Shared fixtures: an in-memory SQLite store, a fixed clock and a
fuzz-free scheduler.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from hanway import config
from hanway.fsrs import FSRS_6_PARAMETERS, Card, Scheduler, State
from hanway.fsrs.database import get_engine, get_session_factory, init_db


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Settings are re-read from the environment in every test."""
    monkeypatch.delenv("DEFAULT_USER_ID", raising=False)
    monkeypatch.setattr(config, "_settings", None)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def scheduler():
    """Scheduler with fuzz disabled so intervals are exact."""
    return Scheduler(replace(FSRS_6_PARAMETERS, enable_fuzz=False))


@pytest.fixture
def engine():
    engine = get_engine("sqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = get_session_factory(engine)()
    yield session
    session.close()


def _review_card(now, stability=10.0, difficulty=5.0, reps=5, lapses=0, days_ago=10):
    last_review = now - timedelta(days=days_ago)
    return Card(
        due_date=last_review + timedelta(days=round(stability)),
        stability=stability,
        difficulty=difficulty,
        elapsed_days=3,
        scheduled_days=float(round(stability)),
        reps=reps,
        lapses=lapses,
        state=State.REVIEW,
        last_review=last_review,
        created_at=now - timedelta(days=60),
    )


@pytest.fixture
def sample_cards(now):
    """One card per lifecycle state."""
    return {
        "new": Card(due_date=now, created_at=now),
        "learning": Card(
            due_date=now,
            stability=0.212,
            difficulty=6.4133,
            scheduled_days=1 / 1440,
            reps=1,
            state=State.LEARNING,
            last_review=now - timedelta(minutes=5),
            created_at=now - timedelta(minutes=5),
        ),
        "review": _review_card(now),
        "relearning": Card(
            due_date=now,
            stability=2.0,
            difficulty=7.0,
            scheduled_days=10 / 1440,
            reps=7,
            lapses=1,
            state=State.RELEARNING,
            last_review=now - timedelta(minutes=12),
            created_at=now - timedelta(days=90),
        ),
    }


@pytest.fixture
def make_review_card(now):
    """Factory for review-phase cards, last reviewed days_ago days before now."""
    def make(**kwargs):
        return _review_card(now, **kwargs)
    return make
