"""
Database - Card State I/O Operations

Handles all database operations for card state and review events.
Uses SQLAlchemy ORM; every function takes an explicit engine or session
so no database handle is held as module state.

This module handles ONLY database I/O.
Algorithm logic is handled by the scheduler module.

Concurrency contract:
    read card -> compute_review -> save_review must not lose updates when
    the same card is reviewed from two sessions. save_review therefore
    writes only if the stored rep count still matches the one the review
    was computed from (compare-and-swap) and raises StaleCardError otherwise.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hanway.fsrs.exceptions import CardNotFoundError, StaleCardError
from hanway.fsrs.memory_state import Card, as_utc
from hanway.fsrs.models import (
    Base,
    ReviewEvent as ReviewEventModel,
    VocabularyItem as VocabularyItemModel,
)
from hanway.fsrs.scheduler import ReviewOutcome

logger = logging.getLogger(__name__)


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Get SQLAlchemy engine for database connection.

    SQLite URLs get a connection shared across threads (and a single static
    connection for in-memory databases); other backends use a small
    connection pool.

    Args:
        database_url: SQLAlchemy URL (defaults to DATABASE_URL from settings)

    Returns:
        SQLAlchemy Engine instance
    """
    if database_url is None:
        from hanway.config import get_settings
        database_url = get_settings().database_url

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    return create_engine(
        database_url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
    )


def get_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine):
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times - only creates tables if they don't exist.
    """
    existing_tables = set(inspect(engine).get_table_names())
    missing = set(Base.metadata.tables) - existing_tables
    if missing:
        Base.metadata.create_all(engine)
        logger.info("Created tables: %s", ", ".join(sorted(missing)))


def reset_db(engine: Engine):
    """
    DANGEROUS: Delete all data and recreate tables.

    Only use this for testing or when you want to start fresh.
    All vocabulary and review history will be lost!
    """
    Base.metadata.drop_all(engine)
    logger.warning("All tables dropped")
    init_db(engine)


def row_to_card(row: VocabularyItemModel) -> Card:
    """Scheduling snapshot of a vocabulary row."""
    return Card(
        due_date=as_utc(row.due_date),
        stability=row.stability,
        difficulty=row.difficulty,
        elapsed_days=row.elapsed_days,
        scheduled_days=row.scheduled_days,
        reps=row.reps,
        lapses=row.lapses,
        state=row.state,
        last_review=as_utc(row.last_review) if row.last_review else None,
        created_at=as_utc(row.created_at),
    )


def load_card(session: Session, vocabulary_id: str) -> Card:
    """
    Load the scheduling snapshot of a vocabulary item.

    Raises:
        CardNotFoundError: if no item has this id
    """
    row = session.get(VocabularyItemModel, vocabulary_id)
    if row is None:
        raise CardNotFoundError(vocabulary_id)
    return row_to_card(row)


def save_review(
    session: Session,
    vocabulary_id: str,
    outcome: ReviewOutcome,
    expected_reps: int,
    session_id: Optional[str] = None
) -> None:
    """
    Persist a review: merge the updated fields and log the event.

    Both writes happen in one transaction.

    Args:
        session: Open SQLAlchemy session
        vocabulary_id: Item the review was computed for
        outcome: Result of compute_review
        expected_reps: reps value of the row the review was computed from
        session_id: Practice session id to record on the event

    Raises:
        CardNotFoundError: if the item no longer exists
        StaleCardError: if the item was reviewed since it was read
    """
    values = _to_column_values(outcome.updates)

    updated = session.query(VocabularyItemModel).filter(
        VocabularyItemModel.id == vocabulary_id,
        VocabularyItemModel.reps == expected_reps
    ).update(values, synchronize_session=False)

    if updated == 0:
        session.rollback()
        if session.get(VocabularyItemModel, vocabulary_id) is None:
            raise CardNotFoundError(vocabulary_id)
        logger.warning(
            "Rejected stale review of %s (expected reps=%d)", vocabulary_id, expected_reps
        )
        raise StaleCardError(vocabulary_id, expected_reps)

    row = session.get(VocabularyItemModel, vocabulary_id)
    session.add(_to_review_event(vocabulary_id, row.user_id if row else None, outcome, session_id))
    session.commit()
    # The bulk update bypassed the identity map
    if row is not None:
        session.refresh(row)


def get_recent_events(
    session: Session,
    limit: int = 10,
    user_id: Optional[str] = None
) -> list[dict]:
    """
    Get recent review events.

    Args:
        session: Open SQLAlchemy session
        limit: Maximum number of events to return
        user_id: Restrict to one user's events

    Returns:
        List of recent events (newest first)
    """
    query = session.query(ReviewEventModel)
    if user_id is not None:
        query = query.filter(ReviewEventModel.user_id == user_id)
    events = query.order_by(
        ReviewEventModel.timestamp.desc(),
        ReviewEventModel.id.desc()
    ).limit(limit).all()
    return [_event_to_dict(event) for event in events]


def get_review_events(
    session: Session,
    user_id: Optional[str] = None,
    since: Optional[datetime] = None
) -> list[dict]:
    """
    Get review events in chronological order (for analytics).

    Args:
        session: Open SQLAlchemy session
        user_id: Restrict to one user's events
        since: Only events at or after this time

    Returns:
        List of events (oldest first)
    """
    query = session.query(ReviewEventModel)
    if user_id is not None:
        query = query.filter(ReviewEventModel.user_id == user_id)
    if since is not None:
        query = query.filter(ReviewEventModel.timestamp >= as_utc(since))
    events = query.order_by(ReviewEventModel.timestamp.asc(), ReviewEventModel.id.asc()).all()
    return [_event_to_dict(event) for event in events]


def _to_column_values(updates: dict) -> dict:
    values = dict(updates)
    values["state"] = values["state"].value
    for name in ("due_date", "last_review"):
        if values.get(name) is not None:
            values[name] = as_utc(values[name])
    return values


def _to_review_event(
    vocabulary_id: str,
    user_id: Optional[str],
    outcome: ReviewOutcome,
    session_id: Optional[str]
) -> ReviewEventModel:
    log = outcome.review_log
    is_first_review = log.retrievability is None
    return ReviewEventModel(
        vocabulary_id=vocabulary_id,
        user_id=user_id,
        timestamp=as_utc(log.review_time),
        rating=int(log.rating),
        state_before=log.state.value,
        stability_before=None if is_first_review else log.stability,
        difficulty_before=None if is_first_review else log.difficulty,
        retrievability_before=log.retrievability,
        state_after=outcome.card.state.value,
        stability_after=outcome.card.stability,
        difficulty_after=outcome.card.difficulty,
        elapsed_days=log.elapsed_days,
        last_elapsed_days=log.last_elapsed_days,
        scheduled_days=log.scheduled_days,
        session_id=session_id,
    )


def _event_to_dict(event: ReviewEventModel) -> dict:
    return {
        "id": event.id,
        "vocabulary_id": event.vocabulary_id,
        "user_id": event.user_id,
        "timestamp": as_utc(event.timestamp),
        "rating": event.rating,
        "state_before": event.state_before,
        "stability_before": event.stability_before,
        "difficulty_before": event.difficulty_before,
        "retrievability_before": event.retrievability_before,
        "state_after": event.state_after,
        "stability_after": event.stability_after,
        "difficulty_after": event.difficulty_after,
        "elapsed_days": event.elapsed_days,
        "last_elapsed_days": event.last_elapsed_days,
        "scheduled_days": event.scheduled_days,
        "session_id": event.session_id,
    }
