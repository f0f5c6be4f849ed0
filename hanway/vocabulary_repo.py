"""
SQLAlchemy repository for vocabulary access.

Provides functions to save, query and delete words. Scheduling updates go
through hanway.fsrs.database.save_review instead of this module.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from hanway.config import get_settings
from hanway.fsrs.constants import State
from hanway.fsrs.memory_state import as_utc, utcnow
from hanway.fsrs.models import VocabularyItem as VocabularyItemModel
from hanway.schemas import NewWord, VocabularyItem

logger = logging.getLogger(__name__)


# ---- Writes ----

def add_word(
    session: Session,
    word: NewWord,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> VocabularyItem:
    """
    Save a translated word as a new, immediately due card.

    Args:
        session: Open SQLAlchemy session
        word: Validated word fields
        user_id: Owner of the word (defaults to DEFAULT_USER_ID, None for guest use)
        now: Creation time (defaults to now)

    Returns:
        The stored vocabulary item
    """
    if user_id is None:
        user_id = get_settings().default_user_id
    now = as_utc(now) if now is not None else utcnow()
    row = VocabularyItemModel(
        id=str(uuid.uuid4()),
        user_id=user_id,
        chinese=word.chinese,
        pinyin=word.pinyin,
        english=word.english,
        created_at=now,
        due_date=now,
        stability=0.0,
        difficulty=0.0,
        elapsed_days=0,
        scheduled_days=0.0,
        reps=0,
        lapses=0,
        state=State.NEW.value,
        last_review=None,
    )
    session.add(row)
    session.commit()
    logger.debug("Saved word %s (%s)", row.id, word.chinese)
    return VocabularyItem.model_validate(row)


def delete_word(session: Session, vocabulary_id: str) -> bool:
    """
    Delete a word and its scheduling state.

    Review events are kept as history.

    Returns:
        True if a word was deleted, False if none had this id
    """
    deleted = session.query(VocabularyItemModel).filter(
        VocabularyItemModel.id == vocabulary_id
    ).delete(synchronize_session=False)
    session.commit()
    return deleted > 0


# ---- Query Functions ----

def get_word(session: Session, vocabulary_id: str) -> Optional[VocabularyItem]:
    """
    Get a specific word by id.

    Returns:
        Vocabulary item, or None if not found
    """
    row = session.get(VocabularyItemModel, vocabulary_id)
    return VocabularyItem.model_validate(row) if row is not None else None


def list_words(session: Session, user_id: Optional[str] = None) -> list[VocabularyItem]:
    """
    Get all words, newest first.

    Args:
        session: Open SQLAlchemy session
        user_id: If provided, only this user's words
    """
    query = _scoped(session, user_id)
    rows = query.order_by(VocabularyItemModel.created_at.desc()).all()
    return [VocabularyItem.model_validate(row) for row in rows]


def search_words(
    session: Session,
    text: str,
    user_id: Optional[str] = None
) -> list[VocabularyItem]:
    """
    Find words whose chinese, pinyin or english contains the text.

    Returns:
        Matching items, newest first
    """
    pattern = f"%{text}%"
    query = _scoped(session, user_id).filter(
        or_(
            VocabularyItemModel.chinese.like(pattern),
            VocabularyItemModel.pinyin.like(pattern),
            VocabularyItemModel.english.like(pattern),
        )
    )
    rows = query.order_by(VocabularyItemModel.created_at.desc()).all()
    return [VocabularyItem.model_validate(row) for row in rows]


def list_due(
    session: Session,
    now: Optional[datetime] = None,
    user_id: Optional[str] = None,
    limit: Optional[int] = None
) -> list[VocabularyItem]:
    """
    Get words whose due date has passed, most overdue first.

    This is a plain due-date filter; it makes no attempt to rank cards
    beyond their due dates.

    Args:
        session: Open SQLAlchemy session
        now: Reference time (defaults to now)
        user_id: If provided, only this user's words
        limit: Maximum number of words to return
    """
    now = as_utc(now) if now is not None else utcnow()
    query = _scoped(session, user_id).filter(
        VocabularyItemModel.due_date <= now
    ).order_by(VocabularyItemModel.due_date.asc(), VocabularyItemModel.created_at.asc())
    if limit is not None:
        query = query.limit(limit)
    return [VocabularyItem.model_validate(row) for row in query.all()]


def _scoped(session: Session, user_id: Optional[str]):
    query = session.query(VocabularyItemModel)
    if user_id is not None:
        query = query.filter(VocabularyItemModel.user_id == user_id)
    return query
