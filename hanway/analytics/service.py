"""
Service layer to assemble the profile statistics.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from hanway import vocabulary_repo
from hanway.config import get_settings
from hanway.analytics.metrics import (
    compute_state_counts,
    compute_streaks,
    compute_total_reviews,
    compute_words_learned,
    retention,
)
from hanway.analytics.queries import cards_to_df, events_to_df
from hanway.analytics.types import ProfileStats
from hanway.fsrs import database
from hanway.fsrs.memory_state import utcnow


def build_profile_stats(
    cards: Iterable,
    events: Optional[list[dict]] = None,
    today: Optional[datetime] = None
) -> ProfileStats:
    """
    Build all figures shown on the profile screen.

    Args:
        cards: Vocabulary items or Cards
        events: Review event dicts (as returned by database.get_review_events)
        today: Reference time for the current streak (defaults to now)
    """
    cards = list(cards)
    cards_df = cards_to_df(cards)
    events_df = events_to_df(events or [])
    current_streak, longest_streak = compute_streaks(events_df, today or utcnow())

    return ProfileStats(
        total_words=len(cards),
        words_learned=compute_words_learned(cards_df),
        total_reviews=compute_total_reviews(cards_df),
        retention=retention(cards),
        state_counts=compute_state_counts(cards_df),
        current_streak=current_streak,
        longest_streak=longest_streak,
    )


def load_profile_stats(
    session: Session,
    user_id: Optional[str] = None,
    today: Optional[datetime] = None
) -> ProfileStats:
    """
    Load a user's words and review history and build their profile figures.

    Falls back to DEFAULT_USER_ID when no user is given.
    """
    if user_id is None:
        user_id = get_settings().default_user_id
    cards = vocabulary_repo.list_words(session, user_id=user_id)
    events = database.get_review_events(session, user_id=user_id)
    return build_profile_stats(cards, events, today=today)
