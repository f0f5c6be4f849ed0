"""
Metric computations for the profile screen.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

import pandas as pd

from hanway.fsrs.constants import State
from hanway.fsrs.memory_state import as_utc
from hanway.fsrs.scheduling import round_half_up


def retention(cards: Iterable) -> int:
    """
    Percentage of reviews that were not lapses, over reviewed cards.

    Formula: round(100 * (sum(reps) - sum(lapses)) / sum(reps)), taken over
    cards with reps > 0. Returns 0 when nothing has been reviewed.

    This is a lapses-over-reps approximation, not a model-based estimate of
    current retrievability.

    Args:
        cards: Card or VocabularyItem objects, or mappings with reps and lapses
    """
    total_reps = 0
    total_lapses = 0
    for card in cards:
        reps = max(0, int(_field(card, "reps")))
        if reps == 0:
            continue
        total_reps += reps
        total_lapses += min(max(0, int(_field(card, "lapses"))), reps)

    if total_reps == 0:
        return 0
    return round_half_up(100.0 * (total_reps - total_lapses) / total_reps)


def _field(card: Any, name: str):
    if isinstance(card, Mapping):
        return card.get(name) or 0
    return getattr(card, name)


def compute_state_counts(cards_df: pd.DataFrame) -> dict[str, int]:
    """
    Number of cards in each lifecycle state (all four states present).
    """
    states = [state.value for state in State]
    if cards_df.empty:
        return {state: 0 for state in states}
    counts = cards_df["state"].value_counts().reindex(states, fill_value=0)
    return {state: int(count) for state, count in counts.items()}


def compute_total_reviews(cards_df: pd.DataFrame) -> int:
    if cards_df.empty:
        return 0
    return int(cards_df["reps"].clip(lower=0).sum())


def compute_words_learned(cards_df: pd.DataFrame) -> int:
    """
    Cards that have graduated to the review phase.
    """
    if cards_df.empty:
        return 0
    return int((cards_df["state"] == State.REVIEW.value).sum())


def compute_streaks(events_df: pd.DataFrame, today: datetime) -> tuple[int, int]:
    """
    Current and longest run of consecutive UTC days with at least one review.

    The current streak is still alive if the last review day is today or
    yesterday.

    Returns:
        (current_streak, longest_streak)
    """
    if events_df.empty:
        return 0, 0

    days = events_df["day_utc"].drop_duplicates().sort_values().reset_index(drop=True)
    run_ids = days.diff().dt.days.ne(1).cumsum()
    run_lengths = days.groupby(run_ids).size()

    longest = int(run_lengths.max())
    today_utc = pd.Timestamp(as_utc(today)).floor("D")
    gap = (today_utc - days.iloc[-1]).days
    current = int(run_lengths.iloc[-1]) if gap <= 1 else 0
    return current, longest
