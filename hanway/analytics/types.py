"""
Types for the profile analytics.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProfileStats:
    """
    Headline figures for the learner's profile screen.
    """
    total_words: int
    words_learned: int
    total_reviews: int
    retention: int
    state_counts: dict[str, int]
    current_streak: int
    longest_streak: int
