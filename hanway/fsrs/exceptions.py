"""
Exceptions raised by the scheduler and its storage collaborator.
"""

from __future__ import annotations


class HanwayError(Exception):
    """Base class for errors raised by this package."""


class InvalidRatingError(HanwayError, ValueError):
    """A rating token outside again/hard/good/easy reached the engine."""

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"Invalid rating {value!r}; expected one of 'again', 'hard', 'good', 'easy'"
        )


class CardNotFoundError(HanwayError, LookupError):
    """No vocabulary item exists with the requested id."""

    def __init__(self, vocabulary_id: str):
        self.vocabulary_id = vocabulary_id
        super().__init__(f"Vocabulary item {vocabulary_id!r} not found")


class StaleCardError(HanwayError):
    """
    The stored card changed between read and write.

    Raised by the store when a review was computed from a snapshot whose
    rep count no longer matches the persisted row.
    """

    def __init__(self, vocabulary_id: str, expected_reps: int):
        self.vocabulary_id = vocabulary_id
        self.expected_reps = expected_reps
        super().__init__(
            f"Vocabulary item {vocabulary_id!r} was reviewed concurrently "
            f"(expected reps={expected_reps})"
        )
