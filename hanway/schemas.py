"""
Pydantic models for vocabulary records.

These models validate words on their way into the store and give callers
a typed view of stored rows.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from hanway.fsrs.constants import State
from hanway.fsrs.memory_state import Card, as_utc


# Configuration
MAX_CHINESE_LENGTH = 50  # Longest phrase accepted from the translation box


class NewWord(BaseModel):
    """A word the learner saved from a translation."""
    chinese: str = Field(..., min_length=1, max_length=MAX_CHINESE_LENGTH, description="Traditional Chinese text")
    pinyin: str = Field(..., min_length=1, description="Pinyin with tone marks")
    english: str = Field(..., min_length=1, description="English gloss")

    @field_validator("chinese", "pinyin", "english", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class VocabularyItem(BaseModel):
    """
    A stored vocabulary entry with its scheduling state.

    One record per saved word.
    """
    id: str
    user_id: Optional[str] = None

    chinese: str
    pinyin: str
    english: str
    created_at: datetime

    # Scheduling state
    due_date: datetime
    stability: float = 0.0
    difficulty: float = 0.0
    elapsed_days: int = 0
    scheduled_days: float = 0.0
    reps: int = 0
    lapses: int = 0
    state: str = State.NEW.value  # unknown values are clamped by the scheduler
    last_review: Optional[datetime] = None

    class Config:
        from_attributes = True  # Build directly from ORM rows

    @field_validator("created_at", "due_date", "last_review")
    @classmethod
    def _utc(cls, value):
        return as_utc(value) if value is not None else value

    def to_card(self) -> Card:
        """Scheduling snapshot for this entry."""
        return Card.from_record(self.model_dump())
