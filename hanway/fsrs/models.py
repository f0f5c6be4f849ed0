"""
SQLAlchemy ORM Models for the vocabulary store

Defines VocabularyItem, ReviewEvent and PracticeSession models.
"""

from sqlalchemy import Column, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class VocabularyItem(Base):
    """
    A saved word together with its scheduling state.

    One row per word the learner saved from a translation.
    """
    __tablename__ = 'vocabulary'

    id = Column(String(36), primary_key=True)
    user_id = Column(String(255), nullable=True)

    chinese = Column(String(255), nullable=False)
    pinyin = Column(String(255), nullable=False)
    english = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    # Scheduling state (owned by the scheduler)
    due_date = Column(DateTime(timezone=True), nullable=False)
    stability = Column(Float, nullable=False, default=0.0)
    difficulty = Column(Float, nullable=False, default=0.0)
    elapsed_days = Column(Integer, nullable=False, default=0)
    scheduled_days = Column(Float, nullable=False, default=0.0)  # minutes/1440 below one day
    reps = Column(Integer, nullable=False, default=0)
    lapses = Column(Integer, nullable=False, default=0)
    state = Column(String(20), nullable=False, default='new')
    last_review = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_vocabulary_due_date', 'due_date'),
        Index('idx_vocabulary_state', 'state'),
    )

    def __repr__(self):
        return f"<VocabularyItem({self.id}, {self.chinese}, {self.state})>"


class ReviewEvent(Base):
    """
    Log entry for a single rating applied to a vocabulary item.

    Captures the card state before and after the review.
    """
    __tablename__ = 'review_events'

    id = Column(Integer, primary_key=True, autoincrement=True)

    vocabulary_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(255), nullable=True)

    timestamp = Column(DateTime(timezone=True), nullable=False)
    rating = Column(Integer, nullable=False)  # 1=AGAIN, 2=HARD, 3=GOOD, 4=EASY

    # State before review
    state_before = Column(String(20), nullable=False)
    stability_before = Column(Float, nullable=True)
    difficulty_before = Column(Float, nullable=True)
    retrievability_before = Column(Float, nullable=True)  # None for a first review

    # State after review
    state_after = Column(String(20), nullable=False)
    stability_after = Column(Float, nullable=False)
    difficulty_after = Column(Float, nullable=False)
    elapsed_days = Column(Integer, nullable=False)
    last_elapsed_days = Column(Integer, nullable=False, default=0)  # elapsed_days of the previous review
    scheduled_days = Column(Float, nullable=False)

    # Practice session context (optional)
    session_id = Column(String(36), nullable=True)

    def __repr__(self):
        return f"<ReviewEvent(id={self.id}, {self.vocabulary_id}, rating={self.rating})>"


class PracticeSession(Base):
    """Counters for one pass through the due cards."""
    __tablename__ = 'practice_sessions'

    id = Column(String(36), primary_key=True)
    user_id = Column(String(255), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    total_cards = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    again_count = Column(Integer, nullable=False, default=0)
    hard_count = Column(Integer, nullable=False, default=0)
    good_count = Column(Integer, nullable=False, default=0)
    easy_count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<PracticeSession({self.id}, {self.correct_count}/{self.total_cards})>"
