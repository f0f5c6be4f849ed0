"""
Practice session lifecycle.

Walks the learner through the cards that are due:
1. Load due cards (plain due-date filter)
2. Show the current card and, optionally, the four-button forecast
3. Take a rating, run the scheduler on a fresh read of the card
4. Persist with compare-and-swap, count the answer, advance

Session counters are stored in practice_sessions so a session summary
survives the process.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from hanway import vocabulary_repo
from hanway.config import get_settings
from hanway.fsrs import database
from hanway.fsrs.constants import Rating
from hanway.fsrs.memory_state import as_utc, utcnow
from hanway.fsrs.scheduling import round_half_up
from hanway.fsrs.models import PracticeSession as PracticeSessionModel
from hanway.fsrs.scheduler import (
    IntervalPreview,
    ReviewOutcome,
    Scheduler,
    get_default_scheduler,
)
from hanway.schemas import VocabularyItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSummary:
    total: int
    correct: int
    percent: int
    counts: dict[str, int]


class PracticeSession:
    """
    One pass through the due cards.

    Args:
        session: Open SQLAlchemy session (the storage handle)
        scheduler: Scheduler to use (defaults to the configured one)
        user_id: Restrict to one user's words (defaults to DEFAULT_USER_ID)
        limit: Maximum number of cards in the session
    """

    def __init__(
        self,
        session: Session,
        scheduler: Optional[Scheduler] = None,
        user_id: Optional[str] = None,
        limit: Optional[int] = None
    ):
        self.session = session
        self.scheduler = scheduler or get_default_scheduler()
        self.user_id = user_id if user_id is not None else get_settings().default_user_id
        self.limit = limit

        self.id: Optional[str] = None
        self.items: list[VocabularyItem] = []
        self.position = 0
        self.counts = {rating.token: 0 for rating in Rating}

    # ---- Lifecycle ----

    def start(self, now: Optional[datetime] = None) -> int:
        """
        Load due cards and open a session record.

        Returns:
            Number of cards in the session
        """
        now = as_utc(now) if now is not None else utcnow()
        self.items = vocabulary_repo.list_due(
            self.session, now=now, user_id=self.user_id, limit=self.limit
        )
        self.position = 0
        self.counts = {rating.token: 0 for rating in Rating}
        self.id = str(uuid.uuid4())

        record = PracticeSessionModel(
            id=self.id,
            user_id=self.user_id,
            started_at=now,
            total_cards=len(self.items),
        )
        if not self.items:
            record.completed_at = now
        self.session.add(record)
        self.session.commit()

        logger.info("Started practice session %s with %d due cards", self.id, len(self.items))
        return len(self.items)

    @property
    def current_card(self) -> Optional[VocabularyItem]:
        if self.position < len(self.items):
            return self.items[self.position]
        return None

    @property
    def is_complete(self) -> bool:
        return self.id is not None and self.position >= len(self.items)

    def preview(self, now: Optional[datetime] = None) -> dict[Rating, IntervalPreview]:
        """Forecast for the current card's rating buttons."""
        item = self._require_current()
        card = database.load_card(self.session, item.id)
        return self.scheduler.preview_intervals(card, now)

    def answer(self, rating, now: Optional[datetime] = None) -> ReviewOutcome:
        """
        Apply the learner's rating to the current card and advance.

        Raises:
            InvalidRatingError: for an unknown rating token (nothing is saved)
            StaleCardError: if the card was reviewed elsewhere meanwhile;
                the session stays on this card so the caller can skip it
        """
        rating = Rating.parse(rating)
        item = self._require_current()
        now = as_utc(now) if now is not None else utcnow()

        card = database.load_card(self.session, item.id)
        outcome = self.scheduler.compute_review(card, rating, now)
        database.save_review(
            self.session, item.id, outcome, expected_reps=card.reps, session_id=self.id
        )

        self.counts[rating.token] += 1
        self.position += 1
        self._save_progress(now)
        return outcome

    def skip(self) -> None:
        """Move past the current card without rating it."""
        self._require_current()
        self.position += 1
        if self.is_complete:
            self._save_progress(utcnow())

    def summary(self) -> SessionSummary:
        """
        Answers given so far; anything but AGAIN counts as correct.
        """
        total = sum(self.counts.values())
        correct = total - self.counts[Rating.AGAIN.token]
        percent = round_half_up(100 * correct / total) if total else 0
        return SessionSummary(total=total, correct=correct, percent=percent, counts=dict(self.counts))

    # ---- Helpers ----

    def _require_current(self) -> VocabularyItem:
        if self.id is None:
            raise RuntimeError("Practice session not started; call start() first")
        item = self.current_card
        if item is None:
            raise RuntimeError("Practice session is complete; no card to review")
        return item

    def _save_progress(self, now: datetime) -> None:
        record = self.session.get(PracticeSessionModel, self.id)
        if record is None:
            return
        summary = self.summary()
        record.correct_count = summary.correct
        record.again_count = self.counts["again"]
        record.hard_count = self.counts["hard"]
        record.good_count = self.counts["good"]
        record.easy_count = self.counts["easy"]
        if self.is_complete and record.completed_at is None:
            record.completed_at = now
            logger.info(
                "Completed practice session %s: %d/%d correct",
                self.id, summary.correct, summary.total,
            )
        self.session.commit()
