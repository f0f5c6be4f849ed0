"""
Scheduler - FSRS Algorithm Logic

Pure FSRS scheduling and state updates (no database calls).

Main workflow:
1. Load card snapshot (caller's responsibility)
2. Sanitize the snapshot and measure elapsed time
3. Simulate all four ratings with the same transition function
4. Return the chosen branch (compute_review) or all four (preview_intervals)

This module handles ONLY the algorithm logic.
Persisting the returned fields is handled by the database module.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional, Union

from hanway.fsrs import ltm_updates, memory_state, scheduling, stm_updates
from hanway.fsrs.constants import (
    FSRS_6_PARAMETERS,
    GRADUATION_INTERVAL_DAYS,
    Rating,
    SchedulerParameters,
    State,
)
from hanway.fsrs.memory_state import Card

logger = logging.getLogger(__name__)

RatingInput = Union[Rating, str]

# Fields the scheduler is authoritative over; callers merge exactly these.
UPDATED_FIELDS = (
    "stability",
    "difficulty",
    "elapsed_days",
    "scheduled_days",
    "reps",
    "lapses",
    "state",
    "last_review",
    "due_date",
)


@dataclass(frozen=True)
class ReviewLog:
    """State of the card before a review, plus what the review decided."""
    rating: Rating
    review_time: datetime
    state: State
    due_date: datetime
    stability: float
    difficulty: float
    retrievability: Optional[float]
    elapsed_days: int
    last_elapsed_days: int
    scheduled_days: float


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of applying one rating to a card."""
    card: Card
    review_log: ReviewLog

    @property
    def rating(self) -> Rating:
        return self.review_log.rating

    @property
    def updates(self) -> dict:
        """Partial record with exactly the fields the scheduler owns."""
        return {name: getattr(self.card, name) for name in UPDATED_FIELDS}


@dataclass(frozen=True)
class IntervalPreview:
    """What the card would get for one rating, for the forecast buttons."""
    rating: Rating
    label: str
    due_date: datetime
    scheduled_days: float
    state: State


class Scheduler:
    """
    Spaced repetition scheduler over a fixed parameter table.

    Args:
        parameters: Parameter table (defaults to the FSRS-6 defaults)
        rng: Random source for interval fuzz. When omitted, each review
            seeds its own generator from the card and timestamp, so a
            preview and the review that follows it agree.
    """

    def __init__(
        self,
        parameters: Optional[SchedulerParameters] = None,
        rng: Optional[random.Random] = None
    ):
        self.parameters = parameters or FSRS_6_PARAMETERS
        self.rng = rng

    def compute_review(
        self,
        card: Card,
        rating: RatingInput,
        now: Optional[datetime] = None
    ) -> ReviewOutcome:
        """
        Apply a rating to a card and return the updated snapshot.

        Args:
            card: Card snapshot (not modified)
            rating: Rating member or 'again'/'hard'/'good'/'easy'
            now: Review timestamp (defaults to now, UTC)

        Returns:
            ReviewOutcome with the new card, its updates dict and a review log

        Raises:
            InvalidRatingError: if the rating token is not recognised
        """
        rating = Rating.parse(rating)
        outcome = self.repeat(card, now)[rating]
        logger.debug(
            "Reviewed card (%s, reps=%d) as %s -> %s in %.4f days",
            outcome.review_log.state.value,
            card.reps,
            rating.token,
            outcome.card.state.value,
            outcome.card.scheduled_days,
        )
        return outcome

    def preview_intervals(
        self,
        card: Card,
        now: Optional[datetime] = None
    ) -> dict[Rating, IntervalPreview]:
        """
        Forecast the interval each rating would produce, without committing.

        Returns:
            Mapping of every Rating to its IntervalPreview
        """
        return {
            rating: IntervalPreview(
                rating=rating,
                label=scheduling.format_interval(outcome.card.scheduled_days),
                due_date=outcome.card.due_date,
                scheduled_days=outcome.card.scheduled_days,
                state=outcome.card.state,
            )
            for rating, outcome in self.repeat(card, now).items()
        }

    def repeat(
        self,
        card: Card,
        now: Optional[datetime] = None
    ) -> dict[Rating, ReviewOutcome]:
        """
        Simulate every rating from the same starting snapshot.

        This is the single transition function behind both compute_review
        and preview_intervals.
        """
        now = memory_state.as_utc(now) if now is not None else memory_state.utcnow()
        card = memory_state.sanitize_card(card)

        elapsed_days = memory_state.get_elapsed_days(card, now)
        same_day = memory_state.is_same_day_review(card, now)

        if card.is_new:
            retrievability = None
        else:
            retrievability = memory_state.calculate_retrievability(
                card.stability, elapsed_days, self.parameters
            )

        memory = {
            rating: self._next_memory(card, rating, retrievability, same_day)
            for rating in Rating
        }
        plan = self._plan_intervals(card, memory)

        fuzz_factor = self._fuzz_factor(card, now) if self.parameters.enable_fuzz else None

        outcomes = {}
        for rating in Rating:
            stability, difficulty = memory[rating]
            state, interval = plan[rating]

            if fuzz_factor is not None and state == State.REVIEW:
                fuzzed = scheduling.apply_fuzz(
                    interval.days, elapsed_days, fuzz_factor, self.parameters
                )
                interval = timedelta(days=fuzzed)

            lapses = card.lapses
            if rating == Rating.AGAIN and not card.is_new and card.state in (
                State.REVIEW, State.RELEARNING
            ):
                lapses += 1

            scheduled_days = scheduling.interval_in_days(interval)
            next_card = replace(
                card,
                stability=stability,
                difficulty=difficulty,
                elapsed_days=elapsed_days,
                scheduled_days=scheduled_days,
                reps=card.reps + 1,
                lapses=lapses,
                state=state,
                last_review=now,
                due_date=now + interval,
            )
            review_log = ReviewLog(
                rating=rating,
                review_time=now,
                state=card.state,
                due_date=card.due_date,
                stability=card.stability,
                difficulty=card.difficulty,
                retrievability=retrievability,
                elapsed_days=elapsed_days,
                last_elapsed_days=card.elapsed_days,
                scheduled_days=scheduled_days,
            )
            outcomes[rating] = ReviewOutcome(card=next_card, review_log=review_log)

        return outcomes

    def _next_memory(
        self,
        card: Card,
        rating: Rating,
        retrievability: Optional[float],
        same_day: bool
    ) -> tuple[float, float]:
        """New (stability, difficulty) for one rating."""
        params = self.parameters

        if card.is_new:
            return (
                ltm_updates.initial_stability(rating, params),
                ltm_updates.initial_difficulty(rating, params),
            )

        if same_day:
            stability = stm_updates.short_term_stability(card.stability, rating, params)
            difficulty = ltm_updates.next_difficulty(card.difficulty, rating, params)
            return stability, difficulty

        return ltm_updates.apply_ltm_update(
            stability=card.stability,
            difficulty=card.difficulty,
            retrievability=retrievability,
            rating=rating,
            parameters=params,
        )

    def _plan_intervals(
        self,
        card: Card,
        memory: dict[Rating, tuple[float, float]]
    ) -> dict[Rating, tuple[State, timedelta]]:
        """
        Next state and unfuzzed interval for every rating.

        State machine:
        - new: every rating enters learning; EASY gets a day interval
        - learning/relearning: AGAIN/HARD stay on a step, GOOD graduates once
          its raw interval reaches one day, EASY always graduates
        - review: AGAIN lapses into relearning, the rest stay in review with
          HARD <= GOOD < EASY enforced
        """
        params = self.parameters
        max_days = params.maximum_interval

        def days_for(rating: Rating) -> int:
            return scheduling.next_interval(memory[rating][0], params)

        if card.is_new:
            return {
                Rating.AGAIN: (State.LEARNING, stm_updates.step_interval(State.LEARNING, Rating.AGAIN, params)),
                Rating.HARD: (State.LEARNING, stm_updates.step_interval(State.LEARNING, Rating.HARD, params)),
                Rating.GOOD: (State.LEARNING, stm_updates.step_interval(State.LEARNING, Rating.GOOD, params)),
                Rating.EASY: (State.LEARNING, timedelta(days=days_for(Rating.EASY))),
            }

        if card.state in (State.LEARNING, State.RELEARNING):
            phase = card.state
            plan = {
                Rating.AGAIN: (phase, stm_updates.step_interval(phase, Rating.AGAIN, params)),
                Rating.HARD: (phase, stm_updates.step_interval(phase, Rating.HARD, params)),
            }
            good_raw = scheduling.raw_interval(memory[Rating.GOOD][0], params)
            easy_days = days_for(Rating.EASY)
            if good_raw >= GRADUATION_INTERVAL_DAYS:
                good_days = days_for(Rating.GOOD)
                easy_days = min(max(easy_days, good_days + 1), max_days)
                plan[Rating.GOOD] = (State.REVIEW, timedelta(days=good_days))
            else:
                plan[Rating.GOOD] = (phase, stm_updates.step_interval(phase, Rating.GOOD, params))
            plan[Rating.EASY] = (State.REVIEW, timedelta(days=easy_days))
            return plan

        hard_days = days_for(Rating.HARD)
        good_days = days_for(Rating.GOOD)
        easy_days = days_for(Rating.EASY)
        hard_days = min(hard_days, good_days)
        good_days = min(max(good_days, hard_days + 1), max_days)
        easy_days = min(max(easy_days, good_days + 1), max_days)
        return {
            Rating.AGAIN: (State.RELEARNING, stm_updates.step_interval(State.RELEARNING, Rating.AGAIN, params)),
            Rating.HARD: (State.REVIEW, timedelta(days=hard_days)),
            Rating.GOOD: (State.REVIEW, timedelta(days=good_days)),
            Rating.EASY: (State.REVIEW, timedelta(days=easy_days)),
        }

    def _fuzz_factor(self, card: Card, now: datetime) -> float:
        if self.rng is not None:
            return self.rng.random()
        seed = f"{now.timestamp()}_{card.reps}_{card.difficulty * card.stability}"
        return random.Random(seed).random()


# ---- Module-level API ----

_default_scheduler: Optional[Scheduler] = None


def get_default_scheduler() -> Scheduler:
    """Scheduler built from environment settings, created on first use."""
    global _default_scheduler
    if _default_scheduler is None:
        from hanway.config import get_settings
        _default_scheduler = Scheduler(get_settings().scheduler_parameters())
    return _default_scheduler


def compute_review(
    card: Card,
    rating: RatingInput,
    now: Optional[datetime] = None
) -> ReviewOutcome:
    """Apply a rating using the default scheduler. See Scheduler.compute_review."""
    return get_default_scheduler().compute_review(card, rating, now)


def preview_intervals(
    card: Card,
    now: Optional[datetime] = None
) -> dict[Rating, IntervalPreview]:
    """Forecast all four ratings using the default scheduler."""
    return get_default_scheduler().preview_intervals(card, now)


def as_display_dict(previews: dict[Rating, IntervalPreview]) -> dict[str, dict]:
    """
    Flatten previews into the shape the rating buttons consume.

    Example:
        {"again": {"interval": "1m", "due": datetime(...)}, ...}
    """
    return {
        rating.token: {"interval": preview.label, "due": preview.due_date}
        for rating, preview in previews.items()
    }
