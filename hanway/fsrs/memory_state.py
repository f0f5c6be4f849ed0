"""
Memory State - FSRS Card State and Retrievability

Defines the card snapshot the scheduler consumes and the derived
quantities of the memory model.

Key concepts:
- Stability (S): days until recall probability decays to the target retention
- Difficulty (D): how hard the card is to learn (1-10 scale, 0 while new)
- Retrievability (R): probability of successful recall at time t
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from hanway.fsrs.constants import (
    DIFFICULTY_MAX,
    DIFFICULTY_MIN,
    FSRS_6_PARAMETERS,
    STABILITY_MIN,
    SchedulerParameters,
    State,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class Card:
    """
    Snapshot of the scheduling fields for one vocabulary item.

    The scheduler never mutates a Card; it returns a new one.
    """
    due_date: datetime
    stability: float = 0.0
    difficulty: float = 0.0
    elapsed_days: int = 0
    scheduled_days: float = 0.0
    reps: int = 0
    lapses: int = 0
    state: State = State.NEW
    last_review: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_new(self) -> bool:
        return self.state == State.NEW or self.reps == 0

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Card":
        """
        Build a Card from a plain record (dict or row mapping).

        Unknown keys are ignored so full vocabulary rows can be passed in.
        """
        created_at = record.get("created_at")
        due_date = record.get("due_date") or created_at or utcnow()
        return cls(
            due_date=due_date,
            stability=record.get("stability") or 0.0,
            difficulty=record.get("difficulty") or 0.0,
            elapsed_days=record.get("elapsed_days") or 0,
            scheduled_days=record.get("scheduled_days") or 0.0,
            reps=record.get("reps") or 0,
            lapses=record.get("lapses") or 0,
            state=record.get("state") or State.NEW,
            last_review=record.get("last_review"),
            created_at=created_at,
        )


def new_card(now: Optional[datetime] = None) -> Card:
    """
    Initialize state for a card that has never been reviewed.

    New cards are due immediately.
    """
    now = as_utc(now) if now is not None else utcnow()
    return Card(due_date=now, created_at=now)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calculate_retrievability(
    stability: float,
    elapsed_days: float,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> float:
    """
    Calculate retrievability using the FSRS power forgetting curve.

    Formula: R = (1 + FACTOR * t / S) ^ DECAY

    Where:
    - t = days since last review
    - S = stability (in days)
    - DECAY = -w20, FACTOR chosen so that R(S) = 0.9

    Args:
        stability: Current stability in days
        elapsed_days: Time since last review in days
        parameters: Parameter table supplying DECAY

    Returns:
        Retrievability between 0 and 1
    """
    if elapsed_days <= 0:
        return 1.0
    stability = max(stability, STABILITY_MIN)
    return (1.0 + parameters.factor * elapsed_days / stability) ** parameters.decay


def get_elapsed_days(card: Card, now: datetime) -> int:
    """
    Whole days between the card's last review and now.

    Falls back to created_at for cards that were never reviewed. Clock skew
    (now before the reference time) counts as zero days.
    """
    return int(_elapsed_seconds(card, now) // SECONDS_PER_DAY)


def is_same_day_review(card: Card, now: datetime) -> bool:
    """True when less than one day has passed since the last review."""
    return _elapsed_seconds(card, now) < SECONDS_PER_DAY


def _elapsed_seconds(card: Card, now: datetime) -> float:
    reference = card.last_review or card.created_at
    if reference is None:
        return 0.0
    return max(0.0, (as_utc(now) - as_utc(reference)).total_seconds())


def sanitize_card(card: Card) -> Card:
    """
    Clamp out-of-range fields to their nearest valid value.

    Storage corruption must not crash the scheduler, so every numeric
    field is pulled back into range and each correction is logged.
    """
    changes: dict[str, Any] = {}

    state = card.state
    if not isinstance(state, State):
        try:
            state = State(state)
        except ValueError:
            logger.warning("Unknown card state %r, treating card as new", card.state)
            state = State.NEW
        changes["state"] = state

    reps = _non_negative_int(card.reps, "reps")
    lapses = _non_negative_int(card.lapses, "lapses")
    if lapses > reps:
        logger.warning("Clamping lapses %d to reps %d", lapses, reps)
        lapses = reps
    if reps != card.reps:
        changes["reps"] = reps
    if lapses != card.lapses:
        changes["lapses"] = lapses

    elapsed_days = _non_negative_int(card.elapsed_days, "elapsed_days")
    if elapsed_days != card.elapsed_days:
        changes["elapsed_days"] = elapsed_days

    scheduled_days = max(0.0, _finite_or_zero(card.scheduled_days))
    if scheduled_days != card.scheduled_days:
        logger.warning("Clamping scheduled_days %r to %s", card.scheduled_days, scheduled_days)
        changes["scheduled_days"] = scheduled_days

    stability = max(0.0, _finite_or_zero(card.stability))
    difficulty = max(0.0, _finite_or_zero(card.difficulty))
    if state != State.NEW and reps > 0:
        stability = max(STABILITY_MIN, stability)
        difficulty = min(DIFFICULTY_MAX, max(DIFFICULTY_MIN, difficulty))
    if stability != card.stability:
        logger.warning("Clamping stability %r to %s", card.stability, stability)
        changes["stability"] = stability
    if difficulty != card.difficulty:
        logger.warning("Clamping difficulty %r to %s", card.difficulty, difficulty)
        changes["difficulty"] = difficulty

    for name in ("due_date", "last_review", "created_at"):
        value = getattr(card, name)
        if value is not None and value.tzinfo is None:
            changes[name] = as_utc(value)

    if not changes:
        return card
    return replace(card, **changes)


def _finite_or_zero(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _non_negative_int(value: Any, name: str) -> int:
    number = _finite_or_zero(value)
    clamped = max(0, int(number))
    if clamped != value:
        logger.warning("Clamping %s %r to %d", name, value, clamped)
    return clamped
