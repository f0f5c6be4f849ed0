"""
Short-Term Memory (STM) Updates

Implements same-day stability updates and the short learning steps used
while a card is in the learning or relearning phase.

STM exists to:
- Repair same-day failures
- Let a freshly introduced card prove itself before long intervals
- Keep same-day repetition from inflating long-term stability

Key principle:
A same-day GOOD/EASY never lowers stability, and a same-day AGAIN/HARD
never raises it much; long-term growth is reserved for spaced reviews.
"""

from __future__ import annotations

import math
from datetime import timedelta

from hanway.fsrs.constants import (
    FSRS_6_PARAMETERS,
    STABILITY_MIN,
    Rating,
    SchedulerParameters,
    State,
)


def short_term_stability(
    stability: float,
    rating: Rating,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> float:
    """
    Update stability for a review less than one day after the previous one.

    Formula:
        S' = S * e^(w17 * (G - 3 + w18)) * S^-w19

    For GOOD and EASY the multiplier is floored at 1.

    Args:
        stability: Current stability
        rating: Learner rating
        parameters: Parameter table

    Returns:
        New stability value
    """
    w = parameters.weights
    increase = math.exp(w[17] * (rating - 3 + w[18])) * stability ** -w[19]
    if rating in (Rating.GOOD, Rating.EASY):
        increase = max(increase, 1.0)
    return max(STABILITY_MIN, stability * increase)


def steps_for_state(
    state: State,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> tuple:
    """Learning steps for new/learning cards, relearning steps otherwise."""
    if state == State.RELEARNING:
        return parameters.relearning_steps
    return parameters.learning_steps


def step_interval(
    state: State,
    rating: Rating,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> timedelta:
    """
    Short interval for a card that stays in the (re)learning phase.

    Rules:
    - AGAIN: first step
    - HARD: midway between the first two steps, or 1.5x the only step
    - GOOD: second step (never shorter than HARD)

    EASY always leaves the step phase, so it has no step interval.

    Returns:
        Interval rounded to whole minutes
    """
    steps = steps_for_state(state, parameters)

    if rating == Rating.AGAIN:
        interval = steps[0]
    elif rating == Rating.HARD:
        interval = _hard_step(steps)
    elif rating == Rating.GOOD:
        good = steps[1] if len(steps) > 1 else steps[-1]
        interval = max(good, _hard_step(steps))
    else:
        raise ValueError("EASY has no learning step; it always graduates")

    return round_to_minutes(interval)


def _hard_step(steps: tuple) -> timedelta:
    if len(steps) > 1:
        return (steps[0] + steps[1]) / 2
    return steps[0] * 1.5


def round_to_minutes(interval: timedelta) -> timedelta:
    minutes = math.floor(interval.total_seconds() / 60.0 + 0.5)
    return timedelta(minutes=max(1, minutes))
