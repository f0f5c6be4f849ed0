"""
Scheduling - Interval Computation and Display

Turns a stability value into a review interval, applies due-date fuzz,
and formats intervals for the learner-facing forecast.

Intervals:
- Day intervals are whole days in [1, maximum_interval]
- Sub-day (learning step) intervals are whole minutes, expressed in
  scheduled_days as minutes / 1440
"""

from __future__ import annotations

import math
from datetime import timedelta

from hanway.fsrs.constants import (
    FSRS_6_PARAMETERS,
    FUZZ_MIN_INTERVAL,
    FUZZ_RANGES,
    STABILITY_MIN,
    SchedulerParameters,
)

MINUTES_PER_DAY = 1440.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def raw_interval(
    stability: float,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> float:
    """
    Days until retrievability falls to the requested retention.

    Formula: I = S / FACTOR * (r^(1 / DECAY) - 1)

    With r = 0.9 this is exactly S.
    """
    stability = max(stability, STABILITY_MIN)
    retention = parameters.request_retention
    return stability / parameters.factor * (retention ** (1.0 / parameters.decay) - 1.0)


def next_interval(
    stability: float,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> int:
    """
    Whole-day interval for a card leaving or staying in the review phase.

    Returns:
        Interval in days, clamped to [1, maximum_interval]
    """
    interval = round_half_up(raw_interval(stability, parameters))
    return min(max(interval, 1), parameters.maximum_interval)


def fuzz_range(
    interval: int,
    elapsed_days: int,
    maximum_interval: int
) -> tuple[int, int]:
    """
    Window of days a fuzzed interval may land in.

    The window grows with the interval: 15% of the part between 2.5 and 7
    days, 10% between 7 and 20, 5% beyond, plus one day.

    Args:
        interval: Unfuzzed interval in days
        elapsed_days: Days since the previous review
        maximum_interval: Upper bound for any interval

    Returns:
        (min_interval, max_interval), inclusive
    """
    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        delta += factor * max(min(interval, end) - start, 0.0)

    min_ivl = max(2, round_half_up(interval - delta))
    max_ivl = min(round_half_up(interval + delta), maximum_interval)
    if interval > elapsed_days:
        min_ivl = max(min_ivl, elapsed_days + 1)
    min_ivl = min(min_ivl, max_ivl)
    return min_ivl, max_ivl


def apply_fuzz(
    interval: int,
    elapsed_days: int,
    fuzz_factor: float,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> int:
    """
    Jitter a day interval so cards reviewed together don't come due together.

    Intervals shorter than 2.5 days are returned unchanged.

    Args:
        interval: Unfuzzed interval in days
        elapsed_days: Days since the previous review
        fuzz_factor: Uniform draw in [0, 1)
        parameters: Parameter table (maximum_interval)

    Returns:
        Fuzzed interval in days
    """
    if interval < FUZZ_MIN_INTERVAL:
        return interval
    min_ivl, max_ivl = fuzz_range(interval, elapsed_days, parameters.maximum_interval)
    fuzzed = int(fuzz_factor * (max_ivl - min_ivl + 1) + min_ivl)
    return min(fuzzed, max_ivl, parameters.maximum_interval)


def interval_in_days(interval: timedelta) -> float:
    """
    Express an interval as scheduled_days.

    Sub-day intervals keep whole-minute precision; longer ones are whole days.
    """
    minutes = round_half_up(interval.total_seconds() / 60.0)
    if minutes < MINUTES_PER_DAY:
        return minutes / MINUTES_PER_DAY
    return float(round_half_up(minutes / MINUTES_PER_DAY))


def format_interval(days: float) -> str:
    """
    Format an interval for the rating buttons.

    Examples:
        0.0007 -> "1m", 0.25 -> "6h", 3 -> "3d", 45 -> "2mo", 400 -> "1.1y"
    """
    if days < 1:
        minutes = round_half_up(days * MINUTES_PER_DAY)
        if minutes < 60:
            return f"{minutes}m"
        return f"{round_half_up(minutes / 60)}h"
    if days < 30:
        return f"{round_half_up(days)}d"
    if days < 365:
        return f"{round_half_up(days / 30)}mo"
    return f"{days / 365:.1f}y"
