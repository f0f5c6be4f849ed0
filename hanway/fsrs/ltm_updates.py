"""
Long-Term Memory (LTM) Updates

Implements stability and difficulty updates for reviews that happen on a
later day than the previous one, plus the initial memory state of a card
on its first review.

Key principles:
- Spaced, effortful success produces the largest stability gains
- Failures are penalized more when recall was expected (high R)
- Difficulty moves toward a rating-dependent target and reverts slowly
  toward the EASY baseline
"""

from __future__ import annotations

import math

from hanway.fsrs.constants import (
    DIFFICULTY_MAX,
    DIFFICULTY_MIN,
    FSRS_6_PARAMETERS,
    STABILITY_MIN,
    Rating,
    SchedulerParameters,
)


def clamp_difficulty(difficulty: float) -> float:
    return max(DIFFICULTY_MIN, min(DIFFICULTY_MAX, difficulty))


def initial_stability(
    rating: Rating,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> float:
    """
    Stability after the very first review.

    Formula: S0(G) = w[G-1]
    """
    return max(parameters.weights[rating - 1], STABILITY_MIN)


def initial_difficulty(
    rating: Rating,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS,
    clamp: bool = True
) -> float:
    """
    Difficulty after the very first review.

    Formula: D0(G) = w4 - exp(w5 * (G - 1)) + 1

    Args:
        rating: First rating given to the card
        parameters: Parameter table
        clamp: Clip to [1, 10]; the unclamped value is the mean-reversion target

    Returns:
        Initial difficulty
    """
    w = parameters.weights
    difficulty = w[4] - math.exp(w[5] * (rating - 1)) + 1.0
    return clamp_difficulty(difficulty) if clamp else difficulty


def next_difficulty(
    difficulty: float,
    rating: Rating,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> float:
    """
    Update difficulty based on the rating.

    Formula:
        delta = -w6 * (G - 3)
        D' = D + delta * (10 - D) / 9              (linear damping)
        D'' = w7 * D0(EASY) + (1 - w7) * D'         (mean reversion)

    AGAIN and HARD raise difficulty, EASY lowers it, GOOD leaves it
    almost unchanged. Damping makes changes shrink as D approaches 10.

    Returns:
        New difficulty value (clipped to [1, 10])
    """
    w = parameters.weights
    delta = -w[6] * (rating - 3)
    damped = difficulty + delta * (10.0 - difficulty) / 9.0
    target = initial_difficulty(Rating.EASY, parameters, clamp=False)
    reverted = w[7] * target + (1.0 - w[7]) * damped
    return clamp_difficulty(reverted)


def update_stability_on_success(
    stability: float,
    difficulty: float,
    retrievability: float,
    rating: Rating,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> float:
    """
    Update stability after successful recall (Hard/Good/Easy).

    Formula:
        S' = S * (1 + e^w8 * (11 - D) * S^-w9 * (e^((1 - R) * w10) - 1) * hp * eb)

    Where:
        - (e^((1-R) w10) - 1) rewards recall that happened late (low R)
        - (11 - D) slows growth for difficult cards
        - S^-w9 makes already-stable memories grow proportionally less
        - hp = w15 for HARD, eb = w16 for EASY, 1 otherwise

    Returns:
        New stability value
    """
    if rating == Rating.AGAIN:
        raise ValueError("Use update_stability_on_failure for AGAIN ratings")

    w = parameters.weights
    hard_penalty = w[15] if rating == Rating.HARD else 1.0
    easy_bonus = w[16] if rating == Rating.EASY else 1.0

    growth = (
        math.exp(w[8])
        * (11.0 - difficulty)
        * stability ** -w[9]
        * (math.exp((1.0 - retrievability) * w[10]) - 1.0)
        * hard_penalty
        * easy_bonus
    )
    return max(STABILITY_MIN, stability * (1.0 + growth))


def update_stability_on_failure(
    stability: float,
    difficulty: float,
    retrievability: float,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> float:
    """
    Update stability after a lapse (Again).

    Formula:
        S' = min(w11 * D^-w12 * ((S + 1)^w13 - 1) * e^((1 - R) * w14),
                 S / e^(w17 * w18))

    The second term caps post-lapse stability strictly below the old one.

    Returns:
        New stability value (reduced)
    """
    w = parameters.weights
    long_term = (
        w[11]
        * difficulty ** -w[12]
        * ((stability + 1.0) ** w[13] - 1.0)
        * math.exp((1.0 - retrievability) * w[14])
    )
    ceiling = stability / math.exp(w[17] * w[18])
    return max(STABILITY_MIN, min(long_term, ceiling))


def apply_ltm_update(
    stability: float,
    difficulty: float,
    retrievability: float,
    rating: Rating,
    parameters: SchedulerParameters = FSRS_6_PARAMETERS
) -> tuple[float, float]:
    """
    Apply LTM update rules to get new S and D.

    Stability is updated from the old difficulty; difficulty is updated
    independently of retrievability.

    Returns:
        (new_stability, new_difficulty)
    """
    if rating == Rating.AGAIN:
        new_stability = update_stability_on_failure(
            stability, difficulty, retrievability, parameters
        )
    else:
        new_stability = update_stability_on_success(
            stability, difficulty, retrievability, rating, parameters
        )

    new_difficulty = next_difficulty(difficulty, rating, parameters)

    return new_stability, new_difficulty
