"""
FSRS Constants and Parameters

All configurable parameters for the FSRS algorithm in one place.
The weight table is the published FSRS-6 default set; it is pinned here
and versioned so stored cards can be traced back to the model that
scheduled them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum, IntEnum
from typing import Union

from hanway.fsrs.exceptions import InvalidRatingError


# ---- Ratings ----

class Rating(IntEnum):
    """Learner feedback after seeing the answer."""
    AGAIN = 1   # Forgot
    HARD = 2    # Recalled with serious effort
    GOOD = 3    # Recalled normally
    EASY = 4    # Recalled effortlessly

    @property
    def token(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: Union["Rating", str]) -> "Rating":
        """
        Convert a caller-supplied rating token into a Rating.

        Only Rating members and the four lowercase tokens are accepted.
        Plain ints are rejected so that a stray 0 or 5 never gets coerced.

        Raises:
            InvalidRatingError: for anything else
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value in _RATING_TOKENS:
            return _RATING_TOKENS[value]
        raise InvalidRatingError(value)


_RATING_TOKENS = {rating.name.lower(): rating for rating in Rating}


class State(str, Enum):
    """Lifecycle stage of a card."""
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


# ---- Global Constants ----

STABILITY_MIN = 0.001   # Minimum stability (days) for a reviewed card
DIFFICULTY_MIN = 1.0
DIFFICULTY_MAX = 10.0

GRADUATION_INTERVAL_DAYS = 1.0  # Raw interval a GOOD must reach to leave (re)learning


# ---- Fuzz ----
# (start_days, end_days, factor): each band widens the jitter window by
# factor * (portion of the interval inside the band).

FUZZ_RANGES = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.10),
    (20.0, float("inf"), 0.05),
)
FUZZ_MIN_INTERVAL = 2.5  # Intervals shorter than this are never fuzzed


# ---- Default Weights ----

FSRS_6_WEIGHTS = (
    0.212,   # w0  initial stability, AGAIN
    1.2931,  # w1  initial stability, HARD
    2.3065,  # w2  initial stability, GOOD
    8.2956,  # w3  initial stability, EASY
    6.4133,  # w4  initial difficulty
    0.8334,  # w5  initial difficulty rating slope
    3.0194,  # w6  difficulty delta per rating step
    0.001,   # w7  difficulty mean reversion
    1.8722,  # w8  recall stability scale (exp)
    0.1666,  # w9  recall stability saturation
    0.796,   # w10 recall stability retrievability gain
    1.4835,  # w11 forget stability scale
    0.0614,  # w12 forget stability difficulty exponent
    0.2629,  # w13 forget stability stability exponent
    1.6483,  # w14 forget stability retrievability gain
    0.6014,  # w15 hard penalty
    1.8729,  # w16 easy bonus
    0.5425,  # w17 short-term rating scale
    0.0912,  # w18 short-term rating offset
    0.0658,  # w19 short-term saturation
    0.1542,  # w20 forgetting curve decay
)


@dataclass(frozen=True)
class SchedulerParameters:
    """
    Versioned parameter table for the scheduler.

    The table is fixed at ship time; nothing in the engine fits or
    mutates it.
    """
    version: str = "fsrs-6"
    weights: tuple = FSRS_6_WEIGHTS
    request_retention: float = 0.9
    maximum_interval: int = 36500
    learning_steps: tuple = field(
        default=(timedelta(minutes=1), timedelta(minutes=10))
    )
    relearning_steps: tuple = field(default=(timedelta(minutes=10),))
    enable_fuzz: bool = True

    def __post_init__(self):
        if len(self.weights) != 21:
            raise ValueError(f"Expected 21 weights, got {len(self.weights)}")
        if not 0.0 < self.request_retention < 1.0:
            raise ValueError(
                f"request_retention must be in (0, 1), got {self.request_retention}"
            )
        if self.maximum_interval < 1:
            raise ValueError(
                f"maximum_interval must be at least 1 day, got {self.maximum_interval}"
            )
        if not self.learning_steps or not self.relearning_steps:
            raise ValueError("learning_steps and relearning_steps need at least one step")

    @property
    def decay(self) -> float:
        return -self.weights[20]

    @property
    def factor(self) -> float:
        # Chosen so that R(S, S) == 0.9 for any stability S
        return 0.9 ** (1.0 / self.decay) - 1.0


FSRS_6_PARAMETERS = SchedulerParameters()
