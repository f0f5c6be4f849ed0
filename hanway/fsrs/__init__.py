"""
FSRS - Free Spaced Repetition Scheduler

Scheduling core for the vocabulary trainer.

This package implements the FSRS-6 memory model with:
- Power forgetting curve: R = (1 + FACTOR * t / S) ^ DECAY
- Stability/difficulty updates per rating (long-term and same-day)
- A new -> learning -> review <-> relearning state machine
- Interval fuzz from an injectable random source

Quick start:
    from hanway import fsrs

    card = fsrs.new_card()

    # Show the learner what each button would do
    previews = fsrs.preview_intervals(card)

    # Apply their rating (pure; persist outcome.updates yourself)
    outcome = fsrs.compute_review(card, "good")
"""

# Core scheduler API (algorithm logic)
from hanway.fsrs.scheduler import (
    IntervalPreview,
    ReviewLog,
    ReviewOutcome,
    Scheduler,
    UPDATED_FIELDS,
    as_display_dict,
    compute_review,
    get_default_scheduler,
    preview_intervals,
)

# Constants and parameters
from hanway.fsrs.constants import (
    DIFFICULTY_MAX,
    DIFFICULTY_MIN,
    FSRS_6_PARAMETERS,
    FSRS_6_WEIGHTS,
    STABILITY_MIN,
    Rating,
    SchedulerParameters,
    State,
)

# Memory state (for advanced usage)
from hanway.fsrs.memory_state import (
    Card,
    calculate_retrievability,
    get_elapsed_days,
    new_card,
)

from hanway.fsrs.scheduling import format_interval

from hanway.fsrs.exceptions import (
    CardNotFoundError,
    HanwayError,
    InvalidRatingError,
    StaleCardError,
)


__all__ = [
    # Core algorithm
    "Scheduler",
    "compute_review",
    "preview_intervals",
    "get_default_scheduler",
    "as_display_dict",
    "format_interval",
    "ReviewOutcome",
    "ReviewLog",
    "IntervalPreview",
    "UPDATED_FIELDS",

    # Enums
    "Rating",
    "State",

    # Memory state
    "Card",
    "new_card",
    "calculate_retrievability",
    "get_elapsed_days",

    # Parameters
    "SchedulerParameters",
    "FSRS_6_PARAMETERS",
    "FSRS_6_WEIGHTS",
    "STABILITY_MIN",
    "DIFFICULTY_MIN",
    "DIFFICULTY_MAX",

    # Errors
    "HanwayError",
    "InvalidRatingError",
    "CardNotFoundError",
    "StaleCardError",
]
