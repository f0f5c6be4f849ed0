"""
Tests for the memory model: retrievability, elapsed time, card sanitizing
and the stability/difficulty update rules.
"""

import math
from dataclasses import replace
from datetime import timedelta, timezone

import pytest

from hanway.fsrs import Card, Rating, State, calculate_retrievability, get_elapsed_days, new_card
from hanway.fsrs.ltm_updates import (
    initial_difficulty,
    initial_stability,
    next_difficulty,
    update_stability_on_failure,
    update_stability_on_success,
)
from hanway.fsrs.memory_state import is_same_day_review, sanitize_card
from hanway.fsrs.stm_updates import short_term_stability, step_interval


class TestRetrievability:
    """Power forgetting curve."""

    @pytest.mark.parametrize("stability", [0.5, 1.0, 10.0, 365.0])
    def test_ninety_percent_at_stability(self, stability):
        assert calculate_retrievability(stability, stability) == pytest.approx(0.9)

    @pytest.mark.parametrize("elapsed", [0, -3])
    def test_full_recall_without_elapsed_time(self, elapsed):
        assert calculate_retrievability(10.0, elapsed) == 1.0

    def test_decreases_over_time(self):
        values = [calculate_retrievability(10.0, t) for t in (1, 5, 10, 50, 500)]
        assert values == sorted(values, reverse=True)
        assert all(0.0 < value < 1.0 for value in values)


class TestElapsedDays:
    """Whole days since the reference review."""

    def test_from_last_review(self, now):
        card = Card(due_date=now, last_review=now - timedelta(days=3, hours=20), created_at=now - timedelta(days=30))
        assert get_elapsed_days(card, now) == 3

    def test_falls_back_to_created_at(self, now):
        card = Card(due_date=now, created_at=now - timedelta(days=2))
        assert get_elapsed_days(card, now) == 2

    def test_clock_skew_is_zero(self, now):
        card = Card(due_date=now, last_review=now + timedelta(days=1))
        assert get_elapsed_days(card, now) == 0
        assert is_same_day_review(card, now)

    def test_same_day(self, now):
        card = Card(due_date=now, last_review=now - timedelta(hours=23))
        assert is_same_day_review(card, now)
        assert not is_same_day_review(card, now + timedelta(hours=1))


class TestNewCard:

    def test_defaults(self, now):
        card = new_card(now)
        assert card.state == State.NEW
        assert card.due_date == now
        assert card.created_at == now
        assert (card.stability, card.difficulty, card.reps, card.lapses) == (0.0, 0.0, 0, 0)
        assert card.is_new

    def test_from_record_ignores_extra_keys(self, now):
        card = Card.from_record({
            "id": "abc",
            "chinese": "你好",
            "due_date": now,
            "stability": 3.0,
            "difficulty": 4.0,
            "reps": 2,
            "lapses": 0,
            "state": "review",
            "last_review": now - timedelta(days=3),
            "created_at": now - timedelta(days=5),
        })
        assert card.stability == 3.0
        assert card.state == "review"
        assert not card.is_new


class TestSanitize:
    """Clamping of stored values."""

    def test_valid_card_returned_as_is(self, sample_cards):
        card = sample_cards["review"]
        assert sanitize_card(card) is card

    def test_clamps_out_of_range_values(self, now):
        card = Card(
            due_date=now,
            stability=-1.0,
            difficulty=42.0,
            reps=-2,
            lapses=5,
            state="review",
            last_review=now,
        )
        clean = sanitize_card(card)
        assert clean.reps == 0
        assert clean.lapses == 0
        assert clean.state == State.REVIEW
        assert clean.stability == 0.0
        assert clean.is_new

    def test_reviewed_card_gets_valid_memory_state(self, make_review_card):
        clean = sanitize_card(replace(make_review_card(), stability=0.0, difficulty=0.0))
        assert clean.stability > 0
        assert clean.difficulty == 1.0

    def test_unknown_state_becomes_new(self, now, caplog):
        clean = sanitize_card(Card(due_date=now, state="mastered"))
        assert clean.state == State.NEW
        assert "Unknown card state" in caplog.text

    def test_naive_datetimes_become_utc(self, now):
        naive = now.replace(tzinfo=None)
        clean = sanitize_card(Card(due_date=naive, created_at=naive))
        assert clean.due_date.tzinfo == timezone.utc
        assert clean.due_date == now


class TestMemoryUpdates:
    """Stability and difficulty update rules."""

    def test_initial_stability_from_weights(self):
        assert [initial_stability(r) for r in Rating] == [0.212, 1.2931, 2.3065, 8.2956]

    def test_initial_difficulty_decreases_with_rating(self):
        values = [initial_difficulty(r) for r in Rating]
        assert values == sorted(values, reverse=True)
        assert all(1.0 <= value <= 10.0 for value in values)

    def test_initial_difficulty_unclamped_target(self):
        assert initial_difficulty(Rating.EASY, clamp=False) < 1.0

    def test_next_difficulty_direction(self):
        assert next_difficulty(5.0, Rating.AGAIN) > 5.0
        assert next_difficulty(5.0, Rating.HARD) > 5.0
        assert next_difficulty(5.0, Rating.GOOD) == pytest.approx(5.0, abs=0.01)
        assert next_difficulty(5.0, Rating.EASY) < 5.0

    def test_next_difficulty_bounded(self):
        assert next_difficulty(10.0, Rating.AGAIN) <= 10.0
        assert next_difficulty(1.0, Rating.EASY) >= 1.0

    def test_success_grows_stability(self):
        for rating in (Rating.HARD, Rating.GOOD, Rating.EASY):
            assert update_stability_on_success(10.0, 5.0, 0.9, rating) > 10.0

    def test_success_rejects_again(self):
        with pytest.raises(ValueError):
            update_stability_on_success(10.0, 5.0, 0.9, Rating.AGAIN)

    def test_easy_bonus_and_hard_penalty(self):
        hard = update_stability_on_success(10.0, 5.0, 0.9, Rating.HARD)
        good = update_stability_on_success(10.0, 5.0, 0.9, Rating.GOOD)
        easy = update_stability_on_success(10.0, 5.0, 0.9, Rating.EASY)
        assert hard < good < easy

    def test_failure_shrinks_stability(self):
        assert update_stability_on_failure(10.0, 5.0, 0.9) < 10.0
        assert update_stability_on_failure(0.5, 5.0, 0.9) <= 0.5 / math.exp(0.5425 * 0.0912)

    def test_short_term_good_never_lowers(self):
        for stability in (0.1, 2.0, 50.0):
            assert short_term_stability(stability, Rating.GOOD) >= stability
            assert short_term_stability(stability, Rating.AGAIN) < stability


class TestSteps:
    """Learning and relearning steps."""

    @pytest.mark.parametrize("state,rating,minutes", [
        (State.LEARNING, Rating.AGAIN, 1),
        (State.LEARNING, Rating.HARD, 6),
        (State.LEARNING, Rating.GOOD, 10),
        (State.RELEARNING, Rating.AGAIN, 10),
        (State.RELEARNING, Rating.HARD, 15),
        (State.RELEARNING, Rating.GOOD, 15),
    ])
    def test_step_intervals(self, state, rating, minutes):
        assert step_interval(state, rating) == timedelta(minutes=minutes)

    def test_easy_has_no_step(self):
        with pytest.raises(ValueError):
            step_interval(State.LEARNING, Rating.EASY)
