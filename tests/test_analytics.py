"""
Tests for profile statistics.
"""

from datetime import timedelta

import pytest

from hanway import vocabulary_repo
from hanway.analytics import build_profile_stats, load_profile_stats, retention
from hanway.analytics.metrics import compute_streaks
from hanway.analytics.queries import events_to_df
from hanway.fsrs import Card, State
from hanway.practice import PracticeSession
from hanway.schemas import NewWord


def _events(now, day_offsets):
    return [
        {"vocabulary_id": "w1", "timestamp": now - timedelta(days=offset), "rating": 3}
        for offset in day_offsets
    ]


class TestRetention:
    """Lapses-over-reps percentage."""

    def test_empty(self):
        assert retention([]) == 0

    def test_nothing_reviewed(self):
        assert retention([{"reps": 0, "lapses": 0}]) == 0

    @pytest.mark.parametrize("cards,expected", [
        ([{"reps": 10, "lapses": 2}], 80),
        ([{"reps": 4, "lapses": 1}, {"reps": 6, "lapses": 0}], 90),
        ([{"reps": 3, "lapses": 1}], 67),
        ([{"reps": 8, "lapses": 1}], 88),
        ([{"reps": 5, "lapses": 0}, {"reps": 0, "lapses": 0}], 100),
        ([{"reps": 2, "lapses": 5}], 0),
    ])
    def test_percentages(self, cards, expected):
        assert retention(cards) == expected

    def test_accepts_cards(self, now):
        cards = [Card(due_date=now, reps=4, lapses=1, state=State.REVIEW)]
        assert retention(cards) == 75


class TestStreaks:
    """Consecutive review days."""

    def test_no_events(self, now):
        assert compute_streaks(events_to_df([]), now) == (0, 0)

    def test_current_streak_includes_today(self, now):
        df = events_to_df(_events(now, [0, 0, 1, 2]))
        assert compute_streaks(df, now) == (3, 3)

    def test_streak_alive_from_yesterday(self, now):
        df = events_to_df(_events(now, [1, 2]))
        assert compute_streaks(df, now) == (2, 2)

    def test_broken_streak(self, now):
        df = events_to_df(_events(now, [3, 6, 7, 8, 9]))
        assert compute_streaks(df, now) == (0, 4)


class TestProfileStats:

    def test_build_from_cards(self, now):
        cards = [
            Card(due_date=now),
            Card(due_date=now, reps=2, state=State.LEARNING, stability=1.0, difficulty=5.0),
            Card(due_date=now, reps=6, lapses=1, state=State.REVIEW, stability=9.0, difficulty=5.0),
            Card(due_date=now, reps=4, lapses=1, state=State.RELEARNING, stability=1.0, difficulty=7.0),
        ]
        stats = build_profile_stats(cards, _events(now, [0, 1]), today=now)

        assert stats.total_words == 4
        assert stats.words_learned == 1
        assert stats.total_reviews == 12
        assert stats.retention == 83
        assert stats.state_counts == {"new": 1, "learning": 1, "review": 1, "relearning": 1}
        assert (stats.current_streak, stats.longest_streak) == (2, 2)

    def test_empty_profile(self, now):
        stats = build_profile_stats([], [], today=now)
        assert stats.total_words == 0
        assert stats.retention == 0
        assert stats.state_counts == {"new": 0, "learning": 0, "review": 0, "relearning": 0}
        assert (stats.current_streak, stats.longest_streak) == (0, 0)

    def test_load_from_store(self, db_session, scheduler, now):
        for chinese, english in (("貓", "cat"), ("狗", "dog")):
            vocabulary_repo.add_word(
                db_session, NewWord(chinese=chinese, pinyin="x", english=english), user_id="u1", now=now
            )
        practice = PracticeSession(db_session, scheduler=scheduler, user_id="u1")
        practice.start(now)
        practice.answer("good", now)
        practice.answer("again", now)

        stats = load_profile_stats(db_session, user_id="u1", today=now)
        assert stats.total_words == 2
        assert stats.total_reviews == 2
        assert stats.retention == 100
        assert stats.state_counts["learning"] == 2
        assert stats.current_streak == 1

    def test_load_defaults_to_configured_user(self, db_session, now, monkeypatch):
        monkeypatch.setenv("DEFAULT_USER_ID", "alice")
        vocabulary_repo.add_word(db_session, NewWord(chinese="貓", pinyin="māo", english="cat"), now=now)
        vocabulary_repo.add_word(
            db_session, NewWord(chinese="狗", pinyin="gǒu", english="dog"), user_id="bob", now=now
        )
        assert load_profile_stats(db_session, today=now).total_words == 1
        assert load_profile_stats(db_session, user_id="bob", today=now).total_words == 1
