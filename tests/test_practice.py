"""
Tests for the practice session lifecycle.
"""

from datetime import timedelta

import pytest

from hanway import vocabulary_repo
from hanway.fsrs import InvalidRatingError, Rating, StaleCardError, State
from hanway.fsrs import database
from hanway.fsrs.models import PracticeSession as PracticeSessionModel
from hanway.practice import PracticeSession
from hanway.schemas import NewWord


WORDS = [
    ("你好", "nǐ hǎo", "hello"),
    ("謝謝", "xiè xie", "thank you"),
    ("再見", "zài jiàn", "goodbye"),
]


@pytest.fixture
def words(db_session, now):
    return [
        vocabulary_repo.add_word(
            db_session,
            NewWord(chinese=chinese, pinyin=pinyin, english=english),
            now=now - timedelta(minutes=len(WORDS) - i),
        )
        for i, (chinese, pinyin, english) in enumerate(WORDS)
    ]


@pytest.fixture
def practice(db_session, scheduler):
    return PracticeSession(db_session, scheduler=scheduler)


class TestLifecycle:

    def test_start_loads_due_cards(self, practice, words, now):
        assert practice.start(now) == 3
        assert practice.current_card.english == "hello"
        assert not practice.is_complete

    def test_full_session(self, practice, db_session, words, now):
        practice.start(now)
        for rating in ("good", "again", "easy"):
            practice.answer(rating, now)

        assert practice.is_complete
        assert practice.current_card is None

        summary = practice.summary()
        assert summary.total == 3
        assert summary.correct == 2
        assert summary.percent == 67
        assert summary.counts == {"again": 1, "hard": 0, "good": 1, "easy": 1}

        record = db_session.get(PracticeSessionModel, practice.id)
        assert record.total_cards == 3
        assert record.correct_count == 2
        assert (record.again_count, record.hard_count, record.good_count, record.easy_count) == (1, 0, 1, 1)
        assert record.completed_at is not None

    def test_answers_are_persisted(self, practice, db_session, words, now):
        practice.start(now)
        outcome = practice.answer(Rating.GOOD, now)

        card = database.load_card(db_session, words[0].id)
        assert card.reps == 1
        assert card.state == State.LEARNING.value
        assert card.due_date == outcome.card.due_date

        [event] = database.get_review_events(db_session)
        assert event["session_id"] == practice.id

    def test_answered_cards_no_longer_due(self, practice, db_session, words, now):
        practice.start(now)
        while not practice.is_complete:
            practice.answer("hard", now)
        assert vocabulary_repo.list_due(db_session, now=now) == []

    def test_preview_matches_answer(self, practice, words, now):
        practice.start(now)
        previews = practice.preview(now)
        outcome = practice.answer("easy", now)
        assert previews[Rating.EASY].due_date == outcome.card.due_date
        assert previews[Rating.EASY].label == "8d"

    def test_limit(self, db_session, scheduler, words, now):
        practice = PracticeSession(db_session, scheduler=scheduler, limit=2)
        assert practice.start(now) == 2

    def test_skip(self, practice, words, now):
        practice.start(now)
        practice.skip()
        assert practice.current_card.english == "thank you"
        assert practice.summary().total == 0

    def test_summary_rounds_half_up(self, practice, words, now):
        practice.start(now)
        practice.counts = {"again": 7, "hard": 0, "good": 1, "easy": 0}
        assert practice.summary().percent == 13

    def test_defaults_to_configured_user(self, db_session, scheduler, now, monkeypatch):
        monkeypatch.setenv("DEFAULT_USER_ID", "alice")
        vocabulary_repo.add_word(db_session, NewWord(chinese="貓", pinyin="māo", english="cat"), now=now)
        vocabulary_repo.add_word(
            db_session, NewWord(chinese="狗", pinyin="gǒu", english="dog"), user_id="bob", now=now
        )

        practice = PracticeSession(db_session, scheduler=scheduler)
        assert practice.user_id == "alice"
        assert practice.start(now) == 1
        assert practice.current_card.english == "cat"
        assert db_session.get(PracticeSessionModel, practice.id).user_id == "alice"

    def test_empty_session(self, practice, db_session, now):
        assert practice.start(now) == 0
        assert practice.is_complete
        assert practice.summary().percent == 0
        assert db_session.get(PracticeSessionModel, practice.id).completed_at is not None


class TestErrors:

    def test_answer_before_start(self, practice, words, now):
        with pytest.raises(RuntimeError):
            practice.answer("good", now)

    def test_answer_after_complete(self, practice, words, now):
        practice.start(now)
        for _ in words:
            practice.answer("good", now)
        with pytest.raises(RuntimeError):
            practice.answer("good", now)

    def test_invalid_rating_saves_nothing(self, practice, db_session, words, now):
        practice.start(now)
        with pytest.raises(InvalidRatingError):
            practice.answer("perfect", now)

        assert practice.current_card.id == words[0].id
        assert database.load_card(db_session, words[0].id).reps == 0
        assert database.get_review_events(db_session) == []

    def test_conflicting_review_keeps_card_for_retry(
        self, practice, db_session, scheduler, words, now, monkeypatch
    ):
        practice.start(now)
        real_load = database.load_card

        def load_then_review_elsewhere(session, vocabulary_id):
            card = real_load(session, vocabulary_id)
            other = scheduler.compute_review(card, "easy", now)
            database.save_review(session, vocabulary_id, other, expected_reps=card.reps)
            return card

        monkeypatch.setattr(database, "load_card", load_then_review_elsewhere)
        with pytest.raises(StaleCardError):
            practice.answer("good", now)

        assert practice.position == 0
        assert practice.current_card.id == words[0].id
        assert practice.summary().total == 0

        monkeypatch.setattr(database, "load_card", real_load)
        outcome = practice.answer("good", now)
        assert outcome.card.reps == 2
        assert practice.position == 1
        assert database.load_card(db_session, words[0].id).reps == 2
        assert len(database.get_review_events(db_session)) == 2
