"""Tests for the priority scorer."""
from datetime import datetime, timedelta

import pytest

from vocabengine.models.selection_models import CognitiveLoad, Difficulty, SelectionCriteria
from vocabengine.models.word_models import ProgressRecord, Word
from vocabengine.services.priority_scorer import PriorityScorer


@pytest.fixture
def scorer() -> PriorityScorer:
    return PriorityScorer()


@pytest.fixture
def word() -> Word:
    return Word(id="de-1", term="Haus", definition="house", language="de")


def test_new_word_outranks_fresh_mastered_word(scorer: PriorityScorer, now: datetime) -> None:
    """A mastered word practised minutes ago scores above a never-seen word."""
    criteria = SelectionCriteria(language="de")
    mastered = Word(id="a", term="a", definition="a", language="de")
    new = Word(id="b", term="b", definition="b", language="de")

    mastered_score = scorer.score(
        mastered, ProgressRecord(xp=250, times_correct=25, last_practiced=now - timedelta(minutes=10)), criteria, now
    )
    new_score = scorer.score(new, None, criteria, now)

    assert new_score < mastered_score


def test_struggling_boost(scorer: PriorityScorer, word: Word, now: datetime) -> None:
    progress = ProgressRecord(xp=20, times_correct=2, last_practiced=now)
    boosted = scorer.score(word, progress, SelectionCriteria(language="de", prioritize_struggling=True), now)
    plain = scorer.score(word, progress, SelectionCriteria(language="de", prioritize_struggling=False), now)
    assert boosted == pytest.approx(2.0)
    assert plain == pytest.approx(20.0)


def test_error_prone_and_overdue(scorer: PriorityScorer, word: Word, now: datetime) -> None:
    criteria = SelectionCriteria(language="de")
    error_prone = ProgressRecord(xp=60, times_correct=1, times_incorrect=3, last_practiced=now)
    assert scorer.score(word, error_prone, criteria, now) == pytest.approx(12.0)

    overdue = ProgressRecord(xp=60, times_correct=6, last_practiced=now - timedelta(hours=30))
    mastery = scorer.mastery_model.mastery_of(overdue, now)
    assert scorer.score(word, overdue, criteria, now) == pytest.approx(mastery * 0.4)


def test_cognitive_load_and_difficulty(scorer: PriorityScorer, word: Word, now: datetime) -> None:
    strong = ProgressRecord(xp=80, times_correct=8, last_practiced=now)
    weak = ProgressRecord(xp=40, times_correct=4, last_practiced=now)

    high_load = SelectionCriteria(language="de", cognitive_load=CognitiveLoad.HIGH)
    assert scorer.score(word, strong, high_load, now) == pytest.approx(160.0)

    hard = SelectionCriteria(language="de", difficulty=Difficulty.HARD)
    assert scorer.score(word, weak, hard, now) == pytest.approx(80.0)

    easy = SelectionCriteria(language="de", difficulty=Difficulty.EASY)
    assert scorer.score(word, strong, easy, now) == pytest.approx(160.0)
    assert scorer.score(word, weak, easy, now) == pytest.approx(40.0)


def test_early_session_deprioritizes_mastered(scorer: PriorityScorer, word: Word, now: datetime) -> None:
    progress = ProgressRecord(xp=90, times_correct=9, last_practiced=now)
    early = SelectionCriteria(language="de", session_progress=0.1)
    late = SelectionCriteria(language="de", session_progress=0.8)
    assert scorer.score(word, progress, early, now) == pytest.approx(135.0)
    assert scorer.score(word, progress, late, now) == pytest.approx(90.0)


def test_score_is_never_negative(scorer: PriorityScorer, word: Word, now: datetime) -> None:
    progress = ProgressRecord(xp=-50, times_incorrect=5, last_practiced=now)
    assert scorer.score(word, progress, SelectionCriteria(language="de"), now) == 0.0


def test_malformed_progress_counts(scorer: PriorityScorer, word: Word, now: datetime) -> None:
    criteria = SelectionCriteria(language="de")
    progress = ProgressRecord(xp=None, times_correct=None, times_incorrect="x", last_practiced=now)
    assert scorer.score(word, progress, criteria, now) == 0.0

    error_prone = ProgressRecord(xp=60, times_correct=None, times_incorrect="3", last_practiced=now)
    assert error_prone.attempts == 3
    assert scorer.score(word, error_prone, criteria, now) == pytest.approx(12.0)


def test_progress_counts_ignore_junk() -> None:
    record = ProgressRecord(times_correct=float("nan"), times_incorrect=-4)
    assert record.attempts == 0
    assert record.error_rate == 0.0
    assert record.correct_streak == 0
    assert ProgressRecord(times_correct="5", times_incorrect=float("inf")).correct_streak == 5


if __name__ == "__main__":
    pytest.main([__file__])
