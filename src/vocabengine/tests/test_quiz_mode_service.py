"""Tests for quiz mode selection."""
import random
from collections import Counter

import pytest

from vocabengine.models.selection_models import ChallengeContext, LearningPhase, QuizMode
from vocabengine.models.word_models import ProgressRecord, Word, WordContext
from vocabengine.services.quiz_mode_service import QuizModeSelector, get_mastery_tier


@pytest.fixture
def selector() -> QuizModeSelector:
    return QuizModeSelector(random.Random(3))


@pytest.fixture
def word() -> Word:
    return Word(
        id="de-1",
        term="Haus",
        definition="house",
        language="de",
        context=WordContext(sentence="Das Haus ist alt.", translation="The house is old."),
    )


@pytest.fixture
def bare_word() -> Word:
    return Word(id="de-2", term="Baum", definition="tree", language="de")


@pytest.mark.parametrize("xp, tier", [
    (0, 1), (-5, 1), (float("nan"), 1), (20, 1), (21, 2), (50, 2), (51, 3),
    (100, 3), (101, 4), (200, 4), (201, 5), (5000, 5),
])
def test_tier_boundaries(xp, tier):
    assert get_mastery_tier(xp) == tier


def test_tier_one_only_uses_easy_modes(selector: QuizModeSelector, word: Word):
    modes = {selector.select(word, ProgressRecord(xp=5)) for _ in range(200)}
    assert modes <= {QuizMode.MULTIPLE_CHOICE, QuizMode.LETTER_SCRAMBLE}
    assert QuizMode.MULTIPLE_CHOICE in modes


def test_high_tier_distribution_favours_recall(selector: QuizModeSelector, word: Word):
    counts = Counter(selector.select(word, ProgressRecord(xp=300)) for _ in range(1000))
    assert counts[QuizMode.FILL_IN_THE_BLANK] > counts[QuizMode.MULTIPLE_CHOICE]
    assert counts[QuizMode.OPEN_ANSWER] > counts[QuizMode.LETTER_SCRAMBLE]


def test_time_pressure_forces_multiple_choice(selector: QuizModeSelector, word: Word):
    context = ChallengeContext(time_pressure=0.9)
    for _ in range(50):
        assert selector.select(word, ProgressRecord(xp=40), context) == QuizMode.MULTIPLE_CHOICE


def test_time_pressure_ignored_for_experienced_words(selector: QuizModeSelector, word: Word):
    context = ChallengeContext(time_pressure=0.9)
    modes = {selector.select(word, ProgressRecord(xp=300), context) for _ in range(100)}
    assert modes != {QuizMode.MULTIPLE_CHOICE}


def test_escalation_pushes_recall(selector: QuizModeSelector, word: Word):
    context = ChallengeContext.streak(20)
    counts = Counter(selector.select(word, ProgressRecord(xp=150), context) for _ in range(1000))
    recall = counts[QuizMode.FILL_IN_THE_BLANK] + counts[QuizMode.OPEN_ANSWER]
    assert recall > 700


def test_introduction_hint_forces_multiple_choice(selector: QuizModeSelector, word: Word):
    context = ChallengeContext(phase_hint=LearningPhase.INTRODUCTION)
    for _ in range(50):
        assert selector.select(word, ProgressRecord(xp=500), context) == QuizMode.MULTIPLE_CHOICE


def test_fill_in_the_blank_needs_context(selector: QuizModeSelector, bare_word: Word):
    modes = {selector.select(bare_word, ProgressRecord(xp=300)) for _ in range(300)}
    assert QuizMode.FILL_IN_THE_BLANK not in modes


def test_open_answer_can_be_disabled(selector: QuizModeSelector, word: Word, bare_word: Word):
    context = ChallengeContext(allow_open_answer=False)
    modes = {selector.select(w, ProgressRecord(xp=300), context) for w in (word, bare_word) for _ in range(300)}
    assert QuizMode.OPEN_ANSWER not in modes


def test_missing_progress_is_tier_one(selector: QuizModeSelector, word: Word):
    modes = {selector.select(word, None) for _ in range(100)}
    assert modes <= {QuizMode.MULTIPLE_CHOICE, QuizMode.LETTER_SCRAMBLE}


@pytest.mark.parametrize("xp", [None, "10", float("nan"), "lots", float("inf")])
def test_malformed_xp_never_raises(selector: QuizModeSelector, word: Word, xp):
    progress = ProgressRecord(xp=xp, times_correct=None)
    for context in (ChallengeContext(time_pressure=0.9), ChallengeContext.streak(20), None):
        assert selector.select(word, progress, context) in set(QuizMode)


def test_numeric_string_xp_is_used(selector: QuizModeSelector, word: Word):
    context = ChallengeContext(time_pressure=0.9)
    for _ in range(20):
        assert selector.select(word, ProgressRecord(xp="10"), context) == QuizMode.MULTIPLE_CHOICE


def test_malformed_time_pressure_is_ignored(selector: QuizModeSelector, word: Word):
    context = ChallengeContext(time_pressure=None)
    assert selector.select(word, ProgressRecord(xp=5), context) in set(QuizMode)


def test_streak_and_dash_contexts():
    assert not ChallengeContext.streak(14).escalation
    assert ChallengeContext.streak(15).escalation
    assert ChallengeContext.quick_dash(0, 60, 0.5).time_pressure == 1.0
    assert ChallengeContext.quick_dash(60, 60, 0.0).time_pressure == 0.0
    assert ChallengeContext.quick_dash(30, 0, 0.5).time_pressure == 1.0


if __name__ == "__main__":
    pytest.main([__file__])
