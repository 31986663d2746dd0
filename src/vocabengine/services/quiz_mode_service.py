"""Quiz mode selection from a word's experience tier and the challenge context."""
import logging
import math
import random
from typing import Dict, List, Optional, Tuple

from vocabengine import monitoring
from vocabengine.models.selection_models import ChallengeContext, LearningPhase, QuizMode
from vocabengine.models.word_models import ProgressRecord, Word
from vocabengine.services.mastery_service import clamp_mastery

logger = logging.getLogger(__name__)

# Upper xp bound (inclusive) for tiers 1..4; anything above is tier 5
TIER_XP_THRESHOLDS = [20, 50, 100, 200]

HIGH_PRESSURE = 0.7
LOW_XP = 50
HIGH_XP = 100

MC = QuizMode.MULTIPLE_CHOICE
SCRAMBLE = QuizMode.LETTER_SCRAMBLE
OPEN = QuizMode.OPEN_ANSWER
FILL = QuizMode.FILL_IN_THE_BLANK

# Cumulative probability table per tier: (upper bound, mode, fallback when open answers are off)
TIER_DISTRIBUTIONS: Dict[int, List[Tuple[float, QuizMode, QuizMode]]] = {
    1: [(0.8, MC, MC), (1.0, SCRAMBLE, SCRAMBLE)],
    2: [(0.6, MC, MC), (1.0, SCRAMBLE, SCRAMBLE)],
    3: [(0.4, MC, MC), (0.7, SCRAMBLE, SCRAMBLE), (1.0, OPEN, SCRAMBLE)],
    4: [(0.2, MC, MC), (0.4, SCRAMBLE, SCRAMBLE), (0.7, OPEN, FILL), (1.0, FILL, FILL)],
    5: [(0.1, MC, MC), (0.2, SCRAMBLE, SCRAMBLE), (0.5, OPEN, FILL), (1.0, FILL, FILL)],
}


def get_mastery_tier(xp: float) -> int:
    """Convert word xp to a 1..5 tier."""
    try:
        xp = float(xp)
    except (TypeError, ValueError):
        return 1
    if not xp > 0:  # zero, negative and NaN
        return 1
    for tier, threshold in enumerate(TIER_XP_THRESHOLDS, start=1):
        if xp <= threshold:
            return tier
    return len(TIER_XP_THRESHOLDS) + 1


class QuizModeSelector:
    """Chooses how a word is quizzed.

    Harder modes become more likely as the tier rises. Two context rules
    override the tier draw: high time pressure keeps low-xp words on
    multiple choice, and escalation pushes experienced words towards recall.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @staticmethod
    def tier(xp: float) -> int:
        return get_mastery_tier(xp)

    def mode_for_tier(self, tier: int, allow_open_answer: bool = True) -> QuizMode:
        """Draw a mode from the tier's distribution."""
        tier = min(5, max(1, int(tier)))
        roll = self.rng.random()
        for upper, mode, fallback in TIER_DISTRIBUTIONS[tier]:
            if roll < upper:
                return mode if allow_open_answer else fallback
        _, mode, fallback = TIER_DISTRIBUTIONS[tier][-1]
        return mode if allow_open_answer else fallback

    def select(
        self,
        word: Word,
        progress: Optional[ProgressRecord] = None,
        context: Optional[ChallengeContext] = None,
    ) -> QuizMode:
        """Pick the quiz mode for a selected word."""
        context = context or ChallengeContext()
        xp = clamp_mastery(progress.xp, math.inf) if progress is not None else 0.0
        tier = self.tier(xp)
        mode = self.mode_for_tier(tier, context.allow_open_answer)

        pressure = clamp_mastery(context.time_pressure, 1.0)
        if context.phase_hint == LearningPhase.INTRODUCTION:
            mode = MC
        elif pressure > HIGH_PRESSURE and xp < LOW_XP:
            mode = MC
        elif context.escalation and xp > HIGH_XP:
            roll = self.rng.random()
            if roll < 0.3:
                mode = FILL
            elif roll < 0.6 and context.allow_open_answer:
                mode = OPEN

        mode = self._ensure_playable(mode, word, context.allow_open_answer)
        monitoring.quiz_modes_chosen.labels(mode=mode.value).inc()
        logger.debug(
            f"Quiz mode selected for {word.id}: {mode.value} "
            f"(xp {xp}, tier {tier}, pressure {pressure:.2f}, escalation {context.escalation})"
        )
        return mode

    @staticmethod
    def _ensure_playable(mode: QuizMode, word: Word, allow_open_answer: bool) -> QuizMode:
        """Fill-in-the-blank needs a context sentence."""
        if mode == FILL and not word.has_context:
            return OPEN if allow_open_answer else SCRAMBLE
        return mode
