"""Time-decay mastery model."""
import logging
import math
from datetime import datetime, timedelta, UTC
from typing import Optional

from vocabengine.config import MasterySettings, settings
from vocabengine.models.selection_models import LearningPhase

logger = logging.getLogger(__name__)

# Mastery thresholds
STRUGGLING_THRESHOLD = 50.0
LEARNED_THRESHOLD = 70.0
MASTERED_THRESHOLD = 90.0

# Selection reason buckets
BUCKET_STRUGGLING = 30.0
BUCKET_LEARNING = 50.0
BUCKET_PRACTICING = 80.0

# Learning phase thresholds
INTRODUCTION_THRESHOLD = 20.0
LEARNING_THRESHOLD = 50.0
CONSOLIDATION_THRESHOLD = 80.0

# Review interval multipliers per phase
PHASE_REVIEW_MULTIPLIERS = {
    LearningPhase.INTRODUCTION: 0.5,
    LearningPhase.LEARNING: 1.0,
    LearningPhase.CONSOLIDATION: 2.0,
    LearningPhase.MASTERY: 4.0,
}


def hours_since(moment: Optional[datetime], now: datetime) -> Optional[float]:
    """Hours elapsed since moment, clamped at zero. None if never."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return max(0.0, (now - moment).total_seconds() / 3600)


def clamp_mastery(value: float, ceiling: float = 100.0) -> float:
    """Force a raw number into [0, ceiling]; NaN becomes 0."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return min(ceiling, max(0.0, value))


class MasteryModel:
    """Converts raw progress into a decayed mastery score at query time.

    Base mastery is the word's xp capped at 100. Each mastery tier has a
    target review interval (struggling 4h, learning 24h, learned 72h,
    mastered 168h by default). Inside the interval mastery holds; past it,
    mastery decays exponentially with the interval as the time constant.
    Since the interval never shrinks as mastery grows, the score is
    non-increasing in elapsed time and non-decreasing in xp.
    """

    def __init__(self, config: Optional[MasterySettings] = None):
        self.config = config or settings.mastery
        self.ceiling = self.config.max_mastery

    def target_interval_hours(self, mastery: float) -> float:
        """Expected review interval for a word at the given mastery."""
        struggling, learning, learned, mastered = self.config.review_interval_hours
        if mastery < STRUGGLING_THRESHOLD:
            return struggling
        if mastery < LEARNED_THRESHOLD:
            return learning
        if mastery < MASTERED_THRESHOLD:
            return learned
        return mastered

    def decay(self, last_practiced: Optional[datetime], xp: float, now: Optional[datetime] = None) -> float:
        """Decayed mastery in [0, 100]."""
        base = clamp_mastery(xp, self.ceiling)
        if base == 0.0:
            return 0.0

        elapsed = hours_since(last_practiced, now or datetime.now(UTC))
        if elapsed is None:
            return base

        interval = self.target_interval_hours(base)
        overdue = elapsed - interval
        if overdue <= 0:
            return base
        return clamp_mastery(base * math.exp(-overdue / interval), self.ceiling)

    def mastery_of(self, progress, now: Optional[datetime] = None) -> float:
        """Decayed mastery for a ProgressRecord; 0 when there is none."""
        if progress is None:
            return 0.0
        return self.decay(progress.last_practiced, progress.xp, now)

    def is_overdue(self, progress, now: datetime) -> bool:
        """Whether the word has gone unpractised past its target interval."""
        if progress is None:
            return False
        elapsed = hours_since(progress.last_practiced, now)
        if elapsed is None:
            return False
        return elapsed > self.target_interval_hours(clamp_mastery(progress.xp, self.ceiling))

    @staticmethod
    def bucket(mastery: float) -> str:
        """Human-readable mastery bucket."""
        if mastery < BUCKET_STRUGGLING:
            return "struggling"
        if mastery < BUCKET_LEARNING:
            return "learning"
        if mastery < BUCKET_PRACTICING:
            return "practicing"
        return "maintenance"

    @staticmethod
    def phase(mastery: float) -> LearningPhase:
        """Learning phase a word at this mastery belongs to."""
        if mastery < INTRODUCTION_THRESHOLD:
            return LearningPhase.INTRODUCTION
        if mastery < LEARNING_THRESHOLD:
            return LearningPhase.LEARNING
        if mastery < CONSOLIDATION_THRESHOLD:
            return LearningPhase.CONSOLIDATION
        return LearningPhase.MASTERY

    @staticmethod
    def is_learned(mastery: float) -> bool:
        return mastery >= LEARNED_THRESHOLD

    @staticmethod
    def is_mastered(mastery: float) -> bool:
        return mastery >= MASTERED_THRESHOLD

    def next_review_at(self, last_practiced: datetime, mastery: float, correct_streak: int) -> datetime:
        """When a word should next be reviewed, from its streak and phase."""
        intervals = self.config.spaced_repetition_hours
        index = min(max(0, correct_streak), len(intervals) - 1)
        multiplier = PHASE_REVIEW_MULTIPLIERS[self.phase(mastery)]
        if last_practiced.tzinfo is None:
            last_practiced = last_practiced.replace(tzinfo=UTC)
        return last_practiced + timedelta(hours=intervals[index] * multiplier)
