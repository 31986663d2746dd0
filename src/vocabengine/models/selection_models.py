"""Models for selection requests and results."""
import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

from vocabengine.models.word_models import Word


logger = logging.getLogger(__name__)


class QuizMode(Enum):
    """Interaction modes a word can be quizzed in."""
    MULTIPLE_CHOICE = "multiple-choice"
    LETTER_SCRAMBLE = "letter-scramble"
    OPEN_ANSWER = "open-answer"
    FILL_IN_THE_BLANK = "fill-in-the-blank"


class Difficulty(Enum):
    """Difficulty hint for the selection."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    ADAPTIVE = "adaptive"


class CognitiveLoad(Enum):
    """How much the learner can take on right now."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LearningPhase(Enum):
    """Group level learning phase."""
    INTRODUCTION = "introduction"
    LEARNING = "learning"
    CONSOLIDATION = "consolidation"
    MASTERY = "mastery"


def _clean_number(name: str, value: Optional[float], low: float, high: float) -> Optional[float]:
    """Clamp a numeric criterion into range, dropping NaN."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Dropping non-numeric criterion {name}={value!r}")
        return None
    if math.isnan(number):
        logger.warning(f"Dropping NaN criterion {name}")
        return None
    clamped = min(high, max(low, number))
    if clamped != number:
        logger.debug(f"Clamped criterion {name} from {number} to {clamped}")
    return clamped


@dataclass
class SelectionCriteria:
    """What the caller wants from the next selection."""
    language: str
    module_id: Optional[str] = None
    exclude_word_ids: Tuple[str, ...] = ()
    min_mastery: Optional[float] = None
    max_mastery: Optional[float] = None
    learning_phase: Optional[LearningPhase] = None
    cognitive_load: Optional[CognitiveLoad] = None
    difficulty: Difficulty = Difficulty.ADAPTIVE
    prioritize_struggling: bool = True
    session_progress: Optional[float] = None
    max_recent_tracking: Optional[int] = None
    top_candidates_count: Optional[int] = None

    def sanitized(self) -> "SelectionCriteria":
        """Return a copy with every numeric field clamped into its valid range."""
        min_mastery = _clean_number("min_mastery", self.min_mastery, 0.0, 100.0)
        max_mastery = _clean_number("max_mastery", self.max_mastery, 0.0, 100.0)
        if min_mastery is not None and max_mastery is not None and min_mastery > max_mastery:
            logger.warning(
                f"min_mastery {min_mastery} exceeds max_mastery {max_mastery}, swapping"
            )
            min_mastery, max_mastery = max_mastery, min_mastery

        recent = _clean_number("max_recent_tracking", self.max_recent_tracking, 1, 1_000_000)
        top = _clean_number("top_candidates_count", self.top_candidates_count, 1, 1_000_000)

        return replace(
            self,
            exclude_word_ids=tuple(self.exclude_word_ids or ()),
            min_mastery=min_mastery,
            max_mastery=max_mastery,
            session_progress=_clean_number("session_progress", self.session_progress, 0.0, 1.0),
            max_recent_tracking=int(recent) if recent is not None else None,
            top_candidates_count=int(top) if top is not None else None,
        )


@dataclass(frozen=True)
class ChallengeContext:
    """Situational modifiers shared by all challenge variants."""
    time_pressure: float = 0.0
    escalation: bool = False
    phase_hint: Optional[LearningPhase] = None
    allow_open_answer: bool = True

    @classmethod
    def quick_dash(cls, time_remaining: float, time_limit: float, progress_ratio: float) -> "ChallengeContext":
        """Timed challenge: pressure grows as time runs out relative to progress."""
        if time_limit <= 0:
            return cls(time_pressure=1.0)
        time_ratio = min(1.0, max(0.0, time_remaining / time_limit))
        progress_ratio = min(1.0, max(0.0, progress_ratio))
        if progress_ratio > time_ratio:
            pressure = min(1.0, (progress_ratio - time_ratio) * 2)
        else:
            pressure = max(0.0, 1 - time_ratio)
        return cls(time_pressure=pressure)

    @classmethod
    def streak(cls, current_streak: int) -> "ChallengeContext":
        """Streak challenge: long streaks escalate difficulty."""
        return cls(escalation=current_streak >= 15)

    @classmethod
    def deep_dive(cls) -> "ChallengeContext":
        """Untimed focus session on consolidating words."""
        return cls(phase_hint=LearningPhase.CONSOLIDATION)


@dataclass
class SelectionMetadata:
    """Explainability data attached to every selection."""
    pool_size: int
    score: float
    mastery_score: float
    selection_algorithm: str
    exclusion_count: int = 0
    relaxation_applied: bool = False
    relaxation_steps: List[str] = field(default_factory=list)


@dataclass
class SelectionResult:
    """The chosen word with the reasoning behind it."""
    word: Word
    selection_reason: str
    alternatives: List[Word]
    metadata: SelectionMetadata
    quiz_mode: Optional[QuizMode] = None
