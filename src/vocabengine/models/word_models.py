"""Models for catalog words and learner progress."""
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class Direction(Enum):
    """Direction in which a word is quizzed."""
    TERM_TO_DEFINITION = "term-to-definition"
    DEFINITION_TO_TERM = "definition-to-term"


@dataclass(frozen=True)
class WordContext:
    """Example sentence showing the word in use."""
    sentence: str
    translation: Optional[str] = None


@dataclass(frozen=True)
class Word:
    """Immutable catalog entry."""
    id: str
    term: str
    definition: str
    language: str
    module_id: Optional[str] = None
    context: Optional[WordContext] = None
    level: int = 1
    direction: Direction = Direction.TERM_TO_DEFINITION

    @property
    def has_context(self) -> bool:
        """Whether the word carries a sentence usable for fill-in-the-blank."""
        return bool(self.context and self.context.sentence)


def _count(value: Any) -> int:
    """Non-negative attempt count; anything non-numeric counts as 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, int(number))


@dataclass
class ProgressRecord:
    """Per learner progress for one word, owned by the answer recorder."""
    xp: float = 0.0
    times_correct: int = 0
    times_incorrect: int = 0
    last_practiced: Optional[datetime] = None

    @property
    def attempts(self) -> int:
        return _count(self.times_correct) + _count(self.times_incorrect)

    @property
    def error_rate(self) -> float:
        """Share of incorrect answers, 0 when the word was never answered."""
        return _count(self.times_incorrect) / max(1, self.attempts)

    @property
    def correct_streak(self) -> int:
        """Net correct answers, the streak estimate used for review spacing."""
        return max(0, _count(self.times_correct) - _count(self.times_incorrect))
