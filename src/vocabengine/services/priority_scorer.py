"""Urgency scoring for candidate words."""
import logging
from datetime import datetime, UTC
from typing import Optional

from vocabengine.models.selection_models import CognitiveLoad, Difficulty, SelectionCriteria
from vocabengine.models.word_models import ProgressRecord, Word
from vocabengine.services.mastery_service import MasteryModel

logger = logging.getLogger(__name__)

# Score multipliers, lower score = shown sooner
STRUGGLING_MULTIPLIER = 0.1
ERROR_PRONE_MULTIPLIER = 0.2
OVERDUE_MULTIPLIER = 0.4
DEPRIORITIZE_MULTIPLIER = 2.0
EARLY_SESSION_MULTIPLIER = 1.5

STRUGGLING_MASTERY = 30.0
ERROR_RATE_THRESHOLD = 0.5
COMPLEX_MASTERY = 70.0
EASY_WORD_MASTERY = 50.0
HARD_WORD_MASTERY = 70.0
EARLY_SESSION_PROGRESS = 0.3
EARLY_SESSION_MASTERY = 80.0


class PriorityScorer:
    """Assigns an urgency score to a candidate word (lower = more urgent)."""

    def __init__(self, mastery_model: Optional[MasteryModel] = None):
        self.mastery_model = mastery_model or MasteryModel()

    def score(
        self,
        word: Word,
        progress: Optional[ProgressRecord],
        criteria: SelectionCriteria,
        now: Optional[datetime] = None,
        mastery: Optional[float] = None,
    ) -> float:
        """Score a word; mastery may be passed in when already computed."""
        now = now or datetime.now(UTC)
        if mastery is None:
            mastery = self.mastery_model.mastery_of(progress, now)

        score = mastery

        if criteria.prioritize_struggling and mastery < STRUGGLING_MASTERY:
            score *= STRUGGLING_MULTIPLIER

        if progress is not None:
            if progress.error_rate > ERROR_RATE_THRESHOLD:
                score *= ERROR_PRONE_MULTIPLIER
            if self.mastery_model.is_overdue(progress, now):
                score *= OVERDUE_MULTIPLIER

        if criteria.cognitive_load == CognitiveLoad.HIGH and mastery > COMPLEX_MASTERY:
            score *= DEPRIORITIZE_MULTIPLIER

        if criteria.difficulty == Difficulty.HARD and mastery < EASY_WORD_MASTERY:
            score *= DEPRIORITIZE_MULTIPLIER
        elif criteria.difficulty == Difficulty.EASY and mastery >= HARD_WORD_MASTERY:
            score *= DEPRIORITIZE_MULTIPLIER

        if (criteria.session_progress is not None
                and criteria.session_progress < EARLY_SESSION_PROGRESS
                and mastery > EARLY_SESSION_MASTERY):
            score *= EARLY_SESSION_MULTIPLIER

        return max(0.0, score)
