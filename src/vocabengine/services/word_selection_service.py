"""Candidate filtering, scoring and weighted selection of the next word."""
import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Dict, List, Optional, Set

from vocabengine import monitoring
from vocabengine.config import SelectionSettings, settings
from vocabengine.errors import EmptyCatalogError
from vocabengine.models.selection_models import (
    ChallengeContext,
    Difficulty,
    SelectionCriteria,
    SelectionMetadata,
    SelectionResult,
)
from vocabengine.models.word_models import ProgressRecord, Word
from vocabengine.services.catalog import WordCatalog
from vocabengine.services.mastery_service import MasteryModel
from vocabengine.services.priority_scorer import PriorityScorer
from vocabengine.services.session_tracker import SessionExclusionState, SessionExclusionTracker

logger = logging.getLogger(__name__)

SELECTION_REASONS = {
    "struggling": "Struggling word - needs attention",
    "learning": "Learning word - building familiarity",
    "practicing": "Practicing word - reinforcing knowledge",
    "maintenance": "Mastered word - maintenance review",
}

# Relaxation steps recorded in result metadata
RELAX_CALLER_EXCLUSIONS = "caller-exclusions"
RELAX_CRITERIA_FILTERS = "criteria-filters"
RELAX_USED_SET = "used-set"
RELAX_RECENT_WINDOW = "recent-window"


@dataclass
class Candidate:
    """A word with its mastery and score for one selection round."""
    word: Word
    progress: Optional[ProgressRecord]
    mastery: float
    score: float = 0.0


class CandidateSelector:
    """Picks the next word for a session.

    The pool is the scoped catalog minus everything the session and the
    caller exclude. Candidates are scored by urgency and one is drawn from
    the most urgent slice with geometrically decaying weights, so the top
    word is favoured without being picked every time.
    """

    def __init__(
        self,
        catalog: WordCatalog,
        tracker: Optional[SessionExclusionTracker] = None,
        scorer: Optional[PriorityScorer] = None,
        mastery_model: Optional[MasteryModel] = None,
        rng: Optional[random.Random] = None,
        config: Optional[SelectionSettings] = None,
    ):
        self.catalog = catalog
        self.config = config or settings.selection
        self.mastery_model = mastery_model or MasteryModel()
        self.scorer = scorer or PriorityScorer(self.mastery_model)
        self.tracker = tracker or SessionExclusionTracker(self.config)
        self.rng = rng or random.Random(self.config.random_seed)

    def select_word(
        self,
        criteria: SelectionCriteria,
        progress: Dict[str, ProgressRecord],
        session_id: str,
        now: Optional[datetime] = None,
        context: Optional[ChallengeContext] = None,
    ) -> SelectionResult:
        """Select the next word; raises EmptyCatalogError only for an empty scope."""
        now = now or datetime.now(UTC)
        criteria = criteria.sanitized()
        if criteria.learning_phase is None and context is not None and context.phase_hint is not None:
            criteria.learning_phase = context.phase_hint
        progress = progress or {}

        words = self.catalog.words_for(criteria.language, criteria.module_id)
        if not words:
            logger.warning(f"No words available for selection in {criteria.language}/{criteria.module_id}")
            monitoring.empty_catalog_errors.labels(language=criteria.language).inc()
            raise EmptyCatalogError(criteria.language, criteria.module_id)

        state = self.tracker.get_or_create(session_id, criteria.max_recent_tracking)
        with monitoring.selection_duration.time(), state.lock:
            candidates = [
                Candidate(word, progress.get(word.id), self.mastery_model.mastery_of(progress.get(word.id), now))
                for word in words
            ]
            pool, steps = self._build_pool(candidates, criteria, state)
            if steps:
                logger.warning(f"Relaxed selection for session {session_id}: {', '.join(steps)}")
                monitoring.pool_relaxations.inc()

            for candidate in pool:
                candidate.score = self.scorer.score(
                    candidate.word, candidate.progress, criteria, now, candidate.mastery
                )
            pool.sort(key=lambda c: (c.score, c.word.id))

            top = pool[:self._top_count(len(pool), criteria)]
            selected = top[self._selection_index(len(top))]
            state.mark_used(selected.word.id)

        algorithm = self._algorithm_name(criteria)
        alternatives = [c.word for c in pool if c is not selected][:self.config.max_alternatives]
        result = SelectionResult(
            word=selected.word,
            selection_reason=SELECTION_REASONS[self.mastery_model.bucket(selected.mastery)],
            alternatives=alternatives,
            metadata=SelectionMetadata(
                pool_size=len(pool),
                score=selected.score,
                mastery_score=selected.mastery,
                selection_algorithm=algorithm,
                exclusion_count=len(words) - len(pool),
                relaxation_applied=bool(steps),
                relaxation_steps=steps,
            ),
        )
        monitoring.words_selected.labels(algorithm=algorithm).inc()
        logger.debug(
            f"Selected word {selected.word.id} ({selected.word.term}) for session {session_id}: "
            f"{result.selection_reason}, pool {len(pool)}, mastery {selected.mastery:.1f}"
        )
        return result

    def _passes_filters(self, candidate: Candidate, criteria: SelectionCriteria) -> bool:
        if criteria.min_mastery is not None and candidate.mastery < criteria.min_mastery:
            return False
        if criteria.max_mastery is not None and candidate.mastery > criteria.max_mastery:
            return False
        if criteria.learning_phase is not None and self.mastery_model.phase(candidate.mastery) != criteria.learning_phase:
            return False
        return True

    def _build_pool(
        self,
        candidates: List[Candidate],
        criteria: SelectionCriteria,
        state: SessionExclusionState,
    ) -> tuple:
        """Filter candidates, relaxing restrictions step by step until some remain."""
        steps: List[str] = []

        eligible = [c for c in candidates if self._passes_filters(c, criteria)]
        if not eligible:
            steps.append(RELAX_CRITERIA_FILTERS)
            eligible = list(candidates)

        caller_excluded = set(criteria.exclude_word_ids)
        if all(c.word.id in caller_excluded for c in eligible):
            steps.append(RELAX_CALLER_EXCLUSIONS)
        else:
            eligible = [c for c in eligible if c.word.id not in caller_excluded]

        pool = self._without(eligible, state.excluded_ids())
        if pool:
            return pool, steps

        steps.append(RELAX_USED_SET)
        pool = self._without(eligible, set(state.recent_ids()))
        if pool:
            return pool, steps

        steps.append(RELAX_RECENT_WINDOW)
        while not pool:
            if not state.release_oldest(1):
                # Nothing left to release: every eligible word is available again
                pool = list(eligible)
                break
            pool = self._without(eligible, set(state.recent_ids()))
        return pool, steps

    @staticmethod
    def _without(candidates: List[Candidate], excluded: Set[str]) -> List[Candidate]:
        return [c for c in candidates if c.word.id not in excluded]

    def _top_count(self, pool_size: int, criteria: SelectionCriteria) -> int:
        limit = criteria.top_candidates_count or self.config.top_candidates_count
        fraction = max(1, math.floor(pool_size * self.config.top_candidate_fraction))
        return max(1, min(limit, fraction, pool_size))

    def _selection_index(self, count: int) -> int:
        """Weighted random index favouring the front of the list."""
        if count <= 1:
            return 0
        weights = [self.config.weight_decay ** index for index in range(count)]
        return self.rng.choices(range(count), weights=weights, k=1)[0]

    @staticmethod
    def _algorithm_name(criteria: SelectionCriteria) -> str:
        if criteria.prioritize_struggling:
            return "struggle-priority"
        if criteria.difficulty == Difficulty.HARD:
            return "difficulty-adaptive"
        if criteria.learning_phase is not None:
            return f"{criteria.learning_phase.value}-optimized"
        return "mastery-balanced"
