"""Learning service: the engine's entry point for callers."""
import logging
import math
import random
import threading
from collections import defaultdict
from datetime import datetime, UTC
from typing import Dict, List, Optional

from vocabengine import monitoring
from vocabengine.config import Settings, settings as default_settings
from vocabengine.models.group_models import (
    AnswerResult,
    PlannedWord,
    SessionAnalysis,
    SessionPlan,
    WordGroup,
)
from vocabengine.models.selection_models import (
    ChallengeContext,
    Difficulty,
    LearningPhase,
    QuizMode,
    SelectionCriteria,
    SelectionResult,
)
from vocabengine.models.word_models import ProgressRecord, Word
from vocabengine.services.catalog import WordCatalog
from vocabengine.services.group_cache_service import LearningGroupCache
from vocabengine.services.mastery_service import MasteryModel
from vocabengine.services.priority_scorer import PriorityScorer
from vocabengine.services.quiz_mode_service import QuizModeSelector
from vocabengine.services.session_analyzer import SessionAnalyzer
from vocabengine.services.session_tracker import SessionExclusionTracker
from vocabengine.services.storage import KeyValueStore
from vocabengine.services.word_selection_service import CandidateSelector

logger = logging.getLogger(__name__)


def regular_session_criteria(language: str, module_id: Optional[str] = None) -> SelectionCriteria:
    """Criteria for an ordinary practice session."""
    return SelectionCriteria(
        language=language,
        module_id=module_id,
        prioritize_struggling=True,
        difficulty=Difficulty.ADAPTIVE,
        max_recent_tracking=8,
    )


def challenge_criteria(language: str, difficulty: Difficulty, module_id: Optional[str] = None) -> SelectionCriteria:
    """Criteria for a challenge run at a fixed difficulty."""
    return SelectionCriteria(
        language=language,
        module_id=module_id,
        difficulty=difficulty,
        prioritize_struggling=difficulty == Difficulty.EASY,
        max_recent_tracking=12,
    )


def review_criteria(language: str, module_id: Optional[str] = None) -> SelectionCriteria:
    """Criteria for reviewing words the learner has already met."""
    return SelectionCriteria(
        language=language,
        module_id=module_id,
        min_mastery=30,
        prioritize_struggling=True,
        max_recent_tracking=15,
    )


class LearningService:
    """Context object wiring the engine's components together.

    Build one per process (or per test) and pass it around; nothing in the
    engine is a module-level singleton. All randomness flows from a single
    seedable random.Random, so a fixed seed and fixed inputs reproduce the
    same selections.
    """

    def __init__(
        self,
        catalog: WordCatalog,
        store: Optional[KeyValueStore] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or default_settings
        self.catalog = catalog
        if rng is None:
            rng = random.Random(seed if seed is not None else self.config.selection.random_seed)
        self.rng = rng

        self.mastery_model = MasteryModel(self.config.mastery)
        self.scorer = PriorityScorer(self.mastery_model)
        self.tracker = SessionExclusionTracker(self.config.selection)
        self.selector = CandidateSelector(
            catalog,
            tracker=self.tracker,
            scorer=self.scorer,
            mastery_model=self.mastery_model,
            rng=self.rng,
            config=self.config.selection,
        )
        self.quiz_modes = QuizModeSelector(self.rng)
        self.group_cache = LearningGroupCache(catalog, store, self.mastery_model, self.config.groups)
        self.analyzer = SessionAnalyzer()

        self._outcomes: Dict[str, List[AnswerResult]] = defaultdict(list)
        self._assigned_modes: Dict[str, Dict[str, QuizMode]] = defaultdict(dict)
        self._outcomes_lock = threading.Lock()

    def select_word(
        self,
        criteria: SelectionCriteria,
        progress: Dict[str, ProgressRecord],
        session_id: str,
        context: Optional[ChallengeContext] = None,
        now: Optional[datetime] = None,
    ) -> SelectionResult:
        """Choose the next word and its quiz mode for a session."""
        now = now or datetime.now(UTC)
        progress = progress or {}
        result = self.selector.select_word(criteria, progress, session_id, now=now, context=context)
        result.quiz_mode = self.quiz_modes.select(result.word, progress.get(result.word.id), context)
        with self._outcomes_lock:
            self._assigned_modes[session_id][result.word.id] = result.quiz_mode
        return result

    def record_outcome(self, session_id: str, word_id: str, is_correct: bool, response_time_ms: float) -> None:
        """Note an answer for the session's bookkeeping.

        The learner's ProgressRecord is updated elsewhere; this only keeps the
        word excluded for the session and remembers the answer for the
        session analysis.
        """
        state = self.tracker.get_or_create(session_id)
        with state.lock:
            recent = state.recent_ids()
            if not recent or recent[0] != word_id:
                state.mark_used(word_id)

        try:
            response_time_ms = float(response_time_ms)
        except (TypeError, ValueError):
            response_time_ms = math.nan
        if math.isnan(response_time_ms) or response_time_ms < 0:
            logger.warning(f"Invalid response time for {word_id}, using 0")
            response_time_ms = 0.0

        with self._outcomes_lock:
            mode = self._assigned_modes[session_id].get(word_id, QuizMode.MULTIPLE_CHOICE)
            self._outcomes[session_id].append(
                AnswerResult(word_id, bool(is_correct), response_time_ms, mode)
            )
        monitoring.outcomes_recorded.labels(correct=str(bool(is_correct)).lower()).inc()
        logger.debug(f"Recorded outcome for {word_id} in session {session_id}: correct={is_correct}")

    def session_results(self, session_id: str) -> List[AnswerResult]:
        with self._outcomes_lock:
            return list(self._outcomes.get(session_id, []))

    def reset_session(self, session_id: str) -> None:
        """Forget everything about a session. Idempotent."""
        self.tracker.reset_session(session_id)
        with self._outcomes_lock:
            self._outcomes.pop(session_id, None)
            self._assigned_modes.pop(session_id, None)

    def get_groups(
        self,
        language: str,
        progress: Dict[str, ProgressRecord],
        module_id: Optional[str] = None,
        force_refresh: bool = False,
        now: Optional[datetime] = None,
    ) -> List[WordGroup]:
        return self.group_cache.get_groups(language, progress, module_id, force_refresh, now)

    def next_group(
        self,
        language: str,
        progress: Dict[str, ProgressRecord],
        module_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[WordGroup]:
        return self.group_cache.next_group(language, progress, module_id, now)

    def complete_session(
        self,
        session_id: str,
        language: str,
        group_id: str,
        results: Optional[List[AnswerResult]] = None,
        module_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SessionAnalysis:
        """Analyze a finished session and feed it back into group ranking."""
        if results is None:
            results = self.session_results(session_id)
        analysis = self.analyzer.analyze(group_id, results)
        self.group_cache.record_session(language, group_id, analysis, module_id, now)
        monitoring.sessions_completed.labels(language=language).inc()
        self.reset_session(session_id)
        return analysis

    def select_words_for_review(
        self,
        language: str,
        progress: Dict[str, ProgressRecord],
        limit: Optional[int] = None,
        module_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[Word]:
        """Practised words whose review time has passed, most overdue first."""
        now = now or datetime.now(UTC)
        limit = self.config.groups.max_review_words if limit is None else max(0, limit)
        overdue = []
        for word in self.catalog.words_for(language, module_id):
            record = progress.get(word.id)
            if record is None or record.last_practiced is None:
                continue
            mastery = self.mastery_model.mastery_of(record, now)
            due = self.mastery_model.next_review_at(record.last_practiced, mastery, record.correct_streak)
            if due <= now:
                overdue.append((due, word.id, word))
        overdue.sort(key=lambda item: (item[0], item[1]))
        if overdue:
            logger.debug(f"Selected {min(limit, len(overdue))} words for review")
        return [word for _, _, word in overdue[:limit]]

    def plan_session(
        self,
        language: str,
        progress: Dict[str, ProgressRecord],
        module_id: Optional[str] = None,
        max_review_words: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[SessionPlan]:
        """Plan a whole session around the recommended group."""
        now = now or datetime.now(UTC)
        group = self.next_group(language, progress, module_id, now)
        if group is None:
            logger.warning(f"No learning group available for {language}")
            return None

        group_context = ChallengeContext(phase_hint=LearningPhase.INTRODUCTION) \
            if group.phase == LearningPhase.INTRODUCTION else ChallengeContext()
        words = []
        for word_id in group.word_ids:
            word = self.catalog.get(word_id)
            if word is None:
                continue
            record = progress.get(word_id)
            mastery = self.mastery_model.mastery_of(record, now)
            words.append(PlannedWord(
                word=word,
                quiz_mode=self.quiz_modes.select(word, record, group_context),
                difficulty=max(1, int(mastery // 20)),
            ))

        in_group = set(group.word_ids)
        reviews = [
            word for word in self.select_words_for_review(language, progress, len(self.catalog), module_id, now)
            if word.id not in in_group
        ][:self.config.groups.max_review_words if max_review_words is None else max_review_words]
        review_words = [
            PlannedWord(
                word=word,
                quiz_mode=self.quiz_modes.select(word, progress.get(word.id), ChallengeContext(escalation=True)),
                difficulty=max(1, int(self.mastery_model.mastery_of(progress.get(word.id), now) // 20)),
                is_review=True,
            )
            for word in reviews
        ]

        if group.phase == LearningPhase.INTRODUCTION:
            session_type = "introduction"
        elif review_words and not words:
            session_type = "review"
        elif review_words:
            session_type = "mixed"
        else:
            session_type = "practice"

        logger.debug(
            f"Created {session_type} session plan for {language}: group {group.id}, "
            f"{len(words)} group words, {len(review_words)} review words"
        )
        return SessionPlan(group.id, session_type, words, review_words)
