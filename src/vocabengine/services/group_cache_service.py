"""Learning group projection and its freshness-bounded cache."""
import json
import logging
import threading
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from vocabengine import monitoring
from vocabengine.config import GroupSettings, settings
from vocabengine.models.group_models import SessionAnalysis, WordGroup
from vocabengine.models.selection_models import LearningPhase
from vocabengine.models.word_models import ProgressRecord, Word
from vocabengine.services.catalog import WordCatalog
from vocabengine.services.mastery_service import MasteryModel, hours_since
from vocabengine.services.storage import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)

GROUPS_KEY_PREFIX = "learning_word_groups"
SESSION_HISTORY_KEY = "learning_session_history"
MAX_SESSION_HISTORY = 50

PHASE_ORDER = [
    LearningPhase.INTRODUCTION,
    LearningPhase.LEARNING,
    LearningPhase.CONSOLIDATION,
    LearningPhase.MASTERY,
]

PHASE_PRIORITY = {
    LearningPhase.INTRODUCTION: 1,
    LearningPhase.LEARNING: 2,
    LearningPhase.CONSOLIDATION: 3,
    LearningPhase.MASTERY: 4,
}


def scope_key(language: str, module_id: Optional[str] = None) -> str:
    return f"{language}/{module_id}" if module_id else language


class LearningGroupCache:
    """Buckets the catalog into learning phases and ranks the groups.

    Groups are a recomputed projection of catalog plus progress. Snapshots
    are kept in a key-value store and reused until they are older than the
    freshness window; usage counters survive recomputation only for groups
    whose phase and word membership are unchanged.
    """

    def __init__(
        self,
        catalog: WordCatalog,
        store: Optional[KeyValueStore] = None,
        mastery_model: Optional[MasteryModel] = None,
        config: Optional[GroupSettings] = None,
    ):
        self.catalog = catalog
        self.store = store or InMemoryKeyValueStore()
        self.mastery_model = mastery_model or MasteryModel()
        self.config = config or settings.groups
        self._lock = threading.RLock()

    def build_groups(
        self,
        language: str,
        words: List[Word],
        progress: Dict[str, ProgressRecord],
        now: Optional[datetime] = None,
        module_id: Optional[str] = None,
    ) -> List[WordGroup]:
        """Pure projection of words and progress into phase groups."""
        now = now or datetime.now(UTC)
        progress = progress or {}
        scope = scope_key(language, module_id)

        by_phase: Dict[LearningPhase, List[tuple]] = {phase: [] for phase in PHASE_ORDER}
        for word in words:
            mastery = self.mastery_model.mastery_of(progress.get(word.id), now)
            by_phase[self.mastery_model.phase(mastery)].append((mastery, word.id))

        groups: List[WordGroup] = []
        size = self.config.ideal_group_size
        for phase in PHASE_ORDER:
            members = sorted(by_phase[phase])
            phase_groups: List[List[tuple]] = []
            for start in range(0, len(members), size):
                chunk = members[start:start + size]
                if (len(chunk) < self.config.min_group_size and phase_groups
                        and len(phase_groups[-1]) + len(chunk) <= self.config.max_group_size):
                    phase_groups[-1].extend(chunk)
                else:
                    phase_groups.append(chunk)

            for index, chunk in enumerate(phase_groups):
                groups.append(WordGroup(
                    id=f"{scope}:{phase.value}:{index}",
                    language=language,
                    module_id=module_id,
                    phase=phase,
                    word_ids=[word_id for _, word_id in chunk],
                    average_mastery=sum(mastery for mastery, _ in chunk) / len(chunk),
                    created_at=now,
                ))

        if len(groups) > self.config.max_groups_per_scope:
            logger.debug(f"Limiting {scope} to {self.config.max_groups_per_scope} of {len(groups)} groups")
            groups = groups[:self.config.max_groups_per_scope]

        logger.debug(
            f"Created {len(groups)} word groups for {scope}: "
            + ", ".join(f"{g.phase.value}: {len(g.word_ids)} words (avg: {round(g.average_mastery)}%)" for g in groups)
        )
        return groups

    def get_groups(
        self,
        language: str,
        progress: Dict[str, ProgressRecord],
        module_id: Optional[str] = None,
        force_refresh: bool = False,
        now: Optional[datetime] = None,
    ) -> List[WordGroup]:
        """Cached groups for a scope, recomputed when stale or on demand."""
        now = now or datetime.now(UTC)
        scope = scope_key(language, module_id)
        with self._lock:
            cached = self._load_snapshot(scope)
            if not force_refresh and cached and cached["groups"]:
                age = hours_since(cached["last_updated"], now)
                if age < self.config.cache_expiry_hours:
                    monitoring.group_cache_hits.inc()
                    logger.debug(f"Using cached word groups for {scope} ({round(age)}h old)")
                    return cached["groups"]

            monitoring.group_cache_misses.inc()
            logger.debug(f"Creating new word groups for {scope}")
            words = self.catalog.words_for(language, module_id)
            groups = self.build_groups(language, words, progress, now, module_id)

            if cached:
                self._carry_usage(groups, cached["groups"])

            self._save_snapshot(scope, groups, now, (cached or {}).get("version", 0) + 1)
            return groups

    @staticmethod
    def _carry_usage(groups: List[WordGroup], previous: List[WordGroup]) -> None:
        """Copy usage counters to rebuilt groups holding exactly the same words."""
        by_members = {(g.phase, frozenset(g.word_ids)): g for g in previous}
        for group in groups:
            match = by_members.get((group.phase, frozenset(group.word_ids)))
            if match is not None:
                group.session_count = match.session_count
                group.last_practiced = match.last_practiced

    def refresh_groups(self, language: str, progress: Dict[str, ProgressRecord],
                       module_id: Optional[str] = None, now: Optional[datetime] = None) -> List[WordGroup]:
        """Force recomputation of a scope's groups."""
        return self.get_groups(language, progress, module_id, force_refresh=True, now=now)

    def group_priority(self, group: WordGroup, now: Optional[datetime] = None) -> float:
        """Priority of a group, lower = study sooner."""
        now = now or datetime.now(UTC)
        priority = float(PHASE_PRIORITY[group.phase])

        hours_ago = hours_since(group.last_practiced, now)
        if hours_ago is None:
            priority -= 2
        else:
            if hours_ago > 24:
                priority -= 1
            if hours_ago > 72:
                priority -= 2

        if group.session_count > 3:
            priority += 1
        if group.session_count > 6:
            priority += 2

        if group.average_mastery < 30:
            priority -= 1
        if group.average_mastery < 50:
            priority -= 0.5

        return priority

    def rank_groups(self, groups: List[WordGroup], now: Optional[datetime] = None) -> List[WordGroup]:
        """Groups ordered by priority; ties keep their phase order."""
        now = now or datetime.now(UTC)
        return sorted(groups, key=lambda g: self.group_priority(g, now))

    def next_group(
        self,
        language: str,
        progress: Dict[str, ProgressRecord],
        module_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[WordGroup]:
        """The group recommended for the next session, or None."""
        now = now or datetime.now(UTC)
        groups = self.get_groups(language, progress, module_id, now=now)
        if not groups:
            return None
        selected = self.rank_groups(groups, now)[0]
        logger.debug(
            f"Selected group {selected.id} ({selected.phase.value}, {len(selected.word_ids)} words, "
            f"avg mastery {round(selected.average_mastery)})"
        )
        return selected

    def record_session(
        self,
        language: str,
        group_id: str,
        analysis: SessionAnalysis,
        module_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[WordGroup]:
        """Bump a group's recency and usage counters after a finished session."""
        now = now or datetime.now(UTC)
        scope = scope_key(language, module_id)
        with self._lock:
            self._append_history(scope, group_id, analysis, now)

            cached = self._load_snapshot(scope)
            if not cached:
                logger.warning(f"No cached groups for {scope}, session for {group_id} not applied")
                return None
            groups = cached["groups"]
            updated = None
            for group in groups:
                if group.id == group_id:
                    group.last_practiced = now
                    group.session_count += 1
                    updated = group
            if updated is None:
                logger.warning(f"Group {group_id} not found in {scope}")
                return None

            self._save_snapshot(scope, groups, cached["last_updated"], cached["version"])

        logger.debug(
            f"Recorded session for {scope}: group {group_id}, "
            f"{analysis.words_learned} learned, accuracy {round(analysis.average_accuracy * 100)}%"
        )
        return updated

    def get_session_history(self, language: str, limit: int = 10, module_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Most recent session records for a scope, newest first."""
        scope = scope_key(language, module_id)
        history = self._load_json(SESSION_HISTORY_KEY) or []
        return [record for record in history if record["scope"] == scope][:max(0, limit)]

    def clear(self, language: str, module_id: Optional[str] = None) -> None:
        """Drop the cached snapshot for a scope."""
        with self._lock:
            self.store.delete(self._groups_key(scope_key(language, module_id)))

    @staticmethod
    def _groups_key(scope: str) -> str:
        return f"{GROUPS_KEY_PREFIX}:{scope}"

    def _load_json(self, key: str) -> Optional[Any]:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Discarding corrupt cache entry {key}")
            self.store.delete(key)
            return None

    def _load_snapshot(self, scope: str) -> Optional[Dict[str, Any]]:
        """Decoded snapshot with WordGroup objects and a datetime stamp, or None."""
        key = self._groups_key(scope)
        snapshot = self._load_json(key)
        if snapshot is None:
            return None
        try:
            return {
                "groups": [WordGroup.from_data(g) for g in snapshot["groups"]],
                "last_updated": datetime.fromisoformat(snapshot["last_updated"]),
                "version": int(snapshot["version"]),
            }
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Discarding malformed group snapshot for {scope}: {e}")
            self.store.delete(key)
            return None

    def _save_snapshot(self, scope: str, groups: List[WordGroup], updated_at: datetime, version: int) -> None:
        self.store.set(self._groups_key(scope), json.dumps({
            "groups": [g.to_data() for g in groups],
            "last_updated": updated_at.isoformat(),
            "version": version,
        }))

    def _append_history(self, scope: str, group_id: str, analysis: SessionAnalysis, now: datetime) -> None:
        history = self._load_json(SESSION_HISTORY_KEY) or []
        history.insert(0, {
            "scope": scope,
            "group_id": group_id,
            "recorded_at": now.isoformat(),
            "words_learned": analysis.words_learned,
            "average_accuracy": analysis.average_accuracy,
            "struggling_words": list(analysis.struggling_words),
        })
        self.store.set(SESSION_HISTORY_KEY, json.dumps(history[:MAX_SESSION_HISTORY]))
