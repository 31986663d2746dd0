"""Per-session bookkeeping that keeps words from repeating too soon."""
import logging
import threading
from collections import OrderedDict, deque
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, List, Optional, Set

from vocabengine.config import SelectionSettings, settings
from vocabengine.services.mastery_service import hours_since

logger = logging.getLogger(__name__)


class SessionExclusionState:
    """Recent window and cumulative used-set for one session.

    The recent window holds the newest ids first and never exceeds
    max_recent_window entries. The used-set remembers insertion order so
    that, once it grows past used_set_cap, the oldest share can be pruned.
    """

    def __init__(
        self,
        session_id: str,
        max_recent_window: int,
        used_set_cap: int,
        prune_ratio: float,
        started_at: Optional[datetime] = None,
    ):
        self.session_id = session_id
        self.max_recent_window = max_recent_window
        self.used_set_cap = used_set_cap
        self.prune_ratio = prune_ratio
        self.started_at = started_at or datetime.now(UTC)
        self.recent: deque = deque(maxlen=max_recent_window)
        self.used: "OrderedDict[str, None]" = OrderedDict()
        self.selections = 0
        self.lock = threading.RLock()

    def mark_used(self, word_id: str) -> None:
        with self.lock:
            if word_id in self.recent:
                self.recent.remove(word_id)
            self.recent.appendleft(word_id)

            self.used.pop(word_id, None)
            self.used[word_id] = None
            self.selections += 1

            if len(self.used) > self.used_set_cap:
                to_drop = max(1, int(len(self.used) * self.prune_ratio))
                for _ in range(to_drop):
                    self.used.popitem(last=False)
                logger.debug(f"Pruned {to_drop} oldest used words from session {self.session_id}")

    def release_oldest(self, count: int = 1) -> List[str]:
        """Release the oldest recent-window entries; returns the released ids."""
        released = []
        with self.lock:
            for _ in range(max(0, count)):
                if not self.recent:
                    break
                word_id = self.recent.pop()
                self.used.pop(word_id, None)
                released.append(word_id)
        if released:
            logger.debug(f"Released {released} from session {self.session_id}")
        return released

    def recent_ids(self) -> List[str]:
        with self.lock:
            return list(self.recent)

    def used_ids(self) -> Set[str]:
        with self.lock:
            return set(self.used)

    def excluded_ids(self) -> Set[str]:
        """Everything this session currently keeps out of the pool."""
        with self.lock:
            return set(self.recent) | set(self.used)


class SessionExclusionTracker:
    """Registry of exclusion state keyed by session id.

    Sessions are created on first reference. Each session carries its own
    lock; callers run their exclude, score, pick, mark sequence under
    `state.lock` so that selections for one session are serialized while
    different sessions proceed independently.
    """

    def __init__(self, config: Optional[SelectionSettings] = None):
        self.config = config or settings.selection
        self._sessions: Dict[str, SessionExclusionState] = {}
        self._registry_lock = threading.Lock()

    def _clamp_window(self, max_recent_window: Optional[int]) -> int:
        if max_recent_window is None:
            return self.config.recent_window_size
        return min(self.config.max_recent_window_size, max(1, int(max_recent_window)))

    def create_session(self, session_id: str, max_recent_window: Optional[int] = None) -> SessionExclusionState:
        """Create (or replace) the state for a session id."""
        state = SessionExclusionState(
            session_id,
            self._clamp_window(max_recent_window),
            self.config.used_set_cap,
            self.config.used_set_prune_ratio,
        )
        with self._registry_lock:
            self._sessions[session_id] = state
        logger.debug(f"Created word selection session: {session_id} (window: {state.max_recent_window})")
        return state

    def get_session(self, session_id: str) -> Optional[SessionExclusionState]:
        with self._registry_lock:
            return self._sessions.get(session_id)

    def get_or_create(self, session_id: str, max_recent_window: Optional[int] = None) -> SessionExclusionState:
        """Return the session state, creating it on first reference."""
        with self._registry_lock:
            state = self._sessions.get(session_id)
            if state is None:
                state = SessionExclusionState(
                    session_id,
                    self._clamp_window(max_recent_window),
                    self.config.used_set_cap,
                    self.config.used_set_prune_ratio,
                )
                self._sessions[session_id] = state
                logger.debug(f"Auto-created word selection session: {session_id}")
            return state

    def mark_used(self, session_id: str, word_id: str) -> None:
        self.get_or_create(session_id).mark_used(word_id)

    def release_oldest(self, session_id: str, count: int = 1) -> List[str]:
        state = self.get_session(session_id)
        if state is None:
            return []
        return state.release_oldest(count)

    def excluded_ids(self, session_id: str) -> Set[str]:
        state = self.get_session(session_id)
        return state.excluded_ids() if state else set()

    def reset_session(self, session_id: str) -> bool:
        """Discard a session's state. Safe to call repeatedly."""
        with self._registry_lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.debug(f"Reset word selection session: {session_id}")
        return removed is not None

    def cleanup_old_sessions(self, max_age: Optional[timedelta] = None, now: Optional[datetime] = None) -> int:
        """Drop sessions older than max_age; returns how many were dropped."""
        max_age = max_age or timedelta(hours=self.config.session_max_age_hours)
        max_age_hours = max_age.total_seconds() / 3600
        now = now or datetime.now(UTC)
        with self._registry_lock:
            stale = [
                session_id for session_id, state in self._sessions.items()
                if hours_since(state.started_at, now) > max_age_hours
            ]
            for session_id in stale:
                del self._sessions[session_id]
        for session_id in stale:
            logger.debug(f"Cleaned up old word selection session: {session_id}")
        return len(stale)

    def session_stats(self, session_id: str, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        state = self.get_session(session_id)
        if state is None:
            return None
        now = now or datetime.now(UTC)
        with state.lock:
            return {
                "session_id": session_id,
                "used_words_count": len(state.used),
                "recent_words_count": len(state.recent),
                "selections": state.selections,
                "session_age_minutes": hours_since(state.started_at, now) * 60,
                "max_recent_tracking": state.max_recent_window,
            }

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._sessions)
