"""Tests for session exclusion tracking."""
import threading
from datetime import datetime, timedelta, UTC

import pytest

from vocabengine.config import SelectionSettings
from vocabengine.services.session_tracker import SessionExclusionState, SessionExclusionTracker


@pytest.fixture
def tracker() -> SessionExclusionTracker:
    """Create a tracker with a small used-set cap."""
    return SessionExclusionTracker(SelectionSettings(used_set_cap=10, used_set_prune_ratio=0.2))


def test_recent_window_is_bounded_and_newest_first(tracker: SessionExclusionTracker):
    """Test that the recent window keeps only the newest ids."""
    state = tracker.create_session("s1", max_recent_window=3)
    for word_id in ["a", "b", "c", "d"]:
        state.mark_used(word_id)

    assert state.recent_ids() == ["d", "c", "b"]
    assert state.used_ids() == {"a", "b", "c", "d"}


def test_remarking_moves_word_to_front(tracker: SessionExclusionTracker):
    """Test that a repeated id is not duplicated in the window."""
    state = tracker.create_session("s1", max_recent_window=3)
    for word_id in ["a", "b", "a"]:
        state.mark_used(word_id)

    assert state.recent_ids() == ["a", "b"]


def test_used_set_pruned_oldest_first(tracker: SessionExclusionTracker):
    """Test that the used-set drops its oldest share past the cap."""
    state = tracker.create_session("s1", max_recent_window=2)
    for index in range(11):
        state.mark_used(f"w{index}")

    used = state.used_ids()
    assert len(used) == 9
    assert "w0" not in used and "w1" not in used
    assert "w10" in used


def test_release_oldest(tracker: SessionExclusionTracker):
    """Test that releasing frees the oldest recent entries entirely."""
    state = tracker.create_session("s1", max_recent_window=3)
    for word_id in ["a", "b", "c"]:
        state.mark_used(word_id)

    assert state.release_oldest(1) == ["a"]
    assert state.recent_ids() == ["c", "b"]
    assert "a" not in state.excluded_ids()
    assert tracker.release_oldest("unknown") == []


def test_window_is_clamped(tracker: SessionExclusionTracker):
    """Test that requested windows are clamped into range."""
    assert tracker.create_session("small", max_recent_window=0).max_recent_window == 1
    assert tracker.create_session("large", max_recent_window=500).max_recent_window == 50
    assert tracker.create_session("default").max_recent_window == 8


def test_get_or_create_and_reset_are_idempotent(tracker: SessionExclusionTracker):
    """Test lazy creation and repeated resets."""
    state = tracker.get_or_create("s1")
    assert tracker.get_or_create("s1") is state

    tracker.mark_used("s1", "a")
    assert tracker.excluded_ids("s1") == {"a"}

    assert tracker.reset_session("s1") is True
    assert tracker.reset_session("s1") is False
    assert tracker.reset_session("never-created") is False
    assert tracker.excluded_ids("s1") == set()
    assert len(tracker) == 0


def test_cleanup_old_sessions(tracker: SessionExclusionTracker):
    """Test that stale sessions are dropped."""
    now = datetime.now(UTC)
    old = tracker.create_session("old")
    old.started_at = now - timedelta(hours=30)
    tracker.create_session("fresh")

    assert tracker.cleanup_old_sessions(now=now) == 1
    assert tracker.get_session("old") is None
    assert tracker.get_session("fresh") is not None


def test_cleanup_accepts_naive_now(tracker: SessionExclusionTracker):
    """Test that a naive timestamp is read as UTC instead of raising."""
    old = tracker.create_session("old")
    old.started_at = datetime(2024, 6, 1, 0, 0, tzinfo=UTC)
    tracker.create_session("fresh").started_at = datetime(2024, 6, 2, 11, 0, tzinfo=UTC)

    naive_now = datetime(2024, 6, 2, 12, 0)

    assert tracker.cleanup_old_sessions(now=naive_now) == 1
    assert tracker.get_session("fresh") is not None
    assert tracker.session_stats("fresh", now=naive_now)["session_age_minutes"] == pytest.approx(60)


def test_session_stats(tracker: SessionExclusionTracker):
    """Test the stats snapshot."""
    tracker.mark_used("s1", "a")
    tracker.mark_used("s1", "b")

    stats = tracker.session_stats("s1")
    assert stats["used_words_count"] == 2
    assert stats["recent_words_count"] == 2
    assert stats["selections"] == 2
    assert tracker.session_stats("missing") is None


def test_concurrent_marks_keep_state_consistent():
    """Test that parallel writers do not corrupt a session."""
    state = SessionExclusionState("s1", max_recent_window=5, used_set_cap=1000, prune_ratio=0.2)

    def worker(prefix: str) -> None:
        for index in range(200):
            state.mark_used(f"{prefix}-{index}")

    threads = [threading.Thread(target=worker, args=(f"t{n}",)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert state.selections == 800
    assert len(state.recent_ids()) == 5
    assert len(state.used_ids()) <= 1000


if __name__ == "__main__":
    pytest.main([__file__])
