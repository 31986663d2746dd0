"""Models for learning groups and session analysis."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from vocabengine.models.selection_models import LearningPhase, QuizMode
from vocabengine.models.word_models import Word


@dataclass
class WordGroup:
    """A cohort of words sharing a learning phase."""
    id: str
    language: str
    phase: LearningPhase
    word_ids: List[str]
    average_mastery: float
    created_at: datetime
    last_practiced: Optional[datetime] = None
    session_count: int = 0
    module_id: Optional[str] = None

    def to_data(self) -> Dict[str, Any]:
        """Convert to serializable data for storage."""
        return {
            "id": self.id,
            "language": self.language,
            "module_id": self.module_id,
            "phase": self.phase.value,
            "word_ids": list(self.word_ids),
            "average_mastery": self.average_mastery,
            "created_at": self.created_at.isoformat(),
            "last_practiced": self.last_practiced.isoformat() if self.last_practiced else None,
            "session_count": self.session_count,
        }

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "WordGroup":
        """Create a WordGroup instance from stored data."""
        return cls(
            id=data["id"],
            language=data["language"],
            module_id=data.get("module_id"),
            phase=LearningPhase(data["phase"]),
            word_ids=list(data["word_ids"]),
            average_mastery=float(data["average_mastery"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            last_practiced=datetime.fromisoformat(data["last_practiced"]) if data.get("last_practiced") else None,
            session_count=int(data.get("session_count", 0)),
        )


@dataclass
class AnswerResult:
    """One answer given during a session."""
    word_id: str
    is_correct: bool
    time_spent_ms: float
    quiz_mode: QuizMode


@dataclass
class SessionAnalysis:
    """Aggregate view of a finished session."""
    group_id: str
    words_learned: int
    average_accuracy: float
    fastest_mode: QuizMode
    struggling_words: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class PlannedWord:
    """A word scheduled into a session plan."""
    word: Word
    quiz_mode: QuizMode
    difficulty: int
    is_review: bool = False


@dataclass
class SessionPlan:
    """Words for one session: the active group plus overdue reviews."""
    group_id: str
    session_type: str  # introduction, practice, review or mixed
    words: List[PlannedWord] = field(default_factory=list)
    review_words: List[PlannedWord] = field(default_factory=list)

    def interleaved(self, rng) -> List[PlannedWord]:
        """Group and review words shuffled together."""
        combined = self.words + self.review_words
        rng.shuffle(combined)
        return combined
