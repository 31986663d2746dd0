"""Aggregation of a finished session's answers."""
import logging
from collections import defaultdict
from typing import Dict, List, Optional

from vocabengine.models.group_models import AnswerResult, SessionAnalysis
from vocabengine.models.selection_models import QuizMode

logger = logging.getLogger(__name__)

LOW_ACCURACY = 0.7
HIGH_ACCURACY = 0.9
STRUGGLING_SHARE = 0.3


class SessionAnalyzer:
    """Turns per-answer results into a SessionAnalysis."""

    def analyze(
        self,
        group_id: str,
        results: List[AnswerResult],
        group_size: Optional[int] = None,
    ) -> SessionAnalysis:
        correct = sum(1 for r in results if r.is_correct)
        accuracy = correct / len(results) if results else 0.0

        struggling: List[str] = []
        for r in results:
            if not r.is_correct and r.word_id not in struggling:
                struggling.append(r.word_id)

        recommendations = []
        if accuracy < LOW_ACCURACY:
            recommendations.append("Focus on easier quiz modes to build confidence")
            recommendations.append("Review word context and definitions more carefully")

        size = group_size if group_size is not None else len({r.word_id for r in results})
        if struggling and len(struggling) > size * STRUGGLING_SHARE:
            recommendations.append("Consider smaller word groups for better focus")
            recommendations.append("Schedule more frequent review sessions")

        if accuracy > HIGH_ACCURACY:
            recommendations.append("Ready for more challenging quiz modes")
            recommendations.append("Consider introducing new words to this group")

        analysis = SessionAnalysis(
            group_id=group_id,
            words_learned=correct,
            average_accuracy=accuracy,
            fastest_mode=self._fastest_mode(results),
            struggling_words=struggling,
            recommendations=recommendations,
        )
        logger.debug(f"Analyzed session for {group_id}: {correct}/{len(results)} correct")
        return analysis

    @staticmethod
    def _fastest_mode(results: List[AnswerResult]) -> QuizMode:
        """Mode with the lowest average answer time."""
        totals: Dict[QuizMode, List[float]] = defaultdict(lambda: [0.0, 0])
        for r in results:
            totals[r.quiz_mode][0] += max(0.0, r.time_spent_ms)
            totals[r.quiz_mode][1] += 1
        if not totals:
            return QuizMode.MULTIPLE_CHOICE
        return min(totals, key=lambda mode: totals[mode][0] / totals[mode][1])
