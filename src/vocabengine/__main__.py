"""Main entry point: run a simulated learning session against a catalog."""
import argparse
import logging
import sys
import uuid
from datetime import datetime, UTC
from typing import Dict, List, Optional

from vocabengine.config import ensure_directories, settings
from vocabengine.errors import VocabEngineError
from vocabengine.logging_config import setup_logging
from vocabengine.models.word_models import ProgressRecord
from vocabengine.monitoring import start_monitoring
from vocabengine.services.catalog import WordCatalog
from vocabengine.services.learning_service import LearningService, regular_session_criteria

logger = logging.getLogger("vocabengine")

# Simulated answer recorder
XP_PER_CORRECT = 10


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="vocabengine", description="Simulate an adaptive vocabulary session.")
    parser.add_argument("--catalog", required=True, help="Path to a JSON word catalog")
    parser.add_argument("--language", required=True, help="Language code to study")
    parser.add_argument("--module", default=None, help="Optional module id")
    parser.add_argument("--count", type=int, default=10, help="Number of words to select")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible runs")
    parser.add_argument("--window", type=int, default=None, help="Recent window size")
    parser.add_argument("--accuracy", type=float, default=0.7, help="Chance the simulated learner answers correctly")
    parser.add_argument("--log-level", default=None, help="Logging level")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    catalog = WordCatalog.from_json(args.catalog)
    service = LearningService(catalog, seed=args.seed)
    progress: Dict[str, ProgressRecord] = {}
    session_id = f"cli-{uuid.uuid4().hex[:8]}"

    group = service.next_group(args.language, progress, args.module)
    criteria = regular_session_criteria(args.language, args.module)
    if args.window is not None:
        criteria.max_recent_tracking = args.window

    for step in range(1, args.count + 1):
        result = service.select_word(criteria, progress, session_id)
        is_correct = service.rng.random() < args.accuracy
        record = progress.setdefault(result.word.id, ProgressRecord())
        if is_correct:
            record.xp += XP_PER_CORRECT
            record.times_correct += 1
        else:
            record.times_incorrect += 1
        record.last_practiced = datetime.now(UTC)
        service.record_outcome(session_id, result.word.id, is_correct, 0)

        print(
            f"{step:3d}. {result.word.term:<20} {result.quiz_mode.value:<18} "
            f"{'correct' if is_correct else 'wrong':<8} {result.selection_reason}"
        )

    if group is not None:
        analysis = service.complete_session(session_id, args.language, group.id, module_id=args.module)
        print(f"Accuracy: {round(analysis.average_accuracy * 100)}%")
        for recommendation in analysis.recommendations:
            print(f"  - {recommendation}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    ensure_directories()
    setup_logging("Starting vocabengine session ...", args.log_level)

    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)

    try:
        return run(args)
    except VocabEngineError as e:
        logger.error(f"{e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
