"""Monitoring configuration for the engine."""
from prometheus_client import Counter, Histogram, start_http_server

# Selection metrics
words_selected = Counter(
    "vocabengine_words_selected_total",
    "Total number of words selected",
    ["algorithm"],
)

pool_relaxations = Counter(
    "vocabengine_pool_relaxations_total",
    "Number of selections that had to relax session exclusions",
)

empty_catalog_errors = Counter(
    "vocabengine_empty_catalog_total",
    "Number of selections that failed because the catalog scope was empty",
    ["language"],
)

selection_duration = Histogram(
    "vocabengine_selection_duration_seconds",
    "Duration of word selection in seconds",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5],
)

# Quiz mode metrics
quiz_modes_chosen = Counter(
    "vocabengine_quiz_modes_total",
    "Quiz modes assigned to selected words",
    ["mode"],
)

# Outcome metrics
outcomes_recorded = Counter(
    "vocabengine_outcomes_total",
    "Answer outcomes reported back to the engine",
    ["correct"],
)

# Group cache metrics
group_cache_hits = Counter(
    "vocabengine_group_cache_hits_total",
    "Group cache lookups served from a fresh snapshot",
)

group_cache_misses = Counter(
    "vocabengine_group_cache_misses_total",
    "Group cache lookups that required recomputation",
)

sessions_completed = Counter(
    "vocabengine_sessions_completed_total",
    "Learning sessions reported as completed",
    ["language"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
