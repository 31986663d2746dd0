"""Configuration settings for the engine."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
CATALOGS_DIR = DATA_DIR / "catalogs"

# Mastery settings
REVIEW_INTERVAL_HOURS = [4, 24, 72, 168]  # struggling, learning, learned, mastered
SPACED_REPETITION_HOURS = [1, 4, 24, 72, 168, 720]  # by correct streak


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        CATALOGS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    catalogs_dir: Path = CATALOGS_DIR


@dataclass
class DatabaseSettings:
    """Database settings for the persistent group cache."""
    url: str = os.getenv("VOCAB_CACHE_DB_URL", "sqlite:///vocabengine.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class MasterySettings:
    """Mastery decay settings."""
    review_interval_hours: list[int] = field(default_factory=lambda: list(REVIEW_INTERVAL_HOURS))
    spaced_repetition_hours: list[int] = field(default_factory=lambda: list(SPACED_REPETITION_HOURS))
    max_mastery: float = 100.0


@dataclass
class SelectionSettings:
    """Word selection settings."""
    recent_window_size: int = int(os.getenv("RECENT_WINDOW_SIZE", "8"))
    max_recent_window_size: int = int(os.getenv("MAX_RECENT_WINDOW_SIZE", "50"))
    used_set_cap: int = int(os.getenv("USED_SET_CAP", "100"))
    used_set_prune_ratio: float = float(os.getenv("USED_SET_PRUNE_RATIO", "0.2"))
    top_candidate_fraction: float = float(os.getenv("TOP_CANDIDATE_FRACTION", "0.2"))
    top_candidates_count: int = int(os.getenv("TOP_CANDIDATES_COUNT", "3"))
    max_alternatives: int = int(os.getenv("MAX_ALTERNATIVES", "5"))
    weight_decay: float = float(os.getenv("WEIGHT_DECAY", "0.5"))
    session_max_age_hours: int = int(os.getenv("SESSION_MAX_AGE_HOURS", "24"))
    random_seed: Optional[int] = int(os.environ["RANDOM_SEED"]) if os.getenv("RANDOM_SEED") else None


@dataclass
class GroupSettings:
    """Learning group settings."""
    cache_expiry_hours: float = float(os.getenv("CACHE_EXPIRY_HOURS", "24"))
    min_group_size: int = int(os.getenv("MIN_GROUP_SIZE", "5"))
    ideal_group_size: int = int(os.getenv("IDEAL_GROUP_SIZE", "6"))
    max_group_size: int = int(os.getenv("MAX_GROUP_SIZE", "7"))
    max_groups_per_scope: int = int(os.getenv("MAX_GROUPS_PER_SCOPE", "20"))
    max_review_words: int = int(os.getenv("MAX_REVIEW_WORDS", "3"))


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_mastery_settings() -> MasterySettings:
    """Get mastery settings."""
    return MasterySettings()


def get_selection_settings() -> SelectionSettings:
    """Get selection settings."""
    return SelectionSettings()


def get_group_settings() -> GroupSettings:
    """Get group settings."""
    return GroupSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    mastery: MasterySettings = field(default_factory=get_mastery_settings)
    selection: SelectionSettings = field(default_factory=get_selection_settings)
    groups: GroupSettings = field(default_factory=get_group_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        intervals = self.mastery.review_interval_hours
        if len(intervals) != 4:
            raise ValueError("Four review intervals are required")
        if any(hours <= 0 for hours in intervals):
            raise ValueError("Review intervals must be positive")
        if list(intervals) != sorted(intervals):
            raise ValueError("Review intervals must not shrink as mastery grows")

        if self.selection.recent_window_size < 1:
            raise ValueError("RECENT_WINDOW_SIZE must be positive")

        if self.selection.recent_window_size > self.selection.max_recent_window_size:
            raise ValueError("RECENT_WINDOW_SIZE cannot exceed MAX_RECENT_WINDOW_SIZE")

        if self.selection.used_set_cap < 1:
            raise ValueError("USED_SET_CAP must be positive")

        if not 0 < self.selection.used_set_prune_ratio <= 1:
            raise ValueError("USED_SET_PRUNE_RATIO must be in (0, 1]")

        if not 0 < self.selection.top_candidate_fraction <= 1:
            raise ValueError("TOP_CANDIDATE_FRACTION must be in (0, 1]")

        if self.selection.top_candidates_count < 1:
            raise ValueError("TOP_CANDIDATES_COUNT must be positive")

        if not 0 < self.selection.weight_decay <= 1:
            raise ValueError("WEIGHT_DECAY must be in (0, 1]")

        if self.groups.cache_expiry_hours < 0:
            raise ValueError("CACHE_EXPIRY_HOURS cannot be negative")

        if not (0 < self.groups.min_group_size <= self.groups.ideal_group_size
                <= self.groups.max_group_size):
            raise ValueError("Group sizes must satisfy 0 < MIN <= IDEAL <= MAX")


# Create global settings instance
settings = Settings()
settings.validate()
