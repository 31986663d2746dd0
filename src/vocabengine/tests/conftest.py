"""Test configuration."""
import os
from datetime import datetime, UTC
from pathlib import Path
from typing import Callable, List

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from vocabengine.models.word_models import Word, WordContext  # noqa: E402
from vocabengine.services.catalog import WordCatalog  # noqa: E402

fake = Faker()


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for deterministic decay."""
    return datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def make_words() -> Callable[..., List[Word]]:
    """Factory for catalog words with fake terms."""
    def _make(count: int, language: str = "de", module_id: str = None, with_context: bool = False) -> List[Word]:
        return [
            Word(
                id=f"{language}-{module_id or 'all'}-{index}",
                term=fake.word(),
                definition=fake.word(),
                language=language,
                module_id=module_id,
                context=WordContext(sentence=fake.sentence(), translation=fake.sentence()) if with_context else None,
            )
            for index in range(count)
        ]
    return _make


@pytest.fixture
def catalog(make_words) -> WordCatalog:
    """Catalog with a small German vocabulary."""
    return WordCatalog(make_words(5))
