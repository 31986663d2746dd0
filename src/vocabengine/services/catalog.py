"""Read-only word catalog keyed by language and module."""
import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from vocabengine.errors import CatalogLoadError
from vocabengine.models.word_models import Direction, Word, WordContext

logger = logging.getLogger(__name__)


class WordCatalog:
    """Immutable collection of words, scoped by language and optional module."""

    def __init__(self, words: Iterable[Word] = ()):
        self._by_id: Dict[str, Word] = {}
        self._by_language: Dict[str, List[Word]] = defaultdict(list)
        self._by_module: Dict[tuple, List[Word]] = defaultdict(list)
        for word in words:
            if word.id in self._by_id:
                raise ValueError(f"Duplicate word id {word.id}")
            self._by_id[word.id] = word
            self._by_language[word.language].append(word)
            if word.module_id:
                self._by_module[(word.language, word.module_id)].append(word)

    def words_for(self, language: str, module_id: Optional[str] = None) -> List[Word]:
        """Words in scope, in catalog order."""
        if module_id:
            return list(self._by_module.get((language, module_id), []))
        return list(self._by_language.get(language, []))

    def get(self, word_id: str) -> Optional[Word]:
        return self._by_id.get(word_id)

    def languages(self) -> List[str]:
        return sorted(self._by_language)

    def modules(self, language: str) -> List[str]:
        return sorted(module for lang, module in self._by_module if lang == language)

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, word_id: str) -> bool:
        return word_id in self._by_id

    @classmethod
    def from_dict(cls, data: Dict) -> "WordCatalog":
        """Build a catalog from `{language: {"words": [...], "modules": {...}}}`."""
        words = []
        for language, language_data in data.items():
            if not isinstance(language_data, dict) or "words" not in language_data:
                raise CatalogLoadError(f"Language {language!r} has no word list")

            module_of = {}
            for module_id, word_ids in (language_data.get("modules") or {}).items():
                for word_id in word_ids:
                    module_of[word_id] = module_id

            for index, raw in enumerate(language_data["words"]):
                try:
                    word_id = raw.get("id") or f"{language}-{index}"
                    context = raw.get("context")
                    words.append(Word(
                        id=word_id,
                        term=raw["term"],
                        definition=raw["definition"],
                        language=language,
                        module_id=raw.get("module") or module_of.get(word_id),
                        context=WordContext(
                            sentence=context["sentence"],
                            translation=context.get("translation"),
                        ) if context else None,
                        level=int(raw.get("level", 1)),
                        direction=Direction(raw.get("direction", Direction.TERM_TO_DEFINITION.value)),
                    ))
                except (KeyError, TypeError, ValueError) as e:
                    raise CatalogLoadError(f"Invalid word #{index} in {language!r}: {e}") from e

        logger.info(f"Loaded catalog with {len(words)} words")
        return cls(words)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "WordCatalog":
        """Load a catalog from a JSON file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogLoadError(f"Could not read catalog {path}: {e}") from e
        if not isinstance(data, dict):
            raise CatalogLoadError(f"Catalog {path} must contain an object")
        return cls.from_dict(data)
