"""Exceptions raised by the engine."""


class VocabEngineError(Exception):
    """Base class for engine errors."""


class EmptyCatalogError(VocabEngineError):
    """Raised when the catalog holds no words at all for the requested scope."""

    def __init__(self, language: str, module_id: str = None):
        self.language = language
        self.module_id = module_id
        scope = f"{language}/{module_id}" if module_id else language
        super().__init__(f"No words available for {scope}")


class CatalogLoadError(VocabEngineError):
    """Raised when a catalog file cannot be parsed."""
