"""Key-value stores backing the group cache."""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from vocabengine.models.cache_models import CacheEntry

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal string key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError("Subclasses must implement this method")


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, the default for tests and short-lived engines."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class SqlKeyValueStore(KeyValueStore):
    """Store persisted through SQLAlchemy in the cache_entries table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        with self.session_factory() as db:
            entry = db.query(CacheEntry).filter(CacheEntry.key == key).first()
            return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        with self.session_factory() as db:
            try:
                entry = db.query(CacheEntry).filter(CacheEntry.key == key).first()
                if entry:
                    entry.value = value
                else:
                    db.add(CacheEntry(key=key, value=value))
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                logger.exception(f"Failed to store cache entry {key}")
                raise

    def delete(self, key: str) -> None:
        with self.session_factory() as db:
            db.query(CacheEntry).filter(CacheEntry.key == key).delete()
            db.commit()
