"""Database models for the persistent key-value cache."""
from sqlalchemy import Column, Integer, String, Text

from vocabengine.models.base import Base, TimestampMixin


class CacheEntry(Base, TimestampMixin):
    """Serialized cache value stored under a unique key."""

    __tablename__ = "cache_entries"

    id = Column(Integer, primary_key=True)
    key = Column(String, unique=True, nullable=False, index=True)
    value = Column(Text, nullable=False)
