"""Base model configuration."""
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import Column, DateTime, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from vocabengine.config import settings

# Create declarative base class
Base = declarative_base()


class TimestampMixin:
    """Mixin to add timestamp columns to models."""
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


def make_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create an engine for the cache database."""
    return create_engine(
        url or settings.database.url,
        echo=settings.database.echo if echo is None else echo,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to the given engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Initialize database."""
    # Register tables on Base before creating them
    from vocabengine.models import cache_models  # noqa: F401

    Base.metadata.create_all(bind=engine)  # Create tables if they don't exist
