"""
Database subsystem: async SQLAlchemy engine, session management and the
ORM base class.
"""

from quizstreak.core.database.base import Base, IdMixin, TimestampMixin, utc_now
from quizstreak.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    "Base",
    "IdMixin",
    "TimestampMixin",
    "utc_now",
    "DatabaseService",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
