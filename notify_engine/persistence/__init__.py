"""SQLAlchemy persistence for notification history and preferences.

Public API:
    - Database(database_url): engine, schema and ``session()`` context manager
    - SqlHistoryStore / SqlPreferenceStore: durable store implementations
    - PersistenceError and subclasses

Example usage:
    >>> from notify_engine.persistence import Database, SqlHistoryStore
    >>> db = Database("sqlite:///./data/notifications.db")
    >>> history = SqlHistoryStore(db)
"""

from .database import Database, redact_url
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
)
from .repositories import SqlHistoryStore, SqlPreferenceStore

__all__ = [
    "Database",
    "redact_url",
    "SqlHistoryStore",
    "SqlPreferenceStore",
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
]
