"""
Document Store Package

Read-only access to the events and chapters the retrieval corpus is built
from, backed by PostgreSQL (SQLAlchemy async) or an in-memory dictionary.
"""

from ..config import settings
from .base import DocumentStore
from .memory import InMemoryDocumentStore
from .schemas import BookChapter, HistoryEvent
from .session import get_session_factory
from .sql import SqlDocumentStore


def get_document_store() -> DocumentStore:
    """
    Return the configured document store.

    SQL when DATABASE_URL is set, the seeded in-memory store otherwise.
    """
    if settings.database_url:
        return SqlDocumentStore(get_session_factory())
    return InMemoryDocumentStore()


__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
    "BookChapter",
    "HistoryEvent",
    "get_document_store",
]
