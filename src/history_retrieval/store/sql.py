"""
SQL Document Store

PostgreSQL-backed DocumentStore over the `history_events` and `book_chapters`
tables. Each call opens its own short-lived session; rows are converted to
immutable records before the session closes.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .models import BookChapterRow, HistoryEventRow
from .schemas import BookChapter, HistoryEvent


class SqlDocumentStore:
    """
    Read-only document store using SQLAlchemy async sessions.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Parameters
        ----------
        session_factory : async_sessionmaker[AsyncSession]
            Factory producing sessions bound to the application database.
        """
        self._session_factory = session_factory

    async def list_events(self) -> List[HistoryEvent]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(HistoryEventRow).order_by(HistoryEventRow.year, HistoryEventRow.id)
            )
            return [row.to_record() for row in result.scalars().all()]

    async def list_chapters(self) -> List[BookChapter]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(BookChapterRow).order_by(BookChapterRow.chapter_number, BookChapterRow.id)
            )
            return [row.to_record() for row in result.scalars().all()]

    async def get_chapter(self, chapter_id: str) -> Optional[BookChapter]:
        async with self._session_factory() as session:
            row = await session.get(BookChapterRow, chapter_id)
            return row.to_record() if row is not None else None
