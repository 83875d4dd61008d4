from __future__ import annotations

from typing import List, Optional, Protocol

from .schemas import BookChapter, HistoryEvent


class DocumentStore(Protocol):
    """
    Read-only view of the relational store consumed by the retrieval engine.
    """

    async def list_events(self) -> List[HistoryEvent]:
        ...

    async def list_chapters(self) -> List[BookChapter]:
        ...

    async def get_chapter(self, chapter_id: str) -> Optional[BookChapter]:
        ...
