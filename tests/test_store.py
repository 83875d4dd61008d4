"""
Document Store Tests

The SQL store is exercised against a mocked session factory; no database
connection is opened.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from history_retrieval.config import settings
from history_retrieval.store import (
    InMemoryDocumentStore,
    SqlDocumentStore,
    get_document_store,
)
from history_retrieval.store.models import BookChapterRow, HistoryEventRow
from history_retrieval.store.schemas import BookChapter, HistoryEvent


def mock_session_factory(session):
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    return factory


class TestInMemoryDocumentStore:
    """Tests for the dictionary-backed store."""

    @pytest.mark.asyncio
    async def test_seeded_by_default(self):
        store = InMemoryDocumentStore()

        events = await store.list_events()
        chapters = await store.list_chapters()

        assert [e.id for e in events] == [
            "pyramids_giza",
            "first_dynasty",
            "neolithic_revolution",
        ]
        assert [c.id for c in chapters] == ["ch_41"]
        assert events[0].year == -2580

    @pytest.mark.asyncio
    async def test_explicit_documents_disable_seed(self):
        store = InMemoryDocumentStore(events=[])

        assert await store.list_events() == []
        assert await store.list_chapters() == []

    @pytest.mark.asyncio
    async def test_get_chapter(self):
        store = InMemoryDocumentStore()

        chapter = await store.get_chapter("ch_41")

        assert chapter.chapter_number == 41
        assert await store.get_chapter("ch_404") is None

    @pytest.mark.asyncio
    async def test_add_documents(self):
        store = InMemoryDocumentStore(events=[], chapters=[])
        store.add_event(
            HistoryEvent(id="e1", title="Event", year=1066, era="Medieval", description="d")
        )
        store.add_chapter(BookChapter(id="c1", title="Chapter", narrative="n"))

        assert [e.id for e in await store.list_events()] == ["e1"]
        assert (await store.get_chapter("c1")).title == "Chapter"


class TestRowConversion:

    def test_event_row_with_null_tags(self):
        row = HistoryEventRow(
            id="e1",
            title="Event",
            year=-44,
            era="Roman Republic",
            description="Caesar is assassinated.",
            region=None,
            tags=None,
        )

        record = row.to_record()

        assert record.tags == []
        assert record.region is None
        assert record.year == -44

    def test_chapter_row(self):
        row = BookChapterRow(
            id="c1",
            title="Chapter",
            chapter_number=3,
            narrative="Narrative",
            commentary=None,
            tags=["Rome"],
            time_span="100 BCE - 44 BCE",
            era="Classical",
        )

        record = row.to_record()

        assert record.tags == ["Rome"]
        assert record.commentary is None
        assert record.time_span == "100 BCE - 44 BCE"


class TestSqlDocumentStore:
    """Tests for the PostgreSQL store against a mocked session."""

    @pytest.mark.asyncio
    async def test_list_events(self):
        session = AsyncMock()
        result = MagicMock()
        result.scalars.return_value.all.return_value = [
            HistoryEventRow(
                id="e1",
                title="Event",
                year=1066,
                era="Medieval",
                description="Hastings",
                tags=["England"],
            )
        ]
        session.execute.return_value = result

        store = SqlDocumentStore(mock_session_factory(session))
        events = await store.list_events()

        assert events == [
            HistoryEvent(
                id="e1",
                title="Event",
                year=1066,
                era="Medieval",
                description="Hastings",
                tags=["England"],
            )
        ]
        session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_list_chapters(self):
        session = AsyncMock()
        result = MagicMock()
        result.scalars.return_value.all.return_value = [
            BookChapterRow(
                id="ch_41",
                title="Horus",
                chapter_number=41,
                narrative="The falcon god.",
                commentary="Kingship.",
                tags=None,
                era="Ancient History",
            ),
            BookChapterRow(
                id="ch_42",
                title="Seth",
                chapter_number=42,
                narrative="The storm god.",
                tags=["Myth"],
            ),
        ]
        session.execute.return_value = result

        store = SqlDocumentStore(mock_session_factory(session))
        chapters = await store.list_chapters()

        assert [c.id for c in chapters] == ["ch_41", "ch_42"]
        assert chapters[0] == BookChapter(
            id="ch_41",
            title="Horus",
            chapter_number=41,
            narrative="The falcon god.",
            commentary="Kingship.",
            era="Ancient History",
        )
        assert chapters[1].tags == ["Myth"]
        assert chapters[1].commentary is None
        session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_missing_chapter(self):
        session = AsyncMock()
        session.get.return_value = None

        store = SqlDocumentStore(mock_session_factory(session))

        assert await store.get_chapter("missing") is None
        session.get.assert_awaited_once_with(BookChapterRow, "missing")


class TestGetDocumentStore:

    def test_memory_store_without_database(self, monkeypatch):
        monkeypatch.setattr(settings, "database_url", None)

        assert isinstance(get_document_store(), InMemoryDocumentStore)

    def test_sql_store_with_database(self, monkeypatch):
        monkeypatch.setattr(settings, "database_url", "postgresql+asyncpg://u:p@localhost/db")

        with patch("history_retrieval.store.get_session_factory") as factory:
            store = get_document_store()

        assert isinstance(store, SqlDocumentStore)
        factory.assert_called_once()
