import pytest
from pydantic import ValidationError

from history_retrieval.retrieval.models import (
    ChapterMetadata,
    EmbeddedDocument,
    EventMetadata,
    SearchOptions,
    SearchResult,
    TimeRange,
)


def test_metadata_union_narrows_on_document_class():
    doc = EmbeddedDocument.model_validate({
        "id": "ch_41",
        "content": "Horus",
        "embedding": [0.1, 0.2],
        "metadata": {"document_class": "chapter", "title": "Horus"},
    })

    assert isinstance(doc.metadata, ChapterMetadata)
    assert doc.document_class == "chapter"
    assert not hasattr(doc.metadata, "year")


def test_chapter_metadata_rejects_event_fields():
    with pytest.raises(ValidationError):
        ChapterMetadata(title="Horus", year=-3100)


def test_event_metadata_requires_year_and_era():
    with pytest.raises(ValidationError):
        EventMetadata(title="Pyramids")


def test_embedding_must_not_be_empty():
    with pytest.raises(ValidationError):
        EmbeddedDocument(
            id="e1",
            content="x",
            embedding=[],
            metadata=EventMetadata(title="t", year=1, era="e"),
        )


def test_search_result_dump_includes_document_class():
    result = SearchResult(
        id="pyramids_giza",
        content="Pyramids",
        similarity=0.9,
        metadata=EventMetadata(title="Pyramids", year=-2580, era="Old Kingdom"),
    )

    dumped = result.model_dump()

    assert dumped["document_class"] == "event"
    assert SearchResult.model_validate(dumped) == result


def test_similarity_is_bounded():
    with pytest.raises(ValidationError):
        SearchResult(
            id="x",
            content="x",
            similarity=1.5,
            metadata=ChapterMetadata(title="t"),
        )


def test_search_options_defaults():
    options = SearchOptions()

    assert options.limit == 10
    assert options.threshold == 0.7
    assert options.document_class is None
    assert options.era is None


def test_time_range_contains():
    time_range = TimeRange(start=-3000, end=-2000)

    assert time_range.contains(-2580)
    assert time_range.contains(-3000)
    assert not time_range.contains(-1999)
    assert not time_range.contains(None)
