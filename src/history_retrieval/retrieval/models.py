"""
Retrieval Data Models

This module defines the canonical data model of the semantic retrieval engine:
corpus entries, search results, query options and the aggregated context
bundles built on top of search.

Document metadata is a tagged union over the two document classes. Chapter
metadata has no `year` or `region` field at all, so code that needs an event
field has to narrow on the class first.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..store.schemas import BookChapter


DocumentClass = Literal["event", "chapter"]


# ---------------------------------------------------------------------
# Metadata (tagged union)
# ---------------------------------------------------------------------

class EventMetadata(BaseModel):
    """
    Metadata carried by `event`-class corpus entries.
    """
    document_class: Literal["event"] = "event"
    title: str
    year: int
    era: str
    region: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


class ChapterMetadata(BaseModel):
    """
    Metadata carried by `chapter`-class corpus entries.
    """
    document_class: Literal["chapter"] = "chapter"
    title: str
    era: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


DocumentMetadata = Annotated[
    Union[EventMetadata, ChapterMetadata],
    Field(discriminator="document_class"),
]


# ---------------------------------------------------------------------
# Corpus Entries and Results
# ---------------------------------------------------------------------

class EmbeddedDocument(BaseModel):
    """
    A single corpus entry: flattened text, its embedding and metadata.

    `id` is unique within a document class only; `(id, document_class)` is
    the corpus-wide key.
    """

    id: str = Field(..., min_length=1)
    content: str = Field(
        ...,
        description="Flattened text used for embedding and for display.",
    )
    embedding: List[float] = Field(
        ...,
        min_length=1,
        description="Fixed-length vector; a zero vector marks a failed embedding.",
    )
    metadata: DocumentMetadata

    # Extra keys ignored: dumps carry the computed document_class
    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[misc]
    @property
    def document_class(self) -> DocumentClass:
        return self.metadata.document_class


class SearchResult(BaseModel):
    """
    A scored corpus entry returned by search. Never persisted.
    """
    id: str
    content: str
    similarity: float = Field(..., ge=-1.0, le=1.0)
    metadata: DocumentMetadata

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[misc]
    @property
    def document_class(self) -> DocumentClass:
        return self.metadata.document_class


# ---------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------

class SearchOptions(BaseModel):
    """
    Search options. Class and era filters are exact matches.
    """
    limit: int = Field(default=10, ge=0)
    threshold: float = Field(default=0.7, ge=-1.0, le=1.0)
    document_class: Optional[DocumentClass] = None
    era: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class TimeRange(BaseModel):
    """
    Inclusive year range. Negative years are BCE.
    """
    start: int
    end: int

    model_config = ConfigDict(extra="forbid", frozen=True)

    def contains(self, year: Optional[int]) -> bool:
        return year is not None and self.start <= year <= self.end


class ContextOptions(BaseModel):
    include_similar: bool = True
    time_range: Optional[TimeRange] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------
# Aggregated Results
# ---------------------------------------------------------------------

class HistoricalContext(BaseModel):
    """
    Fact-checking bundle for a claim.

    `direct_matches` are tight matches (high threshold), `related_events`
    loose ones that were not already direct. `sources` lists the titles of
    all direct matches followed by up to three related titles.
    """
    direct_matches: List[SearchResult] = Field(default_factory=list)
    related_events: List[SearchResult] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    sources: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


class ChapterContext(BaseModel):
    """
    Events and chapters related to a chapter. Empty when the chapter is unknown.
    """
    chapter: Optional[BookChapter] = None
    related_events: List[SearchResult] = Field(default_factory=list)
    related_chapters: List[SearchResult] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------
# Cache Statistics
# ---------------------------------------------------------------------

class CacheStats(BaseModel):
    entry_count: int = Field(..., ge=0)
    approx_size_bytes: int = Field(..., ge=0)


class CacheStatsReport(BaseModel):
    embeddings: CacheStats
    search_results: CacheStats
    historical_context: CacheStats
