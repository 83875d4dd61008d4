"""
Historical Context

Aggregations built on top of semantic search:

- `find_historical_context`: two-tier event matches for a claim, with a
  confidence score and source titles, used for fact-checking
- `get_chapter_context`: events and chapters related to a book chapter
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from ..store.base import DocumentStore
from .cache import query_key
from .engine import SemanticSearchEngine
from .models import (
    ChapterContext,
    ContextOptions,
    EventMetadata,
    HistoricalContext,
    SearchOptions,
    SearchResult,
    TimeRange,
)

logger = logging.getLogger("retrieval.context")


# ---------------------------------------------------------------------
# Search Tiers
# ---------------------------------------------------------------------

DIRECT_MATCH_OPTIONS = SearchOptions(limit=5, threshold=0.8, document_class="event")
RELATED_EVENT_OPTIONS = SearchOptions(limit=10, threshold=0.6, document_class="event")

MAX_RELATED_EVENTS = 5
MAX_RELATED_SOURCES = 3
RELATED_ONLY_CONFIDENCE_FACTOR = 0.5

CHAPTER_EVENT_OPTIONS = SearchOptions(limit=5, threshold=0.6, document_class="event")
CHAPTER_CHAPTER_OPTIONS = SearchOptions(limit=3, threshold=0.7, document_class="chapter")


# ---------------------------------------------------------------------
# Policy Helpers
# ---------------------------------------------------------------------

def filter_by_time_range(
    results: List[SearchResult],
    time_range: TimeRange,
) -> List[SearchResult]:
    """
    Keep results whose year lies in the inclusive range. Results without a
    year (chapters) are dropped.
    """
    return [
        r
        for r in results
        if isinstance(r.metadata, EventMetadata) and time_range.contains(r.metadata.year)
    ]


def compute_confidence(direct_matches: List[SearchResult]) -> float:
    """
    Highest direct-match similarity, halved when there are no direct matches.

    With no direct matches the maximum is 0, so the result is 0.
    """
    max_similarity = max((m.similarity for m in direct_matches), default=0.0)
    factor = 1.0 if direct_matches else RELATED_ONLY_CONFIDENCE_FACTOR
    return min(1.0, max(0.0, max_similarity * factor))


def collect_sources(
    direct_matches: List[SearchResult],
    related_events: List[SearchResult],
) -> List[str]:
    return [m.metadata.title for m in direct_matches] + [
        m.metadata.title for m in related_events[:MAX_RELATED_SOURCES]
    ]


# ---------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------

class HistoricalContextAggregator:
    """
    Builds context bundles from a SemanticSearchEngine and the document store.
    """

    def __init__(self, engine: SemanticSearchEngine, store: DocumentStore) -> None:
        self.engine = engine
        self.store = store

    async def find_historical_context(
        self,
        claim: str,
        options: Optional[ContextOptions] = None,
    ) -> HistoricalContext:
        """
        Find events that support or contextualize a claim.

        Parameters
        ----------
        claim : str
            The statement to check.

        options : Optional[ContextOptions]
            include_similar (default True) and an optional inclusive
            time_range on event years.

        Returns
        -------
        HistoricalContext
            Direct matches (threshold 0.8, up to 5), related events (threshold
            0.6, not already direct, up to 5), confidence and source titles.
        """
        options = options or ContextOptions()
        cache = self.engine.cache.historical_context

        key = query_key(f"context:{claim}", options.model_dump(mode="json"))
        cached = cache.get(key)
        if cached is not None:
            return cached

        corpus = await self.engine.ensure_initialized()
        direct_matches = await self.engine.search(claim, DIRECT_MATCH_OPTIONS)

        related_events: List[SearchResult] = []
        if options.include_similar:
            related = await self.engine.search(claim, RELATED_EVENT_OPTIONS)
            direct_ids = {m.id for m in direct_matches}
            related_events = [r for r in related if r.id not in direct_ids]

        if options.time_range is not None:
            direct_matches = filter_by_time_range(direct_matches, options.time_range)
            related_events = filter_by_time_range(related_events, options.time_range)

        context = HistoricalContext(
            direct_matches=direct_matches,
            related_events=related_events[:MAX_RELATED_EVENTS],
            confidence=compute_confidence(direct_matches),
            sources=collect_sources(direct_matches, related_events),
        )

        if self.engine.is_current(corpus):
            cache.set(key, context)
        else:
            logger.info("Corpus was refreshed during context lookup; result not cached")
        return context

    async def get_chapter_context(self, chapter_id: str) -> ChapterContext:
        """
        Find events and other chapters related to a chapter.

        An unknown chapter yields an empty context rather than an error. The
        chapter itself never appears among its related chapters.
        """
        chapter = await self.store.get_chapter(chapter_id)
        if chapter is None:
            logger.info("No chapter %s; returning empty context", chapter_id)
            return ChapterContext()

        query = f"{chapter.title} {chapter.narrative}"

        related_events, related_chapters = await asyncio.gather(
            self.engine.search(query, CHAPTER_EVENT_OPTIONS),
            self.engine.search(query, CHAPTER_CHAPTER_OPTIONS),
        )

        return ChapterContext(
            chapter=chapter,
            related_events=related_events,
            related_chapters=[c for c in related_chapters if c.id != chapter_id],
        )
