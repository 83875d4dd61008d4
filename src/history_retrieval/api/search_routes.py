"""
Search Routes

This module defines the semantic search endpoints backed by the in-memory
retrieval corpus: plain search, historical context for a claim, and related
content for a chapter.

The first request after startup may wait for the corpus build. A failed build
is reported as a retryable 503 by the CorpusBuildError handler.
"""

from fastapi import APIRouter, Depends, status
from typing import List, Annotated

from .models import SearchRequest, ContextRequest
from .dependencies import get_engine, get_aggregator
from ..retrieval.context import HistoricalContextAggregator
from ..retrieval.engine import SemanticSearchEngine
from ..retrieval.models import ChapterContext, HistoricalContext, SearchResult

router = APIRouter(prefix="/search", tags=["search"])


@router.post(
    "/",
    response_model=List[SearchResult],
    summary="Semantic search over events and chapters",
    status_code=status.HTTP_200_OK,
)
async def search(
    req: SearchRequest,
    engine: Annotated[SemanticSearchEngine, Depends(get_engine)],
) -> List[SearchResult]:
    """
    Rank events and chapters by similarity to the query.

    Parameters
    ----------
    req : SearchRequest
        Contains:
        - query: Search query string
        - limit / threshold: result cap and similarity cutoff
        - document_class / era: optional exact-match filters
    """
    return await engine.search(req.query, req.to_options())


@router.post(
    "/context",
    response_model=HistoricalContext,
    summary="Historical context for a claim",
)
async def historical_context(
    req: ContextRequest,
    aggregator: Annotated[HistoricalContextAggregator, Depends(get_aggregator)],
) -> HistoricalContext:
    """
    Return direct and related events for a claim, with a confidence score.
    """
    return await aggregator.find_historical_context(req.claim, req.to_options())


@router.get(
    "/chapters/{chapter_id}/context",
    response_model=ChapterContext,
    summary="Events and chapters related to a chapter",
)
async def chapter_context(
    chapter_id: str,
    aggregator: Annotated[HistoricalContextAggregator, Depends(get_aggregator)],
) -> ChapterContext:
    """
    Unknown chapters return an empty context, not a 404.
    """
    return await aggregator.get_chapter_context(chapter_id)
