"""
Admin Routes

This module exposes maintenance endpoints for:
- Corpus statistics and forced rebuilds
- Semantic cache statistics and clearing

Authentication is handled by the hosting application in front of these
routes.
"""

from fastapi import APIRouter, Depends
from typing import Annotated

from .models import CorpusStatsResponse, OperationResult
from .dependencies import get_engine
from ..retrieval.engine import SemanticSearchEngine
from ..retrieval.models import CacheStatsReport

router = APIRouter(tags=["admin"])


# ---------------------------------------------------------------------
# Corpus
# ---------------------------------------------------------------------

@router.get(
    "/corpus/stats",
    response_model=CorpusStatsResponse,
    summary="Get corpus statistics",
)
async def get_corpus_stats(
    engine: Annotated[SemanticSearchEngine, Depends(get_engine)],
) -> CorpusStatsResponse:
    """
    Does not trigger a build; reports zero documents before the first one.
    """
    return CorpusStatsResponse(**engine.get_corpus_stats())


@router.post(
    "/corpus/refresh",
    response_model=OperationResult,
    summary="Rebuild the corpus from the document store",
)
async def refresh_corpus(
    engine: Annotated[SemanticSearchEngine, Depends(get_engine)],
) -> OperationResult:
    """
    Discard the current corpus and re-embed every source document.
    """
    corpus = await engine.refresh()

    return OperationResult(
        status="refreshed",
        count=len(corpus),
        details=corpus.stats(),
    )


# ---------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------

@router.get(
    "/cache/stats",
    response_model=CacheStatsReport,
    summary="Get semantic cache statistics",
)
async def get_cache_stats(
    engine: Annotated[SemanticSearchEngine, Depends(get_engine)],
) -> CacheStatsReport:
    return engine.get_cache_stats()


@router.delete(
    "/cache",
    response_model=OperationResult,
    summary="Clear all semantic caches",
)
async def clear_caches(
    engine: Annotated[SemanticSearchEngine, Depends(get_engine)],
) -> OperationResult:
    engine.clear_all_caches()

    return OperationResult(status="cleared")
