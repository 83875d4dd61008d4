"""
Semantic Search Engine

Brute-force cosine-similarity search over the realized in-memory corpus.

Key Properties
--------------
- Lazy corpus build on first use, shared by all concurrent callers
- The corpus is published by a single reference swap; readers never see a
  partially built corpus
- Deterministic ranking: descending similarity, ties in corpus order
- Zero-norm vectors score 0.0, never NaN
- Results are written through to the search-result cache
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .cache import SemanticCache, query_key
from .corpus import Corpus, CorpusBuilder
from .embedder import EmbeddingProvider
from .models import CacheStatsReport, SearchOptions, SearchResult

logger = logging.getLogger("retrieval.engine")


# ---------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------

def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero norm or the lengths differ.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape or va.size == 0:
        return 0.0

    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0

    return float(np.clip(np.dot(va, vb) / denom, -1.0, 1.0))


def score_corpus(corpus: Corpus, query_embedding: Sequence[float]) -> np.ndarray:
    """
    Cosine similarity of the query against every corpus row, in corpus order.
    """
    if len(corpus) == 0:
        return np.zeros(0)

    q = np.asarray(query_embedding, dtype=np.float64)
    if q.shape != (corpus.dimension,):
        logger.warning(
            "Query embedding has shape %s, corpus dimension is %d",
            q.shape,
            corpus.dimension,
        )
        return np.zeros(len(corpus))

    denom = corpus.norms * np.linalg.norm(q)
    dots = corpus.matrix @ q
    scores = np.divide(dots, denom, out=np.zeros_like(dots), where=denom != 0)
    return np.clip(scores, -1.0, 1.0)


def rank(
    corpus: Corpus,
    query_embedding: Sequence[float],
    options: SearchOptions,
) -> List[SearchResult]:
    """
    Filter, threshold, sort and truncate the corpus for one query.

    Class and era filters apply before the threshold. Sorting is stable, so
    equal scores keep corpus order.
    """
    if len(corpus) == 0 or not np.any(np.asarray(query_embedding, dtype=np.float64)):
        return []

    scores = score_corpus(corpus, query_embedding)

    candidates = []
    for position, doc in enumerate(corpus):
        if options.document_class is not None and doc.document_class != options.document_class:
            continue
        if options.era is not None and doc.metadata.era != options.era:
            continue

        similarity = float(scores[position])
        if similarity < options.threshold:
            continue

        candidates.append((similarity, doc))

    candidates.sort(key=lambda item: item[0], reverse=True)

    return [
        SearchResult(
            id=doc.id,
            content=doc.content,
            similarity=similarity,
            metadata=doc.metadata,
        )
        for similarity, doc in candidates[: options.limit]
    ]


# ---------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------

class SemanticSearchEngine:
    """
    Owns the realized corpus and the semantic caches.

    Construct one per process (or per test) and inject it where needed.
    """

    def __init__(
        self,
        builder: CorpusBuilder,
        embedder: EmbeddingProvider,
        cache: Optional[SemanticCache] = None,
    ) -> None:
        self.builder = builder
        self.embedder = embedder
        self.cache = cache or SemanticCache()

        self._corpus: Optional[Corpus] = None
        self._build_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Corpus lifecycle
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._corpus is not None

    @property
    def corpus(self) -> Corpus:
        """
        The published corpus, or an empty one before the first build.
        """
        return self._corpus if self._corpus is not None else Corpus()

    async def ensure_initialized(self) -> Corpus:
        """
        Build the corpus if it has not been built yet.

        Concurrent callers share one in-flight build. If the build fails the
        engine stays uninitialized and the error propagates to every waiter;
        the next call starts a fresh attempt.

        Raises
        ------
        CorpusBuildError
            If the document store could not be read.
        """
        corpus = self._corpus
        if corpus is not None:
            return corpus

        task = self._build_task
        if task is None:
            task = asyncio.ensure_future(self._run_build())
            task.add_done_callback(self._on_build_done)
            self._build_task = task

        # A cancelled waiter must not cancel the build for everyone else
        return await asyncio.shield(task)

    async def refresh(self) -> Corpus:
        """
        Discard the corpus and rebuild it from the document store.

        Search and context caches are cleared together with the old corpus;
        cached embeddings are kept. Searches still running against the old
        corpus do not write their results back (see `is_current`).
        """
        in_flight = self._build_task
        if in_flight is not None:
            await asyncio.wait({in_flight})

        logger.info("Refreshing semantic search corpus (caches: %s)", self.cache.describe())
        self._corpus = None
        self.cache.clear_results()

        return await self.ensure_initialized()

    def is_current(self, corpus: Corpus) -> bool:
        """
        True while `corpus` is the published corpus. Results computed against
        a corpus replaced by `refresh()` must not be cached.
        """
        return self._corpus is corpus

    async def _run_build(self) -> Corpus:
        corpus = await self.builder.build()
        self._corpus = corpus
        return corpus

    def _on_build_done(self, task: asyncio.Task) -> None:
        if self._build_task is task:
            self._build_task = None

        if task.cancelled():
            logger.warning("Corpus build was cancelled")
        elif task.exception() is not None:
            logger.error("Corpus build failed: %s", task.exception())

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        options: Optional[SearchOptions] = None,
    ) -> List[SearchResult]:
        """
        Rank corpus entries by cosine similarity to `query`.

        Parameters
        ----------
        query : str
            Free-text query.

        options : Optional[SearchOptions]
            limit (10), threshold (0.7), document_class and era filters.

        Returns
        -------
        List[SearchResult]
            At most `options.limit` results, highest similarity first. Empty
            when the corpus is empty or the query embedding is all zeros.
        """
        options = options or SearchOptions()
        corpus = await self.ensure_initialized()

        key = query_key(query, options.model_dump(mode="json"))
        cached = self.cache.search_results.get(key)
        if cached is not None:
            return list(cached)

        query_embedding = await self.embedder.embed(query)
        results = rank(corpus, query_embedding, options)

        if self.is_current(corpus):
            self.cache.search_results.set(key, results)
        else:
            logger.info("Corpus was refreshed during search; result not cached")
        return list(results)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def clear_all_caches(self) -> None:
        self.cache.clear_all()
        logger.info("Semantic caches cleared")

    def get_cache_stats(self) -> CacheStatsReport:
        return self.cache.stats()

    def get_corpus_stats(self) -> Dict[str, Any]:
        return {"initialized": self.initialized, **self.corpus.stats()}
