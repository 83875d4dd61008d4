from functools import lru_cache

from ..config import settings
from ..retrieval.cache import SemanticCache
from ..retrieval.context import HistoricalContextAggregator
from ..retrieval.corpus import CorpusBuilder
from ..retrieval.embedder import EmbeddingProvider
from ..retrieval.engine import SemanticSearchEngine
from ..store import DocumentStore, get_document_store


@lru_cache
def get_store() -> DocumentStore:
    return get_document_store()


@lru_cache
def get_engine() -> SemanticSearchEngine:
    cache = SemanticCache()
    embedder = EmbeddingProvider(cache=cache.embeddings)
    builder = CorpusBuilder(
        store=get_store(),
        embedder=embedder,
        delay=settings.corpus_build_delay,
    )
    return SemanticSearchEngine(builder=builder, embedder=embedder, cache=cache)


@lru_cache
def get_aggregator() -> HistoricalContextAggregator:
    return HistoricalContextAggregator(engine=get_engine(), store=get_store())
