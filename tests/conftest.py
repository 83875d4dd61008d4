from unittest.mock import AsyncMock

import pytest

from history_retrieval.retrieval.cache import SemanticCache
from history_retrieval.retrieval.embedder import EmbeddingProvider
from history_retrieval.retrieval.engine import SemanticSearchEngine

from factories import QUERY_VECTOR, StaticBuilder


@pytest.fixture
def mock_embedder():
    mock = AsyncMock(spec=EmbeddingProvider)
    mock.embed.return_value = list(QUERY_VECTOR)
    return mock


@pytest.fixture
def make_engine(mock_embedder):
    """
    Factory for an isolated engine over a fixed list of documents.
    """
    def _make(documents=(), builder=None):
        return SemanticSearchEngine(
            builder=builder or StaticBuilder(documents),
            embedder=mock_embedder,
            cache=SemanticCache(),
        )
    return _make
