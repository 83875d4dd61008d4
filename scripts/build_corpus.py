import asyncio
import json

from dotenv import load_dotenv
load_dotenv()

from history_retrieval.config import settings
from history_retrieval.core.logging import configure_logging
from history_retrieval.retrieval.cache import SemanticCache
from history_retrieval.retrieval.corpus import CorpusBuilder
from history_retrieval.retrieval.embedder import EmbeddingProvider
from history_retrieval.store import get_document_store

async def main():
    configure_logging(settings.log_level)

    print("Initializing clients...")
    cache = SemanticCache()
    embedder = EmbeddingProvider(cache=cache.embeddings)
    if not embedder.configured:
        print("GEMINI_API_KEY is not set: every document will get a zero vector.")

    store = get_document_store()
    builder = CorpusBuilder(store=store, embedder=embedder)

    print(f"Building corpus (delay between calls: {builder.delay}s)...")
    corpus = await builder.build()

    zero_rows = sum(1 for doc in corpus if not any(doc.embedding))
    if zero_rows:
        print(f"Warning: {zero_rows} documents have zero vectors (embedding degraded).")

    print("Corpus stats:")
    print(json.dumps(corpus.stats(), indent=2))
    print("Cache stats:")
    print(cache.stats().model_dump_json(indent=2))
    print("Done!")

if __name__ == "__main__":
    asyncio.run(main())
