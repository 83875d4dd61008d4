"""
Corpus Builder

Turns the source documents of the document store into the realized,
in-memory search corpus.

Key Properties
--------------
- Deterministic content synthesis, so the same document always produces the
  same text (and therefore the same embedding cache key)
- Sequential embedding calls with a configurable pause between them
- A failure on one document drops that document only
- A failed store fetch aborts the build with CorpusBuildError
- The result is an immutable Corpus that is published in one step
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import settings
from ..core.errors import CorpusBuildError
from ..store.base import DocumentStore
from ..store.schemas import BookChapter, HistoryEvent
from .embedder import EmbeddingProvider
from .models import ChapterMetadata, EmbeddedDocument, EventMetadata

logger = logging.getLogger("retrieval.corpus")


# ---------------------------------------------------------------------
# Content Synthesis
# ---------------------------------------------------------------------

def event_content(event: HistoryEvent) -> str:
    return (
        f"{event.title}: {event.description} "
        f"(Year: {event.year}, Era: {event.era}, Region: {event.region or 'Unknown'})"
    )


def chapter_content(chapter: BookChapter) -> str:
    return f"{chapter.title}: {chapter.narrative} {chapter.commentary or ''}"


# ---------------------------------------------------------------------
# Realized Corpus
# ---------------------------------------------------------------------

class Corpus:
    """
    Immutable collection of embedded documents plus a dense matrix of their
    vectors for brute-force scoring.

    Row `i` of `matrix` is the embedding of `documents[i]`; rows follow build
    order, which is also the tie-break order for equal scores.
    """

    def __init__(self, documents: Sequence[EmbeddedDocument] = ()) -> None:
        self._documents: Tuple[EmbeddedDocument, ...] = tuple(documents)
        self._validate()

        if self._documents:
            self._matrix = np.asarray(
                [doc.embedding for doc in self._documents],
                dtype=np.float64,
            )
        else:
            self._matrix = np.zeros((0, 0), dtype=np.float64)

        self._matrix.setflags(write=False)
        self._norms = np.linalg.norm(self._matrix, axis=1) if self._documents else np.zeros(0)

    def _validate(self) -> None:
        if not self._documents:
            return

        dim = len(self._documents[0].embedding)
        seen = set()
        for i, doc in enumerate(self._documents):
            if len(doc.embedding) != dim:
                raise ValueError(
                    f"Inconsistent embedding dimensionality at index {i}: "
                    f"expected {dim}, got {len(doc.embedding)}."
                )
            key = (doc.id, doc.document_class)
            if key in seen:
                raise ValueError(f"Duplicate corpus entry {key!r}.")
            seen.add(key)

    @property
    def documents(self) -> Tuple[EmbeddedDocument, ...]:
        return self._documents

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix

    @property
    def norms(self) -> np.ndarray:
        return self._norms

    @property
    def dimension(self) -> int:
        return self._matrix.shape[1] if self._documents else 0

    def stats(self) -> Dict[str, int]:
        counts = {"event": 0, "chapter": 0}
        for doc in self._documents:
            counts[doc.document_class] += 1
        return {
            "total_documents": len(self._documents),
            "events": counts["event"],
            "chapters": counts["chapter"],
            "dimension": self.dimension,
        }

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[EmbeddedDocument]:
        return iter(self._documents)


# ---------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------

class CorpusBuilder:
    """
    Builds a Corpus from a DocumentStore using an EmbeddingProvider.
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        delay: Optional[float] = None,
    ) -> None:
        """
        Parameters
        ----------
        store : DocumentStore
            Source of events and chapters.

        embedder : EmbeddingProvider
            Produces one vector per document.

        delay : Optional[float]
            Seconds to pause after each embedding call, to stay under the
            provider's rate limit. Defaults to settings.corpus_build_delay;
            tests pass 0.
        """
        self.store = store
        self.embedder = embedder
        self.delay = settings.corpus_build_delay if delay is None else delay
        self._dimension: Optional[int] = None

    async def build(self) -> Corpus:
        """
        Fetch all source documents, embed them and return the new Corpus.

        Raises
        ------
        CorpusBuildError
            If either store fetch fails. Per-document embedding failures do
            not raise; the document is left out instead.
        """
        logger.info("Building semantic search corpus")
        self._dimension = None

        try:
            events, chapters = await asyncio.gather(
                self.store.list_events(),
                self.store.list_chapters(),
            )
        except Exception as exc:
            raise CorpusBuildError(
                f"Failed to load source documents: {type(exc).__name__}: {exc}"
            ) from exc

        documents: List[EmbeddedDocument] = []
        documents.extend(await self._embed_events(events))
        documents.extend(await self._embed_chapters(chapters))

        corpus = Corpus(documents)
        logger.info(
            "Semantic search corpus built with %d of %d documents",
            len(corpus),
            len(events) + len(chapters),
        )
        return corpus

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _embed_events(self, events: Sequence[HistoryEvent]) -> List[EmbeddedDocument]:
        logger.info("Creating embeddings for %d historical events", len(events))
        embedded: List[EmbeddedDocument] = []

        for event in events:
            try:
                content = event_content(event)
                metadata = EventMetadata(
                    title=event.title,
                    year=event.year,
                    era=event.era,
                    region=event.region,
                    tags=list(event.tags),
                )
                embedded.append(await self._embed_document(event.id, content, metadata))
            except Exception:
                logger.exception("Failed to create embedding for event %s", event.id)

            await self._throttle()

        return embedded

    async def _embed_chapters(self, chapters: Sequence[BookChapter]) -> List[EmbeddedDocument]:
        logger.info("Creating embeddings for %d book chapters", len(chapters))
        embedded: List[EmbeddedDocument] = []

        for chapter in chapters:
            try:
                content = chapter_content(chapter)
                metadata = ChapterMetadata(
                    title=chapter.title,
                    era=chapter.era,
                    tags=list(chapter.tags),
                )
                embedded.append(await self._embed_document(chapter.id, content, metadata))
            except Exception:
                logger.exception("Failed to create embedding for chapter %s", chapter.id)

            await self._throttle()

        return embedded

    async def _embed_document(
        self,
        doc_id: str,
        content: str,
        metadata: Union[EventMetadata, ChapterMetadata],
    ) -> EmbeddedDocument:
        embedding = await self.embedder.embed(content)

        # The first vector of a build fixes the corpus dimension
        if self._dimension is None:
            self._dimension = len(embedding)
        elif len(embedding) != self._dimension:
            raise ValueError(
                f"Embedding has {len(embedding)} dimensions, corpus has {self._dimension}."
            )

        return EmbeddedDocument(
            id=doc_id,
            content=content,
            embedding=embedding,
            metadata=metadata,
        )

    async def _throttle(self) -> None:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
