"""
Embedding Provider

This module implements the embedding client used by the retrieval engine. It
wraps the Gemini `embedContent` REST endpoint and is responsible for:

- Hash-keyed caching of vectors per input text
- A hard per-call timeout
- Strict response validation (shape and dimensionality)
- Degrading to a zero vector instead of raising

A zero vector has zero norm, so it scores 0.0 against everything and never
ranks. Failed results are cached too, so repeated identical calls do not
hammer a failing provider.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

import httpx

from ..config import settings
from ..core.errors import EmbeddingError
from .cache import TTLCache

logger = logging.getLogger("retrieval.embedder")


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def text_hash(text: str) -> str:
    """
    32-bit rolling hash (h * 31 + unit) over the UTF-16 code units of `text`.

    Collisions are possible and tolerated: the hash only keys the embedding
    cache.
    """
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF

    if h >= 0x80000000:
        h -= 0x100000000
    return str(h)


def zero_vector(dimension: int) -> List[float]:
    return [0.0] * dimension


# ---------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------

class EmbeddingProvider:
    """
    Asynchronous single-text embedding generator with caching.

    `embed` never raises for remote failures; callers always get a vector of
    length `dimension`.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        dimension: Optional[int] = None,
        timeout: Optional[float] = None,
        cache: Optional[TTLCache[List[float]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize an EmbeddingProvider.

        Parameters
        ----------
        api_key : Optional[str]
            Gemini API key. Defaults to settings.gemini_api_key. When neither
            is set the provider is disabled and returns zero vectors.

        model : Optional[str]
            Embedding model name. Defaults to settings.embedding_model.

        base_url : Optional[str]
            API root, e.g. https://generativelanguage.googleapis.com/v1beta.

        dimension : Optional[int]
            Expected vector length. Defaults to settings.embedding_dimension.

        timeout : Optional[float]
            Hard timeout in seconds for one remote call.

        cache : Optional[TTLCache]
            Embedding cache to read from and write through to.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom httpx transport (tests use httpx.MockTransport).
        """
        if api_key is None and settings.gemini_api_key is not None:
            api_key = settings.gemini_api_key.get_secret_value()

        self.api_key = api_key or None
        self.model = model or settings.embedding_model
        self.base_url = (base_url or settings.embedding_base_url).rstrip("/")
        self.dimension = dimension or settings.embedding_dimension
        self.timeout = timeout if timeout is not None else settings.embedding_timeout
        self.cache = cache
        self._transport = transport
        self._warned_unconfigured = False

    @property
    def configured(self) -> bool:
        return self.api_key is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> List[float]:
        """
        Return the embedding for `text`.

        Returns
        -------
        List[float]
            A vector of length `dimension`; all zeros when the provider is
            unconfigured or the remote call failed.
        """
        if not self.configured:
            if not self._warned_unconfigured:
                logger.warning(
                    "Embedding provider has no API key; semantic search is disabled"
                )
                self._warned_unconfigured = True
            return zero_vector(self.dimension)

        key = text_hash(text)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        try:
            embedding = await asyncio.wait_for(
                self._request_embedding(text),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Embedding request timed out after %.1fs; using zero vector (degraded)",
                self.timeout,
            )
            embedding = zero_vector(self.dimension)
        except (httpx.HTTPError, httpx.InvalidURL, EmbeddingError) as exc:
            logger.warning(
                "Embedding request failed (%s): %s; using zero vector (degraded)",
                type(exc).__name__,
                exc,
            )
            embedding = zero_vector(self.dimension)

        if self.cache is not None:
            self.cache.set(key, embedding)

        return embedding

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request_embedding(self, text: str) -> List[float]:
        url = f"{self.base_url}/models/{self.model}:embedContent"
        payload = {
            "model": f"models/{self.model}",
            "content": {"parts": [{"text": text}]},
        }
        headers = {"x-goog-api-key": self.api_key}

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()

        try:
            data = response.json()
        except ValueError as exc:
            raise EmbeddingError("Embedding response is not valid JSON.") from exc

        return self._extract_embedding(data)

    def _extract_embedding(self, data: Any) -> List[float]:
        """
        Parse and validate the embedding output format.

        Gemini returns:
            { "embedding": { "values": [...] } }

        Raises
        ------
        EmbeddingError
            If the response has an unexpected structure or dimensionality.
        """
        if not isinstance(data, dict) or not isinstance(data.get("embedding"), dict):
            raise EmbeddingError("Embedding response missing 'embedding' object.")

        values = data["embedding"].get("values")
        if not isinstance(values, list) or not all(
            isinstance(x, (float, int)) and not isinstance(x, bool) for x in values
        ):
            raise EmbeddingError("'embedding.values' must be a list of numbers.")

        if len(values) != self.dimension:
            raise EmbeddingError(
                f"Expected {self.dimension}-dimensional embedding, got {len(values)}."
            )

        return [float(x) for x in values]
