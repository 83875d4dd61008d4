"""
Embedding Provider Tests

The remote Gemini endpoint is replaced by httpx.MockTransport; the handler
counts requests so cache behaviour can be asserted on the wire.
"""

import asyncio
import json

import httpx
import pytest

from history_retrieval.retrieval.cache import TTLCache
from history_retrieval.retrieval.embedder import EmbeddingProvider, text_hash

DIM = 4


class FakeGemini:
    """Request handler for httpx.MockTransport."""

    def __init__(self, vectors=None, status_code=200, body=None, error=None, delay=None):
        self.vectors = vectors or {}
        self.status_code = status_code
        self.body = body
        self.error = error
        self.delay = delay
        self.requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error(f"simulated {self.error.__name__}", request=request)
        if self.body is not None:
            return httpx.Response(self.status_code, json=self.body)

        text = json.loads(request.content)["content"]["parts"][0]["text"]
        values = self.vectors.get(text, [0.5] * DIM)
        return httpx.Response(self.status_code, json={"embedding": {"values": values}})


def make_provider(handler, api_key="test-key", cache="default", timeout=1.0):
    if cache == "default":
        cache = TTLCache(max_entries=100, ttl_seconds=3600)
    return EmbeddingProvider(
        api_key=api_key,
        model="test-model",
        base_url="https://embeddings.test/v1beta",
        dimension=DIM,
        timeout=timeout,
        cache=cache,
        transport=httpx.MockTransport(handler),
    )


class TestTextHash:
    """Tests for the rolling cache-key hash."""

    def test_empty_text(self):
        assert text_hash("") == "0"

    def test_single_character(self):
        assert text_hash("a") == "97"

    def test_wraps_to_signed_32_bit(self):
        value = int(text_hash("The Great Pyramid of Giza " * 40))
        assert -(2 ** 31) <= value < 2 ** 31

    def test_known_collision(self):
        # 65 * 31 + 97 == 66 * 31 + 66
        assert text_hash("Aa") == text_hash("BB")


class TestEmbeddingProvider:
    """Tests for remote calls, caching and degradation."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        handler = FakeGemini(vectors={"pyramids": [1.0, 2.0, 3.0, 4.0]})
        provider = make_provider(handler)

        vector = await provider.embed("pyramids")

        assert vector == [1.0, 2.0, 3.0, 4.0]
        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1beta/models/test-model:embedContent"
        assert request.headers["x-goog-api-key"] == "test-key"
        assert json.loads(request.content) == {
            "model": "models/test-model",
            "content": {"parts": [{"text": "pyramids"}]},
        }

    @pytest.mark.asyncio
    async def test_cache_hit_skips_remote_call(self):
        handler = FakeGemini()
        provider = make_provider(handler)

        first = await provider.embed("pyramids")
        second = await provider.embed("pyramids")

        assert first == second
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_without_cache_every_call_is_remote(self):
        handler = FakeGemini()
        provider = make_provider(handler, cache=None)

        await provider.embed("pyramids")
        await provider.embed("pyramids")

        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_transport_timeout_degrades_to_cached_zero_vector(self):
        handler = FakeGemini(error=httpx.ReadTimeout)
        provider = make_provider(handler)

        first = await provider.embed("pyramids")
        second = await provider.embed("pyramids")

        assert first == [0.0] * DIM
        assert second == [0.0] * DIM
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_hard_timeout_degrades_to_zero_vector(self):
        handler = FakeGemini(delay=1.0)
        provider = make_provider(handler, timeout=0.01)

        vector = await provider.embed("slow text")

        assert vector == [0.0] * DIM
        assert await provider.embed("slow text") == [0.0] * DIM
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_http_error_degrades_to_zero_vector(self):
        handler = FakeGemini(status_code=500, body={"error": "boom"})
        provider = make_provider(handler)

        assert await provider.embed("pyramids") == [0.0] * DIM

    @pytest.mark.asyncio
    async def test_invalid_url_degrades_to_zero_vector(self):
        def handler(request):
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

        provider = make_provider(handler)

        assert await provider.embed("pyramids") == [0.0] * DIM
        assert provider.cache.get(text_hash("pyramids")) == [0.0] * DIM

    @pytest.mark.asyncio
    async def test_malformed_response_degrades_to_zero_vector(self):
        handler = FakeGemini(body={"data": [{"embedding": [1.0]}]})
        provider = make_provider(handler)

        assert await provider.embed("pyramids") == [0.0] * DIM

    @pytest.mark.asyncio
    async def test_non_numeric_values_degrade_to_zero_vector(self):
        handler = FakeGemini(body={"embedding": {"values": ["a", "b", "c", "d"]}})
        provider = make_provider(handler)

        assert await provider.embed("pyramids") == [0.0] * DIM

    @pytest.mark.asyncio
    async def test_wrong_dimension_degrades_to_zero_vector(self):
        handler = FakeGemini(vectors={"pyramids": [1.0, 2.0]})
        provider = make_provider(handler)

        assert await provider.embed("pyramids") == [0.0] * DIM

    @pytest.mark.asyncio
    async def test_unconfigured_provider_never_calls_remote(self):
        handler = FakeGemini()
        provider = make_provider(handler, api_key="")

        assert not provider.configured
        assert await provider.embed("pyramids") == [0.0] * DIM
        assert await provider.embed("nile") == [0.0] * DIM
        assert handler.requests == []


class TestHashCollisions:
    """
    Colliding texts share a cache slot; without a cache hit each text still
    gets its own vector.
    """

    @pytest.mark.asyncio
    async def test_colliding_texts_embed_independently_on_miss(self):
        vectors = {"Aa": [1.0, 0.0, 0.0, 0.0], "BB": [0.0, 1.0, 0.0, 0.0]}

        first = make_provider(FakeGemini(vectors=vectors))
        second = make_provider(FakeGemini(vectors=vectors))

        assert await first.embed("Aa") == vectors["Aa"]
        assert await second.embed("BB") == vectors["BB"]

    @pytest.mark.asyncio
    async def test_colliding_texts_share_cache_slot(self):
        vectors = {"Aa": [1.0, 0.0, 0.0, 0.0], "BB": [0.0, 1.0, 0.0, 0.0]}
        handler = FakeGemini(vectors=vectors)
        provider = make_provider(handler)

        await provider.embed("Aa")
        served = await provider.embed("BB")

        # Best-effort cache: the colliding text is served the cached vector
        assert served == vectors["Aa"]
        assert len(handler.requests) == 1
