"""
Semantic Cache

In-memory, bounded, time-expiring caches for the retrieval engine.

Design choices
--------------
- In-memory only (no persistence across process restarts).
- Each cache is bounded by entry count and evicts the least recently used
  entry when over capacity.
- Each cache has its own TTL; an entry is stale once `now > expires_at` and
  is dropped on the next lookup.
- Thread-safe access using a re-entrant lock.
- Injectable clock so expiry can be tested without sleeping.

Three caches are kept: query embeddings (keyed by text hash), finished search
results and aggregated historical-context bundles (keyed by `query_key`).
Cache hits are an acceleration only; nothing downstream relies on a key being
collision-free.
"""

from __future__ import annotations

import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar

from pydantic import BaseModel

from ..config import settings
from .models import CacheStats, CacheStatsReport, HistoricalContext, SearchResult

V = TypeVar("V")

FLOAT_BYTES = 8


# ---------------------------------------------------------------------
# Size Estimation
# ---------------------------------------------------------------------

def approx_size(value: Any) -> int:
    """
    Rough byte size of a cached value.

    Vectors count 8 bytes per float; models and collections of models count
    the length of their JSON form.
    """
    if isinstance(value, BaseModel):
        return len(value.model_dump_json())
    if isinstance(value, (list, tuple)):
        if all(isinstance(x, (int, float)) for x in value):
            return len(value) * FLOAT_BYTES
        return sum(approx_size(x) for x in value)
    if isinstance(value, str):
        return len(value.encode("utf-8"))
    return len(json.dumps(value, default=str))


# ---------------------------------------------------------------------
# Generic TTL + LRU Cache
# ---------------------------------------------------------------------

@dataclass
class CacheEntry(Generic[V]):
    value: V
    inserted_at: float
    expires_at: float
    size: int


class TTLCache(Generic[V]):
    """
    Bounded key/value store with least-recently-used eviction and a fixed TTL.
    """

    def __init__(
        self,
        max_entries: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sizeof: Callable[[Any], int] = approx_size,
    ) -> None:
        """
        Parameters
        ----------
        max_entries : int
            Maximum number of live entries. Must be positive.

        ttl_seconds : float
            Lifetime of an entry from its last `set`.

        clock : Callable[[], float]
            Monotonic time source in seconds.

        sizeof : Callable[[Any], int]
            Estimator used for `stats()`.
        """
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")

        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._clock = clock
        self._sizeof = sizeof
        self._entries: "OrderedDict[str, CacheEntry[V]]" = OrderedDict()
        self._lock = RLock()

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[V]:
        """
        Return the cached value, or None when absent or expired.

        A hit marks the entry as most recently used.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self._clock() > entry.expires_at:
                del self._entries[key]
                return None

            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: V) -> None:
        """
        Insert or refresh an entry, evicting the least recently used entries
        while over capacity.
        """
        now = self._clock()
        entry = CacheEntry(
            value=value,
            inserted_at=now,
            expires_at=now + self._ttl,
            size=self._sizeof(value),
        )

        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)

            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    # ------------------------------------------------------------------
    # Utility operations
    # ------------------------------------------------------------------

    def purge_expired(self) -> int:
        """
        Drop every expired entry. Returns the number removed.
        """
        with self._lock:
            now = self._clock()
            stale = [k for k, e in self._entries.items() if now > e.expires_at]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def stats(self) -> CacheStats:
        with self._lock:
            self.purge_expired()
            return CacheStats(
                entry_count=len(self._entries),
                approx_size_bytes=sum(e.size for e in self._entries.values()),
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# ---------------------------------------------------------------------
# Query Keys
# ---------------------------------------------------------------------

def query_key(query: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """
    Deterministic cache key for a (query, options) pair.

    Options are serialized as compact JSON with sorted keys, so two equal
    option mappings always produce the same key.
    """
    serialized = json.dumps(
        dict(options or {}),
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return f"{query}:{serialized}"


# ---------------------------------------------------------------------
# Semantic Cache
# ---------------------------------------------------------------------

def _default(value: Optional[V], fallback: V) -> V:
    return fallback if value is None else value


class SemanticCache:
    """
    The three caches used by the retrieval engine.
    """

    def __init__(
        self,
        embedding_size: Optional[int] = None,
        embedding_ttl: Optional[float] = None,
        search_size: Optional[int] = None,
        search_ttl: Optional[float] = None,
        context_size: Optional[int] = None,
        context_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Bounds and TTLs default to the values in settings.
        """
        self.embeddings: TTLCache[List[float]] = TTLCache(
            _default(embedding_size, settings.embedding_cache_size),
            _default(embedding_ttl, settings.embedding_cache_ttl),
            clock=clock,
        )
        self.search_results: TTLCache[List[SearchResult]] = TTLCache(
            _default(search_size, settings.search_cache_size),
            _default(search_ttl, settings.search_cache_ttl),
            clock=clock,
        )
        self.historical_context: TTLCache[HistoricalContext] = TTLCache(
            _default(context_size, settings.context_cache_size),
            _default(context_ttl, settings.context_cache_ttl),
            clock=clock,
        )

    def clear_results(self) -> None:
        """
        Drop search and context results, keeping embeddings.
        """
        self.search_results.clear()
        self.historical_context.clear()

    def clear_all(self) -> None:
        self.embeddings.clear()
        self.clear_results()

    def stats(self) -> CacheStatsReport:
        return CacheStatsReport(
            embeddings=self.embeddings.stats(),
            search_results=self.search_results.stats(),
            historical_context=self.historical_context.stats(),
        )

    def describe(self) -> Dict[str, int]:
        """
        Entry counts per cache, for log lines.
        """
        return {
            "embeddings": len(self.embeddings),
            "search_results": len(self.search_results),
            "historical_context": len(self.historical_context),
        }
