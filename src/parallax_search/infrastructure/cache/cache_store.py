"""
Search Response Cache

In-memory key-value cache with per-entry TTL for final search answers.
Built on cachetools.LRUCache (bounded size, LRU eviction); each value is
wrapped in a CacheEntry that carries its own time-to-live.

Features:
- Per-entry TTL, expired entries are treated as absent on read
- Opportunistic sweep of expired entries once the store grows past a threshold
- Regex-based invalidation over keys
- Stable cache keys over the sorted set of relevant request parameters
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachetools import LRUCache

from parallax_search.domain.entities import SearchRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached value with the time it was stored and its lifetime."""

    data: Any
    stored_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl_seconds


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    sweeps: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class BaseCacheStore(ABC):
    """Key-value contract consumed by the search service."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the live value for *key*, or None."""

    @abstractmethod
    def set(self, key: str, data: Any, ttl_seconds: float) -> None:
        """Store *data* under *key* for *ttl_seconds*."""

    @abstractmethod
    def invalidate(self, pattern: str) -> int:
        """Delete every key matching the regex *pattern*; return how many."""

    @abstractmethod
    def clear(self) -> int:
        """Delete everything; return how many entries were dropped."""

    @abstractmethod
    def stats(self) -> dict[str, Any]:
        """Return ``{"size": int, "keys": [str, ...]}``."""


class InMemoryCacheStore(BaseCacheStore):
    """
    Process-wide response cache.

    Construct once per process and share by reference (the DI container
    does this). Pass ``timer`` to control the clock in tests.

    Example:
        cache = InMemoryCacheStore(sweep_threshold=100)
        cache.set("search:serper:abc", response, ttl_seconds=3600)
        cache.get("search:serper:abc")
        cache.invalidate(r"^search:serper:")
    """

    def __init__(
        self,
        max_size: int = 10_000,
        sweep_threshold: int = 100,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: LRUCache[str, CacheEntry] = LRUCache(maxsize=max_size)
        self._timer = timer
        self._sweep_threshold = sweep_threshold
        self._stats = CacheStats()

    @property
    def counters(self) -> CacheStats:
        return self._stats

    def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            self._stats.misses += 1
            return None
        if entry.is_expired(self._timer()):
            self._cache.pop(key, None)
            self._stats.expirations += 1
            self._stats.misses += 1
            return None
        self._stats.hits += 1
        return entry.data

    def set(self, key: str, data: Any, ttl_seconds: float) -> None:
        self._cache[key] = CacheEntry(data=data, stored_at=self._timer(), ttl_seconds=ttl_seconds)
        if len(self._cache) > self._sweep_threshold:
            removed = self._sweep()
            self._stats.sweeps += 1
            if removed:
                logger.debug(f"Cache sweep removed {removed} expired entries")

    def invalidate(self, pattern: str) -> int:
        regex = re.compile(pattern)
        matched = [key for key in list(self._cache.keys()) if regex.search(key)]
        for key in matched:
            self._cache.pop(key, None)
        logger.info(f"Invalidated {len(matched)} cache entries matching {pattern!r}")
        return len(matched)

    def clear(self) -> int:
        count = len(self._cache)
        self._cache.clear()
        return count

    def stats(self) -> dict[str, Any]:
        self._sweep()
        keys = list(self._cache.keys())
        return {"size": len(keys), "keys": keys}

    def _sweep(self) -> int:
        now = self._timer()
        expired = [key for key, entry in list(self._cache.items()) if entry.is_expired(now)]
        for key in expired:
            self._cache.pop(key, None)
        self._stats.expirations += len(expired)
        return len(expired)

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        entry = self._cache.get(key)
        return entry is not None and not entry.is_expired(self._timer())


# ==================== Cache Keys ====================


def create_search_cache_key(
    request: SearchRequest,
    engine: str,
    *,
    native_paging: bool,
) -> str:
    """
    Build the response-cache key for *request* answered by *engine*.

    The key is a hash over the sorted set of parameters that change the
    answer. For providers with native paging every page is its own answer,
    so ``count`` and ``start`` are included; for bulk providers they are
    left out so all pages of a query share one entry.
    """
    params: dict[str, Any] = {
        "query": request.normalized_query,
        "orientation": request.orientation.value,
        "quality": request.quality_hint or "",
        "engine": engine,
    }
    if native_paging:
        params["count"] = request.count
        params["start"] = request.start

    digest = hashlib.sha1(
        json.dumps(params, sort_keys=True, separators=(",", ":")).encode("utf-8"),
        usedforsecurity=False,
    ).hexdigest()
    return f"search:{engine}:{digest}"


__all__ = [
    "BaseCacheStore",
    "CacheEntry",
    "CacheStats",
    "InMemoryCacheStore",
    "create_search_cache_key",
]
