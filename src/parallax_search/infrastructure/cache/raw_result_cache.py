"""
Raw Result Cache

Per-provider cache of bulk fetches. A bulk provider fetches its maximum
batch once per (query, orientation) and serves every page of that query
from the cached set until it expires.

Each bulk provider owns exactly one RawResultCache; nothing else writes to it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from parallax_search.core.config import ONE_WEEK_SECONDS
from parallax_search.domain.entities import Orientation, RawResultSet, SearchRequest

from .cache_store import InMemoryCacheStore

logger = logging.getLogger(__name__)


class RawResultCache:
    """
    Cache of :class:`RawResultSet` keyed by query and orientation.

    Example:
        raw_cache = RawResultCache("serper")
        raw = raw_cache.get(request)
        if raw is None:
            raw = await fetch_everything(request)
            raw_cache.put(request, raw)
    """

    def __init__(
        self,
        provider: str,
        ttl_seconds: float = ONE_WEEK_SECONDS,
        sweep_threshold: int = 50,
        max_size: int = 1_000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._ttl = ttl_seconds
        self._store = InMemoryCacheStore(
            max_size=max_size,
            sweep_threshold=sweep_threshold,
            timer=timer,
        )

    def key_for(self, request: SearchRequest) -> str:
        """Cache key: provider, normalized query, orientation (and quality hint when given)."""
        orientation = request.orientation.value if request.orientation is not Orientation.UNSET else "any"
        key = f"{self._provider}_raw:{request.normalized_query}:{orientation}"
        if request.quality_hint:
            key = f"{key}:{request.quality_hint}"
        return key

    def get(self, request: SearchRequest) -> RawResultSet | None:
        raw = self._store.get(self.key_for(request))
        if raw is not None:
            logger.debug(f"{self._provider}: raw cache hit for {request.query!r}")
        return raw

    def put(self, request: SearchRequest, raw: RawResultSet) -> None:
        self._store.set(self.key_for(request), raw, self._ttl)

    def clear(self) -> int:
        return self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
