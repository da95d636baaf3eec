"""
Cache Infrastructure

Two tiers:
- InMemoryCacheStore: final search answers, keyed by request
- RawResultCache: bulk provider fetches, keyed by query + orientation
"""

from .cache_store import (
    BaseCacheStore,
    CacheEntry,
    CacheStats,
    InMemoryCacheStore,
    create_search_cache_key,
)
from .raw_result_cache import RawResultCache

__all__ = [
    "BaseCacheStore",
    "CacheEntry",
    "CacheStats",
    "InMemoryCacheStore",
    "RawResultCache",
    "create_search_cache_key",
]
