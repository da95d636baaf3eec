"""
Unified Search Service - the façade callers use.

Flow for one request:

    validate -> select engine -> single provider  -> response cache -> provider -> paginate
                              -> aggregation      -> AggregatedSearchService

Response cache keys (see ``create_search_cache_key``):
- paged providers: one entry per (query, orientation, quality, start, count)
- bulk providers: one entry per (query, orientation, quality) holding the
  whole filtered set; every page is sliced from it

Caching is best-effort: any cache failure is logged and the request
proceeds as a miss.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from parallax_search.core.async_utils import call_with_timeout, gather_with_errors
from parallax_search.core.config import SearchSettings
from parallax_search.domain.entities import (
    ProviderResult,
    SearchInfo,
    SearchRequest,
    SearchResponse,
)
from parallax_search.infrastructure.cache import BaseCacheStore, create_search_cache_key
from parallax_search.infrastructure.providers.base import ImageSearchProvider

from .aggregated_search import AggregatedSearchService
from .engine_selector import EngineSelector
from .pagination import compute_pagination, paginate
from .request_validator import validate_search_request

logger = logging.getLogger(__name__)


class UnifiedSearchService:
    """
    One normalized image search over whichever provider(s) are configured.

    Construct once per process (the DI container does) and share it; the
    cache store and result store are injected and shared by reference.

    Example:
        service = UnifiedSearchService(selector, cache, aggregated, settings)
        response = await service.search(SearchRequest(query="mountains"))
        response.pagination.total_pages
    """

    def __init__(
        self,
        selector: EngineSelector,
        cache: BaseCacheStore,
        aggregated: AggregatedSearchService,
        settings: SearchSettings,
    ) -> None:
        self._selector = selector
        self._cache = cache
        self._aggregated = aggregated
        self._settings = settings

    @property
    def selector(self) -> EngineSelector:
        return self._selector

    # ==================== Search ====================

    async def search(self, request: SearchRequest, user_id: str | None = None) -> SearchResponse:
        """
        Answer one search request.

        Raises:
            ValidationError: before any cache or provider access
            ProviderError: the single selected provider failed
            AllProvidersFailedError: aggregation found no working provider
        """
        validate_search_request(request, max_query_length=self._settings.max_query_length)
        selection = self._selector.resolve(request.provider_hint)
        validate_search_request(
            request,
            max_count=selection.max_count,
            max_query_length=self._settings.max_query_length,
        )

        provider = selection.provider
        if provider is None:
            return await self._aggregated.search(request, selection.aggregated_providers, user_id)

        started = time.perf_counter()
        cache_key = create_search_cache_key(
            request,
            provider.name,
            native_paging=provider.native_paging_supported,
        )

        cached = self._cache_get(cache_key)
        if cached is not None:
            result = cached
            took_ms = int((time.perf_counter() - started) * 1000)
        else:
            result = await self._fetch(provider, request)
            took_ms = result.took_ms
            self._cache_set(cache_key, result)

        if provider.native_paging_supported:
            page = list(result.results)
        else:
            page = paginate(result.results, request.start, request.count)

        return SearchResponse(
            results=page,
            pagination=compute_pagination(request.start, request.count, result.total_results),
            search_info=SearchInfo(
                query=request.query,
                orientation=request.orientation,
                took_ms=took_ms,
                engine_label=selection.label,
            ),
            cached=cached is not None,
            cache_key=cache_key if cached is not None else None,
        )

    async def _fetch(self, provider: ImageSearchProvider, request: SearchRequest) -> ProviderResult:
        """
        One provider call: the requested window for paged providers, the
        whole batch for bulk providers.
        """
        window = request
        if not provider.native_paging_supported:
            window = request.with_window(start=1, count=provider.max_batch_size)
        return await call_with_timeout(provider.search(window), self._settings.provider_timeout, provider.name)

    def _cache_get(self, key: str) -> ProviderResult | None:
        try:
            value = self._cache.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}, treating as miss: {e}")
            return None
        if value is not None and not isinstance(value, ProviderResult):
            logger.warning(f"Discarding unexpected cache value under {key}: {type(value).__name__}")
            return None
        return value

    def _cache_set(self, key: str, result: ProviderResult) -> None:
        try:
            self._cache.set(key, result, self._settings.search_cache_ttl)
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    # ==================== Cache Management ====================

    async def invalidate(self, user_id: str | None = None, pattern: str | None = None) -> dict[str, Any]:
        """
        Clear cached answers.

        - ``pattern``: drop response-cache keys matching the regex
        - ``user_id``: drop that user's aggregated sets
        - neither: clear the whole response cache
        """
        summary: dict[str, Any] = {"success": True}
        try:
            if pattern:
                summary["invalidated"] = self._cache.invalidate(pattern)
            elif not user_id:
                summary["invalidated"] = self._cache.clear()
        except Exception as e:
            logger.warning(f"Cache invalidation failed: {e}")
            summary["success"] = False
            summary["error"] = str(e)

        if user_id:
            summary["aggregations_cleared"] = await self._aggregated.clear_user(user_id)

        if pattern:
            summary["message"] = f'Cache entries matching "{pattern}" invalidated'
        elif user_id:
            summary["message"] = f"Cache cleared. {summary['aggregations_cleared']} search(es) removed."
        else:
            summary["message"] = "All cache entries cleared"
        return summary

    async def suggestions(self, prefix: str, user_id: str | None, limit: int = 10) -> list[str]:
        return await self._aggregated.suggestions(prefix, user_id, limit)

    async def cleanup_expired(self) -> int:
        return await self._aggregated.cleanup_expired()

    # ==================== Health / Stats ====================

    async def health(self, provider_name: str | None = None) -> dict[str, Any]:
        """
        Health of one provider, or of every registered provider.

        Returns:
            ``{"healthy": bool, "providers": [{key, name, healthy, message}, ...]}``
        """
        registry = self._selector.providers
        names = [provider_name.strip().lower()] if provider_name else list(registry)

        async def check(name: str) -> dict[str, Any]:
            provider = registry.get(name)
            if provider is None:
                return {"key": name, "name": "Unknown", "healthy": False, "message": "Engine not found"}
            try:
                health = await call_with_timeout(
                    provider.health_check(), self._settings.provider_timeout, provider.name
                )
            except Exception as e:
                return {
                    "key": name,
                    "name": provider.label,
                    "healthy": False,
                    "message": f"Health check failed: {e}",
                }
            return {"key": name, "name": provider.label, "healthy": health.healthy, "message": health.message}

        statuses = await gather_with_errors(*(check(name) for name in names))
        return {
            "healthy": all(status["healthy"] for status in statuses),
            "providers": statuses,
        }

    def stats(self) -> dict[str, Any]:
        """Registered providers, default selection and response-cache contents."""
        registry = self._selector.providers
        default = self._selector.default
        try:
            cache_stats: dict[str, Any] = self._cache.stats()
        except Exception as e:
            logger.warning(f"Cache stats unavailable: {e}")
            cache_stats = {"size": 0, "keys": [], "error": str(e)}
        return {
            "total_providers": len(registry),
            "available_providers": list(registry),
            "default_provider": default.key,
            "default_label": default.label,
            "selection_mode": self._selector.mode,
            "aggregate_providers": [p.name for p in self._selector.aggregated_providers],
            "cache": cache_stats,
        }

    async def close(self) -> None:
        """Release provider network resources."""
        for provider in self._selector.providers.values():
            try:
                await provider.close()
            except Exception as e:
                logger.warning(f"Failed to close provider {provider.name}: {e}")
