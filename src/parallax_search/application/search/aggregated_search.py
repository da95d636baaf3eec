"""
Aggregated Search - multi-provider fetch, merge and persistence per query.

Lifecycle per fingerprint:

    Uncached -> fetch all providers -> Deduplicate -> Rank -> Persisted
             -> (on read) Paginated

A set stays live for ``aggregated_ttl`` (7 days). A request that finds an
expired set re-fetches and replaces it.

Fetch step:
- paged providers contribute ``aggregation_page_count`` successive pages
- bulk providers contribute one maximum-size batch (via their raw cache)
- providers run concurrently, each bounded by ``provider_timeout``; a
  failing provider is logged and left out, the rest still count
- only when every provider fails does the request fail
  (AllProvidersFailedError)

Store calls run in a worker thread (the sqlite store blocks). Store
failures never fail the request: a failed read is a miss, a failed write
serves the freshly ranked list from memory.

Concurrent misses on one fingerprint may both fetch; the second save
replaces the first with an equivalent set.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone

from parallax_search.core.async_utils import call_with_timeout, gather_with_errors
from parallax_search.core.config import SearchSettings
from parallax_search.core.exceptions import AllProvidersFailedError, ProviderError
from parallax_search.domain.entities import (
    AGGREGATED_ENGINE,
    AggregatedResultSet,
    ImageResult,
    SearchInfo,
    SearchRequest,
    SearchResponse,
)
from parallax_search.infrastructure.persistence import BaseAggregatedResultStore
from parallax_search.infrastructure.providers.base import ImageSearchProvider

from .pagination import compute_pagination, paginate
from .result_aggregator import ResultAggregator, compute_fingerprint, extract_keywords

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AggregatedSearchService:
    """
    Owns creation, replacement and paging of AggregatedResultSets.

    Example:
        service = AggregatedSearchService(store, settings)
        response = await service.search(request, providers, user_id="u1")
        response.pagination.total_results  # deduplicated count
    """

    def __init__(
        self,
        store: BaseAggregatedResultStore,
        settings: SearchSettings,
        aggregator: ResultAggregator | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._settings = settings
        self._aggregator = aggregator or ResultAggregator()
        self._clock = clock

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        request: SearchRequest,
        providers: Sequence[ImageSearchProvider],
        user_id: str | None = None,
    ) -> SearchResponse:
        """
        Answer *request* from the aggregated set of its fingerprint.

        *providers* are in dedup order.

        Raises:
            AllProvidersFailedError: the set had to be built and no provider answered
        """
        started = time.perf_counter()
        fingerprint = compute_fingerprint(request)
        now = self._clock()

        total = await self._live_total(fingerprint, now)
        cached = total is not None
        if cached:
            logger.debug(f"Aggregated set {fingerprint} is live ({total} results)")
            page = await self._read_page(fingerprint, request.start, request.count)
            if page is None:
                cached = False

        if not cached:
            ranked, providers_used = await self._fetch_and_rank(request, providers)
            persisted = await self._persist(request, fingerprint, ranked, providers_used, user_id, now)
            total = len(ranked)
            page = await self._read_page(fingerprint, request.start, request.count) if persisted else None
            if page is None:
                page = paginate(ranked, request.start, request.count)

        took_ms = int((time.perf_counter() - started) * 1000)
        return SearchResponse(
            results=page,
            pagination=compute_pagination(request.start, request.count, total),
            search_info=SearchInfo(
                query=request.query,
                orientation=request.orientation,
                took_ms=took_ms,
                engine_label=AGGREGATED_ENGINE,
            ),
            cached=cached,
            cache_key=fingerprint if cached else None,
        )

    async def _live_total(self, fingerprint: str, now: datetime) -> int | None:
        """Item count of the live set under *fingerprint*, None when absent or expired."""
        try:
            stored = await asyncio.to_thread(self._store.find, fingerprint)
        except Exception as e:
            logger.warning(f"Aggregated store read failed, treating as miss: {e}")
            return None
        if stored is None:
            return None
        if not stored.is_live(now):
            logger.info(f"Aggregated set {fingerprint} expired at {stored.expires_at.isoformat()}, refreshing")
            return None
        return stored.total_results

    async def _read_page(self, fingerprint: str, start: int, count: int) -> list[ImageResult] | None:
        try:
            return await asyncio.to_thread(self._store.page, fingerprint, offset=start - 1, limit=count)
        except Exception as e:
            logger.warning(f"Aggregated store page read failed: {e}")
            return None

    async def _persist(
        self,
        request: SearchRequest,
        fingerprint: str,
        ranked: list[ImageResult],
        providers_used: list[str],
        user_id: str | None,
        now: datetime,
    ) -> bool:
        result_set = AggregatedResultSet(
            fingerprint=fingerprint,
            query=request.query,
            orientation=request.orientation,
            quality_hint=request.quality_hint,
            results=ranked,
            providers_used=providers_used,
            created_at=now,
            expires_at=now + timedelta(seconds=self._settings.aggregated_ttl),
            owner_user_id=user_id,
            keywords=extract_keywords(request.query),
        )
        try:
            await asyncio.to_thread(self._store.save, result_set)
        except Exception as e:
            logger.warning(f"Failed to persist aggregated set {fingerprint}, serving from memory: {e}")
            return False
        logger.info(
            f"Aggregated {len(ranked)} results for {request.query!r} from {', '.join(providers_used)}"
        )
        return True

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def _fetch_and_rank(
        self,
        request: SearchRequest,
        providers: Sequence[ImageSearchProvider],
    ) -> tuple[list[ImageResult], list[str]]:
        """Fetch from every provider concurrently and merge in provider order."""
        timeout = self._settings.provider_timeout
        outcomes = await gather_with_errors(
            *(
                call_with_timeout(
                    provider.collect(request, self._settings.aggregation_page_count),
                    timeout,
                    provider.name,
                )
                for provider in providers
            ),
            return_exceptions=True,
        )

        result_lists: list[list[ImageResult]] = []
        providers_used: list[str] = []
        errors: dict[str, Exception] = {}
        for provider, outcome in zip(providers, outcomes, strict=True):
            if isinstance(outcome, Exception):
                if isinstance(outcome, ProviderError):
                    logger.warning(f"Provider {provider.name} failed during aggregation: {outcome}")
                else:
                    logger.error(f"Provider {provider.name} raised unexpectedly during aggregation", exc_info=outcome)
                errors[provider.name] = outcome
                continue
            result_lists.append(outcome.results)
            providers_used.append(provider.name)

        if not providers_used:
            raise AllProvidersFailedError(errors)
        if errors:
            logger.info(f"Aggregation proceeding without {', '.join(errors)}")

        return self._aggregator.aggregate(result_lists), providers_used

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def suggestions(self, prefix: str, user_id: str | None, limit: int = 10) -> list[str]:
        """Past queries of *user_id* starting with *prefix* (empty on store failure)."""
        if not prefix or not user_id:
            return []
        try:
            return await asyncio.to_thread(self._store.suggestions, prefix, user_id, limit)
        except Exception as e:
            logger.warning(f"Failed to load suggestions for user {user_id}: {e}")
            return []

    async def clear_user(self, user_id: str) -> int:
        """Drop every aggregated set owned by *user_id*."""
        try:
            removed = await asyncio.to_thread(self._store.delete_user, user_id)
        except Exception as e:
            logger.warning(f"Failed to clear aggregated sets for user {user_id}: {e}")
            return 0
        logger.info(f"Cleared {removed} aggregated set(s) for user {user_id}")
        return removed

    async def cleanup_expired(self) -> int:
        """Drop every expired aggregated set."""
        try:
            removed = await asyncio.to_thread(self._store.delete_expired, self._clock())
        except Exception as e:
            logger.warning(f"Failed to delete expired aggregated sets: {e}")
            return 0
        if removed:
            logger.info(f"Removed {removed} expired aggregated set(s)")
        return removed
