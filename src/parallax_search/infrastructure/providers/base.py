"""
Image Search Provider Contract

Every search provider implements :class:`ImageSearchProvider`. Two
strategies cover the capability profiles seen upstream:

- PagedImageProvider: the provider pages natively (≈10 results per call).
  Each ``search`` issues exactly one upstream fetch with the caller's
  ``start``/``count``; the total is the provider-reported total.
- BulkImageProvider: the provider returns up to ~100 results in one call
  and cannot page. The first ``search`` for a (query, orientation) fetches
  the maximum batch once, filters it, caches it as a RawResultSet and
  every page is sliced from that set.

Adding a provider means subclassing one of the strategies; callers never
branch on provider names.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

from parallax_search.core.exceptions import ProviderError
from parallax_search.domain.entities import (
    ImageResult,
    ProviderHealth,
    ProviderResult,
    RawResultSet,
    SearchRequest,
)
from parallax_search.infrastructure.cache.raw_result_cache import RawResultCache

from .query_utils import is_valid_image_url

logger = logging.getLogger(__name__)


class ImageSearchProvider(ABC):
    """Capability set shared by all provider adapters."""

    #: Registry key, e.g. "google"
    name: str = ""
    #: Human-readable name used in engine labels
    label: str = ""
    native_paging_supported: bool = False
    #: Largest result count one upstream call can return
    max_batch_size: int = 10

    @property
    def max_count(self) -> int:
        """Largest ``count`` a caller may request from this provider."""
        return self.max_batch_size

    @abstractmethod
    async def search(self, request: SearchRequest) -> ProviderResult:
        """
        Return the page described by ``request.start``/``request.count``.

        Raises:
            ProviderError: upstream failure, malformed payload or timeout
        """

    async def collect(self, request: SearchRequest, page_count: int) -> ProviderResult:
        """
        Everything this provider contributes to a multi-provider aggregation.

        Defaults to one call for the largest window the provider allows.
        """
        return await self.search(request.with_window(start=1, count=self.max_batch_size))

    @abstractmethod
    async def health_check(self) -> ProviderHealth:
        """Probe the upstream service. Never raises."""

    async def close(self) -> None:
        """Release network resources (no-op by default)."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class PagedImageProvider(ImageSearchProvider):
    """Strategy for providers with native server-side paging."""

    native_paging_supported = True

    @abstractmethod
    async def _fetch_page(self, request: SearchRequest) -> ProviderResult:
        """One upstream call for exactly this window."""

    async def search(self, request: SearchRequest) -> ProviderResult:
        started = time.perf_counter()
        result = await self._fetch_page(request)
        took_ms = int((time.perf_counter() - started) * 1000)
        logger.debug(
            f"{self.name}: start={request.start} count={request.count} -> "
            f"{len(result.results)} of {result.total_results} ({took_ms}ms)"
        )
        return ProviderResult(results=result.results, total_results=result.total_results, took_ms=took_ms)

    async def fetch_pages(self, request: SearchRequest, page_count: int) -> ProviderResult:
        """
        Collect up to *page_count* successive pages to approximate a bulk fetch.

        Pagination stops when:
        1. *page_count* pages have been fetched
        2. A page returns fewer than ``max_batch_size`` results (last page)
        3. The next offset passes the reported total

        A failure on the first page propagates; a failure on a later page
        keeps what was collected so far.
        """
        collected: list[ImageResult] = []
        total = 0
        took_ms = 0
        page_size = self.max_batch_size

        for page in range(page_count):
            start = 1 + page * page_size
            try:
                result = await self.search(request.with_window(start=start, count=page_size))
            except ProviderError as e:
                if page == 0:
                    raise
                logger.warning(f"{self.name}: stopping at page {page + 1}/{page_count}: {e}")
                break

            took_ms += result.took_ms
            if page == 0:
                total = result.total_results
            collected.extend(result.results)

            if len(result.results) < page_size:
                break
            if start + page_size > total:
                break

        return ProviderResult(results=collected, total_results=total, took_ms=took_ms)

    async def collect(self, request: SearchRequest, page_count: int) -> ProviderResult:
        return await self.fetch_pages(request, page_count)


class BulkImageProvider(ImageSearchProvider):
    """Strategy for providers that return one large batch and cannot page."""

    native_paging_supported = False
    max_batch_size = 100

    def __init__(self, raw_cache: RawResultCache | None = None) -> None:
        self._raw_cache = raw_cache or RawResultCache(self.name)
        self.upstream_fetches = 0

    @property
    def raw_cache(self) -> RawResultCache:
        return self._raw_cache

    @abstractmethod
    async def _fetch_batch(self, request: SearchRequest) -> list[ImageResult]:
        """One upstream call for the maximum batch, mapped but unfiltered."""

    def _is_acceptable(self, item: ImageResult, request: SearchRequest) -> bool:
        """Drop entries that are not loadable images or lack a thumbnail."""
        return is_valid_image_url(item.image_url) and bool(item.thumbnail_url)

    async def fetch_all(self, request: SearchRequest) -> RawResultSet:
        """Return the filtered batch for the request's query, fetching it at most once per TTL."""
        cached = self._raw_cache.get(request)
        if cached is not None:
            return cached

        started = time.perf_counter()
        self.upstream_fetches += 1
        items = await self._fetch_batch(request)
        accepted = [item for item in items if self._is_acceptable(item, request)]
        renumbered = [item.with_id(f"{self.name}_{i + 1}") for i, item in enumerate(accepted)]
        took_ms = int((time.perf_counter() - started) * 1000)

        if len(renumbered) < len(items):
            logger.debug(f"{self.name}: filtered {len(items) - len(renumbered)} of {len(items)} results")

        raw = RawResultSet(
            all_results=renumbered,
            total_results=len(renumbered),
            query=request.query,
            orientation=request.orientation,
            fetch_duration_ms=took_ms,
        )
        self._raw_cache.put(request, raw)
        logger.info(f"{self.name}: cached {raw.total_results} results for {request.query!r} ({took_ms}ms)")
        return raw

    async def search(self, request: SearchRequest) -> ProviderResult:
        raw = await self.fetch_all(request)
        offset = request.start - 1
        page = raw.all_results[offset:offset + request.count]
        results = [item.with_id(f"{self.name}_{request.start + i}") for i, item in enumerate(page)]
        return ProviderResult(results=results, total_results=raw.total_results, took_ms=raw.fetch_duration_ms)

    async def collect(self, request: SearchRequest, page_count: int) -> ProviderResult:
        raw = await self.fetch_all(request)
        return ProviderResult(results=raw.all_results, total_results=raw.total_results, took_ms=raw.fetch_duration_ms)
