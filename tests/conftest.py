"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from parallax_search.core.config import SearchSettings
from parallax_search.core.exceptions import ProviderResponseError
from parallax_search.domain.entities import (
    ImageResult,
    ProviderHealth,
    ProviderResult,
    SearchRequest,
)
from parallax_search.infrastructure.cache import InMemoryCacheStore, RawResultCache
from parallax_search.infrastructure.persistence import SqliteAggregatedResultStore
from parallax_search.infrastructure.providers.base import BulkImageProvider, PagedImageProvider

# ============================================================
# Clocks
# ============================================================


class FakeTimer:
    """Monotonic-style clock (seconds) that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeClock:
    """UTC datetime clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


# ============================================================
# Result helpers
# ============================================================


def make_image(
    index: int,
    provider: str = "stub",
    width: int = 1920,
    height: int = 1080,
    url: str | None = None,
    thumbnail: str | None = None,
) -> ImageResult:
    """Build a valid ImageResult with predictable URLs."""
    return ImageResult(
        id=f"{provider}_{index}",
        title=f"Image {index}",
        image_url=url or f"https://img.example.com/{provider}/{index}.jpg",
        thumbnail_url=f"https://img.example.com/{provider}/{index}_t.jpg" if thumbnail is None else thumbnail,
        source_page_url=f"https://example.com/{provider}/{index}",
        source_domain="example.com",
        description=f"Image number {index}",
        width=width,
        height=height,
        byte_size=1000 + index,
        mime_type="image/jpeg",
        file_format="jpg",
        origin_provider=provider,
    )


# ============================================================
# Stub providers
# ============================================================


class StubPagedProvider(PagedImageProvider):
    """Paged provider over an in-memory list; records every upstream window."""

    label = "Stub Paged"
    max_batch_size = 10

    def __init__(
        self,
        name: str = "paged",
        items: list[ImageResult] | None = None,
        total: int | None = None,
        fail: bool = False,
    ) -> None:
        self.name = name
        self.items = items if items is not None else [make_image(i, name) for i in range(1, 31)]
        self.total = total
        self.fail = fail
        self.calls: list[tuple[int, int]] = []

    async def _fetch_page(self, request: SearchRequest) -> ProviderResult:
        self.calls.append((request.start, request.count))
        if self.fail:
            raise ProviderResponseError(self.name, "upstream exploded", status_code=503)
        offset = request.start - 1
        page = self.items[offset:offset + request.count]
        total = self.total if self.total is not None else len(self.items)
        return ProviderResult(results=page, total_results=total)

    async def health_check(self) -> ProviderHealth:
        return ProviderHealth(healthy=not self.fail, message="stub")


class StubBulkProvider(BulkImageProvider):
    """Bulk provider over an in-memory batch; counts upstream fetches."""

    label = "Stub Bulk"
    max_batch_size = 100

    def __init__(
        self,
        name: str = "bulk",
        items: list[ImageResult] | None = None,
        fail: bool = False,
        raw_cache: RawResultCache | None = None,
    ) -> None:
        self.name = name
        super().__init__(raw_cache=raw_cache or RawResultCache(name))
        self.items = items if items is not None else [make_image(i, name) for i in range(1, 86)]
        self.fail = fail
        self.batch_requests: list[SearchRequest] = []

    async def _fetch_batch(self, request: SearchRequest) -> list[ImageResult]:
        self.batch_requests.append(request)
        if self.fail:
            raise ProviderResponseError(self.name, "malformed payload")
        return list(self.items)

    async def health_check(self) -> ProviderHealth:
        return ProviderHealth(healthy=True, message="stub bulk ok")


# ============================================================
# Fixtures
# ============================================================


@pytest.fixture
def fake_timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> SearchSettings:
    """Settings with a short provider timeout and an in-memory store."""
    return SearchSettings(
        priority=("bulk", "paged", "mock"),
        aggregate_providers=("paged", "bulk"),
        provider_timeout=0.5,
        aggregation_page_count=5,
    )


@pytest.fixture
def cache_store(fake_timer: FakeTimer) -> InMemoryCacheStore:
    return InMemoryCacheStore(sweep_threshold=100, timer=fake_timer)


@pytest.fixture
def result_store():
    store = SqliteAggregatedResultStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def paged_provider() -> StubPagedProvider:
    return StubPagedProvider()


@pytest.fixture
def bulk_provider() -> StubBulkProvider:
    return StubBulkProvider()
