"""
Tests for provider adapters.

Tests:
- Strategies: PagedImageProvider / BulkImageProvider behaviour
- Adapters: Google, Serper, Brave mapping over httpx.MockTransport
- MockImageProvider
"""

import httpx
import pytest
from conftest import StubBulkProvider, StubPagedProvider, make_image

from parallax_search.core.exceptions import (
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from parallax_search.domain.entities import Orientation, SearchRequest
from parallax_search.infrastructure.providers import (
    BraveImageProvider,
    GoogleImageProvider,
    MockImageProvider,
    SerperImageProvider,
)

# ============================================================================
# Fixtures
# ============================================================================


def _json_transport(payload, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


@pytest.fixture
def google_payload():
    return {
        "searchInformation": {"totalResults": "1234"},
        "items": [
            {
                "title": "Alpine lake",
                "link": "https://upload.example.org/alpine.jpg",
                "displayLink": "upload.example.org",
                "snippet": "An alpine lake",
                "mime": "image/jpeg",
                "fileFormat": "image/jpeg",
                "image": {
                    "contextLink": "https://example.org/alpine",
                    "width": 4000,
                    "height": 3000,
                    "byteSize": 2048000,
                    "thumbnailLink": "https://encrypted-tbn0.gstatic.com/alpine",
                },
            },
            {"title": "broken entry without link"},
        ],
    }


@pytest.fixture
def serper_payload():
    return {
        "images": [
            {
                "title": "Wide peak",
                "imageUrl": "https://cdn.example.com/peak.png",
                "imageWidth": 3840,
                "imageHeight": 2160,
                "thumbnailUrl": "https://encrypted-tbn0.gstatic.com/peak",
                "source": "Example",
                "domain": "example.com",
                "link": "https://example.com/peak",
            },
            {
                "title": "Tall peak",
                "imageUrl": "https://cdn.example.com/tall.jpg",
                "imageWidth": 1080,
                "imageHeight": 1920,
                "thumbnailUrl": "https://encrypted-tbn0.gstatic.com/tall",
                "domain": "example.com",
                "link": "https://example.com/tall",
            },
            {
                "title": "Not an image",
                "imageUrl": "https://example.com/page.html",
                "imageWidth": 1920,
                "imageHeight": 1080,
                "thumbnailUrl": "https://encrypted-tbn0.gstatic.com/page",
            },
            {
                "title": "No thumbnail",
                "imageUrl": "https://cdn.example.com/nothumb.jpg",
                "imageWidth": 1920,
                "imageHeight": 1080,
            },
        ]
    }


# ============================================================================
# Strategy Tests
# ============================================================================


class TestPagedStrategy:
    async def test_search_forwards_window_verbatim(self, paged_provider):
        result = await paged_provider.search(SearchRequest(query="sea", start=11, count=10))
        assert paged_provider.calls == [(11, 10)]
        assert [r.id for r in result.results] == [f"paged_{i}" for i in range(11, 21)]
        assert result.total_results == 30

    async def test_total_is_provider_reported(self):
        provider = StubPagedProvider(total=5000)
        result = await provider.search(SearchRequest(query="sea"))
        assert result.total_results == 5000

    async def test_fetch_pages_collects_successive_pages(self):
        provider = StubPagedProvider(items=[make_image(i, "paged") for i in range(1, 101)])
        result = await provider.fetch_pages(SearchRequest(query="sea"), page_count=5)
        assert provider.calls == [(1, 10), (11, 10), (21, 10), (31, 10), (41, 10)]
        assert len(result.results) == 50
        assert result.total_results == 100

    async def test_fetch_pages_stops_on_short_page(self):
        provider = StubPagedProvider(items=[make_image(i, "paged") for i in range(1, 16)])
        result = await provider.fetch_pages(SearchRequest(query="sea"), page_count=5)
        assert provider.calls == [(1, 10), (11, 10)]
        assert len(result.results) == 15

    async def test_fetch_pages_stops_at_reported_total(self):
        provider = StubPagedProvider(items=[make_image(i, "paged") for i in range(1, 21)])
        result = await provider.fetch_pages(SearchRequest(query="sea"), page_count=5)
        assert provider.calls == [(1, 10), (11, 10)]
        assert len(result.results) == 20

    async def test_fetch_pages_first_page_failure_propagates(self):
        provider = StubPagedProvider(fail=True)
        with pytest.raises(ProviderError):
            await provider.fetch_pages(SearchRequest(query="sea"), page_count=5)

    async def test_fetch_pages_keeps_collected_on_later_failure(self):
        provider = StubPagedProvider(items=[make_image(i, "paged") for i in range(1, 101)])
        original = provider._fetch_page

        async def flaky(request):
            if request.start > 11:
                raise ProviderResponseError("paged", "quota", status_code=429)
            return await original(request)

        provider._fetch_page = flaky
        result = await provider.fetch_pages(SearchRequest(query="sea"), page_count=5)
        assert len(result.results) == 20

    async def test_collect_uses_page_count(self):
        provider = StubPagedProvider(items=[make_image(i, "paged") for i in range(1, 101)])
        result = await provider.collect(SearchRequest(query="sea", start=31, count=5), page_count=3)
        assert provider.calls == [(1, 10), (11, 10), (21, 10)]
        assert len(result.results) == 30


class TestBulkStrategy:
    async def test_single_upstream_fetch_serves_all_pages(self, bulk_provider):
        first = await bulk_provider.search(SearchRequest(query="mountains", start=1, count=10))
        second = await bulk_provider.search(SearchRequest(query="mountains", start=11, count=10))

        assert bulk_provider.upstream_fetches == 1
        assert first.total_results == second.total_results == 85
        assert [r.id for r in first.results] == [f"bulk_{i}" for i in range(1, 11)]
        assert [r.id for r in second.results] == [f"bulk_{i}" for i in range(11, 21)]
        assert second.results[0].image_url == "https://img.example.com/bulk/11.jpg"

    async def test_fetch_ignores_requested_window(self, bulk_provider):
        await bulk_provider.search(SearchRequest(query="mountains", start=41, count=5))
        assert len(bulk_provider.batch_requests) == 1
        raw = await bulk_provider.fetch_all(SearchRequest(query="mountains"))
        assert raw.total_results == 85

    async def test_filters_invalid_entries(self):
        items = [
            make_image(1, "bulk"),
            make_image(2, "bulk", url="https://example.com/page.html"),
            make_image(3, "bulk", thumbnail=""),
            make_image(4, "bulk", url="ftp://img.example.com/4.jpg"),
            make_image(5, "bulk"),
        ]
        provider = StubBulkProvider(items=items)
        result = await provider.search(SearchRequest(query="sea", count=10))

        assert result.total_results == 2
        assert [r.image_url for r in result.results] == [
            "https://img.example.com/bulk/1.jpg",
            "https://img.example.com/bulk/5.jpg",
        ]
        assert [r.id for r in result.results] == ["bulk_1", "bulk_2"]

    async def test_start_beyond_total_is_empty(self, bulk_provider):
        result = await bulk_provider.search(SearchRequest(query="sea", start=200, count=10))
        assert result.results == []
        assert result.total_results == 85

    async def test_different_orientation_refetches(self, bulk_provider):
        await bulk_provider.search(SearchRequest(query="sea"))
        await bulk_provider.search(SearchRequest(query="sea", orientation=Orientation.PORTRAIT))
        assert bulk_provider.upstream_fetches == 2

    async def test_failure_is_not_cached(self):
        provider = StubBulkProvider(fail=True)
        with pytest.raises(ProviderError):
            await provider.search(SearchRequest(query="sea"))
        assert len(provider.raw_cache) == 0

    async def test_collect_returns_whole_batch(self, bulk_provider):
        result = await bulk_provider.collect(SearchRequest(query="sea", start=11, count=10), page_count=5)
        assert len(result.results) == 85


# ============================================================================
# Adapter Tests
# ============================================================================


class TestGoogleImageProvider:
    async def test_search_maps_results(self, google_payload):
        seen = []
        provider = GoogleImageProvider("key", "cx", transport=_json_transport(google_payload, seen=seen))
        result = await provider.search(SearchRequest(query="alps", start=11, count=10))

        assert result.total_results == 1234
        assert len(result.results) == 1
        image = result.results[0]
        assert image.id == "google_11"
        assert image.image_url == "https://upload.example.org/alpine.jpg"
        assert image.thumbnail_url == "https://encrypted-tbn0.gstatic.com/alpine"
        assert image.source_page_url == "https://example.org/alpine"
        assert (image.width, image.height) == (4000, 3000)
        assert image.byte_size == 2048000
        assert image.origin_provider == "google"

        params = seen[0].url.params
        assert params["start"] == "11"
        assert params["num"] == "10"
        assert params["searchType"] == "image"
        assert params["q"] == "alps wallpaper"
        await provider.close()

    async def test_orientation_in_query(self, google_payload):
        seen = []
        provider = GoogleImageProvider("key", "cx", transport=_json_transport(google_payload, seen=seen))
        await provider.search(SearchRequest(query="alps", orientation=Orientation.PORTRAIT))
        assert seen[0].url.params["q"] == "alps wallpaper mobile"

    async def test_http_error(self):
        payload = {"error": {"message": "Daily limit exceeded"}}
        provider = GoogleImageProvider("key", "cx", transport=_json_transport(payload, status_code=429))
        with pytest.raises(ProviderResponseError) as exc_info:
            await provider.search(SearchRequest(query="alps"))
        assert exc_info.value.status_code == 429
        assert "Daily limit exceeded" in str(exc_info.value)
        assert exc_info.value.provider == "google"

    async def test_malformed_payload(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        provider = GoogleImageProvider("key", "cx", transport=transport)
        with pytest.raises(ProviderResponseError, match="malformed"):
            await provider.search(SearchRequest(query="alps"))

    async def test_transport_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        provider = GoogleImageProvider("key", "cx", timeout=2.0, transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderTimeoutError):
            await provider.search(SearchRequest(query="alps"))

    async def test_health_check(self, google_payload):
        healthy = GoogleImageProvider("key", "cx", transport=_json_transport(google_payload))
        assert (await healthy.health_check()).healthy is True

        broken = GoogleImageProvider("key", "cx", transport=_json_transport({}, status_code=500))
        health = await broken.health_check()
        assert health.healthy is False
        assert "failed" in health.message

    def test_capabilities(self):
        provider = GoogleImageProvider("key", "cx")
        assert provider.native_paging_supported is True
        assert provider.max_count == 10


class TestSerperImageProvider:
    async def test_filters_and_caches(self, serper_payload):
        seen = []
        provider = SerperImageProvider("key", transport=_json_transport(serper_payload, seen=seen))

        first = await provider.search(SearchRequest(query="peak", count=1, start=1))
        second = await provider.search(SearchRequest(query="peak", count=1, start=2))

        assert len(seen) == 1
        assert seen[0].url.params["num"] == "100"
        assert first.total_results == 2
        assert first.results[0].image_url == "https://cdn.example.com/peak.png"
        assert first.results[0].mime_type == "image/png"
        assert second.results[0].image_url == "https://cdn.example.com/tall.jpg"

    async def test_orientation_filter(self, serper_payload):
        provider = SerperImageProvider("key", transport=_json_transport(serper_payload))
        result = await provider.search(SearchRequest(query="peak", orientation=Orientation.PORTRAIT))
        assert [r.title for r in result.results] == ["Tall peak"]

    async def test_quality_hint_forwarded_as_tbs(self, serper_payload):
        seen = []
        provider = SerperImageProvider("key", transport=_json_transport(serper_payload, seen=seen))
        await provider.search(SearchRequest(query="peak", quality_hint="isz:lt,itp:photo"))
        assert seen[0].url.params["tbs"] == "isz:lt,itp:photo"

    async def test_default_tbs_follows_orientation(self, serper_payload):
        seen = []
        provider = SerperImageProvider("key", transport=_json_transport(serper_payload, seen=seen))
        await provider.search(SearchRequest(query="peak", orientation=Orientation.LANDSCAPE))
        await provider.search(SearchRequest(query="ridge"))
        assert seen[0].url.params["tbs"] == "isz:lt,islt:2mp,itp:photo,ic:color,imgar:w"
        assert seen[1].url.params["tbs"] == "isz:lt,islt:2mp,itp:photo,ic:color"

    async def test_images_not_a_list(self):
        provider = SerperImageProvider("key", transport=_json_transport({"images": "nope"}))
        with pytest.raises(ProviderResponseError):
            await provider.search(SearchRequest(query="peak"))

    def test_capabilities(self):
        provider = SerperImageProvider("key")
        assert provider.native_paging_supported is False
        assert provider.max_count == 100


class TestBraveImageProvider:
    async def test_maps_results_without_dimensions(self):
        payload = {
            "results": [
                {
                    "title": "Forest",
                    "url": "https://example.net/forest",
                    "source": "example.net",
                    "thumbnail": {"src": "https://imgs.search.brave.com/forest"},
                    "properties": {"url": "https://example.net/forest.webp"},
                },
                {"title": "missing properties"},
            ]
        }
        seen = []
        provider = BraveImageProvider("token", transport=_json_transport(payload, seen=seen))
        result = await provider.search(SearchRequest(query="forest"))

        assert result.total_results == 1
        image = result.results[0]
        assert image.resolution == 0
        assert image.file_format == "webp"
        assert image.origin_provider == "brave"
        assert seen[0].headers["X-Subscription-Token"] == "token"
        assert "-logo" in seen[0].url.params["q"]


class TestMockImageProvider:
    async def test_deterministic_pages(self):
        provider = MockImageProvider()
        a = await provider.search(SearchRequest(query="sea", start=11, count=10))
        b = await provider.search(SearchRequest(query="sea", start=11, count=10))
        assert a.results == b.results
        assert a.results[0].id == "mock_11"
        assert a.total_results == 1000

    async def test_portrait_dimensions(self):
        result = await MockImageProvider().search(SearchRequest(query="sea", orientation=Orientation.PORTRAIT))
        assert (result.results[0].width, result.results[0].height) == (1080, 1920)

    async def test_last_page_is_short(self):
        result = await MockImageProvider(total_results=25).search(SearchRequest(query="sea", start=21, count=10))
        assert len(result.results) == 5

    async def test_health(self):
        assert (await MockImageProvider().health_check()).healthy is True
