"""
Mock Image Provider

Paged provider with no network access. Results are generated
deterministically from the request so tests and local runs see stable
pages; the simulated index always holds ``MOCK_TOTAL_RESULTS`` images.
"""

from __future__ import annotations

from parallax_search.domain.entities import (
    ImageResult,
    Orientation,
    ProviderHealth,
    ProviderResult,
    SearchRequest,
)

from .base import PagedImageProvider

MOCK_TOTAL_RESULTS = 1000


class MockImageProvider(PagedImageProvider):
    """Offline provider backed by picsum.photos placeholder URLs."""

    name = "mock"
    label = "Mock Search Engine"
    max_batch_size = 10

    def __init__(self, total_results: int = MOCK_TOTAL_RESULTS) -> None:
        self.total_results = total_results

    async def _fetch_page(self, request: SearchRequest) -> ProviderResult:
        last = min(request.start + request.count - 1, self.total_results)
        results = [self._generate(request, index) for index in range(request.start, last + 1)]
        return ProviderResult(results=results, total_results=self.total_results)

    @staticmethod
    def _generate(request: SearchRequest, index: int) -> ImageResult:
        portrait = request.orientation is Orientation.PORTRAIT
        width, height = (1080, 1920) if portrait else (1920, 1080)
        thumb = "180/320" if portrait else "320/180"
        return ImageResult(
            id=f"mock_{index}",
            title=f"Mock {request.query} Wallpaper #{index}",
            image_url=f"https://picsum.photos/{width}/{height}?random={index}",
            thumbnail_url=f"https://picsum.photos/{thumb}?random={index}",
            source_page_url=f"https://example.com/wallpaper/{index}",
            source_domain="example.com",
            description=f"A {request.query} wallpaper generated for testing",
            width=width,
            height=height,
            byte_size=1_000_000 + (index * 7919) % 5_000_000,
            mime_type="image/jpeg",
            file_format="jpg",
            origin_provider="mock",
        )

    async def health_check(self) -> ProviderHealth:
        return ProviderHealth(healthy=True, message="Mock search service is healthy")
