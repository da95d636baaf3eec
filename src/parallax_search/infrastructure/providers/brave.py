"""
Brave Image Search Provider

Bulk provider: one call returns up to 100 results and the API cannot page.
Brave reports no image dimensions, so orientation is only expressed
through the crafted query and every result is unranked (0x0).

API Documentation: https://api.search.brave.com/app/documentation/image-search
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from parallax_search.core.exceptions import ProviderResponseError
from parallax_search.domain.entities import ImageResult, ProviderHealth, SearchRequest
from parallax_search.infrastructure.cache.raw_result_cache import RawResultCache

from .base import BulkImageProvider
from .base_client import BaseAPIClient
from .query_utils import craft_wallpaper_query, file_format_from_url, mime_type_from_url

logger = logging.getLogger(__name__)

BRAVE_IMAGES_URL = "https://api.search.brave.com/res/v1/images/search"


class BraveImageProvider(BaseAPIClient, BulkImageProvider):
    """Brave Search image endpoint, authenticated with ``X-Subscription-Token``."""

    _service_name = "brave"
    name = "brave"
    label = "Brave Search"
    max_batch_size = 100

    def __init__(
        self,
        api_key: str,
        timeout: float = 15.0,
        raw_cache: RawResultCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        BaseAPIClient.__init__(
            self,
            base_url=BRAVE_IMAGES_URL,
            timeout=timeout,
            headers={"Accept-Encoding": "gzip", "X-Subscription-Token": api_key},
            transport=transport,
        )
        BulkImageProvider.__init__(self, raw_cache=raw_cache)

    def _build_params(self, request: SearchRequest, count: int) -> dict[str, str]:
        return {
            "q": craft_wallpaper_query(request.query, request.orientation, exclude=True),
            "count": str(count),
            "safesearch": "off",
            "spellcheck": "false",
        }

    async def _fetch_batch(self, request: SearchRequest) -> list[ImageResult]:
        data = await self._get_json("", params=self._build_params(request, self.max_batch_size))
        items = data.get("results", [])
        if not isinstance(items, list):
            raise ProviderResponseError(self.name, "'results' is not a list")

        results: list[ImageResult] = []
        for item in items:
            try:
                results.append(self._map_to_image_result(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to parse Brave result: {e}")
                continue
        return results

    @staticmethod
    def _map_to_image_result(item: dict[str, Any]) -> ImageResult:
        url = item["properties"]["url"]
        thumbnail = item.get("thumbnail") or {}
        title = item.get("title") or ""
        return ImageResult(
            id="",
            title=title or "Untitled",
            image_url=url,
            thumbnail_url=thumbnail.get("src") or "",
            source_page_url=item.get("url") or "",
            source_domain=item.get("source") or "",
            description=title,
            mime_type=mime_type_from_url(url),
            file_format=file_format_from_url(url),
            origin_provider="brave",
        )

    async def health_check(self) -> ProviderHealth:
        check_request = SearchRequest(query="test", count=1)
        try:
            await self._get("", params=self._build_params(check_request, 1))
        except Exception as e:
            return ProviderHealth(healthy=False, message=f"Brave Search health check failed: {e}")
        return ProviderHealth(healthy=True, message="Brave Search service is healthy")
