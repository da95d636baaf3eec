"""
Google Custom Search (image) Provider

Paged provider: at most 10 results per call, server-side paging via
``start``/``num``.

API Documentation: https://developers.google.com/custom-search/v1/reference/rest/v1/cse/list

Limitations:
- ``num`` is capped at 10
- ``start + num`` may not exceed 100 (the API refuses deeper pages)
- ``searchInformation.totalResults`` is an estimate returned as a string
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from parallax_search.core.exceptions import ProviderResponseError
from parallax_search.domain.entities import (
    ImageResult,
    ProviderHealth,
    ProviderResult,
    SearchRequest,
)

from .base import PagedImageProvider
from .base_client import BaseAPIClient
from .query_utils import craft_wallpaper_query, file_format_from_url, mime_type_from_url

logger = logging.getLogger(__name__)

GOOGLE_CSE_URL = "https://customsearch.googleapis.com/customsearch/v1"


class GoogleImageProvider(BaseAPIClient, PagedImageProvider):
    """
    Google Custom Search JSON API, image mode.

    Usage:
        provider = GoogleImageProvider(api_key="...", engine_id="...")
        result = await provider.search(SearchRequest(query="mountains"))
    """

    _service_name = "google"
    name = "google"
    label = "Google Custom Search"
    max_batch_size = 10

    def __init__(
        self,
        api_key: str,
        engine_id: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url=GOOGLE_CSE_URL, timeout=timeout, transport=transport)
        self._api_key = api_key
        self._engine_id = engine_id

    def _build_params(self, request: SearchRequest) -> dict[str, str]:
        return {
            "key": self._api_key,
            "cx": self._engine_id,
            "q": craft_wallpaper_query(request.query, request.orientation),
            "searchType": "image",
            "num": str(request.count),
            "start": str(request.start),
            "safe": "off",
            "imgSize": "huge",
            "imgType": "photo",
            "fileType": "jpg,png",
            "filter": "1",
            "imgColorType": "color",
        }

    async def _fetch_page(self, request: SearchRequest) -> ProviderResult:
        data = await self._get_json("", params=self._build_params(request))

        info = data.get("searchInformation") or {}
        try:
            total = int(info.get("totalResults") or 0)
        except (TypeError, ValueError) as e:
            raise ProviderResponseError(self.name, f"bad totalResults {info.get('totalResults')!r}") from e

        items = data.get("items") or []
        if not isinstance(items, list):
            raise ProviderResponseError(self.name, "'items' is not a list")

        results: list[ImageResult] = []
        for index, item in enumerate(items):
            try:
                results.append(self._map_to_image_result(item, request.start + index))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to parse Google result: {e}")
                continue

        return ProviderResult(results=results, total_results=total)

    @staticmethod
    def _map_to_image_result(item: dict[str, Any], position: int) -> ImageResult:
        """Map one ``items[]`` entry onto the domain entity."""
        image = item.get("image") or {}
        link = item["link"]
        return ImageResult(
            id=f"google_{position}",
            title=item.get("title") or "Untitled",
            image_url=link,
            thumbnail_url=image.get("thumbnailLink") or "",
            source_page_url=image.get("contextLink") or "",
            source_domain=item.get("displayLink") or "",
            description=item.get("snippet") or "",
            width=int(image.get("width") or 0),
            height=int(image.get("height") or 0),
            byte_size=int(image["byteSize"]) if image.get("byteSize") else None,
            mime_type=item.get("mime") or mime_type_from_url(link),
            file_format=item.get("fileFormat") or file_format_from_url(link),
            origin_provider="google",
        )

    async def health_check(self) -> ProviderHealth:
        check_request = SearchRequest(query="test", count=1)
        try:
            await self._get("", params=self._build_params(check_request))
        except Exception as e:
            return ProviderHealth(healthy=False, message=f"Google Search health check failed: {e}")
        return ProviderHealth(healthy=True, message="Google Search service is healthy")
