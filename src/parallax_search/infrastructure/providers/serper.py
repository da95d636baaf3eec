"""
Serper Images Provider

Bulk provider: one call returns up to 100 Google Images results with
dimensions; there is no server-side paging. Results are fetched once per
(query, orientation) and cached as a RawResultSet.

API Documentation: https://serper.dev/
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
from .query_utils import build_quality_hint, file_format_from_url, matches_orientation, mime_type_from_url

logger = logging.getLogger(__name__)

SERPER_IMAGES_URL = "https://google.serper.dev/images"


class SerperImageProvider(BaseAPIClient, BulkImageProvider):
    """
    Serper.dev image search.

    The quality hint is forwarded verbatim as Google's ``tbs`` filter; without
    one, a large-photo filter for the requested orientation is sent.
    Orientation is enforced locally from the reported dimensions.
    """

    _service_name = "serper"
    name = "serper"
    label = "Serper Images Search"
    max_batch_size = 100

    def __init__(
        self,
        api_key: str,
        timeout: float = 15.0,
        raw_cache: RawResultCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        BaseAPIClient.__init__(self, base_url=SERPER_IMAGES_URL, timeout=timeout, transport=transport)
        BulkImageProvider.__init__(self, raw_cache=raw_cache)
        self._api_key = api_key

    def _build_params(self, request: SearchRequest, num: int) -> dict[str, str]:
        params = {
            "q": request.query,
            "num": str(num),
            "autocorrect": "false",
            "apiKey": self._api_key,
        }
        params["tbs"] = request.quality_hint or build_quality_hint(request.orientation)
        return params

    async def _fetch_batch(self, request: SearchRequest) -> list[ImageResult]:
        data = await self._get_json("", params=self._build_params(request, self.max_batch_size))
        images = data.get("images", [])
        if not isinstance(images, list):
            raise ProviderResponseError(self.name, "'images' is not a list")

        results: list[ImageResult] = []
        for item in images:
            try:
                results.append(self._map_to_image_result(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to parse Serper result: {e}")
                continue
        return results

    def _is_acceptable(self, item: ImageResult, request: SearchRequest) -> bool:
        if not super()._is_acceptable(item, request):
            return False
        return matches_orientation(item.width, item.height, request.orientation)

    @staticmethod
    def _map_to_image_result(item: dict[str, Any]) -> ImageResult:
        url = item["imageUrl"]
        return ImageResult(
            id="",
            title=item.get("title") or "Untitled",
            image_url=url,
            thumbnail_url=item.get("thumbnailUrl") or "",
            source_page_url=item.get("link") or "",
            source_domain=item.get("domain") or "",
            description=item.get("source") or item.get("domain") or "",
            width=int(item.get("imageWidth") or 0),
            height=int(item.get("imageHeight") or 0),
            mime_type=mime_type_from_url(url),
            file_format=file_format_from_url(url),
            origin_provider="serper",
        )

    async def health_check(self) -> ProviderHealth:
        check_request = SearchRequest(query="test wallpaper", count=1)
        try:
            await self._get("", params=self._build_params(check_request, 1))
        except Exception as e:
            return ProviderHealth(healthy=False, message=f"Serper health check failed: {e}")
        return ProviderHealth(healthy=True, message="Serper service is healthy")
