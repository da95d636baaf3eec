"""
Image Search Tools - unified image search over the configured providers.

Tools:
- search_images: One normalized, paginated, deduplicated image search
- clear_image_cache: Drop cached answers (by pattern or by user)
- image_search_health: Provider health
- image_search_stats: Providers, default selection and cache contents
- image_search_suggestions: A user's past queries by prefix

Every tool returns a JSON string; failures are rendered with
``ParallaxSearchError.to_dict()``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from mcp.server.fastmcp import FastMCP

from parallax_search.application.search import UnifiedSearchService, build_search_request
from parallax_search.core.exceptions import ParallaxSearchError

logger = logging.getLogger(__name__)


def _dump(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


def register_image_search_tools(mcp: FastMCP, service: UnifiedSearchService) -> list[str]:
    """Register image search MCP tools; return their names."""

    @mcp.tool()
    async def search_images(
        query: str,
        orientation: Union[str, None] = None,
        count: Union[int, str] = 10,
        start: Union[int, str] = 1,
        provider: Union[str, None] = None,
        quality_hint: Union[str, None] = None,
        user_id: Union[str, None] = None,
    ) -> str:
        """
        Search images across the configured providers.

        Results are deduplicated by image URL, paginated consistently and
        cached, so later pages of the same query do not call providers again.

        Args:
            query: What to search for (1-200 characters)
            orientation: "landscape", "portrait" or empty for any
            count: Results per page (provider-bounded: 10 for paged, 100 for bulk providers)
            start: 1-based index of the first result
            provider: Force one provider for this call ("google", "serper",
                "brave", "mock") or "aggregated" for all of them
            quality_hint: Opaque filter passed to providers (e.g. "isz:lt,itp:photo")
            user_id: Owner of aggregated results (enables suggestions / per-user clearing)

        Returns:
            JSON with results, pagination and searchInfo
        """
        try:
            request = build_search_request(
                query,
                orientation=orientation,
                count=count,
                start=start,
                provider=provider,
                quality_hint=quality_hint,
            )
            response = await service.search(request, user_id=user_id)
        except ParallaxSearchError as e:
            logger.info(f"search_images rejected: {e}")
            return _dump(e.to_dict())
        return _dump(response.to_dict())

    @mcp.tool()
    async def clear_image_cache(
        pattern: Union[str, None] = None,
        user_id: Union[str, None] = None,
    ) -> str:
        """
        Clear cached image search answers.

        Args:
            pattern: Regex over cache keys (e.g. "^search:serper:"); omit to clear everything
            user_id: Also drop this user's aggregated result sets

        Returns:
            JSON summary of what was removed
        """
        return _dump(await service.invalidate(user_id=user_id, pattern=pattern))

    @mcp.tool()
    async def image_search_health(provider: Union[str, None] = None) -> str:
        """
        Check provider health.

        Args:
            provider: Provider key to check; omit to check all

        Returns:
            JSON with overall health and per-provider status
        """
        return _dump(await service.health(provider))

    @mcp.tool()
    def image_search_stats() -> str:
        """
        Registered providers, default engine selection and response cache contents.
        """
        return _dump(service.stats())

    @mcp.tool()
    async def image_search_suggestions(
        prefix: str,
        user_id: str,
        limit: Union[int, str] = 10,
    ) -> str:
        """
        Past queries of a user starting with a prefix.

        Args:
            prefix: Query prefix
            user_id: Whose searches to look at
            limit: Maximum number of suggestions (default 10)
        """
        try:
            max_items = max(1, min(int(limit), 50))
        except (TypeError, ValueError):
            max_items = 10
        suggestions = await service.suggestions(prefix, user_id, max_items)
        return _dump({"success": True, "prefix": prefix, "suggestions": suggestions})

    return [
        "search_images",
        "clear_image_cache",
        "image_search_health",
        "image_search_stats",
        "image_search_suggestions",
    ]
