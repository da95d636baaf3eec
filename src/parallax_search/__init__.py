"""
Parallax Search - unified, cached, paginated image search over pluggable providers.

Usage:
    from parallax_search import SearchRequest, create_search_service

    service = create_search_service()
    response = await service.search(SearchRequest(query="mountains", count=10))
"""

from __future__ import annotations

from parallax_search.core.config import SearchSettings
from parallax_search.domain.entities import (
    ImageResult,
    Orientation,
    PaginationWindow,
    SearchRequest,
    SearchResponse,
)

__version__ = "0.3.0"


def create_search_service(settings: SearchSettings | None = None):
    """Build a fully wired UnifiedSearchService from *settings* (environment by default)."""
    from dependency_injector import providers

    from parallax_search.container import ApplicationContainer

    container = ApplicationContainer()
    if settings is not None:
        container.settings.override(providers.Object(settings))
    return container.search_service()


__all__ = [
    "ImageResult",
    "Orientation",
    "PaginationWindow",
    "SearchRequest",
    "SearchResponse",
    "SearchSettings",
    "create_search_service",
]
