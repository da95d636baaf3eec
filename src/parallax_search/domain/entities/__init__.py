"""Domain entities."""

from .image import ImageResult
from .search import (
    AGGREGATED_ENGINE,
    AggregatedResultSet,
    Orientation,
    PaginationWindow,
    ProviderHealth,
    ProviderResult,
    RawResultSet,
    SearchInfo,
    SearchRequest,
    SearchResponse,
)

__all__ = [
    "AGGREGATED_ENGINE",
    "AggregatedResultSet",
    "ImageResult",
    "Orientation",
    "PaginationWindow",
    "ProviderHealth",
    "ProviderResult",
    "RawResultSet",
    "SearchInfo",
    "SearchRequest",
    "SearchResponse",
]
