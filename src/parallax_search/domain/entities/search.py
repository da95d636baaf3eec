"""
Domain Entities: search request, pagination and result sets.
"""

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .image import ImageResult


class Orientation(str, Enum):
    """Requested image orientation."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    UNSET = "unset"

    @classmethod
    def parse(cls, value: Orientation | str | None) -> Orientation:
        """Map user input to an orientation; None and "" mean UNSET.

        Raises:
            ValueError: for any other unknown value
        """
        if value is None or value == "":
            return cls.UNSET
        if isinstance(value, Orientation):
            return value
        return cls(value.strip().lower())

    @property
    def is_set(self) -> bool:
        return self is not Orientation.UNSET


AGGREGATED_ENGINE = "aggregated"


@dataclass(frozen=True)
class SearchRequest:
    """Normalized image search request. Immutable per call."""

    query: str
    orientation: Orientation = Orientation.UNSET
    count: int = 10
    start: int = 1
    provider_hint: str | None = None
    quality_hint: str | None = None

    def __post_init__(self) -> None:
        # Plain strings such as "landscape" are accepted; unknown values stay
        # as given and are rejected by validate_search_request.
        if self.orientation is None or type(self.orientation) is str:
            try:
                object.__setattr__(self, "orientation", Orientation.parse(self.orientation))
            except ValueError:
                pass

    def with_window(self, start: int, count: int) -> SearchRequest:
        """Copy of this request for another result window."""
        return dataclasses.replace(self, start=start, count=count)

    @property
    def normalized_query(self) -> str:
        return self.query.lower().strip()


@dataclass(frozen=True)
class PaginationWindow:
    """Page/offset/total metadata returned alongside a page of results."""

    current_page: int
    total_results: int
    results_per_page: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool
    next_start_index: int | None = None
    previous_start_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "currentPage": self.current_page,
            "totalResults": self.total_results,
            "resultsPerPage": self.results_per_page,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
        }
        if self.next_start_index is not None:
            data["nextStartIndex"] = self.next_start_index
        if self.previous_start_index is not None:
            data["previousStartIndex"] = self.previous_start_index
        return data


@dataclass(frozen=True)
class ProviderResult:
    """What a provider returns for one search call."""

    results: list[ImageResult]
    total_results: int
    took_ms: int = 0


@dataclass(frozen=True)
class ProviderHealth:
    healthy: bool
    message: str


@dataclass(frozen=True)
class RawResultSet:
    """
    A bulk provider's filtered fetch, cached for reuse across pages.

    Read-only after creation; ``fetched_at`` is epoch seconds.
    """

    all_results: list[ImageResult]
    total_results: int
    query: str
    orientation: Orientation
    fetched_at: float = field(default_factory=time.time)
    fetch_duration_ms: int = 0


@dataclass(frozen=True)
class AggregatedResultSet:
    """Deduplicated, ranked union of provider results for one fingerprint."""

    fingerprint: str
    query: str
    orientation: Orientation
    quality_hint: str | None
    results: list[ImageResult]
    providers_used: list[str]
    created_at: datetime
    expires_at: datetime
    owner_user_id: str | None = None
    keywords: list[str] = field(default_factory=list)

    def is_live(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now < self.expires_at

    @property
    def total_results(self) -> int:
        return len(self.results)


@dataclass(frozen=True)
class SearchInfo:
    query: str
    orientation: Orientation
    took_ms: int
    engine_label: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "orientation": self.orientation.value if self.orientation.is_set else None,
            "searchTime": self.took_ms,
            "searchEngine": self.engine_label,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class SearchResponse:
    """Engine-facing answer for one search call."""

    results: list[ImageResult]
    pagination: PaginationWindow
    search_info: SearchInfo
    cached: bool = False
    cache_key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": True,
            "data": {
                "results": [r.to_dict() for r in self.results],
                "pagination": self.pagination.to_dict(),
                "searchInfo": self.search_info.to_dict(),
            },
            "cached": self.cached,
        }
        if self.cache_key:
            data["cacheKey"] = self.cache_key
        return data
