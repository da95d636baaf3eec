"""
ResultAggregator - Merging, Deduplication and Ranking of Image Results

Operates purely on ImageResult lists; it makes no provider calls and
touches no store.

1. Deduplication by ``image_url``: providers are walked in a fixed order
   and the first occurrence wins, whichever provider answered first.
2. Ranking by resolution (``width * height``, descending). Results with
   unknown or zero resolution go after every result with a known one and
   keep their relative order (the sort is stable).

Example:
    >>> aggregator = ResultAggregator()
    >>> merged = aggregator.aggregate([google_results, serper_results])
    >>> [r.origin_provider for r in merged][:3]
    ['serper', 'google', 'serper']
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Sequence

from parallax_search.domain.entities import ImageResult, SearchRequest


def compute_fingerprint(request: SearchRequest) -> str:
    """
    Aggregation identity of a request: sha1 over query, orientation and quality hint.

    The window (``start``/``count``) and provider hint are not part of it:
    every page of the same query reads the same aggregated set.
    """
    orientation = request.orientation.value if request.orientation.is_set else ""
    base = f"{request.normalized_query}|{orientation}|{request.quality_hint or ''}"
    return hashlib.sha1(base.encode("utf-8"), usedforsecurity=False).hexdigest()


def extract_keywords(query: str) -> list[str]:
    """Lower-cased unique words of *query*, in first-seen order."""
    return list(dict.fromkeys(query.lower().split()))


def _rank_key(item: ImageResult) -> tuple[int, int]:
    resolution = item.resolution
    if resolution > 0:
        return (0, -resolution)
    return (1, 0)


class ResultAggregator:
    """Deduplicate and rank results gathered from several providers."""

    def deduplicate(self, result_lists: Iterable[Sequence[ImageResult]]) -> list[ImageResult]:
        """
        Merge *result_lists* (one per provider, in provider order), keeping
        the first result seen for each ``image_url``.
        """
        seen: set[str] = set()
        merged: list[ImageResult] = []
        for results in result_lists:
            for item in results:
                if not item.image_url or item.image_url in seen:
                    continue
                seen.add(item.image_url)
                merged.append(item)
        return merged

    def rank(self, results: Sequence[ImageResult]) -> list[ImageResult]:
        """Sort by resolution descending; unknown resolution last, order preserved."""
        return sorted(results, key=_rank_key)

    def aggregate(self, result_lists: Iterable[Sequence[ImageResult]]) -> list[ImageResult]:
        """Deduplicate then rank."""
        return self.rank(self.deduplicate(result_lists))
