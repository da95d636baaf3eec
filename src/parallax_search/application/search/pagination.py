"""
Pagination Engine

Maps a requested result window onto page metadata, independent of how the
answering provider pages (or does not page) upstream.

    current_page = ceil(start / count)
    total_pages  = ceil(total_results / count)
    has_next     = current_page < total_pages
    has_previous = current_page > 1
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from parallax_search.domain.entities import PaginationWindow


def compute_pagination(start: int, count: int, total_results: int) -> PaginationWindow:
    """
    Compute the pagination window for ``start`` (1-based) and ``count``.

    ``count`` is validated upstream and is always positive here. A
    ``start`` past the end yields a well-formed window with no next page.

    Example:
        >>> window = compute_pagination(start=11, count=10, total_results=85)
        >>> window.current_page, window.total_pages, window.has_next_page
        (2, 9, True)
    """
    total_results = max(total_results, 0)
    current_page = math.ceil(start / count)
    total_pages = math.ceil(total_results / count)
    has_next = current_page < total_pages
    has_previous = current_page > 1

    return PaginationWindow(
        current_page=current_page,
        total_results=total_results,
        results_per_page=count,
        total_pages=total_pages,
        has_next_page=has_next,
        has_previous_page=has_previous,
        next_start_index=start + count if has_next else None,
        previous_start_index=max(1, start - count) if has_previous else None,
    )


def paginate[T](items: Sequence[T], start: int, count: int) -> list[T]:
    """Slice ``[start-1, start-1+count)`` out of *items*."""
    offset = start - 1
    return list(items[offset:offset + count])
