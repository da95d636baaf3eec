"""
Request Validation

Every check here runs before any cache or provider is touched; failures
are ValidationErrors whose messages are surfaced to the caller verbatim.

Example:
    >>> request = build_search_request("mountains", orientation="landscape", count="20")
    >>> request.count
    20
    >>> validate_search_request(request, max_count=10)
    Traceback (most recent call last):
    ...
    parallax_search.core.exceptions.InvalidParameterError: Invalid parameter 'count': 20 (expected 1-10)
"""

from __future__ import annotations

from typing import Any

from parallax_search.core.exceptions import InvalidParameterError, InvalidQueryError
from parallax_search.domain.entities import Orientation, SearchRequest

MAX_QUERY_LENGTH = 200
DEFAULT_COUNT = 10


def _coerce_int(name: str, value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise InvalidParameterError(name, value, "a positive integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(name, value, "a positive integer") from None


def build_search_request(
    query: str | None,
    *,
    orientation: Orientation | str | None = None,
    count: int | str | None = None,
    start: int | str | None = None,
    provider: str | None = None,
    quality_hint: str | None = None,
) -> SearchRequest:
    """
    Build a :class:`SearchRequest` from loosely typed transport input.

    Raises:
        InvalidParameterError: unknown orientation or non-integer window
    """
    try:
        parsed_orientation = Orientation.parse(orientation)
    except ValueError:
        raise InvalidParameterError("orientation", orientation, "'landscape', 'portrait' or unset") from None

    return SearchRequest(
        query=(query or "").strip(),
        orientation=parsed_orientation,
        count=_coerce_int("count", count, DEFAULT_COUNT),
        start=_coerce_int("start", start, 1),
        provider_hint=(provider or "").strip().lower() or None,
        quality_hint=(quality_hint or "").strip() or None,
    )


def validate_search_request(
    request: SearchRequest,
    *,
    max_count: int | None = None,
    max_query_length: int = MAX_QUERY_LENGTH,
) -> None:
    """
    Reject a request that must not reach the cache or any provider.

    Args:
        request: The request to check
        max_count: Largest ``count`` the answering engine accepts; None
            skips the upper bound (checked again once an engine is chosen)
        max_query_length: Query length limit

    Raises:
        InvalidQueryError: empty or overlong query
        InvalidParameterError: out-of-range count/start, unknown orientation
    """
    if not isinstance(request.query, str) or not request.query.strip():
        raise InvalidQueryError(request.query)
    if len(request.query) > max_query_length:
        raise InvalidQueryError(
            request.query,
            f"Search query must be at most {max_query_length} characters",
        )

    if not isinstance(request.orientation, Orientation):
        raise InvalidParameterError("orientation", request.orientation, "'landscape', 'portrait' or unset")

    if not isinstance(request.count, int) or isinstance(request.count, bool) or request.count < 1:
        raise InvalidParameterError("count", request.count, "a positive integer")
    if max_count is not None and request.count > max_count:
        raise InvalidParameterError("count", request.count, f"1-{max_count}")

    if not isinstance(request.start, int) or isinstance(request.start, bool) or request.start < 1:
        raise InvalidParameterError("start", request.start, "a positive integer (1-based)")
