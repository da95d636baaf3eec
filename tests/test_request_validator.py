"""Tests for request building and validation."""

import pytest

from parallax_search.application.search.request_validator import (
    build_search_request,
    validate_search_request,
)
from parallax_search.core.exceptions import (
    InvalidParameterError,
    InvalidQueryError,
    ValidationError,
)
from parallax_search.domain.entities import Orientation, SearchRequest


class TestBuildSearchRequest:
    def test_defaults(self):
        request = build_search_request("  mountains  ")
        assert request.query == "mountains"
        assert request.orientation is Orientation.UNSET
        assert request.count == 10
        assert request.start == 1
        assert request.provider_hint is None
        assert request.quality_hint is None

    def test_string_inputs_are_coerced(self):
        request = build_search_request(
            "sea", orientation="Portrait", count="20", start="21", provider=" Serper ", quality_hint="isz:lt"
        )
        assert request.orientation is Orientation.PORTRAIT
        assert request.count == 20
        assert request.start == 21
        assert request.provider_hint == "serper"
        assert request.quality_hint == "isz:lt"

    def test_unknown_orientation(self):
        with pytest.raises(InvalidParameterError) as exc_info:
            build_search_request("sea", orientation="diagonal")
        assert exc_info.value.param_name == "orientation"

    def test_non_integer_count(self):
        with pytest.raises(InvalidParameterError, match="count"):
            build_search_request("sea", count="ten")

    def test_boolean_count_rejected(self):
        with pytest.raises(InvalidParameterError):
            build_search_request("sea", count=True)


class TestValidateSearchRequest:
    def test_valid_request_passes(self):
        validate_search_request(SearchRequest(query="mountains"), max_count=10)

    @pytest.mark.parametrize("query", ["", "   "])
    def test_empty_query(self, query):
        with pytest.raises(InvalidQueryError, match="required"):
            validate_search_request(SearchRequest(query=query))

    def test_overlong_query(self):
        with pytest.raises(InvalidQueryError, match="200"):
            validate_search_request(SearchRequest(query="x" * 201))

    def test_query_at_limit(self):
        validate_search_request(SearchRequest(query="x" * 200))

    @pytest.mark.parametrize("count", [0, -1])
    def test_non_positive_count(self, count):
        with pytest.raises(InvalidParameterError) as exc_info:
            validate_search_request(SearchRequest(query="sea", count=count))
        assert exc_info.value.param_name == "count"

    def test_count_above_provider_bound(self):
        with pytest.raises(InvalidParameterError, match="1-10"):
            validate_search_request(SearchRequest(query="sea", count=11), max_count=10)

    @pytest.mark.parametrize("start", [0, -5])
    def test_non_positive_start(self, start):
        with pytest.raises(InvalidParameterError) as exc_info:
            validate_search_request(SearchRequest(query="sea", start=start))
        assert exc_info.value.param_name == "start"

    def test_plain_string_orientation_accepted(self):
        request = SearchRequest(query="sea", orientation="Landscape")  # type: ignore[arg-type]
        validate_search_request(request)
        assert request.orientation is Orientation.LANDSCAPE

    def test_none_orientation_means_unset(self):
        assert SearchRequest(query="sea", orientation=None).orientation is Orientation.UNSET  # type: ignore[arg-type]

    def test_unknown_string_orientation_rejected(self):
        with pytest.raises(InvalidParameterError) as exc_info:
            validate_search_request(SearchRequest(query="sea", orientation="diagonal"))  # type: ignore[arg-type]
        assert exc_info.value.param_name == "orientation"

    def test_errors_are_validation_errors(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_search_request(SearchRequest(query="sea", count=0))
        data = exc_info.value.to_dict()
        assert data["success"] is False
        assert data["category"] == "validation"
        assert data["retryable"] is False
