"""Tests for engine selection."""

import pytest
from conftest import StubBulkProvider, StubPagedProvider

from parallax_search.application.search import MAX_AGGREGATED_COUNT, EngineSelector
from parallax_search.core.config import SearchSettings
from parallax_search.core.exceptions import ConfigurationError, InvalidParameterError
from parallax_search.infrastructure.providers import MockImageProvider


@pytest.fixture
def registry():
    return {
        "google": StubPagedProvider("google"),
        "serper": StubBulkProvider("serper"),
        "mock": MockImageProvider(),
    }


class TestPriorityMode:
    def test_first_registered_in_priority_order(self, registry):
        selector = EngineSelector(registry, SearchSettings(priority=("brave", "serper", "google", "mock")))
        assert selector.default.key == "serper"
        assert selector.default.is_aggregated is False
        assert selector.mode == "priority"

    def test_falls_through_to_mock(self):
        selector = EngineSelector({"mock": MockImageProvider()}, SearchSettings())
        assert selector.default.key == "mock"
        assert selector.default.label == "Mock Search Engine (mock)"

    def test_nothing_from_priority_registered(self, registry):
        with pytest.raises(ConfigurationError):
            EngineSelector(registry, SearchSettings(priority=("brave",)))

    def test_no_providers_at_all(self):
        with pytest.raises(ConfigurationError, match="No search providers"):
            EngineSelector({}, SearchSettings())


class TestForcedMode:
    def test_forced_provider(self, registry):
        settings = SearchSettings(selection_mode="forced", forced_provider="google")
        selector = EngineSelector(registry, settings)
        assert selector.default.key == "google"
        assert selector.mode == "forced"

    def test_missing_forced_falls_back_to_priority(self, registry):
        settings = SearchSettings(selection_mode="forced", forced_provider="brave", fallback_to_priority=True)
        selector = EngineSelector(registry, settings)
        assert selector.default.key == "serper"
        assert selector.mode == "priority"

    def test_missing_forced_without_fallback_fails(self, registry):
        settings = SearchSettings(selection_mode="forced", forced_provider="brave", fallback_to_priority=False)
        with pytest.raises(ConfigurationError) as exc_info:
            EngineSelector(registry, settings)
        assert exc_info.value.context.provider == "brave"


class TestAggregation:
    def test_aggregate_default(self, registry):
        settings = SearchSettings(aggregate=True, aggregate_providers=("google", "brave", "serper"))
        selector = EngineSelector(registry, settings)

        assert selector.default.is_aggregated is True
        assert selector.default.key == "aggregated"
        assert selector.default.label == "aggregated"
        assert [p.name for p in selector.default.aggregated_providers] == ["google", "serper"]
        assert selector.default.max_count == MAX_AGGREGATED_COUNT

    def test_aggregate_without_registered_providers(self):
        settings = SearchSettings(aggregate=True, aggregate_providers=("google",))
        with pytest.raises(ConfigurationError):
            EngineSelector({"mock": MockImageProvider()}, settings)


class TestResolve:
    def test_no_hint_returns_default(self, registry):
        selector = EngineSelector(registry, SearchSettings())
        assert selector.resolve(None) is selector.default

    def test_hint_overrides_for_one_call(self, registry):
        selector = EngineSelector(registry, SearchSettings())
        assert selector.resolve("Google").key == "google"
        assert selector.resolve(None).key == "serper"

    def test_aggregated_hint(self, registry):
        selector = EngineSelector(registry, SearchSettings(aggregate_providers=("serper", "google")))
        selection = selector.resolve("aggregated")
        assert selection.is_aggregated is True
        assert [p.name for p in selection.aggregated_providers] == ["serper", "google"]

    def test_unknown_hint(self, registry):
        selector = EngineSelector(registry, SearchSettings())
        with pytest.raises(InvalidParameterError) as exc_info:
            selector.resolve("bing")
        assert exc_info.value.param_name == "provider"

    def test_aggregated_hint_without_providers(self):
        selector = EngineSelector({"mock": MockImageProvider()}, SearchSettings())
        with pytest.raises(InvalidParameterError):
            selector.resolve("aggregated")

    def test_max_count_follows_provider(self, registry):
        selector = EngineSelector(registry, SearchSettings())
        assert selector.resolve("google").max_count == 10
        assert selector.resolve("serper").max_count == 100
