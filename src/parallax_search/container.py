"""
Application DI Container (dependency-injector).

Centralizes creation and lifecycle of the search engine's shared state:
one response cache, one aggregated result store and one provider registry
per process, shared by reference. Nothing is a hidden module-level static.

Usage::

    from parallax_search.container import ApplicationContainer

    container = ApplicationContainer()
    service = container.search_service()

    # In tests, override any provider:
    container.settings.override(providers.Object(SearchSettings(aggregate=True)))
    container.provider_registry.override(providers.Object({"mock": MockImageProvider()}))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dependency_injector import containers, providers

from parallax_search.core.config import SearchSettings

if TYPE_CHECKING:
    from parallax_search.application.search import AggregatedSearchService, EngineSelector
    from parallax_search.infrastructure.cache import BaseCacheStore
    from parallax_search.infrastructure.persistence import BaseAggregatedResultStore
    from parallax_search.infrastructure.providers import ImageSearchProvider

logger = logging.getLogger(__name__)


def _create_cache_store(settings: SearchSettings) -> object:
    """Lazy factory for the response cache."""
    from parallax_search.infrastructure.cache import InMemoryCacheStore

    return InMemoryCacheStore(
        max_size=settings.cache_max_size,
        sweep_threshold=settings.cache_sweep_threshold,
    )


def _create_result_store(settings: SearchSettings) -> object:
    """Lazy factory for the aggregated result store."""
    from parallax_search.infrastructure.persistence import SqliteAggregatedResultStore

    return SqliteAggregatedResultStore(settings.database_path)


def _create_provider_registry(settings: SearchSettings) -> object:
    """Lazy factory for the provider adapters."""
    from parallax_search.infrastructure.providers import build_provider_registry

    return build_provider_registry(settings)


def _create_selector(registry: dict[str, ImageSearchProvider], settings: SearchSettings) -> object:
    """Lazy factory for EngineSelector (fails fast on bad configuration)."""
    from parallax_search.application.search import EngineSelector

    return EngineSelector(registry, settings)


def _create_aggregated_service(store: BaseAggregatedResultStore, settings: SearchSettings) -> object:
    from parallax_search.application.search import AggregatedSearchService

    return AggregatedSearchService(store, settings)


def _create_search_service(
    selector: EngineSelector,
    cache: BaseCacheStore,
    aggregated: AggregatedSearchService,
    settings: SearchSettings,
) -> object:
    from parallax_search.application.search import UnifiedSearchService

    return UnifiedSearchService(selector, cache, aggregated, settings)


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for Parallax Search.

    Manages creation and lifecycle of all core services:
    - ``settings``: SearchSettings (environment by default)
    - ``cache_store``: response cache shared by all requests
    - ``result_store``: durable aggregated result sets
    - ``provider_registry``: provider adapters keyed by name
    - ``selector``: engine selection, computed once
    - ``aggregated_service`` / ``search_service``: application services
    """

    settings = providers.Singleton(SearchSettings.from_env)

    cache_store = providers.Singleton(_create_cache_store, settings=settings)

    result_store = providers.Singleton(_create_result_store, settings=settings)

    provider_registry = providers.Singleton(_create_provider_registry, settings=settings)

    selector = providers.Singleton(
        _create_selector,
        registry=provider_registry,
        settings=settings,
    )

    aggregated_service = providers.Singleton(
        _create_aggregated_service,
        store=result_store,
        settings=settings,
    )

    search_service = providers.Singleton(
        _create_search_service,
        selector=selector,
        cache=cache_store,
        aggregated=aggregated_service,
        settings=settings,
    )


__all__ = ["ApplicationContainer"]
