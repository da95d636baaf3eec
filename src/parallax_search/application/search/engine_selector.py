"""
Engine Selection

Decides which provider(s) answer a request.

Modes (computed once, at construction):
- forced: use ``forced_provider``; when it is not registered, fall back to
  priority mode (``fallback_to_priority=True``) or fail at startup
- priority: first registered name in the configured ``priority`` list

With ``aggregate=True`` the default becomes multi-provider aggregation
over ``aggregate_providers``, whose order is also the dedup order.

A per-request provider hint (a provider key, or ``"aggregated"``)
bypasses both modes for that single call.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from parallax_search.core.config import SearchSettings
from parallax_search.core.exceptions import ConfigurationError, ErrorContext, InvalidParameterError
from parallax_search.domain.entities import AGGREGATED_ENGINE
from parallax_search.infrastructure.providers.base import ImageSearchProvider

logger = logging.getLogger(__name__)

#: Upper bound on ``count`` for aggregated requests (one bulk batch)
MAX_AGGREGATED_COUNT = 100


@dataclass(frozen=True)
class EngineSelection:
    """Outcome of selection for one request."""

    provider: ImageSearchProvider | None = None
    aggregated_providers: tuple[ImageSearchProvider, ...] = field(default_factory=tuple)

    @property
    def is_aggregated(self) -> bool:
        return self.provider is None

    @property
    def key(self) -> str:
        return AGGREGATED_ENGINE if self.provider is None else self.provider.name

    @property
    def label(self) -> str:
        """Engine label reported in search info, e.g. ``"Serper Images Search (serper)"``."""
        if self.provider is None:
            return AGGREGATED_ENGINE
        return f"{self.provider.label} ({self.provider.name})"

    @property
    def max_count(self) -> int:
        if self.provider is None:
            return MAX_AGGREGATED_COUNT
        return self.provider.max_count


class EngineSelector:
    """
    Registry of provider adapters plus the default engine selection.

    Example:
        selector = EngineSelector({"serper": serper, "mock": mock}, settings)
        selector.default.key            # "serper"
        selector.resolve("mock").key    # "mock" for this call only

    Raises:
        ConfigurationError: no providers registered, forced provider missing
            without fallback, or nothing from the configured lists registered
    """

    def __init__(self, providers: Mapping[str, ImageSearchProvider], settings: SearchSettings) -> None:
        if not providers:
            raise ConfigurationError("No search providers are configured")

        self._providers: dict[str, ImageSearchProvider] = dict(providers)
        self._settings = settings
        self._aggregated = tuple(
            self._providers[name] for name in settings.aggregate_providers if name in self._providers
        )
        self._mode = settings.selection_mode

        single = self._select_single()
        if settings.aggregate:
            if not self._aggregated:
                raise ConfigurationError(
                    "Aggregation is enabled but none of its providers are registered",
                    context=ErrorContext(
                        metadata={
                            "aggregate_providers": list(settings.aggregate_providers),
                            "registered": list(self._providers),
                        },
                    ),
                )
            self._default = EngineSelection(aggregated_providers=self._aggregated)
        else:
            self._default = EngineSelection(provider=single)

        logger.info(
            f"Engine selection: mode={self._mode}, default={self._default.key}, "
            f"registered={list(self._providers)}"
        )

    def _select_single(self) -> ImageSearchProvider:
        if self._settings.selection_mode == "forced":
            name = self._settings.forced_provider
            if name and name in self._providers:
                return self._providers[name]
            if not self._settings.fallback_to_priority:
                raise ConfigurationError(
                    f"Forced provider {name!r} is not registered",
                    context=ErrorContext(
                        provider=name,
                        suggestion=f"Register it or choose one of {sorted(self._providers)}",
                    ),
                )
            logger.warning(f"Forced provider {name!r} is not registered, falling back to priority order")
            self._mode = "priority"

        for name in self._settings.priority:
            if name in self._providers:
                return self._providers[name]

        raise ConfigurationError(
            "None of the priority providers are registered",
            context=ErrorContext(
                metadata={"priority": list(self._settings.priority), "registered": list(self._providers)},
            ),
        )

    @property
    def mode(self) -> str:
        """Effective single-provider mode after any fallback."""
        return self._mode

    @property
    def default(self) -> EngineSelection:
        return self._default

    @property
    def providers(self) -> dict[str, ImageSearchProvider]:
        return dict(self._providers)

    @property
    def aggregated_providers(self) -> tuple[ImageSearchProvider, ...]:
        return self._aggregated

    def resolve(self, provider_hint: str | None = None) -> EngineSelection:
        """
        Selection for one request.

        Raises:
            InvalidParameterError: the hint names no registered provider
        """
        if not provider_hint:
            return self._default

        hint = provider_hint.strip().lower()
        if hint == AGGREGATED_ENGINE:
            if not self._aggregated:
                raise InvalidParameterError("provider", provider_hint, "a registered provider")
            return EngineSelection(aggregated_providers=self._aggregated)

        provider = self._providers.get(hint)
        if provider is None:
            raise InvalidParameterError(
                "provider",
                provider_hint,
                f"one of {', '.join([*self._providers, AGGREGATED_ENGINE])}",
            )
        return EngineSelection(provider=provider)
