"""
Search engine settings.

All values can be supplied through environment variables; provider
credentials use the names of the upstream services.

    PARALLAX_SELECTION_MODE        "priority" (default) or "forced"
    PARALLAX_FORCED_PROVIDER       provider key used in forced mode
    PARALLAX_FALLBACK_TO_PRIORITY  "true" (default) / "false"
    PARALLAX_PRIORITY              comma-separated provider keys
    PARALLAX_AGGREGATE             "true" to aggregate across providers by default
    PARALLAX_AGGREGATE_PROVIDERS   comma-separated keys, in dedup order
    PARALLAX_PAGE_COUNT            pages fetched from paged providers when aggregating
    PARALLAX_PROVIDER_TIMEOUT      seconds per provider call
    PARALLAX_DATABASE_PATH         sqlite path for aggregated results
    GOOGLE_SEARCH_API_KEY / GOOGLE_SEARCH_ENGINE_ID / SERPER_API_KEY / BRAVE_SEARCH_API_KEY
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal

ONE_WEEK_SECONDS = 7 * 24 * 60 * 60

DEFAULT_PRIORITY: tuple[str, ...] = ("serper", "google", "brave", "mock")
DEFAULT_AGGREGATE_PROVIDERS: tuple[str, ...] = ("google", "brave", "serper")

SelectionMode = Literal["priority", "forced"]


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    return tuple(part.strip().lower() for part in value.split(",") if part.strip())


def _env_str(name: str) -> str | None:
    return os.environ.get(name, "").strip() or None


@dataclass(frozen=True)
class ProviderCredentials:
    """Upstream API credentials; a provider is registered only when its credentials exist."""

    google_api_key: str | None = None
    google_engine_id: str | None = None
    serper_api_key: str | None = None
    brave_api_key: str | None = None

    @classmethod
    def from_env(cls) -> ProviderCredentials:
        return cls(
            google_api_key=_env_str("GOOGLE_SEARCH_API_KEY"),
            google_engine_id=_env_str("GOOGLE_SEARCH_ENGINE_ID"),
            serper_api_key=_env_str("SERPER_API_KEY"),
            brave_api_key=_env_str("BRAVE_SEARCH_API_KEY"),
        )


@dataclass(frozen=True)
class SearchSettings:
    """Engine-wide settings, constructed once per process."""

    # Engine selection
    selection_mode: SelectionMode = "priority"
    forced_provider: str | None = None
    fallback_to_priority: bool = True
    priority: tuple[str, ...] = DEFAULT_PRIORITY

    # Aggregation
    aggregate: bool = False
    aggregate_providers: tuple[str, ...] = DEFAULT_AGGREGATE_PROVIDERS
    aggregation_page_count: int = 5
    provider_timeout: float = 15.0

    # Caching
    search_cache_ttl: int = ONE_WEEK_SECONDS
    raw_cache_ttl: int = ONE_WEEK_SECONDS
    aggregated_ttl: int = ONE_WEEK_SECONDS
    cache_sweep_threshold: int = 100
    raw_cache_sweep_threshold: int = 50
    cache_max_size: int = 10_000
    database_path: str = ":memory:"

    # Validation
    max_query_length: int = 200

    credentials: ProviderCredentials = field(default_factory=ProviderCredentials)

    @classmethod
    def from_env(cls) -> SearchSettings:
        """Build settings from the process environment."""
        mode = (_env_str("PARALLAX_SELECTION_MODE") or "priority").lower()
        return cls(
            selection_mode="forced" if mode == "forced" else "priority",
            forced_provider=(_env_str("PARALLAX_FORCED_PROVIDER") or "").lower() or None,
            fallback_to_priority=_env_bool("PARALLAX_FALLBACK_TO_PRIORITY", True),
            priority=_env_list("PARALLAX_PRIORITY", DEFAULT_PRIORITY),
            aggregate=_env_bool("PARALLAX_AGGREGATE", False),
            aggregate_providers=_env_list("PARALLAX_AGGREGATE_PROVIDERS", DEFAULT_AGGREGATE_PROVIDERS),
            aggregation_page_count=int(os.environ.get("PARALLAX_PAGE_COUNT", "5")),
            provider_timeout=float(os.environ.get("PARALLAX_PROVIDER_TIMEOUT", "15")),
            database_path=_env_str("PARALLAX_DATABASE_PATH") or ":memory:",
            credentials=ProviderCredentials.from_env(),
        )
