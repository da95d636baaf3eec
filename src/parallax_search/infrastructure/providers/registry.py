"""
Provider registry: which adapters exist for the current credentials.

Google needs an API key and an engine id, Serper and Brave an API key.
The mock provider is always registered so the engine has an offline
fallback.
"""

from __future__ import annotations

import logging

from parallax_search.core.config import SearchSettings
from parallax_search.infrastructure.cache.raw_result_cache import RawResultCache

from .base import ImageSearchProvider
from .brave import BraveImageProvider
from .google import GoogleImageProvider
from .mock import MockImageProvider
from .serper import SerperImageProvider

logger = logging.getLogger(__name__)


def _raw_cache(name: str, settings: SearchSettings) -> RawResultCache:
    return RawResultCache(
        name,
        ttl_seconds=settings.raw_cache_ttl,
        sweep_threshold=settings.raw_cache_sweep_threshold,
    )


def build_provider_registry(settings: SearchSettings) -> dict[str, ImageSearchProvider]:
    """Instantiate every provider whose credentials are present, keyed by name."""
    creds = settings.credentials
    timeout = settings.provider_timeout
    registry: dict[str, ImageSearchProvider] = {}

    if creds.google_api_key and creds.google_engine_id:
        registry["google"] = GoogleImageProvider(creds.google_api_key, creds.google_engine_id, timeout=timeout)
    else:
        logger.warning("Google Search API credentials not found")

    if creds.serper_api_key:
        registry["serper"] = SerperImageProvider(
            creds.serper_api_key, timeout=timeout, raw_cache=_raw_cache("serper", settings)
        )
    else:
        logger.warning("Serper API key not found")

    if creds.brave_api_key:
        registry["brave"] = BraveImageProvider(
            creds.brave_api_key, timeout=timeout, raw_cache=_raw_cache("brave", settings)
        )
    else:
        logger.info("Brave Search API key not found")

    registry["mock"] = MockImageProvider()
    logger.info(f"Registered image providers: {', '.join(registry)}")
    return registry
