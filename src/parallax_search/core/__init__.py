"""
Core module for Parallax Search.

Provides:
- Unified exception hierarchy
- Async utilities for provider calls
- Engine settings
"""

from .async_utils import call_with_timeout, gather_with_errors
from .config import ONE_WEEK_SECONDS, ProviderCredentials, SearchSettings
from .exceptions import (
    AllProvidersFailedError,
    CacheError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    InvalidParameterError,
    InvalidQueryError,
    ParallaxSearchError,
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
    ValidationError,
)

__all__ = [
    "ONE_WEEK_SECONDS",
    # Errors
    "AllProvidersFailedError",
    "CacheError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "InvalidParameterError",
    "InvalidQueryError",
    "ParallaxSearchError",
    "ProviderError",
    "ProviderResponseError",
    "ProviderTimeoutError",
    "ValidationError",
    # Settings
    "ProviderCredentials",
    "SearchSettings",
    # Async
    "call_with_timeout",
    "gather_with_errors",
]
