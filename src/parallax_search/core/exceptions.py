"""
Unified Exception Hierarchy for Parallax Search.

Exception Hierarchy:
    ParallaxSearchError (base)
    ├── ValidationError
    │   ├── InvalidQueryError
    │   └── InvalidParameterError
    ├── ProviderError
    │   ├── ProviderTimeoutError
    │   ├── ProviderResponseError
    │   └── AllProvidersFailedError
    ├── CacheError
    └── ConfigurationError

ValidationError is raised before any cache or provider access.
ProviderError is caught per provider during aggregation.
CacheError is always swallowed by the service layer (treated as a miss).
ConfigurationError is fatal at initialization only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = auto()      # Recoverable, request rejected
    ERROR = auto()        # Failed, may succeed later
    CRITICAL = auto()     # Cannot continue
    TRANSIENT = auto()    # Temporary upstream condition


class ErrorCategory(Enum):
    """Categories for error classification."""
    VALIDATION = "validation"
    PROVIDER = "provider"
    CACHE = "cache"
    CONFIGURATION = "config"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Rich context attached to an error."""
    provider: str | None = None
    operation: str | None = None
    input_value: Any = None
    suggestion: str | None = None
    related_errors: tuple[Exception, ...] = field(default_factory=tuple)
    metadata: dict[str, Any] = field(default_factory=dict)


class ParallaxSearchError(Exception):
    """
    Base exception for all Parallax Search errors.

    Provides:
    - Structured error context
    - Severity classification
    - JSON-friendly formatting for transports
    """

    __slots__ = ('context', 'severity', 'category', 'retryable')

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.PROVIDER,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "success": False,
            "error": str(self),
            "category": self.category.value,
            "severity": self.severity.name.lower(),
            "retryable": self.retryable,
        }
        if self.context.provider:
            result["provider"] = self.context.provider
        if self.context.suggestion:
            result["suggestion"] = self.context.suggestion
        return result


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(ParallaxSearchError):
    """Base class for request validation errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.VALIDATION,
            retryable=False,
        )


class InvalidQueryError(ValidationError):
    """Raised when the search query is empty or too long."""

    def __init__(
        self,
        query: str | None,
        reason: str = "Search query is required",
    ) -> None:
        ctx = ErrorContext(
            input_value=query,
            suggestion="Provide a non-empty query of at most 200 characters",
        )
        super().__init__(reason, context=ctx)


class InvalidParameterError(ValidationError):
    """Raised when a request parameter is out of range or unknown."""

    def __init__(
        self,
        param_name: str,
        value: Any,
        expected: str,
    ) -> None:
        ctx = ErrorContext(
            input_value=value,
            suggestion=f"Expected {expected}",
        )
        super().__init__(
            f"Invalid parameter '{param_name}': {value!r} (expected {expected})",
            context=ctx,
        )
        self.param_name = param_name


# =============================================================================
# Provider Errors
# =============================================================================

class ProviderError(ParallaxSearchError):
    """Raised when an upstream search provider fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        context: ErrorContext | None = None,
        retryable: bool = True,
    ) -> None:
        ctx = context or ErrorContext(provider=provider)
        super().__init__(
            f"{provider}: {message}",
            context=ctx,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.PROVIDER,
            retryable=retryable,
        )
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its time budget."""

    def __init__(self, provider: str, timeout: float) -> None:
        super().__init__(provider, f"timed out after {timeout:.1f}s")
        self.severity = ErrorSeverity.TRANSIENT
        self.timeout = timeout


class ProviderResponseError(ProviderError):
    """Raised for a non-success status or a malformed payload."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        detail = f"HTTP {status_code} {message}" if status_code else message
        super().__init__(provider, detail, retryable=status_code is None or status_code >= 500)
        self.status_code = status_code


class AllProvidersFailedError(ProviderError):
    """Raised when every enabled provider failed during one aggregation."""

    def __init__(self, errors: dict[str, Exception]) -> None:
        combined = "; ".join(f"{name}: {err}" for name, err in errors.items()) or "no providers answered"
        ctx = ErrorContext(
            operation="aggregate",
            related_errors=tuple(errors.values()),
            metadata={"providers": list(errors)},
        )
        ParallaxSearchError.__init__(
            self,
            f"All providers failed ({combined})",
            context=ctx,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.PROVIDER,
            retryable=True,
        )
        self.provider = "aggregated"
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["providers"] = {name: str(err) for name, err in self.errors.items()}
        return result


# =============================================================================
# Cache / Configuration Errors
# =============================================================================

class CacheError(ParallaxSearchError):
    """Raised by cache or result stores on backend or serialization failure."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
    ) -> None:
        super().__init__(
            message,
            context=ErrorContext(operation=operation),
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.CACHE,
            retryable=True,
        )


class ConfigurationError(ParallaxSearchError):
    """Raised for configuration problems detected at initialization."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )
