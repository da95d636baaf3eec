"""
Base API Client - Common HTTP request pattern for search provider adapters.

Provides a reusable base class with:
- httpx.AsyncClient management (pooled connections, request timeout)
- Uniform mapping of transport failures onto the ProviderError hierarchy
- Consistent logging with provider identity

No retries are attempted: a failed call surfaces as a ProviderError and
the caller decides whether to exclude the provider.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from typing_extensions import Self

from parallax_search.core.exceptions import (
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
)

logger = logging.getLogger(__name__)

USER_AGENT = "ParallaxSearch/1.0"


class BaseAPIClient:
    """
    Base class for upstream search API clients.

    Subclasses set ``_service_name`` and call :meth:`_get_json`.

    Example:
        class MyClient(BaseAPIClient):
            _service_name = "myapi"

            def __init__(self):
                super().__init__(base_url="https://api.example.com")

            async def find(self, term: str) -> dict:
                return await self._get_json("/images", params={"q": term})

    Pass ``transport`` (e.g. ``httpx.MockTransport``) to stub the network.
    """

    _service_name: str = "api"

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 15.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize base client.

        Args:
            base_url: Base URL for the API (optional, can pass full URLs)
            timeout: Request timeout in seconds
            headers: Default headers for all requests
            transport: Optional custom transport (tests)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT, **(headers or {})},
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
            transport=transport,
        )

    def _build_url(self, url: str) -> str:
        """Build full URL from path or full URL."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self._base_url}{url}"

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        GET *url* and return the response, raising on any failure.

        Raises:
            ProviderTimeoutError: the request timed out
            ProviderResponseError: non-success HTTP status
            ProviderError: connection-level failure
        """
        full_url = self._build_url(url)
        try:
            response = await self._client.get(full_url, params=params, headers=headers or {})
        except httpx.TimeoutException:
            logger.warning(f"{self._service_name}: request timed out after {self._timeout:.1f}s")
            raise ProviderTimeoutError(self._service_name, self._timeout) from None
        except httpx.RequestError as e:
            logger.warning(f"{self._service_name}: request failed: {e}")
            raise ProviderError(self._service_name, f"request failed: {e}") from e

        if response.is_error:
            logger.warning(f"{self._service_name} HTTP error {response.status_code}: {response.reason_phrase}")
            raise ProviderResponseError(
                self._service_name,
                self._error_message(response),
                status_code=response.status_code,
            )
        return response

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """GET *url* and parse a JSON object body."""
        response = await self._get(url, params=params, headers=headers)
        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderResponseError(self._service_name, f"malformed JSON payload: {e}") from e
        if not isinstance(payload, dict):
            raise ProviderResponseError(self._service_name, "unexpected payload shape (expected object)")
        return payload

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Best-effort error detail from an error response body."""
        try:
            body = response.json()
        except ValueError:
            return response.reason_phrase or "request failed"
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if body.get("message"):
                return str(body["message"])
        return response.reason_phrase or "request failed"

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
