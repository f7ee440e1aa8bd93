# codesync/core/http.py
"""
HTTP client factory and structured API errors.

Every external HTTP integration (embedding provider, GitHub) builds its
client here so that timeouts, headers and error mapping stay consistent.

Usage:
    from codesync.core.http import create_async_api_client, raise_for_status

    client = create_async_api_client(
        base_url="https://api.openai.com/v1",
        api_key=key,
        timeout_type="embedding",
    )
    response = await client.post("/embeddings", json=payload)
    raise_for_status(response, provider="openai", endpoint="/embeddings")

Tests pass `transport=httpx.MockTransport(handler)` through **kwargs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================


@dataclass
class APIError(Exception):
    """
    Structured API error with details.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code (None for connect/timeout failures)
        provider: API provider name (e.g., "openai", "github")
        endpoint: API endpoint that failed
        details: Additional error details from the API response
        original_error: The original exception that caused this error
    """

    message: str
    status_code: Optional[int] = None
    provider: Optional[str] = None
    endpoint: Optional[str] = None
    details: Optional[str] = None
    original_error: Optional[Exception] = None

    def __str__(self) -> str:
        parts = [self.message]

        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")

        if self.details:
            parts.append(f"- {self.details}")

        return " ".join(parts)

    @property
    def is_transient(self) -> bool:
        """Worth retrying: rate limit, server error, or no response at all."""
        if isinstance(self, RateLimitError):
            return True
        return self.status_code is None or self.status_code >= 500


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded."""

    pass


class AuthenticationError(APIError):
    """Raised when API authentication fails."""

    pass


class NotFoundError(APIError):
    """Raised when the requested resource doesn't exist."""

    pass


# =============================================================================
# Default Configuration
# =============================================================================

DEFAULT_TIMEOUTS = {
    "default": 30.0,
    "embedding": 30.0,
    "repository": 60.0,
    "health_check": 5.0,
}

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


# =============================================================================
# Client Factories
# =============================================================================


def _build_headers(
    api_key: Optional[str],
    headers: Optional[Dict[str, str]],
    auth_header: str,
    auth_scheme: str,
) -> Dict[str, str]:
    final_headers = dict(DEFAULT_HEADERS)

    if api_key:
        final_headers[auth_header] = f"{auth_scheme} {api_key}"

    if headers:
        final_headers.update(headers)

    return final_headers


def create_async_api_client(
    base_url: str,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
    timeout_type: str = "default",
    headers: Optional[Dict[str, str]] = None,
    auth_header: str = "Authorization",
    auth_scheme: str = "Bearer",
    **kwargs: Any,
) -> httpx.AsyncClient:
    """
    Create a configured async HTTP client.

    Args:
        base_url: Base URL for the API
        api_key: API key for authentication (optional)
        timeout: Request timeout in seconds (or use timeout_type)
        timeout_type: Preset timeout type ("default", "embedding", "repository", ...)
        headers: Additional headers to include
        auth_header: Header name for authentication
        auth_scheme: Authentication scheme
        **kwargs: Additional arguments passed to httpx.AsyncClient
    """
    if timeout is None:
        timeout = DEFAULT_TIMEOUTS.get(timeout_type, DEFAULT_TIMEOUTS["default"])

    client = httpx.AsyncClient(
        base_url=base_url,
        headers=_build_headers(api_key, headers, auth_header, auth_scheme),
        timeout=timeout,
        **kwargs,
    )

    logger.debug(f"Created async HTTP client for {base_url} (timeout={timeout}s)")

    return client


# =============================================================================
# Error Handling
# =============================================================================


def handle_api_error(
    exc: Exception,
    provider: str = "unknown",
    endpoint: str = "",
) -> APIError:
    """
    Convert an httpx exception to a structured APIError.

    Example:
        try:
            response = await client.post("/embeddings", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise handle_api_error(exc, provider="openai", endpoint="/embeddings")
    """
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code

        details = None
        try:
            error_data = exc.response.json()
            error_field = error_data.get("error")
            if isinstance(error_field, dict):
                details = error_field.get("message")
            details = details or error_data.get("message") or (
                error_field if isinstance(error_field, str) else None
            )
        except ValueError:
            details = exc.response.text[:200] if exc.response.text else None

        error_cls = {
            401: AuthenticationError,
            403: AuthenticationError,
            404: NotFoundError,
            429: RateLimitError,
        }.get(status_code, APIError)

        message = {
            AuthenticationError: f"{provider} authentication failed",
            NotFoundError: f"{provider} resource not found",
            RateLimitError: f"{provider} rate limit exceeded",
        }.get(error_cls, f"{provider} API request failed")

        return error_cls(
            message=message,
            status_code=status_code,
            provider=provider,
            endpoint=endpoint,
            details=details,
            original_error=exc,
        )

    if isinstance(exc, httpx.ConnectError):
        return APIError(
            message=f"Failed to connect to {provider}",
            provider=provider,
            endpoint=endpoint,
            details=str(exc),
            original_error=exc,
        )

    if isinstance(exc, httpx.TimeoutException):
        return APIError(
            message=f"{provider} request timed out",
            provider=provider,
            endpoint=endpoint,
            details="Consider increasing the timeout for this operation",
            original_error=exc,
        )

    return APIError(
        message=f"{provider} request failed: {exc}",
        provider=provider,
        endpoint=endpoint,
        original_error=exc,
    )


def raise_for_status(
    response: httpx.Response,
    provider: str = "unknown",
    endpoint: str = "",
) -> None:
    """
    Check response status and raise the matching APIError if it failed.

    Raises:
        APIError: If the response indicates an error
    """
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise handle_api_error(exc, provider=provider, endpoint=endpoint) from exc


__all__ = [
    "APIError",
    "AuthenticationError",
    "DEFAULT_TIMEOUTS",
    "NotFoundError",
    "RateLimitError",
    "create_async_api_client",
    "handle_api_error",
    "raise_for_status",
]
