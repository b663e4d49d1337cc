"""Error hierarchy for llm_bridge."""
from __future__ import annotations

import re
from typing import Any

_SECRET_PATTERNS = (
    (re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._~+/=-]+"), r"\1[REDACTED]"),
    (re.compile(r"(?i)\b((?:api[_-]?key|access_token|refresh_token|key)[\"']?\s*[=:]\s*[\"']?)[^\s\"'&,}]+"), r"\1[REDACTED]"),
    (re.compile(r"\bsk-[A-Za-z0-9_-]{8,}"), "[REDACTED]"),
    (re.compile(r"\bAIza[0-9A-Za-z_-]{20,}"), "[REDACTED]"),
)


def redact_secrets(text: str) -> str:
    """Mask bearer tokens and API keys that may appear in vendor messages."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SDKError(Exception):
    """Base error for all llm_bridge errors."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(redact_secrets(message))
        self.cause = cause


class ProviderError(SDKError):
    """Error reported by a vendor API."""

    def __init__(
        self,
        message: str,
        *,
        provider: str = "",
        status_code: int | None = None,
        error_code: str | None = None,
        retryable: bool = False,
        retry_after: float | None = None,
        raw: Any = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.provider = provider
        self.status_code = status_code
        self.error_code = error_code
        self.retryable = retryable
        self.retry_after = retry_after
        self.raw = raw


# ---------------------------------------------------------------------------
# Status-specific provider errors
# ---------------------------------------------------------------------------


class AuthenticationError(ProviderError):
    """The vendor rejected the credentials (HTTP 401)."""


class AccessDeniedError(ProviderError):
    """The credentials lack permission for the resource (HTTP 403)."""


class NotFoundError(ProviderError):
    """Unknown model or endpoint (HTTP 404)."""


class BadRequestError(ProviderError):
    """The vendor refused the request body (HTTP 400/422)."""


class RateLimitError(ProviderError):
    """Rate limit or quota exhausted (HTTP 429)."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class ServerError(ProviderError):
    """Vendor-side failure (HTTP 5xx)."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


# ---------------------------------------------------------------------------
# Non-provider errors
# ---------------------------------------------------------------------------


class ConfigurationError(SDKError):
    """Invalid or incomplete provider settings."""


class UnsupportedOperationError(SDKError):
    """The provider does not advertise the capability that was invoked."""


class AuthLoadError(SDKError):
    """The credentials file is missing or unreadable."""


class AuthRefreshError(SDKError):
    """The token exchange failed."""


class RequestTimeoutError(SDKError, TimeoutError):
    """A connect, request or stream-read deadline elapsed."""


class NetworkError(SDKError):
    """The connection could not be established or broke mid-request."""


class VendorStreamError(SDKError):
    """The vendor reported an error inside an otherwise healthy stream."""


class MaxTokensReachedError(VendorStreamError):
    """The response was cut off at the output token limit."""


class StreamInterruptedError(VendorStreamError):
    """The connection dropped after the stream had started."""


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------


def error_from_status_code(
    status_code: int,
    message: str,
    *,
    provider: str = "",
    error_code: str | None = None,
    raw: Any = None,
    retry_after: float | None = None,
) -> ProviderError:
    """Map an HTTP status code to the matching error type."""
    common = dict(
        provider=provider,
        status_code=status_code,
        error_code=error_code,
        raw=raw,
        retry_after=retry_after,
    )

    if status_code in (400, 422):
        return BadRequestError(message, **common)
    if status_code == 401:
        return AuthenticationError(message, **common)
    if status_code == 403:
        return AccessDeniedError(message, **common)
    if status_code == 404:
        return NotFoundError(message, **common)
    if status_code == 429:
        return RateLimitError(message, **common)
    if 500 <= status_code <= 599:
        return ServerError(message, **common)
    return ProviderError(message, **common)
