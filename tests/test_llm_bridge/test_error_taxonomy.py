"""Tests for the error hierarchy, status mapping and secret redaction."""
from __future__ import annotations

import pytest

from llm_bridge.errors import (
    AccessDeniedError,
    AuthenticationError,
    BadRequestError,
    MaxTokensReachedError,
    NotFoundError,
    ProviderError,
    RateLimitError,
    RequestTimeoutError,
    SDKError,
    ServerError,
    VendorStreamError,
    error_from_status_code,
    redact_secrets,
)


# ---------------------------------------------------------------------------
# Status mapping
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "status, expected",
    [
        (400, BadRequestError),
        (422, BadRequestError),
        (401, AuthenticationError),
        (403, AccessDeniedError),
        (404, NotFoundError),
        (429, RateLimitError),
        (500, ServerError),
        (503, ServerError),
    ],
)
def test_error_from_status_code(status: int, expected: type[ProviderError]) -> None:
    err = error_from_status_code(status, "boom", provider="groq")
    assert type(err) is expected
    assert err.status_code == status
    assert err.provider == "groq"


def test_unmapped_status_is_plain_provider_error() -> None:
    err = error_from_status_code(418, "teapot")
    assert type(err) is ProviderError


def test_retryable_defaults() -> None:
    assert error_from_status_code(429, "slow down").retryable is True
    assert error_from_status_code(502, "bad gateway").retryable is True
    assert error_from_status_code(401, "no").retryable is False


def test_retry_after_and_raw_are_kept() -> None:
    err = error_from_status_code(429, "slow", retry_after=2.5, raw={"error": "x"}, error_code="rate")
    assert err.retry_after == 2.5
    assert err.raw == {"error": "x"}
    assert err.error_code == "rate"


# ---------------------------------------------------------------------------
# Hierarchy
# ---------------------------------------------------------------------------


def test_timeout_is_distinct_and_builtin_timeout() -> None:
    err = RequestTimeoutError("deadline")
    assert isinstance(err, SDKError)
    assert isinstance(err, TimeoutError)
    assert not isinstance(err, ProviderError)


def test_max_tokens_is_vendor_stream_error() -> None:
    assert issubclass(MaxTokensReachedError, VendorStreamError)


def test_cause_is_recorded() -> None:
    cause = ValueError("inner")
    err = SDKError("outer", cause=cause)
    assert err.cause is cause


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------


class TestRedaction:
    def test_bearer_token(self) -> None:
        assert redact_secrets("Authorization: Bearer abc.def-123") == "Authorization: Bearer [REDACTED]"

    def test_query_parameter(self) -> None:
        assert redact_secrets("GET /models?key=AIzaSecretValue&alt=sse") == (
            "GET /models?key=[REDACTED]&alt=sse"
        )

    def test_json_field(self) -> None:
        assert "hunter2" not in redact_secrets('{"api_key": "hunter2"}')

    def test_openai_style_key(self) -> None:
        assert redact_secrets("Incorrect API key provided: sk-proj-abcdef123456") == (
            "Incorrect API key provided: [REDACTED]"
        )

    def test_google_key(self) -> None:
        assert "AIza" not in redact_secrets("bad key AIzaSyA12345678901234567890123")

    def test_unrelated_words_untouched(self) -> None:
        assert redact_secrets("monkey=banana") == "monkey=banana"

    def test_error_messages_are_redacted(self) -> None:
        err = AuthenticationError("token refresh_token=abc123 rejected", status_code=401)
        assert "abc123" not in str(err)
        assert "[REDACTED]" in str(err)
