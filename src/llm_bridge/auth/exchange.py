"""Refresh-token exchanges for the OAuth-gated vendors."""
from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Protocol

from llm_bridge._http import HttpClient
from llm_bridge.auth.credentials import Credentials
from llm_bridge.errors import AuthRefreshError, ConfigurationError


class TokenExchange(Protocol):
    """Turns expiring credentials into fresh ones."""

    def __call__(self, credentials: Credentials) -> Credentials: ...


class RefreshTokenExchange:
    """Standard ``grant_type=refresh_token`` exchange against a token endpoint."""

    def __init__(
        self,
        http: HttpClient,
        token_url: str,
        client_id: str,
        client_secret: str | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._http = http
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._clock = clock

    def __call__(self, credentials: Credentials) -> Credentials:
        if not credentials.refresh_token:
            raise AuthRefreshError("No refresh token available; sign in again")

        form = {
            "grant_type": "refresh_token",
            "refresh_token": credentials.refresh_token,
            "client_id": self._client_id,
        }
        if self._client_secret:
            form["client_secret"] = self._client_secret

        body: Any = self._http.post_form(
            self._token_url, form, headers={"Accept": "application/json"}
        ).body
        if not isinstance(body, dict):
            raise AuthRefreshError("Token endpoint returned a non-JSON response")
        if body.get("error"):
            detail = body.get("error_description") or body["error"]
            raise AuthRefreshError(f"Token refresh rejected: {detail}")
        try:
            return credentials.refreshed(body, self._clock())
        except ValueError as exc:
            raise AuthRefreshError(f"Malformed token response: {exc}", cause=exc) from exc


QWEN_TOKEN_URL = "https://chat.qwen.ai/api/v1/oauth2/token"
QWEN_CLIENT_ID = "f0304373b74a44d2b584a3fb70ca9e56"

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


def qwen_exchange(http: HttpClient, **kwargs: Any) -> RefreshTokenExchange:
    """Exchange used by Qwen Code (public client, no secret)."""
    return RefreshTokenExchange(http, QWEN_TOKEN_URL, QWEN_CLIENT_ID, **kwargs)


def google_exchange(
    http: HttpClient,
    client_id: str | None,
    client_secret: str | None,
    **kwargs: Any,
) -> RefreshTokenExchange:
    """Exchange used by the Gemini CLI credentials.

    The OAuth client is the one that issued the stored refresh token, so it
    must be configured to match the CLI that signed in.
    """
    if not client_id:
        raise ConfigurationError("Gemini CLI requires oauth_client_id to refresh tokens")
    return RefreshTokenExchange(http, GOOGLE_TOKEN_URL, client_id, client_secret, **kwargs)
