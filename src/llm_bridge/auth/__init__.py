"""Credential loading, refresh and request authentication."""
from __future__ import annotations

from llm_bridge.auth.credentials import (
    EXPIRY_MARGIN_SECONDS,
    GEMINI_CREDENTIALS_PATH,
    QWEN_CREDENTIALS_PATH,
    CredentialFile,
    Credentials,
)
from llm_bridge.auth.exchange import RefreshTokenExchange, TokenExchange, google_exchange, qwen_exchange
from llm_bridge.auth.manager import CredentialManager, CredentialState
from llm_bridge.auth.strategies import AuthStrategy, OAuthAuth, RequestAuth, StaticKeyAuth

__all__ = [
    "EXPIRY_MARGIN_SECONDS",
    "GEMINI_CREDENTIALS_PATH",
    "QWEN_CREDENTIALS_PATH",
    "CredentialFile",
    "Credentials",
    "RefreshTokenExchange",
    "TokenExchange",
    "google_exchange",
    "qwen_exchange",
    "CredentialManager",
    "CredentialState",
    "AuthStrategy",
    "OAuthAuth",
    "RequestAuth",
    "StaticKeyAuth",
]
