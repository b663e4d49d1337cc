"""Provider configuration types."""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from llm_bridge.errors import ConfigurationError


@dataclass(frozen=True)
class AdapterTimeout:
    """Deadlines, in seconds, applied to every vendor call."""

    connect: float = 10.0
    request: float = 60.0
    stream_read: float = 60.0


# Vendor-specific key variables consulted when LLM_BRIDGE_API_KEY is unset.
VENDOR_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "groq": "GROQ_API_KEY",
    "xai": "XAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "zai": "ZAI_API_KEY",
    "chutes": "CHUTES_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "kilocode": "KILOCODE_TOKEN",
    "requesty": "REQUESTY_API_KEY",
    "unbound": "UNBOUND_API_KEY",
    "litellm": "LITELLM_API_KEY",
    "vercel-ai-gateway": "AI_GATEWAY_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

_ENV_PREFIX = "LLM_BRIDGE_"


@dataclass(frozen=True)
class ProviderSettings:
    """Everything needed to build one provider.

    Only ``provider`` is required; each variant validates the fields it needs
    when it is built.
    """

    provider: str
    model_id: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    organization_id: str | None = None

    temperature: float | None = None
    max_tokens: int | None = None
    enable_reasoning_effort: bool = False
    reasoning_effort: str | None = None
    reasoning_budget: int | None = None

    use_prompt_cache: bool = False
    enable_grounding: bool = False
    enable_url_context: bool = False
    specific_provider: str | None = None
    """Upstream endpoint an OpenRouter-style router should pin requests to."""

    oauth_path: str | None = None
    """Credentials file for OAuth variants; ``~/`` is expanded."""
    project_id: str | None = None
    oauth_client_id: str | None = None
    oauth_client_secret: str | None = None

    timeout: AdapterTimeout = field(default_factory=AdapterTimeout)
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProviderSettings:
        """Build settings from a plain mapping, ignoring unknown keys."""
        if not data.get("provider"):
            raise ConfigurationError("Provider settings require a 'provider' name")
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        timeout = values.get("timeout")
        if isinstance(timeout, Mapping):
            values["timeout"] = AdapterTimeout(**timeout)
        return cls(**values)

    @classmethod
    def from_env(
        cls,
        provider: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> ProviderSettings:
        """Build settings from ``LLM_BRIDGE_*`` environment variables.

        The API key falls back to the vendor's conventional variable
        (``OPENROUTER_API_KEY``, ``GEMINI_API_KEY``, ...).
        """
        env = os.environ if environ is None else environ
        name = provider or env.get(f"{_ENV_PREFIX}PROVIDER")
        if not name:
            raise ConfigurationError(
                f"No provider given and {_ENV_PREFIX}PROVIDER is not set"
            )

        def get(key: str) -> str | None:
            return env.get(f"{_ENV_PREFIX}{key}") or None

        api_key = get("API_KEY")
        if api_key is None and name in VENDOR_KEY_ENV:
            api_key = env.get(VENDOR_KEY_ENV[name]) or None

        data: dict[str, Any] = {
            "provider": name,
            "model_id": get("MODEL"),
            "api_key": api_key,
            "base_url": get("BASE_URL"),
            "organization_id": get("ORGANIZATION_ID"),
            "oauth_path": get("OAUTH_PATH"),
            "project_id": get("PROJECT_ID"),
            "oauth_client_id": get("OAUTH_CLIENT_ID"),
            "oauth_client_secret": get("OAUTH_CLIENT_SECRET"),
            "specific_provider": get("SPECIFIC_PROVIDER"),
            "reasoning_effort": get("REASONING_EFFORT"),
        }
        try:
            if get("TEMPERATURE") is not None:
                data["temperature"] = float(get("TEMPERATURE"))
            if get("MAX_TOKENS") is not None:
                data["max_tokens"] = int(get("MAX_TOKENS"))
            if get("REASONING_BUDGET") is not None:
                data["reasoning_budget"] = int(get("REASONING_BUDGET"))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}", cause=exc) from exc
        for flag in ("USE_PROMPT_CACHE", "ENABLE_GROUNDING", "ENABLE_REASONING_EFFORT"):
            if get(flag) is not None:
                data[flag.lower()] = get(flag).lower() in ("1", "true", "yes", "on")
        return cls.from_mapping(data)

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(f"Provider '{self.provider}' requires an API key")
        return self.api_key
