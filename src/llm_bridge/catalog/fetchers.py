"""Catalog fetchers for router-style vendors.

Each fetcher takes an :class:`~llm_bridge._http.HttpClient` already pointed
at the vendor and authenticated, and returns ``{model_id: ModelInfo}``.
Entries that fail to parse are logged and skipped; transport errors
propagate so the catalog cache can fall back.
"""
from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable, Iterable
from typing import Any

from llm_bridge._http import HttpClient
from llm_bridge.catalog._data import (
    LOCAL_MODEL_DEFAULT_INFO,
    OPENROUTER_COMPUTER_USE_MODELS,
    OPENROUTER_REASONING_BUDGET_MODELS,
    VERCEL_AI_GATEWAY_PROMPT_CACHING_MODELS,
)
from llm_bridge.catalog.types import ModelInfo

logger = logging.getLogger(__name__)

OLLAMA_DEFAULT_CONTEXT = 4096
# Ollama reports this num_ctx for models that never configured one.
_OLLAMA_BOGUS_NUM_CTX = 40960
_NUM_CTX = re.compile(r"^num_ctx\s+(\d+)", re.MULTILINE)


def per_million(value: Any) -> float | None:
    """Convert a per-token price (number or numeric string) to per-million."""
    if value is None or value == "":
        return None
    return float(value) * 1_000_000


def _as_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _collect(
    items: Iterable[tuple[str, Any]],
    parse: Callable[[str, Any], ModelInfo | None],
    source: str,
) -> dict[str, ModelInfo]:
    models: dict[str, ModelInfo] = {}
    for model_id, raw in items:
        try:
            info = parse(model_id, raw)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed %s model %r: %s", source, model_id, exc)
            continue
        if info is not None:
            models[model_id] = info
    return models


def _data_list(body: Any) -> list[dict[str, Any]]:
    data = body.get("data") if isinstance(body, dict) else None
    return data if isinstance(data, list) else []


# ---------------------------------------------------------------------------
# OpenRouter format (also served by Kilocode)
# ---------------------------------------------------------------------------


def parse_openrouter_model(model_id: str, raw: dict[str, Any]) -> ModelInfo:
    pricing = raw.get("pricing") or {}
    architecture = raw.get("architecture") or {}
    top_provider = raw.get("top_provider") or {}
    parameters = raw.get("supported_parameters") or []
    modalities = architecture.get("input_modalities") or []
    cache_read = per_million(pricing.get("input_cache_read"))
    context = raw.get("context_length") or top_provider.get("context_length") or 0

    return ModelInfo(
        context_window=int(context),
        max_tokens=top_provider.get("max_completion_tokens"),
        input_price=per_million(pricing.get("prompt")),
        output_price=per_million(pricing.get("completion")),
        cache_write_price=per_million(pricing.get("input_cache_write")),
        cache_read_price=cache_read,
        supports_prompt_cache=cache_read is not None,
        supports_images="image" in modalities,
        supports_computer_use=model_id in OPENROUTER_COMPUTER_USE_MODELS,
        supports_reasoning_budget=model_id in OPENROUTER_REASONING_BUDGET_MODELS,
        required_reasoning_budget=model_id.endswith(":thinking"),
        supports_reasoning_effort="reasoning" in parameters,
        description=raw.get("description"),
        display_name=raw.get("name"),
    )


def fetch_openrouter_models(http: HttpClient) -> dict[str, ModelInfo]:
    body = http.get_json("models").body
    return _collect(
        ((m.get("id", ""), m) for m in _data_list(body)),
        parse_openrouter_model,
        "openrouter",
    )


def fetch_openrouter_endpoints(http: HttpClient, model_id: str) -> dict[str, ModelInfo]:
    """Per-upstream pricing for *model_id*, keyed by endpoint tag."""
    body = http.get_json(f"models/{model_id}/endpoints").body
    data = body.get("data") if isinstance(body, dict) else None
    endpoints = (data or {}).get("endpoints") or []

    def parse(_tag: str, raw: dict[str, Any]) -> ModelInfo:
        pricing = raw.get("pricing") or {}
        return ModelInfo(
            context_window=int(raw.get("context_length") or 0),
            max_tokens=raw.get("max_completion_tokens"),
            input_price=per_million(pricing.get("prompt")),
            output_price=per_million(pricing.get("completion")),
            cache_write_price=per_million(pricing.get("input_cache_write")),
            cache_read_price=per_million(pricing.get("input_cache_read")),
            display_name=raw.get("provider_name"),
        )

    return _collect(
        ((e.get("tag") or e.get("provider_name", ""), e) for e in endpoints),
        parse,
        "openrouter endpoint",
    )


# ---------------------------------------------------------------------------
# Requesty, Unbound, LiteLLM, Vercel AI Gateway
# ---------------------------------------------------------------------------


def fetch_requesty_models(http: HttpClient) -> dict[str, ModelInfo]:
    def parse(_id: str, raw: dict[str, Any]) -> ModelInfo:
        return ModelInfo(
            context_window=int(raw["context_window"]),
            max_tokens=raw.get("max_output_tokens"),
            input_price=per_million(raw.get("input_price")),
            output_price=per_million(raw.get("output_price")),
            cache_write_price=per_million(raw.get("caching_price")),
            cache_read_price=per_million(raw.get("cached_price")),
            supports_images=bool(raw.get("supports_vision")),
            supports_prompt_cache=bool(raw.get("supports_caching")),
            supports_computer_use=bool(raw.get("supports_computer_use")),
            supports_reasoning_effort=bool(raw.get("supports_reasoning")),
            description=raw.get("description"),
        )

    body = http.get_json("models").body
    return _collect(((m.get("id", ""), m) for m in _data_list(body)), parse, "requesty")


def unbound_models_url(base_url: str) -> str:
    """Unbound serves its model list beside the versioned API root, not under it."""
    root = base_url.rstrip("/")
    if root.endswith("/v1"):
        root = root[: -len("/v1")]
    return f"{root}/models"


def fetch_unbound_models(http: HttpClient) -> dict[str, ModelInfo]:
    """Unbound lists models as an object keyed by id, prices already per million."""

    def parse(_id: str, raw: dict[str, Any]) -> ModelInfo:
        return ModelInfo(
            context_window=int(raw["contextWindow"]),
            max_tokens=raw.get("maxTokens"),
            input_price=_as_float(raw.get("inputTokenPrice")),
            output_price=_as_float(raw.get("outputTokenPrice")),
            cache_write_price=_as_float(raw.get("cacheWritePrice")),
            cache_read_price=_as_float(raw.get("cacheReadPrice")),
            supports_images=bool(raw.get("supportsImages")),
            supports_prompt_cache=bool(raw.get("supportsPromptCaching")),
        )

    body = http.get_json(unbound_models_url(http.base_url)).body
    return _collect((body or {}).items(), parse, "unbound")


def fetch_litellm_models(http: HttpClient) -> dict[str, ModelInfo]:
    def parse(_name: str, raw: dict[str, Any]) -> ModelInfo:
        info = raw.get("model_info") or {}
        return ModelInfo(
            context_window=int(info.get("max_input_tokens") or info.get("max_tokens") or 0),
            max_tokens=info.get("max_output_tokens") or info.get("max_tokens"),
            input_price=per_million(info.get("input_cost_per_token")),
            output_price=per_million(info.get("output_cost_per_token")),
            cache_write_price=per_million(info.get("cache_creation_input_token_cost")),
            cache_read_price=per_million(info.get("cache_read_input_token_cost")),
            supports_images=bool(info.get("supports_vision")),
            supports_prompt_cache=bool(info.get("supports_prompt_caching")),
            supports_computer_use=bool(info.get("supports_computer_use")),
            description=f"{_name} via LiteLLM proxy",
        )

    body = http.get_json("v1/model/info").body
    return _collect(((m.get("model_name", ""), m) for m in _data_list(body)), parse, "litellm")


def fetch_vercel_ai_gateway_models(http: HttpClient) -> dict[str, ModelInfo]:
    def parse(model_id: str, raw: dict[str, Any]) -> ModelInfo | None:
        if raw.get("type", "language") != "language":
            return None
        pricing = raw.get("pricing") or {}
        caching = model_id in VERCEL_AI_GATEWAY_PROMPT_CACHING_MODELS
        return ModelInfo(
            context_window=int(raw["context_window"]),
            max_tokens=raw.get("max_tokens"),
            input_price=per_million(pricing.get("input")),
            output_price=per_million(pricing.get("output")),
            cache_write_price=per_million(pricing.get("input_cache_write")),
            cache_read_price=per_million(pricing.get("input_cache_read")),
            supports_prompt_cache=caching,
            supports_images=caching,
            description=raw.get("description"),
            display_name=raw.get("name"),
        )

    body = http.get_json("models").body
    return _collect(((m.get("id", ""), m) for m in _data_list(body)), parse, "vercel-ai-gateway")


# ---------------------------------------------------------------------------
# Local servers
# ---------------------------------------------------------------------------


def ollama_context_window(show: dict[str, Any], base_url: str = "") -> int:
    """Pick a context window from an ``/api/show`` response.

    Hosted Ollama reports the real window in ``model_info``; local servers
    run with ``OLLAMA_CONTEXT_LENGTH`` or the model's ``num_ctx`` parameter,
    and fall back to Ollama's own default.
    """
    model_info = show.get("model_info") or {}
    from_info = next(
        (v for k, v in model_info.items() if "context_length" in k and isinstance(v, int)),
        None,
    )
    if base_url.lower().startswith("https://ollama.com") and from_info:
        return from_info

    env_value = os.environ.get("OLLAMA_CONTEXT_LENGTH", "")
    if env_value.isdigit() and int(env_value) > 0:
        return int(env_value)

    parameters = show.get("parameters")
    if isinstance(parameters, str):
        match = _NUM_CTX.search(parameters)
        if match and int(match.group(1)) not in (0, _OLLAMA_BOGUS_NUM_CTX):
            return int(match.group(1))
    return OLLAMA_DEFAULT_CONTEXT


def fetch_ollama_models(http: HttpClient) -> dict[str, ModelInfo]:
    tags = http.get_json("api/tags").body
    models: dict[str, ModelInfo] = {}
    for entry in (tags or {}).get("models") or []:
        name = entry.get("name")
        if not name:
            continue
        show = http.post_json("api/show", {"model": entry.get("model", name)}).body or {}
        context = ollama_context_window(show, http.base_url)
        details = show.get("details") or entry.get("details") or {}
        models[name] = ModelInfo(
            context_window=context,
            max_tokens=context,
            supports_prompt_cache=True,
            supports_images="vision" in (show.get("capabilities") or []),
            input_price=0.0,
            output_price=0.0,
            cache_write_price=0.0,
            cache_read_price=0.0,
            description=(
                f"Family: {details.get('family', 'unknown')}, Context: {context}, "
                f"Size: {details.get('parameter_size', 'unknown')}"
            ),
        )
    return models


def fetch_lmstudio_models(http: HttpClient) -> dict[str, ModelInfo]:
    """Models loaded in LM Studio, from its native REST listing."""

    def parse(_id: str, raw: dict[str, Any]) -> ModelInfo | None:
        if raw.get("type") not in ("llm", "vlm"):
            return None
        context = int(raw.get("max_context_length") or LOCAL_MODEL_DEFAULT_INFO.context_window)
        return ModelInfo(
            context_window=context,
            max_tokens=context,
            supports_images=raw.get("type") == "vlm",
            supports_prompt_cache=True,
            input_price=0.0,
            output_price=0.0,
            display_name=raw.get("id"),
        )

    body = http.get_json("api/v0/models").body
    return _collect(((m.get("id", ""), m) for m in _data_list(body)), parse, "lmstudio")
