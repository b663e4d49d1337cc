"""Tests for router and local-server catalog fetchers."""
from __future__ import annotations

import json
import logging
from typing import Any

import httpx
import pytest

from llm_bridge._http import HttpClient
from llm_bridge.catalog.fetchers import (
    OLLAMA_DEFAULT_CONTEXT,
    fetch_litellm_models,
    fetch_lmstudio_models,
    fetch_ollama_models,
    fetch_openrouter_endpoints,
    fetch_openrouter_models,
    fetch_requesty_models,
    fetch_unbound_models,
    fetch_vercel_ai_gateway_models,
    ollama_context_window,
    per_million,
    unbound_models_url,
)
from llm_bridge.errors import ServerError


def _client(routes: dict[str, Any], base_url: str = "https://router.test/api/v1") -> HttpClient:
    def handler(request: httpx.Request) -> httpx.Response:
        body = routes.get(request.url.path)
        if body is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(body):
            body = body(request)
        return httpx.Response(200, content=json.dumps(body).encode())

    return HttpClient(base_url, provider="test", transport=httpx.MockTransport(handler))


def test_per_million() -> None:
    assert per_million("0.000003") == pytest.approx(3.0)
    assert per_million(0.0000006) == pytest.approx(0.6)
    assert per_million(None) is None
    assert per_million("") is None


# ---------------------------------------------------------------------------
# OpenRouter
# ---------------------------------------------------------------------------

OPENROUTER_MODELS = {
    "data": [
        {
            "id": "anthropic/claude-3.7-sonnet:thinking",
            "name": "Claude 3.7 Sonnet (thinking)",
            "context_length": 200000,
            "architecture": {"input_modalities": ["text", "image"]},
            "pricing": {
                "prompt": "0.000003",
                "completion": "0.000015",
                "input_cache_read": "0.0000003",
                "input_cache_write": "0.00000375",
            },
            "top_provider": {"max_completion_tokens": 64000},
            "supported_parameters": ["reasoning", "max_tokens"],
        },
        {
            "id": "meta/llama-free",
            "context_length": 8192,
            "architecture": {"input_modalities": ["text"]},
            "pricing": {"prompt": "0", "completion": "0"},
        },
        {"id": "broken/model", "context_length": 100, "pricing": {"prompt": "not-a-number"}},
    ]
}


class TestOpenRouter:
    def test_models_are_parsed(self) -> None:
        models = fetch_openrouter_models(_client({"/api/v1/models": OPENROUTER_MODELS}))
        sonnet = models["anthropic/claude-3.7-sonnet:thinking"]
        assert sonnet.context_window == 200000
        assert sonnet.max_tokens == 64000
        assert sonnet.input_price == pytest.approx(3.0)
        assert sonnet.output_price == pytest.approx(15.0)
        assert sonnet.cache_read_price == pytest.approx(0.3)
        assert sonnet.cache_write_price == pytest.approx(3.75)
        assert sonnet.supports_prompt_cache
        assert sonnet.supports_images
        assert sonnet.supports_computer_use
        assert sonnet.supports_reasoning_budget
        assert sonnet.required_reasoning_budget
        assert sonnet.supports_reasoning_effort
        assert sonnet.display_name == "Claude 3.7 Sonnet (thinking)"

        free = models["meta/llama-free"]
        assert free.input_price == 0.0
        assert not free.supports_prompt_cache
        assert not free.supports_images

    def test_malformed_entries_are_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="llm_bridge.catalog.fetchers"):
            models = fetch_openrouter_models(_client({"/api/v1/models": OPENROUTER_MODELS}))
        assert "broken/model" not in models
        assert "broken/model" in caplog.text

    def test_transport_errors_propagate(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": {"message": "maintenance"}})

        http = HttpClient("https://router.test/api/v1", provider="test", transport=httpx.MockTransport(handler))
        with pytest.raises(ServerError):
            fetch_openrouter_models(http)

    def test_endpoints(self) -> None:
        body = {
            "data": {
                "endpoints": [
                    {
                        "tag": "anthropic",
                        "provider_name": "Anthropic",
                        "context_length": 200000,
                        "max_completion_tokens": 8192,
                        "pricing": {"prompt": "0.000003", "completion": "0.000015"},
                    },
                    {
                        "provider_name": "Google Vertex",
                        "context_length": 100000,
                        "pricing": {"prompt": "0.000004", "completion": "0.00002"},
                    },
                ]
            }
        }
        http = _client({"/api/v1/models/anthropic/claude-sonnet-4/endpoints": body})
        endpoints = fetch_openrouter_endpoints(http, "anthropic/claude-sonnet-4")
        assert set(endpoints) == {"anthropic", "Google Vertex"}
        assert endpoints["anthropic"].input_price == pytest.approx(3.0)
        assert endpoints["Google Vertex"].output_price == pytest.approx(20.0)


# ---------------------------------------------------------------------------
# Other routers
# ---------------------------------------------------------------------------


def test_requesty_models() -> None:
    body = {
        "data": [
            {
                "id": "openai/gpt-4o",
                "context_window": 128000,
                "max_output_tokens": 16384,
                "input_price": 0.0000025,
                "output_price": 0.00001,
                "cached_price": 0.00000125,
                "supports_vision": True,
                "supports_caching": True,
            },
            {"id": "missing/window"},
        ]
    }
    models = fetch_requesty_models(_client({"/api/v1/models": body}))
    assert list(models) == ["openai/gpt-4o"]
    info = models["openai/gpt-4o"]
    assert info.input_price == pytest.approx(2.5)
    assert info.cache_read_price == pytest.approx(1.25)
    assert info.supports_images
    assert info.supports_prompt_cache


def test_unbound_models_live_beside_the_versioned_root() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        body = {
            "anthropic/claude-sonnet-4": {
                "contextWindow": 200000,
                "maxTokens": 8192,
                "inputTokenPrice": "3",
                "outputTokenPrice": "15",
                "supportsImages": True,
                "supportsPromptCaching": True,
            }
        }
        return httpx.Response(200, content=json.dumps(body).encode())

    http = HttpClient("https://api.getunbound.ai/v1", provider="unbound", transport=httpx.MockTransport(handler))
    models = fetch_unbound_models(http)
    assert seen == ["https://api.getunbound.ai/models"]
    info = models["anthropic/claude-sonnet-4"]
    assert info.input_price == 3.0
    assert info.output_price == 15.0
    assert info.supports_prompt_cache


@pytest.mark.parametrize(
    ("base_url", "expected"),
    [
        ("https://api.getunbound.ai/v1", "https://api.getunbound.ai/models"),
        ("https://unbound.corp.test/v1/", "https://unbound.corp.test/models"),
        ("https://proxy.test/unbound", "https://proxy.test/unbound/models"),
    ],
)
def test_unbound_models_url(base_url: str, expected: str) -> None:
    assert unbound_models_url(base_url) == expected


def test_unbound_models_follow_a_custom_base_url() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={})

    http = HttpClient("https://unbound.corp.test/v1", provider="unbound", transport=httpx.MockTransport(handler))
    assert fetch_unbound_models(http) == {}
    assert seen == ["https://unbound.corp.test/models"]


def test_litellm_models() -> None:
    body = {
        "data": [
            {
                "model_name": "claude",
                "model_info": {
                    "max_input_tokens": 200000,
                    "max_output_tokens": 8192,
                    "input_cost_per_token": 0.000003,
                    "output_cost_per_token": 0.000015,
                    "supports_prompt_caching": True,
                },
            }
        ]
    }
    models = fetch_litellm_models(_client({"/v1/model/info": body}, base_url="http://localhost:4000"))
    info = models["claude"]
    assert info.context_window == 200000
    assert info.max_tokens == 8192
    assert info.output_price == pytest.approx(15.0)
    assert info.description == "claude via LiteLLM proxy"


def test_vercel_ai_gateway_skips_non_language_models() -> None:
    body = {
        "data": [
            {
                "id": "anthropic/claude-sonnet-4",
                "type": "language",
                "context_window": 200000,
                "max_tokens": 64000,
                "pricing": {"input": "0.000003", "output": "0.000015"},
            },
            {"id": "openai/dall-e-3", "type": "image", "context_window": 0},
        ]
    }
    models = fetch_vercel_ai_gateway_models(_client({"/v1/models": body}, base_url="https://ai-gateway.test/v1"))
    assert list(models) == ["anthropic/claude-sonnet-4"]
    assert models["anthropic/claude-sonnet-4"].supports_prompt_cache


# ---------------------------------------------------------------------------
# Local servers
# ---------------------------------------------------------------------------


class TestOllama:
    @pytest.fixture(autouse=True)
    def _no_env_context(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OLLAMA_CONTEXT_LENGTH", raising=False)

    def test_context_from_num_ctx(self) -> None:
        assert ollama_context_window({"parameters": "stop <eot>\nnum_ctx 32768"}) == 32768

    def test_bogus_num_ctx_is_ignored(self) -> None:
        assert ollama_context_window({"parameters": "num_ctx 40960"}) == OLLAMA_DEFAULT_CONTEXT

    def test_env_overrides_model(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OLLAMA_CONTEXT_LENGTH", "16384")
        assert ollama_context_window({"parameters": "num_ctx 32768"}) == 16384

    def test_hosted_uses_model_info(self) -> None:
        show = {"model_info": {"llama.context_length": 131072}}
        assert ollama_context_window(show, "https://ollama.com/") == 131072
        assert ollama_context_window(show, "http://localhost:11434/") == OLLAMA_DEFAULT_CONTEXT

    def test_fetch_models(self) -> None:
        shown: list[dict[str, Any]] = []

        def show(request: httpx.Request) -> dict[str, Any]:
            shown.append(json.loads(request.content))
            return {
                "parameters": "num_ctx 8192",
                "capabilities": ["completion", "vision"],
                "details": {"family": "llama", "parameter_size": "8B"},
            }

        routes = {
            "/api/tags": {"models": [{"name": "llava:latest", "model": "llava:latest"}, {"model": "nameless"}]},
            "/api/show": show,
        }
        models = fetch_ollama_models(_client(routes, base_url="http://localhost:11434"))
        assert list(models) == ["llava:latest"]
        assert shown == [{"model": "llava:latest"}]
        info = models["llava:latest"]
        assert info.context_window == 8192
        assert info.supports_images
        assert info.input_price == 0.0
        assert info.description == "Family: llama, Context: 8192, Size: 8B"


def test_lmstudio_lists_loaded_llms() -> None:
    body = {
        "data": [
            {"id": "qwen2.5-coder", "type": "llm", "max_context_length": 32768},
            {"id": "llava", "type": "vlm"},
            {"id": "nomic-embed", "type": "embeddings"},
        ]
    }
    models = fetch_lmstudio_models(_client({"/api/v0/models": body}, base_url="http://localhost:1234"))
    assert set(models) == {"qwen2.5-coder", "llava"}
    assert models["qwen2.5-coder"].context_window == 32768
    assert models["llava"].supports_images
    assert models["llava"].context_window == 200_000
