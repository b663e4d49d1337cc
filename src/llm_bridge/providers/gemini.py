"""Google Gemini content API dialect."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from llm_bridge._base64 import encode_to_base64
from llm_bridge.auth.strategies import RequestAuth
from llm_bridge.errors import MaxTokensReachedError, SDKError, VendorStreamError
from llm_bridge.providers.base import HttpRequestSpec, ResolvedModel
from llm_bridge.types.config import ProviderSettings
from llm_bridge.types.content import ContentPart
from llm_bridge.types.enums import PartKind, Role
from llm_bridge.types.messages import Message
from llm_bridge.types.request import RequestMetadata
from llm_bridge.types.streaming import (
    GroundingEvent,
    GroundingSource,
    ReasoningEvent,
    StreamEvent,
    TextEvent,
    UsageEvent,
)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


# ---------------------------------------------------------------------------
# Request translation
# ---------------------------------------------------------------------------


def to_gemini_parts(parts: Sequence[ContentPart]) -> list[dict[str, Any]]:
    wire: list[dict[str, Any]] = []
    for part in parts:
        if part.kind == PartKind.IMAGE and part.image is not None:
            wire.append({
                "inlineData": {
                    "mimeType": part.image.media_type,
                    "data": encode_to_base64(part.image.data),
                }
            })
        elif part.text:
            wire.append({"text": part.text})
    return wire


def to_gemini_contents(messages: Sequence[Message]) -> list[dict[str, Any]]:
    """Convert messages to Gemini ``contents``; assistant turns use role ``model``."""
    contents: list[dict[str, Any]] = []
    for message in messages:
        if message.role == Role.SYSTEM:
            continue
        role = "model" if message.role == Role.ASSISTANT else "user"
        parts = to_gemini_parts(message.parts)
        if parts:
            contents.append({"role": role, "parts": parts})
    return contents


def generation_config(model: ResolvedModel, *, default_temperature: float | None = None) -> dict[str, Any]:
    params = model.params
    config: dict[str, Any] = {}
    temperature = params.temperature if params.temperature is not None else default_temperature
    if temperature is not None:
        config["temperature"] = temperature
    if params.max_tokens is not None:
        config["maxOutputTokens"] = params.max_tokens
    if params.top_p is not None:
        config["topP"] = params.top_p
    if params.reasoning:
        config.update(params.reasoning)
    return config


def completion_text(body: Any) -> str:
    """Visible text of a non-streaming response, with grounding citations appended."""
    candidates = body.get("candidates") if isinstance(body, dict) else None
    if not candidates:
        return ""
    candidate = candidates[0]
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts if not p.get("thought"))
    sources = grounding_sources(candidate)
    if sources:
        links = ", ".join(f"[{i}]({s.url})" for i, s in enumerate(sources, start=1))
        text = f"{text}\n\nSources: {links}"
    return text


def grounding_sources(candidate: dict[str, Any]) -> list[GroundingSource]:
    metadata = candidate.get("groundingMetadata") or {}
    sources: list[GroundingSource] = []
    for chunk in metadata.get("groundingChunks") or []:
        web = chunk.get("web") or {}
        if web.get("uri"):
            sources.append(GroundingSource(title=web.get("title") or web["uri"], url=web["uri"]))
    return sources


class GeminiShaper:
    """Requests for ``models/{id}:streamGenerateContent`` and friends."""

    def __init__(self, settings: ProviderSettings) -> None:
        self._settings = settings

    def _tools(self) -> list[dict[str, Any]]:
        tools: list[dict[str, Any]] = []
        if self._settings.enable_url_context:
            tools.append({"urlContext": {}})
        if self._settings.enable_grounding:
            tools.append({"googleSearch": {}})
        return tools

    def _body(self, model: ResolvedModel, system_prompt: str, contents: list[dict[str, Any]]) -> dict[str, Any]:
        body: dict[str, Any] = {"contents": contents}
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        config = generation_config(model)
        if config:
            body["generationConfig"] = config
        tools = self._tools()
        if tools:
            body["tools"] = tools
        return body

    def stream_request(
        self,
        model: ResolvedModel,
        system_prompt: str,
        messages: Sequence[Message],
        metadata: RequestMetadata | None,
        auth: RequestAuth,
    ) -> HttpRequestSpec:
        return HttpRequestSpec(
            f"models/{model.id}:streamGenerateContent",
            self._body(model, system_prompt, to_gemini_contents(messages)),
            params={"alt": "sse"},
        )

    def single_shot_request(self, model: ResolvedModel, prompt: str, auth: RequestAuth) -> HttpRequestSpec:
        contents = [{"role": "user", "parts": [{"text": prompt}]}]
        return HttpRequestSpec(f"models/{model.id}:generateContent", self._body(model, "", contents))

    def parse_completion(self, body: Any) -> str:
        return completion_text(body)

    # --- token counting ---

    def count_tokens_request(
        self, model: ResolvedModel, content: Sequence[ContentPart], auth: RequestAuth
    ) -> HttpRequestSpec:
        return HttpRequestSpec(
            f"models/{model.id}:countTokens",
            {"contents": [{"role": "user", "parts": to_gemini_parts(content)}]},
        )

    def parse_token_count(self, body: Any) -> int | None:
        total = body.get("totalTokens") if isinstance(body, dict) else None
        return int(total) if isinstance(total, (int, float)) else None


# ---------------------------------------------------------------------------
# Stream translation
# ---------------------------------------------------------------------------


class GeminiTranslator:
    """Turns Gemini stream chunks into events.

    Parts flagged ``thought`` are reasoning. Grounding sources are collected
    across chunks and emitted once, just before usage. *unwrap* handles the
    Code Assist envelope, which nests the chunk under ``response``.
    """

    def __init__(self, *, unwrap: bool = False) -> None:
        self._unwrap = unwrap
        self._sources: dict[str, GroundingSource] = {}
        self._usage: dict[str, Any] | None = None
        self.error: SDKError | None = None

    def feed(self, payload: dict[str, Any]) -> list[StreamEvent]:
        if self._unwrap and isinstance(payload.get("response"), dict):
            payload = payload["response"]
        if isinstance(payload.get("error"), dict):
            self.error = VendorStreamError(
                f"Vendor stream error: {payload['error'].get('message', 'unknown error')}"
            )
            return []

        events: list[StreamEvent] = []
        candidates = payload.get("candidates") or []
        if candidates:
            candidate = candidates[0]
            for part in (candidate.get("content") or {}).get("parts") or []:
                text = part.get("text")
                if not text:
                    continue
                events.append(ReasoningEvent(text) if part.get("thought") else TextEvent(text))
            for source in grounding_sources(candidate):
                self._sources.setdefault(source.url, source)
            if candidate.get("finishReason") == "MAX_TOKENS":
                self.error = MaxTokensReachedError(
                    "The response hit the maximum output token limit"
                )

        if isinstance(payload.get("usageMetadata"), dict):
            self._usage = payload["usageMetadata"]
        return events

    def flush(self) -> list[StreamEvent]:
        """Release the collected grounding sources, once."""
        if not self._sources:
            return []
        sources = tuple(self._sources.values())
        self._sources.clear()
        return [GroundingEvent(sources)]

    def finish(self) -> list[StreamEvent]:
        events = self.flush()
        usage = self._usage
        if usage is None:
            return events
        events.append(UsageEvent(
            input_tokens=int(usage.get("promptTokenCount") or 0),
            output_tokens=int(usage.get("candidatesTokenCount") or 0),
            cache_read_tokens=int(usage.get("cachedContentTokenCount") or 0),
            reasoning_tokens=int(usage.get("thoughtsTokenCount") or 0),
        ))
        return events
