"""OpenAI chat-completions dialect, shared by most vendors."""
from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from llm_bridge.auth.strategies import RequestAuth
from llm_bridge.cost import add_cache_breakpoints
from llm_bridge.errors import MaxTokensReachedError, SDKError, VendorStreamError
from llm_bridge.providers._usage import OPENAI_USAGE, UsageFields
from llm_bridge.providers.base import HttpRequestSpec, ResolvedModel
from llm_bridge.tag_extractor import TagExtractor
from llm_bridge.types.content import ContentPart
from llm_bridge.types.enums import PartKind, Role
from llm_bridge.types.messages import Message
from llm_bridge.types.request import RequestMetadata
from llm_bridge.types.streaming import ReasoningEvent, StreamEvent, TextEvent

# ---------------------------------------------------------------------------
# Message conversion
# ---------------------------------------------------------------------------


def _part_to_wire(part: ContentPart) -> dict[str, Any]:
    if part.kind == PartKind.IMAGE and part.image is not None:
        wire: dict[str, Any] = {"type": "image_url", "image_url": {"url": part.image.data_uri}}
    else:
        wire = {"type": "text", "text": part.text or ""}
    if part.cache_control is not None:
        wire["cache_control"] = part.cache_control.to_dict()
    return wire


def to_openai_messages(messages: Sequence[Message]) -> list[dict[str, Any]]:
    """Convert messages to chat-completions form.

    String content stays a string; part tuples become content arrays.
    """
    wire: list[dict[str, Any]] = []
    for message in messages:
        if isinstance(message.content, str):
            content: Any = message.content
        else:
            content = [_part_to_wire(p) for p in message.content]
        wire.append({"role": str(message.role), "content": content})
    return wire


def to_r1_format(messages: Sequence[Message]) -> list[Message]:
    """Reshape a conversation for DeepSeek-R1 style models.

    System messages become user messages and consecutive messages with the
    same role are merged, so the system prompt ends up folded into the first
    user turn.
    """
    merged: list[Message] = []
    for message in messages:
        role = Role.USER if message.role == Role.SYSTEM else message.role
        if merged and merged[-1].role == role:
            previous = merged[-1]
            if isinstance(previous.content, str) and isinstance(message.content, str):
                content: str | tuple[ContentPart, ...] = f"{previous.content}\n{message.content}"
            else:
                content = previous.parts + message.parts
            merged[-1] = Message(role, content)
        else:
            merged.append(Message(role, message.content))
    return merged


# ---------------------------------------------------------------------------
# Request shaping
# ---------------------------------------------------------------------------


def _always(_model: ResolvedModel) -> bool:
    return True


def _never(_model: ResolvedModel) -> bool:
    return False


@dataclass(frozen=True)
class OpenAIChatOptions:
    """Per-vendor switches for :class:`OpenAIChatShaper`."""

    path: str = "chat/completions"
    max_tokens_field: str = "max_tokens"
    send_max_tokens: Callable[[ResolvedModel], bool] = _always
    include_usage: bool = True
    cache_breakpoints: Callable[[ResolvedModel], bool] = _never
    r1_format: Callable[[ResolvedModel], bool] = _never
    wire_model_id: Callable[[str], str] = str
    body_extras: Callable[[ResolvedModel, RequestMetadata | None], Mapping[str, Any]] | None = None
    header_extras: Callable[[RequestMetadata | None], Mapping[str, str]] | None = None
    headers: Mapping[str, str] = field(default_factory=dict)


class OpenAIChatShaper:
    def __init__(self, options: OpenAIChatOptions | None = None) -> None:
        self.options = options or OpenAIChatOptions()

    def build_messages(
        self, model: ResolvedModel, system_prompt: str, messages: Sequence[Message]
    ) -> list[dict[str, Any]]:
        conversation = list(messages)
        if system_prompt:
            conversation.insert(0, Message.system(system_prompt))
        if model.info.supports_prompt_cache and self.options.cache_breakpoints(model):
            conversation = add_cache_breakpoints(conversation)
        if self.options.r1_format(model):
            conversation = to_r1_format(conversation)
        return to_openai_messages(conversation)

    def _sampling(self, model: ResolvedModel) -> dict[str, Any]:
        params = model.params
        body: dict[str, Any] = {}
        if params.temperature is not None:
            body["temperature"] = params.temperature
        if params.top_p is not None:
            body["top_p"] = params.top_p
        if params.max_tokens is not None and self.options.send_max_tokens(model):
            body[self.options.max_tokens_field] = params.max_tokens
        if params.reasoning:
            body.update(params.reasoning)
        return body

    def _headers(self, metadata: RequestMetadata | None) -> dict[str, str]:
        headers = dict(self.options.headers)
        if self.options.header_extras is not None:
            headers.update(self.options.header_extras(metadata))
        return headers

    def stream_request(
        self,
        model: ResolvedModel,
        system_prompt: str,
        messages: Sequence[Message],
        metadata: RequestMetadata | None,
        auth: RequestAuth,
    ) -> HttpRequestSpec:
        body: dict[str, Any] = {
            "model": self.options.wire_model_id(model.id),
            "messages": self.build_messages(model, system_prompt, messages),
            "stream": True,
        }
        if self.options.include_usage:
            body["stream_options"] = {"include_usage": True}
        body.update(self._sampling(model))
        if self.options.body_extras is not None:
            body.update(self.options.body_extras(model, metadata))
        return HttpRequestSpec(self.options.path, body, self._headers(metadata))

    def single_shot_request(self, model: ResolvedModel, prompt: str, auth: RequestAuth) -> HttpRequestSpec:
        body: dict[str, Any] = {
            "model": self.options.wire_model_id(model.id),
            "messages": [{"role": "user", "content": prompt}],
        }
        body.update(self._sampling(model))
        if self.options.body_extras is not None:
            body.update(self.options.body_extras(model, None))
        return HttpRequestSpec(self.options.path, body, self._headers(None))

    def parse_completion(self, body: Any) -> str:
        choices = body.get("choices") if isinstance(body, dict) else None
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return message.get("content") or ""


# ---------------------------------------------------------------------------
# Stream translation
# ---------------------------------------------------------------------------


class OpenAIChatTranslator:
    """Turns chat-completion chunks into stream events.

    *think_tags* routes ``<think>`` spans to reasoning events. *cumulative*
    handles vendors that resend the whole answer so far in each chunk.
    """

    def __init__(
        self,
        *,
        usage_fields: UsageFields = OPENAI_USAGE,
        think_tags: bool = False,
        cumulative: bool = False,
    ) -> None:
        self._usage_fields = usage_fields
        self._extractor = TagExtractor("think") if think_tags else None
        self._cumulative = cumulative
        self._seen = ""
        self._usage: Mapping[str, Any] | None = None
        self.error: SDKError | None = None

    def feed(self, payload: dict[str, Any]) -> list[StreamEvent]:
        error = payload.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            self.error = VendorStreamError(f"Vendor stream error: {message}")
            return []

        events: list[StreamEvent] = []
        for choice in payload.get("choices") or []:
            delta = choice.get("delta") or {}
            reasoning = delta.get("reasoning_content") or delta.get("reasoning")
            if isinstance(reasoning, str) and reasoning:
                events.append(ReasoningEvent(reasoning))
            content = delta.get("content")
            if isinstance(content, str) and content:
                events.extend(self._text(content))
            if choice.get("finish_reason") == "length":
                self.error = MaxTokensReachedError(
                    "The response hit the maximum output token limit"
                )

        usage = payload.get("usage")
        if isinstance(usage, Mapping):
            self._usage = usage
        return events

    def _text(self, content: str) -> list[StreamEvent]:
        if self._cumulative:
            if self._seen and content.startswith(self._seen):
                content = content[len(self._seen):]
            self._seen += content
            if not content:
                return []
        if self._extractor is None:
            return [TextEvent(content)]
        return [
            ReasoningEvent(chunk.data) if chunk.matched else TextEvent(chunk.data)
            for chunk in self._extractor.update(content)
        ]

    def flush(self) -> list[StreamEvent]:
        """Release text the tag extractor is holding back."""
        if self._extractor is None:
            return []
        return [
            ReasoningEvent(chunk.data) if chunk.matched else TextEvent(chunk.data)
            for chunk in self._extractor.final()
        ]

    def finish(self) -> list[StreamEvent]:
        events = self.flush()
        if self._usage is not None:
            events.append(self._usage_fields.read(self._usage))
        return events
