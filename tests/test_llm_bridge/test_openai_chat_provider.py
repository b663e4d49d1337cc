"""Tests for the OpenAI chat-completions dialect, driven through real providers."""
from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from llm_bridge.catalog import ModelCatalogCache
from llm_bridge.errors import (
    AuthenticationError,
    ConfigurationError,
    MaxTokensReachedError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    StreamInterruptedError,
    VendorStreamError,
)
from llm_bridge.providers import ProviderServices, build_provider
from llm_bridge.providers._usage import DEEPSEEK_USAGE, XAI_USAGE
from llm_bridge.providers.openai_chat import OpenAIChatTranslator, to_openai_messages, to_r1_format
from llm_bridge.types.config import ProviderSettings
from llm_bridge.types.content import ContentPart
from llm_bridge.types.enums import Role
from llm_bridge.types.messages import Message
from llm_bridge.types.streaming import StreamAccumulator, TextEvent, UsageEvent


def sse(*payloads: Any, done: bool = True) -> bytes:
    lines = [f"data: {p if isinstance(p, str) else json.dumps(p)}\n\n" for p in payloads]
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


def chunk(content: str | None = None, **delta: Any) -> dict[str, Any]:
    if content is not None:
        delta["content"] = content
    return {"choices": [{"index": 0, "delta": delta}]}


def usage(prompt: int, completion: int, **extra: Any) -> dict[str, Any]:
    return {"choices": [], "usage": {"prompt_tokens": prompt, "completion_tokens": completion, **extra}}


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, body: bytes = b"", status: int = 200, stream: httpx.SyncByteStream | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.body = body
        self.status = status
        self.stream = stream

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        headers = {"content-type": "text/event-stream"}
        if self.stream is not None:
            return httpx.Response(self.status, headers=headers, stream=self.stream)
        return httpx.Response(self.status, headers=headers, content=self.body)

    @property
    def json(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


class TrackingStream(httpx.SyncByteStream):
    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = chunks
        self.closed = False

    def __iter__(self):
        yield from self.chunks

    def close(self) -> None:
        self.closed = True


class DroppingStream(TrackingStream):
    """Yields its chunks, then fails the way a reset connection does."""

    def __init__(self, chunks: list[bytes], error: Exception) -> None:
        super().__init__(chunks)
        self.error = error

    def __iter__(self):
        yield from self.chunks
        raise self.error


def _provider(recorder: Recorder, name: str = "groq", **settings: Any):
    settings.setdefault("api_key", "sk-test")
    services = ProviderServices(catalog=ModelCatalogCache(), transport=httpx.MockTransport(recorder))
    return build_provider(ProviderSettings(provider=name, **settings), services)


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------


class TestStreaming:
    def test_text_then_priced_usage(self) -> None:
        recorder = Recorder(sse(chunk("Hel"), chunk("lo"), usage(10, 5)))
        provider = _provider(recorder)
        events = list(provider.stream_completion("Be brief.", [Message.user("Hi")]))

        assert events[:2] == [TextEvent("Hel"), TextEvent("lo")]
        final = events[-1]
        assert isinstance(final, UsageEvent)
        assert (final.input_tokens, final.output_tokens) == (10, 5)
        assert final.total_cost == pytest.approx((10 * 0.59 + 5 * 0.79) / 1e6)
        assert len(events) == 3

    def test_request_shape(self) -> None:
        recorder = Recorder(sse(usage(1, 1)))
        provider = _provider(recorder)
        list(provider.stream_completion("Be brief.", [Message.user("Hi")]))

        request = recorder.requests[0]
        assert str(request.url) == "https://api.groq.com/openai/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer sk-test"
        assert recorder.json == {
            "model": "llama-3.3-70b-versatile",
            "messages": [
                {"role": "system", "content": "Be brief."},
                {"role": "user", "content": "Hi"},
            ],
            "stream": True,
            "stream_options": {"include_usage": True},
            "temperature": 0.5,
            "max_tokens": 26215,
        }

    def test_images_become_data_uris(self) -> None:
        recorder = Recorder(sse(usage(1, 1)))
        provider = _provider(recorder)
        message = Message.user((ContentPart.of_text("What is this?"), ContentPart.of_image(b"\x89PNG")))
        list(provider.stream_completion("", [message]))
        content = recorder.json["messages"][0]["content"]
        assert content == [
            {"type": "text", "text": "What is this?"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,iVBORw=="}},
        ]

    def test_nothing_is_sent_until_iterated(self) -> None:
        recorder = Recorder(sse(chunk("x"), usage(1, 1)))
        provider = _provider(recorder)
        events = provider.stream_completion("", [Message.user("Hi")])
        assert recorder.requests == []
        next(events)
        assert len(recorder.requests) == 1
        events.close()

    def test_closing_early_closes_the_response(self) -> None:
        stream = TrackingStream([sse(chunk("a"), done=False), sse(chunk("b"), usage(1, 1))])
        provider = _provider(Recorder(stream=stream))
        events = provider.stream_completion("", [Message.user("Hi")])
        assert next(events) == TextEvent("a")
        events.close()
        assert stream.closed

    def test_reasoning_fields(self) -> None:
        recorder = Recorder(sse(chunk(reasoning_content="thinking"), chunk(reasoning="more"), chunk("done"), usage(1, 1)))
        acc = StreamAccumulator().consume(_provider(recorder).stream_completion("", [Message.user("q")]))
        assert acc.reasoning == "thinkingmore"
        assert acc.text == "done"
        assert acc.completed

    def test_unparseable_payloads_are_skipped(self) -> None:
        recorder = Recorder(sse(chunk("a"), "{oops", "[1, 2]", chunk("b"), usage(1, 1)))
        acc = StreamAccumulator().consume(_provider(recorder).stream_completion("", [Message.user("q")]))
        assert acc.text == "ab"
        assert acc.completed

    def test_no_usage_reported_means_no_usage_event(self) -> None:
        recorder = Recorder(sse(chunk("hello")))
        events = list(_provider(recorder).stream_completion("", [Message.user("q")]))
        assert events == [TextEvent("hello")]
        acc = StreamAccumulator().consume(iter(events))
        assert acc.usage is None
        assert acc.completed


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_in_band_error_keeps_partial_text(self) -> None:
        recorder = Recorder(sse(chunk("partial"), {"error": {"message": "model overloaded"}}, chunk("never")))
        acc = StreamAccumulator().consume(_provider(recorder).stream_completion("", [Message.user("q")]))
        assert acc.text == "partial"
        assert isinstance(acc.error, VendorStreamError)
        assert "model overloaded" in str(acc.error)
        assert acc.usage is None

    def test_length_finish_reason(self) -> None:
        body = sse(chunk("cut"), {"choices": [{"delta": {"content": " off"}, "finish_reason": "length"}]})
        events = _provider(Recorder(body)).stream_completion("", [Message.user("q")])
        assert next(events) == TextEvent("cut")
        assert next(events) == TextEvent(" off")
        with pytest.raises(MaxTokensReachedError):
            next(events)

    def test_http_errors_surface_on_first_pull(self) -> None:
        body = json.dumps({"error": {"message": "Invalid API Key"}}).encode()
        events = _provider(Recorder(body, status=401)).stream_completion("", [Message.user("q")])
        with pytest.raises(AuthenticationError, match="Invalid API Key"):
            next(events)

    def test_rate_limit(self) -> None:
        body = json.dumps({"error": {"message": "slow down"}}).encode()
        events = _provider(Recorder(body, status=429)).stream_completion("", [Message.user("q")])
        with pytest.raises(RateLimitError) as exc_info:
            list(events)
        assert exc_info.value.retryable

    def test_missing_api_key(self) -> None:
        with pytest.raises(ConfigurationError, match="API key"):
            _provider(Recorder(), api_key=None)

    def test_length_finish_keeps_held_back_text(self) -> None:
        body = sse(
            chunk("<think>r</think>ans: "),
            {"choices": [{"delta": {"content": "x < y and a<"}, "finish_reason": "length"}]},
        )
        provider = _provider(Recorder(body), "chutes", model_id="deepseek-ai/DeepSeek-R1")
        acc = StreamAccumulator().consume(provider.stream_completion("", [Message.user("q")]))
        assert acc.reasoning == "r"
        assert acc.text == "ans: x < y and a<"
        assert isinstance(acc.error, MaxTokensReachedError)

    def test_in_band_error_keeps_held_back_text(self) -> None:
        body = sse(chunk("a <thi"), {"error": {"message": "overloaded"}})
        provider = _provider(Recorder(body), "chutes", model_id="deepseek-ai/DeepSeek-R1")
        acc = StreamAccumulator().consume(provider.stream_completion("", [Message.user("q")]))
        assert acc.text == "a <thi"
        assert isinstance(acc.error, VendorStreamError)

    def test_dropped_connection_is_a_stream_error(self) -> None:
        stream = DroppingStream([sse(chunk("partial"), done=False)], httpx.ReadError("connection reset"))
        provider = _provider(Recorder(stream=stream))
        acc = StreamAccumulator().consume(provider.stream_completion("", [Message.user("q")]))
        assert acc.text == "partial"
        assert isinstance(acc.error, StreamInterruptedError)
        assert isinstance(acc.error, VendorStreamError)
        assert isinstance(acc.error.cause, NetworkError)
        assert stream.closed

    def test_dropped_connection_releases_held_back_text(self) -> None:
        stream = DroppingStream([sse(chunk("so a<"), done=False)], httpx.ReadError("connection reset"))
        provider = _provider(Recorder(stream=stream), "chutes", model_id="deepseek-ai/DeepSeek-R1")
        acc = StreamAccumulator().consume(provider.stream_completion("", [Message.user("q")]))
        assert acc.text == "so a<"
        assert isinstance(acc.error, StreamInterruptedError)

    def test_read_timeout_stays_a_timeout(self) -> None:
        stream = DroppingStream([sse(chunk("partial"), done=False)], httpx.ReadTimeout("too slow"))
        provider = _provider(Recorder(stream=stream))
        acc = StreamAccumulator().consume(provider.stream_completion("", [Message.user("q")]))
        assert acc.text == "partial"
        assert isinstance(acc.error, RequestTimeoutError)
        assert not isinstance(acc.error, VendorStreamError)


# ---------------------------------------------------------------------------
# DeepSeek-R1 handling (Chutes)
# ---------------------------------------------------------------------------


class TestR1Models:
    def test_think_tags_become_reasoning(self) -> None:
        recorder = Recorder(sse(chunk("<thi"), chunk("nk>plan</th"), chunk("ink>answer"), usage(3, 4)))
        provider = _provider(recorder, "chutes", model_id="deepseek-ai/DeepSeek-R1")
        acc = StreamAccumulator().consume(provider.stream_completion("sys", [Message.user("q")]))
        assert acc.reasoning == "plan"
        assert acc.text == "answer"
        assert acc.usage is not None and acc.usage.total_cost == 0.0

    def test_r1_request_merges_system_prompt(self) -> None:
        recorder = Recorder(sse(usage(1, 1)))
        provider = _provider(recorder, "chutes", model_id="deepseek-ai/DeepSeek-R1")
        list(provider.stream_completion("sys", [Message.user("q")]))
        body = recorder.json
        assert body["messages"] == [{"role": "user", "content": "sys\nq"}]
        assert body["temperature"] == 0.6

    def test_other_chutes_models_keep_tags_as_text(self) -> None:
        recorder = Recorder(sse(chunk("<think>x</think>y"), usage(1, 1)))
        provider = _provider(recorder, "chutes", model_id="deepseek-ai/DeepSeek-V3")
        acc = StreamAccumulator().consume(provider.stream_completion("sys", [Message.user("q")]))
        assert acc.text == "<think>x</think>y"
        assert recorder.json["temperature"] == 0.5
        assert recorder.json["messages"][0]["role"] == "system"

    def test_to_r1_format_merges_same_role_runs(self) -> None:
        messages = [
            Message.system("s"),
            Message.user("a"),
            Message.assistant("b"),
            Message.assistant("c"),
            Message.user((ContentPart.of_text("d"),)),
        ]
        merged = to_r1_format(messages)
        assert [m.role for m in merged] == [Role.USER, Role.ASSISTANT, Role.USER]
        assert merged[0].content == "s\na"
        assert merged[1].content == "b\nc"
        assert to_openai_messages(merged)[2] == {"role": "user", "content": [{"type": "text", "text": "d"}]}


# ---------------------------------------------------------------------------
# Translator details
# ---------------------------------------------------------------------------


class TestTranslator:
    def test_cumulative_chunks_are_diffed(self) -> None:
        translator = OpenAIChatTranslator(cumulative=True)
        events = []
        for text in ("Hel", "Hello", "Hello, wor", "Hello, world"):
            events.extend(translator.feed(chunk(text)))
        assert "".join(e.text for e in events) == "Hello, world"

    def test_usage_is_always_last(self) -> None:
        translator = OpenAIChatTranslator(think_tags=True)
        assert translator.feed(chunk("a <thi")) == [TextEvent("a ")]
        translator.feed(usage(1, 2))
        events = translator.finish()
        assert events[0] == TextEvent("<thi")
        assert isinstance(events[-1], UsageEvent)

    def test_no_usage_event_without_vendor_usage(self) -> None:
        translator = OpenAIChatTranslator()
        translator.feed(chunk("hello"))
        assert translator.finish() == []

    def test_flush_releases_held_text_without_usage(self) -> None:
        translator = OpenAIChatTranslator(think_tags=True)
        translator.feed(chunk("a <thi"))
        translator.feed(usage(1, 2))
        assert translator.flush() == [TextEvent("<thi")]

    def test_deepseek_cache_hits(self) -> None:
        translator = OpenAIChatTranslator(usage_fields=DEEPSEEK_USAGE)
        translator.feed(usage(100, 10, prompt_cache_hit_tokens=60))
        (event,) = translator.finish()
        assert event.cache_read_tokens == 60

    def test_xai_cache_fields(self) -> None:
        translator = OpenAIChatTranslator(usage_fields=XAI_USAGE)
        translator.feed(usage(100, 10, cache_read_input_tokens=40, cache_creation_input_tokens=20))
        (event,) = translator.finish()
        assert (event.cache_read_tokens, event.cache_write_tokens) == (40, 20)

    def test_reasoning_token_count(self) -> None:
        translator = OpenAIChatTranslator()
        translator.feed(usage(5, 50, completion_tokens_details={"reasoning_tokens": 30}))
        (event,) = translator.finish()
        assert event.reasoning_tokens == 30


# ---------------------------------------------------------------------------
# Single-shot and token counting
# ---------------------------------------------------------------------------


def test_complete_once() -> None:
    body = json.dumps({"choices": [{"message": {"role": "assistant", "content": "Paris"}}]}).encode()
    recorder = Recorder(body)
    provider = _provider(recorder)
    assert provider.complete_once("Capital of France?") == "Paris"
    sent = recorder.json
    assert sent["messages"] == [{"role": "user", "content": "Capital of France?"}]
    assert "stream" not in sent


def test_count_tokens_falls_back_to_estimate() -> None:
    recorder = Recorder()
    provider = _provider(recorder)
    assert provider.count_tokens("abcdefgh") == 2
    assert recorder.requests == []
