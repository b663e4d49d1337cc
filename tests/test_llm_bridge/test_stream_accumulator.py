"""Tests for stream event types, messages and StreamAccumulator."""
from __future__ import annotations

from collections.abc import Iterator

from llm_bridge.errors import VendorStreamError
from llm_bridge.types.content import CacheControl, ContentPart
from llm_bridge.types.enums import PartKind, Role, StreamEventType
from llm_bridge.types.messages import Message
from llm_bridge.types.streaming import (
    GroundingEvent,
    GroundingSource,
    ReasoningEvent,
    StreamAccumulator,
    StreamEvent,
    TextEvent,
    UsageEvent,
)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestEvents:
    def test_event_types(self) -> None:
        assert TextEvent("a").type == StreamEventType.TEXT
        assert ReasoningEvent("a").type == StreamEventType.REASONING
        assert GroundingEvent(()).type == StreamEventType.GROUNDING
        assert UsageEvent().type == StreamEventType.USAGE

    def test_usage_with_cost(self) -> None:
        usage = UsageEvent(input_tokens=3, output_tokens=4)
        priced = usage.with_cost(0.5)
        assert priced.total_cost == 0.5
        assert priced.input_tokens == 3
        assert usage.total_cost is None


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class TestMessage:
    def test_factories(self) -> None:
        assert Message.system("s").role == Role.SYSTEM
        assert Message.user("u").role == Role.USER
        assert Message.assistant("a").role == Role.ASSISTANT

    def test_parts_of_string_content(self) -> None:
        assert Message.user("hi").parts == (ContentPart.of_text("hi"),)
        assert Message.user("").parts == ()

    def test_text_skips_images(self) -> None:
        msg = Message.user((ContentPart.of_text("a"), ContentPart.of_image(b"x"), ContentPart.of_text("b")))
        assert msg.text == "ab"

    def test_cache_breakpoint_on_multipart_message(self) -> None:
        msg = Message.user((ContentPart.of_image(b"x"), ContentPart.of_text("q")))
        marked = msg.with_cache_breakpoint()
        assert marked.content[0].cache_control is None
        assert marked.content[1].cache_control == CacheControl()
        assert msg.content[1].cache_control is None

    def test_image_data_uri(self) -> None:
        part = ContentPart.of_image(b"img", "image/jpeg")
        assert part.kind == PartKind.IMAGE
        assert part.image.data_uri == "data:image/jpeg;base64,aW1n"


# ---------------------------------------------------------------------------
# StreamAccumulator
# ---------------------------------------------------------------------------


def _events() -> list[StreamEvent]:
    return [
        ReasoningEvent("think "),
        ReasoningEvent("hard"),
        TextEvent("Hello"),
        TextEvent(" world"),
        GroundingEvent((GroundingSource("Docs", "https://docs.example"),)),
        UsageEvent(input_tokens=10, output_tokens=2, total_cost=0.01),
    ]


class TestStreamAccumulator:
    def test_collects_everything(self) -> None:
        acc = StreamAccumulator().consume(_events())
        assert acc.text == "Hello world"
        assert acc.reasoning == "think hard"
        assert acc.sources == [GroundingSource("Docs", "https://docs.example")]
        assert acc.usage == UsageEvent(input_tokens=10, output_tokens=2, total_cost=0.01)
        assert acc.completed

    def test_process_one_event_at_a_time(self) -> None:
        acc = StreamAccumulator()
        acc.process(TextEvent("a"))
        acc.process(TextEvent("b"))
        assert acc.text == "ab"
        assert not acc.completed

    def test_error_keeps_partial_text(self) -> None:
        def failing() -> Iterator[StreamEvent]:
            yield TextEvent("partial")
            raise VendorStreamError("upstream overloaded")

        acc = StreamAccumulator().consume(failing())
        assert acc.text == "partial"
        assert isinstance(acc.error, VendorStreamError)
        assert acc.usage is None
        assert not acc.completed

    def test_sources_returns_a_copy(self) -> None:
        acc = StreamAccumulator().consume(_events())
        acc.sources.clear()
        assert len(acc.sources) == 1
