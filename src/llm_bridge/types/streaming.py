"""Normalized stream events."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from llm_bridge.errors import SDKError
from llm_bridge.types.enums import StreamEventType


@dataclass(frozen=True)
class TextEvent:
    """Visible answer text."""

    text: str
    type: StreamEventType = field(default=StreamEventType.TEXT, init=False)


@dataclass(frozen=True)
class ReasoningEvent:
    """Model reasoning ("thinking") text."""

    text: str
    type: StreamEventType = field(default=StreamEventType.REASONING, init=False)


@dataclass(frozen=True)
class GroundingSource:
    title: str
    url: str


@dataclass(frozen=True)
class GroundingEvent:
    """Web sources a grounded answer cites."""

    sources: tuple[GroundingSource, ...]
    type: StreamEventType = field(default=StreamEventType.GROUNDING, init=False)


@dataclass(frozen=True)
class UsageEvent:
    """Token accounting for a completed stream; always the last event."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_write_tokens: int = 0
    reasoning_tokens: int = 0
    total_cost: float | None = None
    type: StreamEventType = field(default=StreamEventType.USAGE, init=False)

    def with_cost(self, total_cost: float | None) -> UsageEvent:
        return replace(self, total_cost=total_cost)


StreamEvent = TextEvent | ReasoningEvent | GroundingEvent | UsageEvent


class StreamAccumulator:
    """Collects stream events into display state.

    A stream that fails part-way keeps the text received so far; the
    terminating error is recorded on :attr:`error` instead of being lost.
    """

    def __init__(self) -> None:
        self._text_parts: list[str] = []
        self._reasoning_parts: list[str] = []
        self._sources: list[GroundingSource] = []
        self.usage: UsageEvent | None = None
        self.error: SDKError | None = None
        self._drained = False

    def process(self, event: StreamEvent) -> None:
        """Process a single stream event."""
        if isinstance(event, TextEvent):
            self._text_parts.append(event.text)
        elif isinstance(event, ReasoningEvent):
            self._reasoning_parts.append(event.text)
        elif isinstance(event, GroundingEvent):
            self._sources.extend(event.sources)
        elif isinstance(event, UsageEvent):
            self.usage = event

    def consume(self, events: Iterable[StreamEvent]) -> StreamAccumulator:
        """Drain *events*, recording a mid-stream SDK error on :attr:`error`."""
        try:
            for event in events:
                self.process(event)
            self._drained = True
        except SDKError as exc:
            self.error = exc
        return self

    @property
    def text(self) -> str:
        return "".join(self._text_parts)

    @property
    def reasoning(self) -> str:
        return "".join(self._reasoning_parts)

    @property
    def sources(self) -> list[GroundingSource]:
        return list(self._sources)

    @property
    def completed(self) -> bool:
        """True when the stream ended normally.

        A stream drained by :meth:`consume` counts with or without a usage
        event; events fed through :meth:`process` need the usage event.
        """
        return self.error is None and (self._drained or self.usage is not None)
