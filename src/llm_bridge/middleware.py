"""Built-in stream middleware."""
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import closing
from dataclasses import dataclass, field

from llm_bridge.types.messages import Message
from llm_bridge.types.request import RequestMetadata
from llm_bridge.types.streaming import StreamEvent, UsageEvent


@dataclass(frozen=True)
class StreamRequest:
    """One ``stream_completion`` call as seen by middleware."""

    provider: str
    system_prompt: str
    messages: Sequence[Message]
    metadata: RequestMetadata | None = None


StreamHandler = Callable[[StreamRequest], Iterator[StreamEvent]]
StreamMiddleware = Callable[[StreamRequest, StreamHandler], Iterator[StreamEvent]]


def logging_middleware(logger: logging.Logger | None = None) -> StreamMiddleware:
    """Create middleware that logs each stream's request, usage, cost and latency."""
    log = logger or logging.getLogger("llm_bridge")

    def middleware(request: StreamRequest, next_fn: StreamHandler) -> Iterator[StreamEvent]:
        log.info(
            "LLM stream: provider=%s messages=%d task=%s",
            request.provider,
            len(request.messages),
            request.metadata.task_id if request.metadata else None,
        )
        start = time.monotonic()
        with closing(next_fn(request)) as events:
            for event in events:
                if isinstance(event, UsageEvent):
                    log.info(
                        "LLM usage: input=%d output=%d cache_read=%d cache_write=%d cost=%s latency=%.2fs",
                        event.input_tokens,
                        event.output_tokens,
                        event.cache_read_tokens,
                        event.cache_write_tokens,
                        event.total_cost,
                        time.monotonic() - start,
                    )
                yield event

    return middleware


@dataclass
class CostTracker:
    """Tracks cumulative token usage and cost across streams."""

    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cache_read_tokens: int = 0
    total_cache_write_tokens: int = 0
    total_cost: float = 0.0
    requests: int = 0
    unpriced_requests: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, usage: UsageEvent) -> None:
        with self._lock:
            self.total_input_tokens += usage.input_tokens
            self.total_output_tokens += usage.output_tokens
            self.total_cache_read_tokens += usage.cache_read_tokens
            self.total_cache_write_tokens += usage.cache_write_tokens
            self.requests += 1
            if usage.total_cost is None:
                self.unpriced_requests += 1
            else:
                self.total_cost += usage.total_cost


def cost_tracking_middleware(tracker: CostTracker) -> StreamMiddleware:
    """Create middleware that records each stream's usage on a CostTracker."""

    def middleware(request: StreamRequest, next_fn: StreamHandler) -> Iterator[StreamEvent]:
        with closing(next_fn(request)) as events:
            for event in events:
                if isinstance(event, UsageEvent):
                    tracker.record(event)
                yield event

    return middleware
