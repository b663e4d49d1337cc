"""Server-Sent Events parsing."""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DONE_MARKER = "[DONE]"


@dataclass
class SSEEvent:
    """One dispatched SSE event."""

    event: str = "message"
    data: str = ""
    id: str = ""
    retry: int | None = None


def parse_sse_lines(lines: Iterable[str]) -> Iterator[SSEEvent]:
    """Group raw SSE lines into events.

    - Lines starting with ``:`` are comments.
    - A blank line dispatches the pending event.
    - One leading space after the field colon is dropped.
    - Pending data is flushed when the input ends without a blank line.
    """
    current = SSEEvent()
    data_lines: list[str] = []

    for raw_line in lines:
        line = raw_line.rstrip("\r\n")

        if not line:
            if data_lines:
                current.data = "\n".join(data_lines)
                yield current
            current = SSEEvent()
            data_lines = []
            continue

        if line.startswith(":"):
            continue

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "data":
            data_lines.append(value)
        elif name == "event":
            current.event = value
        elif name == "id":
            current.id = value
        elif name == "retry" and value.isdigit():
            current.retry = int(value)

    if data_lines:
        current.data = "\n".join(data_lines)
        yield current


def iter_sse_json(lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """Decode the JSON payload of each SSE event.

    The ``[DONE]`` sentinel is dropped. Payloads that are not a JSON object
    are logged and skipped; they never end the stream.
    """
    for event in parse_sse_lines(lines):
        data = event.data.strip()
        if not data or data == DONE_MARKER:
            continue
        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            logger.warning("Skipping unparseable SSE payload: %.200s", data)
            continue
        if not isinstance(payload, dict):
            logger.warning("Skipping non-object SSE payload: %.200s", data)
            continue
        yield payload
