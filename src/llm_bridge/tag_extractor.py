"""Incremental extraction of inline ``<tag>...</tag>`` spans from streamed text.

Some models interleave their reasoning with the answer using literal tags
(``<think>...</think>``). Fragments arrive split at arbitrary points, so a
delimiter may straddle two fragments. :class:`TagExtractor` emits everything
it can classify immediately and holds back only a suffix that could still
turn into the delimiter it is waiting for.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TagChunk:
    """A run of text and whether it was inside the tag."""

    matched: bool
    data: str


def _partial_suffix_length(text: str, delimiter: str) -> int:
    """Length of the longest suffix of *text* that is a proper prefix of *delimiter*."""
    for size in range(min(len(text), len(delimiter) - 1), 0, -1):
        if text.endswith(delimiter[:size]):
            return size
    return 0


class TagExtractor:
    """Split a fragment stream into tagged and untagged chunks.

    Concatenating every chunk returned by :meth:`update` and :meth:`final`
    (merging adjacent chunks of the same kind) gives the same result no
    matter how the input was split. Text inside an unclosed tag at the end
    of the stream is reported as matched.
    """

    def __init__(self, tag: str = "think") -> None:
        self._open = f"<{tag}>"
        self._close = f"</{tag}>"
        self._inside = False
        self._buffer = ""

    @property
    def inside(self) -> bool:
        return self._inside

    def update(self, fragment: str) -> list[TagChunk]:
        self._buffer += fragment
        chunks: list[TagChunk] = []

        while True:
            delimiter = self._close if self._inside else self._open
            index = self._buffer.find(delimiter)
            if index < 0:
                break
            self._emit(chunks, self._buffer[:index])
            self._buffer = self._buffer[index + len(delimiter):]
            self._inside = not self._inside

        held = _partial_suffix_length(self._buffer, delimiter)
        self._emit(chunks, self._buffer[: len(self._buffer) - held])
        self._buffer = self._buffer[len(self._buffer) - held:]
        return chunks

    def final(self) -> list[TagChunk]:
        """Flush held text; call once when the stream ends."""
        chunks: list[TagChunk] = []
        self._emit(chunks, self._buffer)
        self._buffer = ""
        return chunks

    def _emit(self, chunks: list[TagChunk], data: str) -> None:
        if not data:
            return
        if chunks and chunks[-1].matched == self._inside:
            chunks[-1] = TagChunk(self._inside, chunks[-1].data + data)
        else:
            chunks.append(TagChunk(self._inside, data))
