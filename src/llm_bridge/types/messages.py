"""Request message type."""
from __future__ import annotations

from dataclasses import dataclass

from llm_bridge.types.content import CacheControl, ContentPart
from llm_bridge.types.enums import PartKind, Role


@dataclass(frozen=True)
class Message:
    """One conversation turn sent to a provider.

    ``content`` is either a plain string or a tuple of content parts.
    Messages are never mutated; helpers return new instances.
    """

    role: Role
    content: str | tuple[ContentPart, ...] = ""

    # --- Factory classmethods ---

    @classmethod
    def system(cls, text: str) -> Message:
        return cls(role=Role.SYSTEM, content=text)

    @classmethod
    def user(cls, content: str | tuple[ContentPart, ...]) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str | tuple[ContentPart, ...]) -> Message:
        return cls(role=Role.ASSISTANT, content=content)

    # --- Accessors ---

    @property
    def parts(self) -> tuple[ContentPart, ...]:
        """Content normalized to a tuple of parts."""
        if isinstance(self.content, str):
            return (ContentPart.of_text(self.content),) if self.content else ()
        return self.content

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        if isinstance(self.content, str):
            return self.content
        return "".join(p.text or "" for p in self.content if p.kind == PartKind.TEXT)

    def with_cache_breakpoint(self, cache_control: CacheControl | None = None) -> Message:
        """Return a copy whose last content part carries a cache breakpoint.

        Plain string content is wrapped into a single annotated text part.
        """
        control = cache_control or CacheControl()
        if isinstance(self.content, str):
            return Message(self.role, (ContentPart.of_text(self.content, control),))
        if not self.content:
            return self
        *head, last = self.content
        return Message(self.role, (*head, last.with_cache_control(control)))
