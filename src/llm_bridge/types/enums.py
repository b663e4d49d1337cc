"""Enumeration types for llm_bridge."""
from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Role of a message participant."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class PartKind(StrEnum):
    """Discriminator for content part types."""

    TEXT = "text"
    IMAGE = "image"


class StreamEventType(StrEnum):
    """Kinds of normalized events a provider stream yields."""

    TEXT = "text"
    REASONING = "reasoning"
    GROUNDING = "grounding"
    USAGE = "usage"
