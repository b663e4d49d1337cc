"""llm_bridge type definitions."""
from __future__ import annotations

from llm_bridge.types.enums import PartKind, Role, StreamEventType
from llm_bridge.types.content import CacheControl, ContentPart, ImageData
from llm_bridge.types.messages import Message
from llm_bridge.types.request import RequestMetadata
from llm_bridge.types.streaming import (
    GroundingEvent,
    GroundingSource,
    ReasoningEvent,
    StreamAccumulator,
    StreamEvent,
    TextEvent,
    UsageEvent,
)
from llm_bridge.types.config import AdapterTimeout, ProviderSettings

__all__ = [
    "PartKind",
    "Role",
    "StreamEventType",
    "CacheControl",
    "ContentPart",
    "ImageData",
    "Message",
    "RequestMetadata",
    "GroundingEvent",
    "GroundingSource",
    "ReasoningEvent",
    "StreamAccumulator",
    "StreamEvent",
    "TextEvent",
    "UsageEvent",
    "AdapterTimeout",
    "ProviderSettings",
]
