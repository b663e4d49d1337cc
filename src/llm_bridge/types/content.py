"""Content parts for request messages."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from llm_bridge._base64 import make_data_uri
from llm_bridge.types.enums import PartKind


@dataclass(frozen=True)
class ImageData:
    """Inline image payload."""

    data: bytes
    media_type: str = "image/png"

    @property
    def data_uri(self) -> str:
        return make_data_uri(self.data, self.media_type)


@dataclass(frozen=True)
class CacheControl:
    """Prompt-cache breakpoint annotation."""

    type: str = "ephemeral"

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type}


@dataclass(frozen=True)
class ContentPart:
    """A single piece of message content (tagged union)."""

    kind: PartKind
    text: str | None = None
    image: ImageData | None = None
    cache_control: CacheControl | None = None

    # --- Factory classmethods ---

    @classmethod
    def of_text(cls, text: str, cache_control: CacheControl | None = None) -> ContentPart:
        """Create a text content part."""
        return cls(kind=PartKind.TEXT, text=text, cache_control=cache_control)

    @classmethod
    def of_image(cls, data: bytes, media_type: str = "image/png") -> ContentPart:
        """Create an inline image content part."""
        return cls(kind=PartKind.IMAGE, image=ImageData(data=data, media_type=media_type))

    def with_cache_control(self, cache_control: CacheControl | None = None) -> ContentPart:
        """Return a copy of this part carrying a cache breakpoint."""
        return dataclasses.replace(self, cache_control=cache_control or CacheControl())
