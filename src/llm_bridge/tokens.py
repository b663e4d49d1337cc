"""Local token estimation, used when a vendor cannot count tokens."""
from __future__ import annotations

import math
from collections.abc import Sequence

from llm_bridge._base64 import encode_to_base64
from llm_bridge.types.content import ContentPart
from llm_bridge.types.enums import PartKind

CHARS_PER_TOKEN = 4


def estimate_tokens(content: str | Sequence[ContentPart]) -> int:
    """Rough token count: four characters per token for text, and the
    square root of the encoded size for images."""
    if isinstance(content, str):
        return math.ceil(len(content) / CHARS_PER_TOKEN)

    total = 0
    for part in content:
        if part.kind == PartKind.TEXT and part.text:
            total += math.ceil(len(part.text) / CHARS_PER_TOKEN)
        elif part.kind == PartKind.IMAGE and part.image is not None:
            total += math.ceil(math.sqrt(len(encode_to_base64(part.image.data))))
    return total
