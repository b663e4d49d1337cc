"""Inline image encoding helpers."""
from __future__ import annotations

import base64
import mimetypes


def encode_to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def make_data_uri(data: bytes, media_type: str) -> str:
    """Build a ``data:`` URI, the form OpenAI-style APIs accept for images."""
    return f"data:{media_type};base64,{encode_to_base64(data)}"


def guess_image_type(file_path: str) -> str:
    """Guess an image MIME type from a file name, defaulting to PNG."""
    mime, _ = mimetypes.guess_type(file_path)
    if mime is None or not mime.startswith("image/"):
        return "image/png"
    return mime
