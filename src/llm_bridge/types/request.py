"""Per-request metadata forwarded to vendors."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestMetadata:
    """Caller context some vendors accept as headers or body fields."""

    task_id: str | None = None
    mode: str | None = None
