"""Explicit usage-field maps for the OpenAI chat dialect.

Vendors agree on ``prompt_tokens``/``completion_tokens`` and disagree on
everything else. Each vendor gets a :class:`UsageFields` naming exactly where
its counters live instead of a chain of guesses.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from llm_bridge.types.streaming import UsageEvent

Path = tuple[str, ...]


def dig(data: Any, path: Path) -> Any:
    for key in path:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def _first_int(data: Mapping[str, Any], paths: tuple[Path, ...]) -> int:
    for path in paths:
        value = dig(data, path)
        if isinstance(value, (int, float)):
            return int(value)
    return 0


@dataclass(frozen=True)
class UsageFields:
    input: tuple[Path, ...] = (("prompt_tokens",),)
    output: tuple[Path, ...] = (("completion_tokens",),)
    cache_read: tuple[Path, ...] = (("prompt_tokens_details", "cached_tokens"),)
    cache_write: tuple[Path, ...] = ()
    reasoning: tuple[Path, ...] = (("completion_tokens_details", "reasoning_tokens"),)
    cost: Callable[[Mapping[str, Any]], float | None] | None = None

    def read(self, usage: Mapping[str, Any]) -> UsageEvent:
        return UsageEvent(
            input_tokens=_first_int(usage, self.input),
            output_tokens=_first_int(usage, self.output),
            cache_read_tokens=_first_int(usage, self.cache_read),
            cache_write_tokens=_first_int(usage, self.cache_write),
            reasoning_tokens=_first_int(usage, self.reasoning),
            total_cost=self.cost(usage) if self.cost is not None else None,
        )


def reported_cost(usage: Mapping[str, Any]) -> float | None:
    value = usage.get("cost")
    return float(value) if isinstance(value, (int, float)) else None


def kilocode_cost(usage: Mapping[str, Any]) -> float | None:
    """Bring-your-own-key requests bill the upstream cost, not the router fee."""
    if usage.get("is_byok"):
        value = dig(usage, ("cost_details", "upstream_inference_cost"))
        return float(value) if isinstance(value, (int, float)) else None
    return reported_cost(usage)


OPENAI_USAGE = UsageFields()

XAI_USAGE = UsageFields(
    cache_read=(("prompt_tokens_details", "cached_tokens"), ("cache_read_input_tokens",)),
    cache_write=(("cache_creation_input_tokens",),),
)

DEEPSEEK_USAGE = UsageFields(cache_read=(("prompt_cache_hit_tokens",),))

REQUESTY_USAGE = UsageFields(
    cache_read=(("prompt_tokens_details", "cached_tokens"),),
    cache_write=(("prompt_tokens_details", "caching_tokens"),),
)

ANTHROPIC_PROXY_USAGE = UsageFields(
    cache_read=(("cache_read_input_tokens",), ("prompt_tokens_details", "cached_tokens")),
    cache_write=(("cache_creation_input_tokens",),),
)

OPENROUTER_USAGE = UsageFields(cost=reported_cost)

KILOCODE_USAGE = UsageFields(cost=kilocode_cost)

VERCEL_AI_GATEWAY_USAGE = UsageFields(
    cache_write=(("cache_creation_input_tokens",),),
    cost=reported_cost,
)
