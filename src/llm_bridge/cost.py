"""Cost accounting and prompt-cache breakpoints."""
from __future__ import annotations

from collections.abc import Sequence

from llm_bridge.catalog.types import ModelInfo
from llm_bridge.types.enums import Role
from llm_bridge.types.messages import Message

_PER_MILLION = 1_000_000


def calculate_cost(
    info: ModelInfo,
    input_tokens: int,
    output_tokens: int,
    cache_read_tokens: int = 0,
    cache_write_tokens: int = 0,
) -> float | None:
    """Dollar cost of one request, or ``None`` when the model has no pricing.

    The first pricing tier whose window holds *input_tokens* overrides the
    base prices it defines. Cache reads are part of *input_tokens* and are
    billed at the cache-read price (the input price when none is set);
    cache writes are billed separately at the cache-write price.
    """
    if not info.has_pricing:
        return None

    input_price = info.input_price
    output_price = info.output_price
    read_price = info.cache_read_price
    write_price = info.cache_write_price

    tier = info.tier_for(input_tokens)
    if tier is not None:
        if tier.input_price is not None:
            input_price = tier.input_price
        if tier.output_price is not None:
            output_price = tier.output_price
        if tier.cache_read_price is not None:
            read_price = tier.cache_read_price
        if tier.cache_write_price is not None:
            write_price = tier.cache_write_price

    input_price = input_price or 0.0
    output_price = output_price or 0.0
    read_price = input_price if read_price is None else read_price
    write_price = write_price or 0.0

    input_tokens = max(0, input_tokens)
    cache_read = min(max(0, cache_read_tokens), input_tokens)
    uncached = input_tokens - cache_read

    return (
        uncached * input_price
        + max(0, output_tokens) * output_price
        + cache_read * read_price
        + max(0, cache_write_tokens) * write_price
    ) / _PER_MILLION


def add_cache_breakpoints(messages: Sequence[Message]) -> list[Message]:
    """Mark the system message and the last two user messages as cache points.

    Returns new messages; the inputs are not modified.
    """
    user_indexes = [i for i, m in enumerate(messages) if m.role == Role.USER]
    targets = set(user_indexes[-2:])
    targets.update(i for i, m in enumerate(messages) if m.role == Role.SYSTEM)
    return [
        message.with_cache_breakpoint() if i in targets else message
        for i, message in enumerate(messages)
    ]
