"""Model catalog types."""
from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class PricingTier:
    """Prices that apply while the prompt fits within ``context_window``."""

    context_window: float
    """Upper bound on input tokens for this tier (``math.inf`` for the last)."""

    input_price: float | None = None
    output_price: float | None = None
    cache_write_price: float | None = None
    cache_read_price: float | None = None
    name: str | None = None


@dataclass(frozen=True)
class ModelInfo:
    """Capabilities and pricing of one model. Prices are USD per million tokens."""

    context_window: int
    """Max total tokens."""

    max_tokens: int | None = None
    """Max output tokens; ``None`` when the vendor does not say."""

    max_thinking_tokens: int | None = None
    """Upper bound for a reasoning budget."""

    input_price: float | None = None
    output_price: float | None = None
    cache_write_price: float | None = None
    cache_read_price: float | None = None

    supports_prompt_cache: bool = False
    """Whether the model honours cache breakpoints."""

    supports_images: bool = False
    supports_computer_use: bool = False

    supports_reasoning_budget: bool = False
    """Accepts an explicit thinking-token budget."""

    required_reasoning_budget: bool = False
    """A thinking budget is always sent, regardless of settings."""

    supports_reasoning_effort: bool = False
    """Accepts a low/medium/high reasoning effort."""

    reasoning_effort: str | None = None
    """Default effort when the settings do not choose one."""

    description: str | None = None
    display_name: str | None = None

    tiers: tuple[PricingTier, ...] = ()
    """Context-size pricing tiers, kept sorted by ``context_window``."""

    def __post_init__(self) -> None:
        if self.tiers and self.input_price is None and self.output_price is None:
            raise ValueError("Pricing tiers require base input or output prices")
        ordered = tuple(sorted(self.tiers, key=lambda t: t.context_window))
        object.__setattr__(self, "tiers", ordered)

    @property
    def has_pricing(self) -> bool:
        return self.input_price is not None or self.output_price is not None

    def tier_for(self, input_tokens: int) -> PricingTier | None:
        """First tier whose window holds *input_tokens*, or ``None``."""
        for tier in self.tiers:
            if input_tokens <= tier.context_window:
                return tier
        return None


UNBOUNDED = math.inf
