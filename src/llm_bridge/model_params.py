"""Derived request parameters: output limit, sampling and reasoning."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from llm_bridge.catalog._data import (
    DEEPSEEK_R1_DEFAULT_TEMPERATURE,
    DEEPSEEK_R1_DEFAULT_TOP_P,
    TEMPERATURE_UNSUPPORTED_IDS,
    TEMPERATURE_UNSUPPORTED_PREFIXES,
)
from llm_bridge.catalog.types import ModelInfo
from llm_bridge.types.config import ProviderSettings

THINKING_SUFFIX = ":thinking"

DEFAULT_REASONING_MAX_TOKENS = 16_384
DEFAULT_THINKING_BUDGET = 8192
MIN_THINKING_BUDGET = 1024
GEMINI_25_PRO_MIN_THINKING_BUDGET = 128


class ReasoningFormat(StrEnum):
    """How a vendor expects reasoning controls in the request body."""

    OPENAI = "openai"
    OPENROUTER = "openrouter"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


@dataclass(frozen=True)
class SamplingDefaults:
    """Per-variant temperature defaults.

    ``r1_temperature`` applies to the DeepSeek-R1 family, which degrades at
    temperature 0.
    """

    temperature: float = 0.0
    r1_temperature: float | None = None
    r1_top_p: float | None = None

    def for_model(self, model_id: str) -> tuple[float, float | None]:
        if self.r1_temperature is not None and is_deepseek_r1(model_id):
            return self.r1_temperature, self.r1_top_p
        return self.temperature, None


ROUTER_SAMPLING = SamplingDefaults(
    temperature=0.0,
    r1_temperature=DEEPSEEK_R1_DEFAULT_TEMPERATURE,
    r1_top_p=DEEPSEEK_R1_DEFAULT_TOP_P,
)


@dataclass(frozen=True)
class ModelParams:
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    reasoning_effort: str | None = None
    reasoning_budget: int | None = None
    reasoning: dict[str, Any] | None = None
    """Body fragment carrying the reasoning controls, shaped for the vendor."""
    thinking: bool = False
    """The requested id carried a ``:thinking`` suffix."""


def is_deepseek_r1(model_id: str) -> bool:
    lowered = model_id.lower()
    return "deepseek-r1" in lowered or lowered.startswith("perplexity/sonar-reasoning")


def supports_temperature(model_id: str) -> bool:
    """False for models that reject a temperature field."""
    if model_id in TEMPERATURE_UNSUPPORTED_IDS:
        return False
    return not model_id.startswith(TEMPERATURE_UNSUPPORTED_PREFIXES)


def strip_thinking_suffix(model_id: str) -> tuple[str, bool]:
    """Split ``"model:thinking"`` into the wire id and a thinking flag."""
    if model_id.endswith(THINKING_SUFFIX):
        return model_id[: -len(THINKING_SUFFIX)], True
    return model_id, False


def should_use_reasoning_budget(info: ModelInfo, settings: ProviderSettings, thinking: bool = False) -> bool:
    return (
        info.required_reasoning_budget
        or thinking
        or (info.supports_reasoning_budget and settings.enable_reasoning_effort)
    )


def should_use_reasoning_effort(info: ModelInfo, settings: ProviderSettings) -> bool:
    if info.reasoning_effort is not None:
        return True
    return info.supports_reasoning_effort and settings.reasoning_effort is not None


def max_output_tokens(
    model_id: str,
    info: ModelInfo,
    settings: ProviderSettings,
    *,
    use_budget: bool = False,
) -> int | None:
    """Output limit to request.

    An explicit setting wins. Otherwise the model's limit is capped at 20% of
    its context window so the prompt keeps most of it; GPT-5 models use their
    full limit.
    """
    if settings.max_tokens:
        return settings.max_tokens
    if use_budget:
        return DEFAULT_REASONING_MAX_TOKENS
    if not info.max_tokens or info.max_tokens <= 0:
        return None
    if "gpt-5" in model_id.lower():
        return info.max_tokens
    return min(info.max_tokens, math.ceil(info.context_window * 0.2))


def _reasoning_fragment(
    fmt: ReasoningFormat,
    budget: int | None,
    effort: str | None,
) -> dict[str, Any] | None:
    if fmt == ReasoningFormat.OPENROUTER:
        if budget is not None:
            return {"reasoning": {"max_tokens": budget}}
        if effort:
            return {"reasoning": {"effort": effort}}
        return None
    if fmt == ReasoningFormat.ANTHROPIC:
        if budget is None:
            return None
        return {"thinking": {"type": "enabled", "budget_tokens": budget}}
    if fmt == ReasoningFormat.GEMINI:
        if budget is None:
            return None
        return {"thinkingConfig": {"thinkingBudget": budget, "includeThoughts": True}}
    if effort and effort != "minimal":
        return {"reasoning_effort": effort}
    return None


def get_model_params(
    model_id: str,
    info: ModelInfo,
    settings: ProviderSettings,
    *,
    sampling: SamplingDefaults = SamplingDefaults(),
    reasoning_format: ReasoningFormat = ReasoningFormat.OPENAI,
    thinking: bool = False,
) -> ModelParams:
    """Resolve output limit, sampling and reasoning controls for one model."""
    use_budget = should_use_reasoning_budget(info, settings, thinking)
    max_tokens = max_output_tokens(model_id, info, settings, use_budget=use_budget)

    default_temperature, top_p = sampling.for_model(model_id)
    temperature: float | None = (
        settings.temperature if settings.temperature is not None else default_temperature
    )
    budget: int | None = None
    effort: str | None = None

    if use_budget:
        is_gemini_pro = "gemini-2.5-pro" in model_id
        floor = GEMINI_25_PRO_MIN_THINKING_BUDGET if is_gemini_pro else MIN_THINKING_BUDGET
        budget = settings.reasoning_budget or (floor if is_gemini_pro else DEFAULT_THINKING_BUDGET)
        if max_tokens and budget > math.floor(max_tokens * 0.8):
            budget = math.floor(max_tokens * 0.8)
        budget = max(budget, floor)
        temperature = 1.0
    elif should_use_reasoning_effort(info, settings):
        effort = settings.reasoning_effort or info.reasoning_effort

    if not supports_temperature(model_id):
        temperature = None

    return ModelParams(
        max_tokens=max_tokens,
        temperature=temperature,
        top_p=top_p,
        reasoning_effort=effort,
        reasoning_budget=budget,
        reasoning=_reasoning_fragment(reasoning_format, budget, effort),
        thinking=thinking,
    )
