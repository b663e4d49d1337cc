"""Static model tables and router defaults."""
from __future__ import annotations

from llm_bridge.catalog.types import UNBOUNDED, ModelInfo, PricingTier

# ---------------------------------------------------------------------------
# Shared defaults
# ---------------------------------------------------------------------------

OPENAI_COMPATIBLE_DEFAULT_INFO = ModelInfo(
    context_window=128_000,
    supports_images=True,
    input_price=0.0,
    output_price=0.0,
    description="OpenAI-compatible model",
)

LOCAL_MODEL_DEFAULT_INFO = ModelInfo(
    context_window=200_000,
    max_tokens=4096,
    supports_images=True,
    supports_computer_use=True,
    supports_prompt_cache=True,
    input_price=0.0,
    output_price=0.0,
    cache_write_price=0.0,
    cache_read_price=0.0,
    description="Locally hosted model",
)

_CLAUDE_SONNET = ModelInfo(
    context_window=200_000,
    max_tokens=8192,
    supports_images=True,
    supports_computer_use=True,
    supports_prompt_cache=True,
    supports_reasoning_budget=True,
    input_price=3.0,
    output_price=15.0,
    cache_write_price=3.75,
    cache_read_price=0.3,
    display_name="Claude Sonnet",
)

OPENROUTER_DEFAULT_MODEL_ID = "anthropic/claude-sonnet-4"
OPENROUTER_DEFAULT_INFO = _CLAUDE_SONNET

REQUESTY_DEFAULT_MODEL_ID = "coding/claude-4-sonnet"
UNBOUND_DEFAULT_MODEL_ID = "anthropic/claude-3-7-sonnet-20250219"
LITELLM_DEFAULT_MODEL_ID = "claude-3-7-sonnet-20250219"
VERCEL_AI_GATEWAY_DEFAULT_MODEL_ID = "anthropic/claude-sonnet-4"
ROUTER_DEFAULT_INFO = _CLAUDE_SONNET

OLLAMA_DEFAULT_MODEL_ID = "devstral:24b"
LMSTUDIO_DEFAULT_MODEL_ID = "qwen2.5-coder-7b-instruct"

DEEPSEEK_R1_DEFAULT_TEMPERATURE = 0.6
DEEPSEEK_R1_DEFAULT_TOP_P = 0.95

# Models that reject a temperature field.
TEMPERATURE_UNSUPPORTED_PREFIXES = (
    "openai/o3",
    "openai/gpt5",
    "openai/gpt-5",
    "gpt-5",
    "o1",
    "o3-mini",
)
TEMPERATURE_UNSUPPORTED_IDS = frozenset({"openai/o1-pro"})

VERCEL_AI_GATEWAY_PROMPT_CACHING_MODELS = frozenset({
    "anthropic/claude-3-haiku",
    "anthropic/claude-3-opus",
    "anthropic/claude-3.5-haiku",
    "anthropic/claude-3.5-sonnet",
    "anthropic/claude-3.7-sonnet",
    "anthropic/claude-opus-4",
    "anthropic/claude-opus-4.1",
    "anthropic/claude-sonnet-4",
    "openai/gpt-4.1",
    "openai/gpt-4.1-mini",
    "openai/gpt-4o",
    "openai/gpt-4o-mini",
    "openai/o3-mini",
})

OPENROUTER_COMPUTER_USE_MODELS = frozenset({
    "anthropic/claude-3.5-sonnet",
    "anthropic/claude-3.7-sonnet",
    "anthropic/claude-3.7-sonnet:thinking",
    "anthropic/claude-sonnet-4",
    "anthropic/claude-opus-4",
})

OPENROUTER_REASONING_BUDGET_MODELS = frozenset({
    "anthropic/claude-3.7-sonnet:beta",
    "anthropic/claude-3.7-sonnet:thinking",
    "anthropic/claude-opus-4",
    "anthropic/claude-sonnet-4",
    "google/gemini-2.5-pro",
    "google/gemini-2.5-flash",
})

# ---------------------------------------------------------------------------
# Direct vendors
# ---------------------------------------------------------------------------

GROQ_DEFAULT_MODEL_ID = "llama-3.3-70b-versatile"
GROQ_MODELS = {
    "llama-3.3-70b-versatile": ModelInfo(
        context_window=131_072, max_tokens=32_768, input_price=0.59, output_price=0.79,
        description="Meta Llama 3.3 70B Versatile",
    ),
    "llama-3.1-8b-instant": ModelInfo(
        context_window=131_072, max_tokens=131_072, input_price=0.05, output_price=0.08,
    ),
    "moonshotai/kimi-k2-instruct": ModelInfo(
        context_window=131_072, max_tokens=16_384, input_price=1.0, output_price=3.0,
        cache_read_price=0.5, supports_prompt_cache=True,
    ),
    "qwen/qwen3-32b": ModelInfo(
        context_window=131_072, max_tokens=40_960, input_price=0.29, output_price=0.59,
    ),
}

XAI_DEFAULT_MODEL_ID = "grok-code-fast-1"
XAI_MODELS = {
    "grok-code-fast-1": ModelInfo(
        context_window=262_144, max_tokens=16_384, input_price=0.2, output_price=1.5,
        cache_read_price=0.02, supports_prompt_cache=True,
    ),
    "grok-4": ModelInfo(
        context_window=256_000, max_tokens=8192, input_price=3.0, output_price=15.0,
        cache_read_price=0.75, supports_prompt_cache=True, supports_images=True,
    ),
    "grok-3-mini": ModelInfo(
        context_window=131_072, max_tokens=8192, input_price=0.3, output_price=0.5,
        cache_read_price=0.07, supports_prompt_cache=True,
        supports_reasoning_effort=True,
    ),
}

DEEPSEEK_DEFAULT_MODEL_ID = "deepseek-chat"
DEEPSEEK_MODELS = {
    "deepseek-chat": ModelInfo(
        context_window=128_000, max_tokens=8192, input_price=0.27, output_price=1.1,
        cache_read_price=0.07, supports_prompt_cache=True,
    ),
    "deepseek-reasoner": ModelInfo(
        context_window=128_000, max_tokens=65_536, input_price=0.55, output_price=2.19,
        cache_read_price=0.14, supports_prompt_cache=True,
    ),
}

MISTRAL_DEFAULT_MODEL_ID = "codestral-latest"
MISTRAL_MODELS = {
    "codestral-latest": ModelInfo(
        context_window=256_000, max_tokens=256_000, input_price=0.3, output_price=0.9,
    ),
    "mistral-large-latest": ModelInfo(
        context_window=131_000, max_tokens=131_000, input_price=2.0, output_price=6.0,
    ),
    "devstral-medium-latest": ModelInfo(
        context_window=131_072, max_tokens=8192, input_price=0.4, output_price=2.0,
        supports_images=True,
    ),
}

ZAI_DEFAULT_MODEL_ID = "glm-4.5"
ZAI_MODELS = {
    "glm-4.5": ModelInfo(
        context_window=131_072, max_tokens=98_304, input_price=0.6, output_price=2.2,
        cache_read_price=0.11, supports_prompt_cache=True,
    ),
    "glm-4.5-air": ModelInfo(
        context_window=131_072, max_tokens=98_304, input_price=0.2, output_price=1.1,
        cache_read_price=0.03, supports_prompt_cache=True,
    ),
}

CHUTES_DEFAULT_MODEL_ID = "deepseek-ai/DeepSeek-R1-0528"
CHUTES_MODELS = {
    "deepseek-ai/DeepSeek-R1-0528": ModelInfo(
        context_window=163_840, max_tokens=32_768, input_price=0.0, output_price=0.0,
    ),
    "deepseek-ai/DeepSeek-R1": ModelInfo(
        context_window=163_840, max_tokens=32_768, input_price=0.0, output_price=0.0,
    ),
    "deepseek-ai/DeepSeek-V3": ModelInfo(
        context_window=163_840, max_tokens=32_768, input_price=0.0, output_price=0.0,
    ),
    "Qwen/Qwen3-235B-A22B": ModelInfo(
        context_window=40_960, max_tokens=32_768, input_price=0.0, output_price=0.0,
    ),
}

QWEN_CODE_DEFAULT_MODEL_ID = "qwen3-coder-plus"
QWEN_CODE_MODELS = {
    "qwen3-coder-plus": ModelInfo(
        context_window=1_000_000, max_tokens=65_536,
        input_price=0.0, output_price=0.0, cache_write_price=0.0, cache_read_price=0.0,
        description="Qwen3 Coder Plus, 1M context window",
    ),
    "qwen3-coder-flash": ModelInfo(
        context_window=1_000_000, max_tokens=65_536,
        input_price=0.0, output_price=0.0, cache_write_price=0.0, cache_read_price=0.0,
        description="Qwen3 Coder Flash, 1M context window",
    ),
}

GEMINI_DEFAULT_MODEL_ID = "gemini-2.0-flash-001"
GEMINI_MODELS = {
    "gemini-2.5-pro": ModelInfo(
        context_window=1_048_576, max_tokens=64_000, max_thinking_tokens=32_768,
        supports_images=True, supports_prompt_cache=True,
        supports_reasoning_budget=True, required_reasoning_budget=True,
        input_price=2.5, output_price=15.0, cache_read_price=0.625, cache_write_price=4.5,
        tiers=(
            PricingTier(context_window=200_000, input_price=1.25, output_price=10.0, cache_read_price=0.31),
            PricingTier(context_window=UNBOUNDED, input_price=2.5, output_price=15.0, cache_read_price=0.625),
        ),
    ),
    "gemini-2.5-flash": ModelInfo(
        context_window=1_048_576, max_tokens=65_536, max_thinking_tokens=24_576,
        supports_images=True, supports_prompt_cache=True, supports_reasoning_budget=True,
        input_price=0.3, output_price=2.5, cache_read_price=0.075, cache_write_price=1.0,
    ),
    "gemini-2.0-flash-001": ModelInfo(
        context_window=1_048_576, max_tokens=8192,
        supports_images=True, supports_prompt_cache=True,
        input_price=0.1, output_price=0.4, cache_read_price=0.025, cache_write_price=1.0,
    ),
}

GEMINI_CLI_DEFAULT_MODEL_ID = "gemini-2.5-pro"
GEMINI_CLI_MODELS = {
    "gemini-2.5-pro": ModelInfo(
        context_window=1_048_576, max_tokens=64_000, max_thinking_tokens=32_768,
        supports_images=True, supports_reasoning_budget=True,
        input_price=0.0, output_price=0.0,
    ),
    "gemini-2.5-flash": ModelInfo(
        context_window=1_048_576, max_tokens=65_536, max_thinking_tokens=24_576,
        supports_images=True, supports_reasoning_budget=True,
        input_price=0.0, output_price=0.0,
    ),
}

STATIC_MODELS = {
    "groq": GROQ_MODELS,
    "xai": XAI_MODELS,
    "deepseek": DEEPSEEK_MODELS,
    "mistral": MISTRAL_MODELS,
    "zai": ZAI_MODELS,
    "chutes": CHUTES_MODELS,
    "qwen-code": QWEN_CODE_MODELS,
    "gemini": GEMINI_MODELS,
    "gemini-cli": GEMINI_CLI_MODELS,
}
