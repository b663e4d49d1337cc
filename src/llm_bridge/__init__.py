"""llm-bridge: one streaming interface over many LLM vendor protocols."""
from __future__ import annotations

# Types
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

# Errors
from llm_bridge.errors import (
    SDKError,
    ProviderError,
    AuthenticationError,
    AccessDeniedError,
    NotFoundError,
    BadRequestError,
    RateLimitError,
    ServerError,
    ConfigurationError,
    UnsupportedOperationError,
    AuthLoadError,
    AuthRefreshError,
    RequestTimeoutError,
    NetworkError,
    VendorStreamError,
    MaxTokensReachedError,
    StreamInterruptedError,
    redact_secrets,
)

# Catalog, cost and tokens
from llm_bridge.catalog import ModelCatalogCache, ModelInfo, PricingTier, get_model_info
from llm_bridge.cost import add_cache_breakpoints, calculate_cost
from llm_bridge.tag_extractor import TagChunk, TagExtractor
from llm_bridge.tokens import estimate_tokens

# Providers
from llm_bridge.providers import (
    Capability,
    ChatProvider,
    CostPolicy,
    ModelSummary,
    ProviderRouter,
    ProviderServices,
    ResolvedModel,
    build_provider,
    complete_once,
    provider_names,
)

# Middleware
from llm_bridge.middleware import CostTracker, StreamRequest, cost_tracking_middleware, logging_middleware

__all__ = [
    # Types
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
    # Errors
    "SDKError",
    "ProviderError",
    "AuthenticationError",
    "AccessDeniedError",
    "NotFoundError",
    "BadRequestError",
    "RateLimitError",
    "ServerError",
    "ConfigurationError",
    "UnsupportedOperationError",
    "AuthLoadError",
    "AuthRefreshError",
    "RequestTimeoutError",
    "NetworkError",
    "VendorStreamError",
    "MaxTokensReachedError",
    "StreamInterruptedError",
    "redact_secrets",
    # Catalog, cost and tokens
    "ModelCatalogCache",
    "ModelInfo",
    "PricingTier",
    "get_model_info",
    "add_cache_breakpoints",
    "calculate_cost",
    "TagChunk",
    "TagExtractor",
    "estimate_tokens",
    # Providers
    "Capability",
    "ChatProvider",
    "CostPolicy",
    "ModelSummary",
    "ProviderRouter",
    "ProviderServices",
    "ResolvedModel",
    "build_provider",
    "complete_once",
    "provider_names",
    # Middleware
    "CostTracker",
    "StreamRequest",
    "cost_tracking_middleware",
    "logging_middleware",
]
