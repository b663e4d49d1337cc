"""Provider contract, vendor variants and the router."""
from __future__ import annotations

from llm_bridge.providers.base import (
    Capability,
    ChatProvider,
    CostPolicy,
    HttpRequestSpec,
    ModelSummary,
    ProviderServices,
    ResolvedModel,
    collect_text,
    default_services,
)
from llm_bridge.providers.router import ProviderRouter, build_provider, complete_once
from llm_bridge.providers.variants import PROVIDER_FACTORIES, provider_names, register

__all__ = [
    "Capability",
    "ChatProvider",
    "CostPolicy",
    "HttpRequestSpec",
    "ModelSummary",
    "ProviderServices",
    "ResolvedModel",
    "collect_text",
    "default_services",
    "ProviderRouter",
    "build_provider",
    "complete_once",
    "PROVIDER_FACTORIES",
    "provider_names",
    "register",
]
