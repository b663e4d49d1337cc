"""Model catalog: capability and pricing metadata."""
from __future__ import annotations

from llm_bridge.catalog._data import STATIC_MODELS
from llm_bridge.catalog.cache import (
    DEFAULT_TTL_SECONDS,
    CatalogKey,
    EndpointKey,
    ModelCatalog,
    ModelCatalogCache,
)
from llm_bridge.catalog.types import ModelInfo, PricingTier


def get_model_info(provider: str, model_id: str) -> ModelInfo | None:
    """Look up a model in a vendor's built-in table.

    Returns ``None`` for unknown models and for vendors whose catalog is
    only available over the network.
    """
    return STATIC_MODELS.get(provider, {}).get(model_id)


__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CatalogKey",
    "EndpointKey",
    "ModelCatalog",
    "ModelCatalogCache",
    "ModelInfo",
    "PricingTier",
    "get_model_info",
]
