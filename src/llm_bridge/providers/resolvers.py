"""Model resolution: static vendor tables and cached router catalogs."""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping

from llm_bridge.catalog.cache import CatalogKey, EndpointKey, ModelCatalogCache
from llm_bridge.catalog.types import ModelInfo
from llm_bridge.model_params import (
    ReasoningFormat,
    SamplingDefaults,
    get_model_params,
    strip_thinking_suffix,
)
from llm_bridge.providers.base import ResolvedModel
from llm_bridge.types.config import ProviderSettings

logger = logging.getLogger(__name__)


class _Resolver:
    def __init__(
        self,
        settings: ProviderSettings,
        *,
        sampling: SamplingDefaults,
        reasoning_format: ReasoningFormat,
    ) -> None:
        self._settings = settings
        self._sampling = sampling
        self._reasoning_format = reasoning_format

    def _resolved(self, requested_id: str, info: ModelInfo) -> ResolvedModel:
        wire_id, thinking = strip_thinking_suffix(requested_id)
        params = get_model_params(
            wire_id,
            info,
            self._settings,
            sampling=self._sampling,
            reasoning_format=self._reasoning_format,
            thinking=thinking,
        )
        return ResolvedModel(id=wire_id, info=info, params=params)


class StaticModelResolver(_Resolver):
    """Resolves against a built-in table.

    Unknown ids resolve to the default model, unless *fallback_info* is given,
    in which case the requested id is kept and described by *fallback_info*
    (for OpenAI-compatible endpoints that serve arbitrary models).
    """

    def __init__(
        self,
        settings: ProviderSettings,
        models: Mapping[str, ModelInfo],
        default_id: str,
        *,
        fallback_info: ModelInfo | None = None,
        sampling: SamplingDefaults = SamplingDefaults(),
        reasoning_format: ReasoningFormat = ReasoningFormat.OPENAI,
    ) -> None:
        super().__init__(settings, sampling=sampling, reasoning_format=reasoning_format)
        self._models = models
        self._default_id = default_id
        self._fallback_info = fallback_info

    def refresh(self) -> Mapping[str, ModelInfo]:
        return self._models

    def resolve(self) -> ResolvedModel:
        requested = self._settings.model_id or self._default_id
        info = self._models.get(requested)
        if info is None and self._fallback_info is not None:
            return self._resolved(requested, self._fallback_info)
        if info is None:
            logger.debug("Unknown model %r, using default %r", requested, self._default_id)
            requested = self._default_id
            info = self._models[requested]
        return self._resolved(requested, info)


class RouterModelResolver(_Resolver):
    """Resolves against a catalog fetched from the vendor and cached process-wide.

    Resolution itself never fetches: it reads whatever the cache holds and
    falls back to the hard-coded default model. :meth:`refresh` does the I/O.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        cache: ModelCatalogCache,
        key: CatalogKey,
        fetch_models: Callable[[], Mapping[str, ModelInfo]],
        *,
        default_id: str,
        default_info: ModelInfo,
        keep_unknown: bool = False,
        fetch_default_id: Callable[[], str] | None = None,
        fetch_endpoints: Callable[[str], Mapping[str, ModelInfo]] | None = None,
        sampling: SamplingDefaults = SamplingDefaults(),
        reasoning_format: ReasoningFormat = ReasoningFormat.OPENAI,
    ) -> None:
        super().__init__(settings, sampling=sampling, reasoning_format=reasoning_format)
        self._cache = cache
        self.key = key
        self._fetch_models = fetch_models
        self._default_id = default_id
        self._default_info = default_info
        self._keep_unknown = keep_unknown
        self._fetch_default_id = fetch_default_id
        self._fetch_endpoints = fetch_endpoints

    def refresh(self) -> Mapping[str, ModelInfo]:
        models = self._cache.get_models(self.key, self._fetch_models)
        if self._fetch_default_id is not None:
            self._cache.get_default_model(self.key, self._fetch_default_id)
        if self._fetch_endpoints is not None and self._settings.specific_provider:
            model_id = self._settings.model_id or self._default_model_id()
            fetch = self._fetch_endpoints
            self._cache.get_endpoints(EndpointKey(self.key, model_id), lambda: fetch(model_id))
        return models

    def _default_model_id(self) -> str:
        return self._cache.peek_default_model(self.key) or self._default_id

    def resolve(self) -> ResolvedModel:
        models = self._cache.peek(self.key) or {}
        default_id = self._default_model_id()
        requested = self._settings.model_id or default_id

        info = models.get(requested)
        if info is None:
            if self._keep_unknown and requested:
                return self._resolved(requested, self._default_info)
            requested = default_id
            info = models.get(default_id, self._default_info)

        endpoint = self._pinned_endpoint(requested)
        if endpoint is not None:
            info = dataclasses.replace(
                info,
                input_price=endpoint.input_price,
                output_price=endpoint.output_price,
                cache_write_price=endpoint.cache_write_price,
                cache_read_price=endpoint.cache_read_price,
                context_window=endpoint.context_window or info.context_window,
                max_tokens=endpoint.max_tokens or info.max_tokens,
                tiers=(),
            )
        return self._resolved(requested, info)

    def _pinned_endpoint(self, model_id: str) -> ModelInfo | None:
        provider = self._settings.specific_provider
        if not provider:
            return None
        endpoints = self._cache.peek_endpoints(EndpointKey(self.key, model_id)) or {}
        return endpoints.get(provider)
