"""Provider selection and the caller-facing router."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence

from llm_bridge.catalog.types import ModelInfo
from llm_bridge.middleware import StreamHandler, StreamMiddleware, StreamRequest
from llm_bridge.providers.base import (
    Capability,
    ChatProvider,
    ModelSummary,
    ProviderServices,
    ResolvedModel,
    collect_text,
    default_services,
)
from llm_bridge.providers.variants import get_factory
from llm_bridge.types.config import ProviderSettings
from llm_bridge.types.content import ContentPart
from llm_bridge.types.messages import Message
from llm_bridge.types.request import RequestMetadata
from llm_bridge.types.streaming import StreamEvent

logger = logging.getLogger(__name__)


def build_provider(settings: ProviderSettings, services: ProviderServices | None = None) -> ChatProvider:
    """Assemble the provider named by ``settings.provider``.

    Raises :class:`~llm_bridge.errors.ConfigurationError` for unknown names
    and for settings the variant cannot work with (missing API key, ...).
    """
    factory = get_factory(settings.provider)
    provider = factory(settings, services or default_services())
    logger.debug("Built provider %s", settings.provider)
    return provider


def complete_once(
    provider: ChatProvider,
    prompt: str,
    stream: Callable[[str, Sequence[Message]], Iterator[StreamEvent]] | None = None,
) -> str:
    """Single-shot completion, streaming instead when the provider has no such endpoint.

    The fallback drives *stream*, ``provider.stream_completion`` by default,
    and concatenates the text events.
    """
    if provider.supports(Capability.SINGLE_SHOT):
        return provider.complete_once(prompt)
    logger.info("%s has no single-shot endpoint; collecting a stream instead", provider.name)
    stream_fn = stream or provider.stream_completion
    return collect_text(stream_fn("", [Message.user(prompt)]))


class ProviderRouter:
    """Dispatches calls to the provider selected by settings, through middleware."""

    def __init__(
        self,
        settings: ProviderSettings,
        services: ProviderServices | None = None,
        middleware: Sequence[StreamMiddleware] | None = None,
    ) -> None:
        self.settings = settings
        self.provider = build_provider(settings, services)
        self._middleware = list(middleware) if middleware else []

    @classmethod
    def from_env(
        cls,
        provider: str | None = None,
        *,
        environ: Mapping[str, str] | None = None,
        services: ProviderServices | None = None,
        middleware: Sequence[StreamMiddleware] | None = None,
    ) -> ProviderRouter:
        """Create a router from ``LLM_BRIDGE_*`` environment variables."""
        settings = ProviderSettings.from_env(provider, environ)
        return cls(settings, services, middleware)

    @property
    def name(self) -> str:
        return self.provider.name

    @property
    def capabilities(self) -> frozenset[Capability]:
        return self.provider.capabilities

    def add_middleware(self, middleware: StreamMiddleware) -> None:
        self._middleware.append(middleware)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def stream_completion(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        metadata: RequestMetadata | None = None,
    ) -> Iterator[StreamEvent]:
        """Stream events through the middleware chain.

        Lazy like :meth:`ChatProvider.stream_completion`; closing the
        returned iterator closes every middleware and the HTTP response.
        """
        provider = self.provider

        def handler(req: StreamRequest) -> Iterator[StreamEvent]:
            return provider.stream_completion(req.system_prompt, req.messages, req.metadata)

        chain: StreamHandler = handler
        for mw in reversed(self._middleware):
            prev_chain = chain
            chain = lambda req, _prev=prev_chain, _mw=mw: _mw(req, _prev)

        yield from chain(StreamRequest(provider.name, system_prompt, messages, metadata))

    def complete_once(self, prompt: str) -> str:
        """Like :func:`complete_once`; a stream fallback runs through the middleware."""
        return complete_once(self.provider, prompt, self.stream_completion)

    def count_tokens(self, content: str | Sequence[ContentPart]) -> int:
        return self.provider.count_tokens(content)

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def resolve_model(self) -> ResolvedModel:
        return self.provider.resolve_model()

    def current_model(self) -> ModelSummary:
        return self.provider.current_model()

    def refresh_models(self) -> Mapping[str, ModelInfo]:
        return self.provider.refresh_models()

    def close(self) -> None:
        self.provider.close()
