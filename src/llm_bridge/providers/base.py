"""Provider contract and the composed :class:`ChatProvider`."""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

import httpx

from llm_bridge._http import HttpClient
from llm_bridge._sse import iter_sse_json
from llm_bridge.auth.strategies import AuthStrategy, RequestAuth
from llm_bridge.catalog.cache import ModelCatalogCache
from llm_bridge.catalog.types import ModelInfo
from llm_bridge.cost import calculate_cost
from llm_bridge.errors import (
    NetworkError,
    SDKError,
    StreamInterruptedError,
    UnsupportedOperationError,
)
from llm_bridge.model_params import ModelParams
from llm_bridge.tokens import estimate_tokens
from llm_bridge.types.content import ContentPart
from llm_bridge.types.messages import Message
from llm_bridge.types.request import RequestMetadata
from llm_bridge.types.streaming import StreamEvent, TextEvent, UsageEvent

logger = logging.getLogger(__name__)


class Capability(StrEnum):
    """Operations a provider may advertise beyond the streaming contract."""

    STREAMING = "streaming"
    SINGLE_SHOT = "single_shot"
    TOKEN_COUNTING = "token_counting"
    MODEL_RESOLUTION = "model_resolution"


class CostPolicy(StrEnum):
    """Where the ``total_cost`` of the final usage event comes from."""

    COMPUTED = "computed"
    """Computed from the model's prices."""
    VENDOR = "vendor"
    """Reported by the vendor; computed when the vendor omits it."""
    FREE = "free"
    """Always zero (free tiers)."""


@dataclass(frozen=True)
class ResolvedModel:
    id: str
    """Identifier sent on the wire."""
    info: ModelInfo
    params: ModelParams


@dataclass(frozen=True)
class ModelSummary:
    """Display data for the active model."""

    provider: str
    id: str
    display_name: str
    context_window: int
    max_tokens: int | None
    input_price: float | None
    output_price: float | None
    supports_images: bool
    supports_prompt_cache: bool
    capabilities: frozenset[Capability]


@dataclass(frozen=True)
class HttpRequestSpec:
    """A vendor request, ready to send."""

    path: str
    body: dict[str, Any]
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, str] = field(default_factory=dict)


class RequestShaper(Protocol):
    """Builds vendor request bodies and reads non-streaming responses."""

    def stream_request(
        self,
        model: ResolvedModel,
        system_prompt: str,
        messages: Sequence[Message],
        metadata: RequestMetadata | None,
        auth: RequestAuth,
    ) -> HttpRequestSpec: ...

    def single_shot_request(self, model: ResolvedModel, prompt: str, auth: RequestAuth) -> HttpRequestSpec: ...

    def parse_completion(self, body: Any) -> str: ...


class TokenCounter(Protocol):
    def count_tokens_request(
        self, model: ResolvedModel, content: Sequence[ContentPart], auth: RequestAuth
    ) -> HttpRequestSpec: ...

    def parse_token_count(self, body: Any) -> int | None: ...


class StreamTranslator(Protocol):
    """Per-call state machine turning vendor payloads into stream events.

    An in-band vendor error is stored on :attr:`error`; the provider raises it
    after yielding the events of the payload that carried it and whatever
    :meth:`flush` releases. :meth:`finish` returns the flushed events plus
    usage, when the vendor reported any.
    """

    error: SDKError | None

    def feed(self, payload: dict[str, Any]) -> list[StreamEvent]: ...

    def flush(self) -> list[StreamEvent]: ...

    def finish(self) -> list[StreamEvent]: ...


TranslatorFactory = Callable[[ResolvedModel], StreamTranslator]


class ModelResolver(Protocol):
    def refresh(self) -> Mapping[str, ModelInfo]:
        """Make sure the catalog is loaded; may do network I/O."""
        ...

    def resolve(self) -> ResolvedModel:
        """Pick the model from settings and cached data; never does I/O."""
        ...


@dataclass(frozen=True)
class ProviderServices:
    """Process-scoped collaborators shared by every provider."""

    catalog: ModelCatalogCache = field(default_factory=ModelCatalogCache)
    transport: httpx.BaseTransport | None = None
    """Transport for every vendor HTTP client; tests pass a MockTransport."""
    sleep: Callable[[float], None] = time.sleep


_default_services: ProviderServices | None = None


def default_services() -> ProviderServices:
    """The shared services used when a caller does not supply its own."""
    global _default_services
    if _default_services is None:
        _default_services = ProviderServices()
    return _default_services


def collect_text(events: Iterable[StreamEvent]) -> str:
    """Concatenate the text events of a stream."""
    return "".join(e.text for e in events if isinstance(e, TextEvent))


# ---------------------------------------------------------------------------
# ChatProvider
# ---------------------------------------------------------------------------


class ChatProvider:
    """A vendor integration assembled from interchangeable parts."""

    def __init__(
        self,
        name: str,
        *,
        http: HttpClient,
        shaper: RequestShaper,
        translator_factory: TranslatorFactory,
        auth: AuthStrategy,
        resolver: ModelResolver,
        capabilities: frozenset[Capability],
        cost_policy: CostPolicy = CostPolicy.COMPUTED,
        token_counter: TokenCounter | None = None,
    ) -> None:
        self.name = name
        self.http = http
        self.shaper = shaper
        self.auth = auth
        self.resolver = resolver
        self.capabilities = capabilities
        self.cost_policy = cost_policy
        self._translator_factory = translator_factory
        self._token_counter = token_counter

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def resolve_model(self) -> ResolvedModel:
        return self.resolver.resolve()

    def refresh_models(self) -> Mapping[str, ModelInfo]:
        return self.resolver.refresh()

    def current_model(self) -> ModelSummary:
        model = self.resolve_model()
        info = model.info
        return ModelSummary(
            provider=self.name,
            id=model.id,
            display_name=info.display_name or model.id,
            context_window=info.context_window,
            max_tokens=model.params.max_tokens,
            input_price=info.input_price,
            output_price=info.output_price,
            supports_images=info.supports_images,
            supports_prompt_cache=info.supports_prompt_cache,
            capabilities=self.capabilities,
        )

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def stream_completion(
        self,
        system_prompt: str,
        messages: Sequence[Message],
        metadata: RequestMetadata | None = None,
    ) -> Iterator[StreamEvent]:
        """Stream normalized events for one completion.

        Nothing is sent until the first event is pulled. Closing the
        iterator early closes the HTTP response.
        """
        self.resolver.refresh()
        model = self.resolve_model()
        translator = self._translator_factory(model)

        def open_stream(auth: RequestAuth) -> httpx.Response:
            spec = self.shaper.stream_request(model, system_prompt, messages, metadata, auth)
            return self.http.open_stream(
                "POST",
                _target(spec.path, auth),
                json=spec.body,
                headers={**auth.headers, **spec.headers},
                params=spec.params,
            )

        response = self.auth.call(open_stream)
        try:
            try:
                for payload in iter_sse_json(self.http.iter_lines(response)):
                    yield from translator.feed(payload)
                    if translator.error is not None:
                        yield from translator.flush()
                        raise translator.error
            except NetworkError as exc:
                yield from translator.flush()
                raise StreamInterruptedError(
                    f"{self.name} stream dropped before completion: {exc}", cause=exc
                ) from exc
            for event in translator.finish():
                if isinstance(event, UsageEvent):
                    event = self._priced(model, event)
                yield event
        finally:
            response.close()

    def _priced(self, model: ResolvedModel, usage: UsageEvent) -> UsageEvent:
        if self.cost_policy == CostPolicy.FREE:
            return usage.with_cost(0.0)
        if self.cost_policy == CostPolicy.VENDOR and usage.total_cost is not None:
            return usage
        return usage.with_cost(calculate_cost(
            model.info,
            usage.input_tokens,
            usage.output_tokens,
            usage.cache_read_tokens,
            usage.cache_write_tokens,
        ))

    # ------------------------------------------------------------------
    # Single-shot and token counting
    # ------------------------------------------------------------------

    def complete_once(self, prompt: str) -> str:
        """Non-streaming completion; requires :attr:`Capability.SINGLE_SHOT`."""
        if not self.supports(Capability.SINGLE_SHOT):
            raise UnsupportedOperationError(f"Provider '{self.name}' has no single-shot endpoint")
        self.resolver.refresh()
        model = self.resolve_model()

        def send(auth: RequestAuth) -> Any:
            spec = self.shaper.single_shot_request(model, prompt, auth)
            return self.http.post_json(
                _target(spec.path, auth),
                spec.body,
                headers={**auth.headers, **spec.headers},
                params=spec.params,
            ).body

        return self.shaper.parse_completion(self.auth.call(send))

    def count_tokens(self, content: str | Sequence[ContentPart]) -> int:
        """Vendor token count where supported, local estimate otherwise."""
        parts = (ContentPart.of_text(content),) if isinstance(content, str) else tuple(content)
        if self._token_counter is None or not self.supports(Capability.TOKEN_COUNTING):
            return estimate_tokens(parts)

        counter = self._token_counter
        model = self.resolve_model()

        def send(auth: RequestAuth) -> Any:
            spec = counter.count_tokens_request(model, parts, auth)
            return self.http.post_json(
                _target(spec.path, auth),
                spec.body,
                headers={**auth.headers, **spec.headers},
                params=spec.params,
            ).body

        try:
            count = counter.parse_token_count(self.auth.call(send))
        except SDKError as exc:
            logger.warning("%s token counting failed, using local estimate: %s", self.name, exc)
            return estimate_tokens(parts)
        if count is None:
            logger.warning("%s returned no token count, using local estimate", self.name)
            return estimate_tokens(parts)
        return count

    def close(self) -> None:
        self.http.close()


def _target(path: str, auth: RequestAuth) -> str:
    if auth.base_url:
        return f"{auth.base_url.rstrip('/')}/{path.lstrip('/')}"
    return path
