"""Vendor variants: each one assembles a :class:`ChatProvider` from parts.

Factories are registered by provider name and looked up by
:func:`llm_bridge.providers.router.build_provider`.
"""
from __future__ import annotations

import base64
import binascii
import dataclasses
import json
from collections.abc import Callable, Mapping
from typing import Any

from llm_bridge._http import HttpClient
from llm_bridge.auth.credentials import GEMINI_CREDENTIALS_PATH, QWEN_CREDENTIALS_PATH, CredentialFile, Credentials
from llm_bridge.auth.exchange import google_exchange, qwen_exchange
from llm_bridge.auth.manager import CredentialManager
from llm_bridge.auth.strategies import AuthStrategy, OAuthAuth, StaticKeyAuth
from llm_bridge.catalog import _data
from llm_bridge.catalog.cache import CatalogKey
from llm_bridge.catalog.fetchers import (
    fetch_lmstudio_models,
    fetch_litellm_models,
    fetch_ollama_models,
    fetch_openrouter_endpoints,
    fetch_openrouter_models,
    fetch_requesty_models,
    fetch_unbound_models,
    fetch_vercel_ai_gateway_models,
)
from llm_bridge.catalog.types import ModelInfo
from llm_bridge.errors import ConfigurationError
from llm_bridge.model_params import ROUTER_SAMPLING, ReasoningFormat, SamplingDefaults, is_deepseek_r1
from llm_bridge.providers import _usage
from llm_bridge.providers.base import (
    Capability,
    ChatProvider,
    CostPolicy,
    ProviderServices,
    ResolvedModel,
    TranslatorFactory,
)
from llm_bridge.providers.gemini import GEMINI_BASE_URL, GeminiShaper, GeminiTranslator
from llm_bridge.providers.gemini_cli import (
    CODE_ASSIST_BASE_URL,
    DEFAULT_TEMPERATURE as CODE_ASSIST_TEMPERATURE,
    CodeAssistProjectResolver,
    CodeAssistShaper,
    CodeAssistTranslator,
)
from llm_bridge.providers.openai_chat import OpenAIChatOptions, OpenAIChatShaper, OpenAIChatTranslator
from llm_bridge.providers.resolvers import RouterModelResolver, StaticModelResolver
from llm_bridge.types.config import AdapterTimeout, ProviderSettings
from llm_bridge.types.request import RequestMetadata


ProviderFactory = Callable[[ProviderSettings, ProviderServices], ChatProvider]

PROVIDER_FACTORIES: dict[str, ProviderFactory] = {}

CHAT_CAPABILITIES = frozenset({Capability.STREAMING, Capability.SINGLE_SHOT})
ROUTER_CAPABILITIES = CHAT_CAPABILITIES | {Capability.MODEL_RESOLUTION}

ROUTER_HEADERS = {
    "HTTP-Referer": "https://github.com/llm-bridge/llm-bridge",
    "X-Title": "llm-bridge",
}

OPENAI_BASE_URL = "https://api.openai.com/v1"
OPENAI_DEFAULT_MODEL_ID = "gpt-4.1"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"
XAI_BASE_URL = "https://api.x.ai/v1"
DEEPSEEK_BASE_URL = "https://api.deepseek.com"
MISTRAL_BASE_URL = "https://api.mistral.ai/v1"
CODESTRAL_BASE_URL = "https://codestral.mistral.ai/v1"
ZAI_BASE_URL = "https://api.z.ai/api/paas/v4"
CHUTES_BASE_URL = "https://llm.chutes.ai/v1"
OLLAMA_BASE_URL = "http://localhost:11434"
LMSTUDIO_BASE_URL = "http://localhost:1234"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
KILOCODE_BASE_URL = "https://kilocode.ai"
KILOCODE_DEV_BASE_URL = "http://localhost:3000"
REQUESTY_BASE_URL = "https://router.requesty.ai/v1"
UNBOUND_BASE_URL = "https://api.getunbound.ai/v1"
LITELLM_BASE_URL = "http://localhost:4000"
VERCEL_AI_GATEWAY_BASE_URL = "https://ai-gateway.vercel.sh/v1"
QWEN_DEFAULT_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"

# Local models can take minutes to load before the first token.
LOCAL_TIMEOUT = AdapterTimeout(connect=10.0, request=3600.0, stream_read=3600.0)

UNBOUND_ORIGIN_APP = "llm-bridge"


def register(name: str) -> Callable[[ProviderFactory], ProviderFactory]:
    def decorator(factory: ProviderFactory) -> ProviderFactory:
        PROVIDER_FACTORIES[name] = factory
        return factory

    return decorator


# ---------------------------------------------------------------------------
# Assembly helpers
# ---------------------------------------------------------------------------


def _client(
    name: str,
    settings: ProviderSettings,
    services: ProviderServices,
    base_url: str,
    headers: Mapping[str, str] | None = None,
    timeout: AdapterTimeout | None = None,
) -> HttpClient:
    return HttpClient(
        base_url,
        {**(headers or {}), **settings.extra_headers},
        timeout or settings.timeout,
        provider=name,
        transport=services.transport,
    )


def _bearer(api_key: str | None) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_key}"} if api_key else {}


def _translators(
    usage_fields: _usage.UsageFields = _usage.OPENAI_USAGE,
    *,
    think_tags: Callable[[ResolvedModel], bool] | bool = False,
    cumulative: bool = False,
) -> TranslatorFactory:
    def factory(model: ResolvedModel) -> OpenAIChatTranslator:
        tags = think_tags(model) if callable(think_tags) else think_tags
        return OpenAIChatTranslator(usage_fields=usage_fields, think_tags=tags, cumulative=cumulative)

    return factory


def _r1(model: ResolvedModel) -> bool:
    return is_deepseek_r1(model.id)


def _prefixed(*prefixes: str) -> Callable[[ResolvedModel], bool]:
    def check(model: ResolvedModel) -> bool:
        return model.id.startswith(prefixes)

    return check


def _openai_compatible(
    name: str,
    settings: ProviderSettings,
    services: ProviderServices,
    *,
    base_url: str,
    models: Mapping[str, ModelInfo],
    default_id: str,
    sampling: SamplingDefaults = SamplingDefaults(),
    usage_fields: _usage.UsageFields = _usage.OPENAI_USAGE,
    options: OpenAIChatOptions | None = None,
    think_tags: Callable[[ResolvedModel], bool] | bool = False,
    fallback_info: ModelInfo | None = None,
) -> ChatProvider:
    """A vendor with an API key, a built-in model table and the chat-completions API."""
    api_key = settings.require_api_key()
    return ChatProvider(
        name,
        http=_client(name, settings, services, settings.base_url or base_url, _bearer(api_key)),
        shaper=OpenAIChatShaper(options),
        translator_factory=_translators(usage_fields, think_tags=think_tags),
        auth=StaticKeyAuth(),
        resolver=StaticModelResolver(
            settings, models, default_id, fallback_info=fallback_info, sampling=sampling
        ),
        capabilities=CHAT_CAPABILITIES,
    )


def _router_key(name: str, settings: ProviderSettings, base_url: str) -> CatalogKey:
    return CatalogKey.create(name, base_url, settings.api_key, settings.organization_id)


# ---------------------------------------------------------------------------
# Keyed vendors with static model tables
# ---------------------------------------------------------------------------


@register("openai")
def openai_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    """OpenAI or any server speaking its chat-completions API."""
    return _openai_compatible(
        "openai",
        settings,
        services,
        base_url=OPENAI_BASE_URL,
        models={},
        default_id=OPENAI_DEFAULT_MODEL_ID,
        fallback_info=_data.OPENAI_COMPATIBLE_DEFAULT_INFO,
    )


@register("groq")
def groq_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    return _openai_compatible(
        "groq",
        settings,
        services,
        base_url=GROQ_BASE_URL,
        models=_data.GROQ_MODELS,
        default_id=_data.GROQ_DEFAULT_MODEL_ID,
        sampling=SamplingDefaults(temperature=0.5),
    )


@register("xai")
def xai_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    return _openai_compatible(
        "xai",
        settings,
        services,
        base_url=XAI_BASE_URL,
        models=_data.XAI_MODELS,
        default_id=_data.XAI_DEFAULT_MODEL_ID,
        usage_fields=_usage.XAI_USAGE,
    )


@register("deepseek")
def deepseek_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    return _openai_compatible(
        "deepseek",
        settings,
        services,
        base_url=DEEPSEEK_BASE_URL,
        models=_data.DEEPSEEK_MODELS,
        default_id=_data.DEEPSEEK_DEFAULT_MODEL_ID,
        usage_fields=_usage.DEEPSEEK_USAGE,
        options=OpenAIChatOptions(r1_format=lambda m: m.id == "deepseek-reasoner"),
    )


@register("mistral")
def mistral_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    """Mistral; ``codestral-*`` models are served from their own host."""
    model_id = settings.model_id or _data.MISTRAL_DEFAULT_MODEL_ID
    base_url = CODESTRAL_BASE_URL if model_id.startswith("codestral-") else MISTRAL_BASE_URL
    return _openai_compatible(
        "mistral",
        settings,
        services,
        base_url=base_url,
        models=_data.MISTRAL_MODELS,
        default_id=_data.MISTRAL_DEFAULT_MODEL_ID,
    )


@register("zai")
def zai_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    return _openai_compatible(
        "zai",
        settings,
        services,
        base_url=ZAI_BASE_URL,
        models=_data.ZAI_MODELS,
        default_id=_data.ZAI_DEFAULT_MODEL_ID,
    )


@register("chutes")
def chutes_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    """Chutes; DeepSeek-R1 models get the R1 message format and think-tag parsing."""
    return _openai_compatible(
        "chutes",
        settings,
        services,
        base_url=CHUTES_BASE_URL,
        models=_data.CHUTES_MODELS,
        default_id=_data.CHUTES_DEFAULT_MODEL_ID,
        sampling=SamplingDefaults(temperature=0.5, r1_temperature=_data.DEEPSEEK_R1_DEFAULT_TEMPERATURE),
        options=OpenAIChatOptions(r1_format=_r1),
        think_tags=_r1,
    )


# ---------------------------------------------------------------------------
# Local servers
# ---------------------------------------------------------------------------


def _local(
    name: str,
    settings: ProviderSettings,
    services: ProviderServices,
    *,
    base_url: str,
    default_id: str,
    fetch: Callable[[HttpClient], Mapping[str, ModelInfo]],
    r1_format: Callable[[ResolvedModel], bool] | None = None,
    timeout: AdapterTimeout | None = None,
) -> ChatProvider:
    base = settings.base_url or base_url
    http = _client(name, settings, services, base, _bearer(settings.api_key), timeout)
    options = OpenAIChatOptions(path="v1/chat/completions")
    if r1_format is not None:
        options = dataclasses.replace(options, r1_format=r1_format)
    return ChatProvider(
        name,
        http=http,
        shaper=OpenAIChatShaper(options),
        translator_factory=_translators(think_tags=True),
        auth=StaticKeyAuth(),
        resolver=RouterModelResolver(
            settings,
            services.catalog,
            _router_key(name, settings, base),
            lambda: fetch(http),
            default_id=default_id,
            default_info=_data.LOCAL_MODEL_DEFAULT_INFO,
            keep_unknown=True,
            sampling=SamplingDefaults(r1_temperature=_data.DEEPSEEK_R1_DEFAULT_TEMPERATURE),
        ),
        capabilities=ROUTER_CAPABILITIES,
        cost_policy=CostPolicy.FREE,
    )


@register("ollama")
def ollama_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    return _local(
        "ollama",
        settings,
        services,
        base_url=OLLAMA_BASE_URL,
        default_id=_data.OLLAMA_DEFAULT_MODEL_ID,
        fetch=fetch_ollama_models,
        r1_format=_r1,
    )


@register("lmstudio")
def lmstudio_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    timeout = LOCAL_TIMEOUT if settings.timeout == AdapterTimeout() else settings.timeout
    return _local(
        "lmstudio",
        settings,
        services,
        base_url=LMSTUDIO_BASE_URL,
        default_id=_data.LMSTUDIO_DEFAULT_MODEL_ID,
        fetch=fetch_lmstudio_models,
        timeout=timeout,
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------


def _pinned_provider(settings: ProviderSettings) -> Callable[[ResolvedModel, RequestMetadata | None], dict[str, Any]]:
    def extras(_model: ResolvedModel, _metadata: RequestMetadata | None) -> dict[str, Any]:
        if not settings.specific_provider:
            return {}
        provider = settings.specific_provider
        return {"provider": {"order": [provider], "only": [provider], "allow_fallbacks": False}}

    return extras


@register("openrouter")
def openrouter_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    api_key = settings.require_api_key()
    base = settings.base_url or OPENROUTER_BASE_URL
    http = _client("openrouter", settings, services, base, {**ROUTER_HEADERS, **_bearer(api_key)})
    return ChatProvider(
        "openrouter",
        http=http,
        shaper=OpenAIChatShaper(OpenAIChatOptions(
            cache_breakpoints=_prefixed("anthropic/"),
            body_extras=_pinned_provider(settings),
        )),
        translator_factory=_translators(_usage.OPENROUTER_USAGE),
        auth=StaticKeyAuth(),
        resolver=RouterModelResolver(
            settings,
            services.catalog,
            _router_key("openrouter", settings, base),
            lambda: fetch_openrouter_models(http),
            default_id=_data.OPENROUTER_DEFAULT_MODEL_ID,
            default_info=_data.OPENROUTER_DEFAULT_INFO,
            fetch_endpoints=lambda model_id: fetch_openrouter_endpoints(http, model_id),
            sampling=ROUTER_SAMPLING,
            reasoning_format=ReasoningFormat.OPENROUTER,
        ),
        capabilities=ROUTER_CAPABILITIES,
        cost_policy=CostPolicy.VENDOR,
    )


def kilocode_base_url(token: str) -> str:
    """Backend a Kilocode token was issued by; development tokens say so in their payload."""
    parts = token.split(".")
    if len(parts) == 3:
        padded = parts[1] + "=" * (-len(parts[1]) % 4)
        try:
            payload = json.loads(base64.urlsafe_b64decode(padded))
        except (binascii.Error, ValueError):
            payload = None
        if isinstance(payload, dict) and payload.get("env") == "development":
            return KILOCODE_DEV_BASE_URL
    return KILOCODE_BASE_URL


def fetch_kilocode_default_model(http: HttpClient, organization_id: str | None) -> str:
    path = f"api/organizations/{organization_id}/defaults" if organization_id else "api/defaults"
    body = http.get_json(path).body
    model = body.get("defaultModel") if isinstance(body, dict) else None
    if not isinstance(model, str) or not model:
        raise ValueError("Kilocode defaults response has no defaultModel")
    return model


@register("kilocode")
def kilocode_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    """Kilocode's OpenRouter proxy, billed per organization."""
    token = settings.require_api_key()
    backend = settings.base_url or kilocode_base_url(token)
    headers = {**ROUTER_HEADERS, **_bearer(token)}
    if settings.organization_id:
        headers["X-KiloCode-OrganizationId"] = settings.organization_id
    http = _client("kilocode", settings, services, f"{backend.rstrip('/')}/api/openrouter/", headers)
    backend_http = _client("kilocode", settings, services, backend, headers)
    public_http = _client("kilocode", settings, services, OPENROUTER_BASE_URL, ROUTER_HEADERS)

    def task_header(metadata: RequestMetadata | None) -> dict[str, str]:
        if metadata is not None and metadata.task_id:
            return {"X-KiloCode-TaskId": metadata.task_id}
        return {}

    return ChatProvider(
        "kilocode",
        http=http,
        shaper=OpenAIChatShaper(OpenAIChatOptions(
            cache_breakpoints=_prefixed("anthropic/"),
            body_extras=_pinned_provider(settings),
            header_extras=task_header,
        )),
        translator_factory=_translators(_usage.KILOCODE_USAGE),
        auth=StaticKeyAuth(),
        resolver=RouterModelResolver(
            settings,
            services.catalog,
            _router_key("kilocode", settings, backend),
            lambda: fetch_openrouter_models(http),
            default_id=_data.OPENROUTER_DEFAULT_MODEL_ID,
            default_info=_data.OPENROUTER_DEFAULT_INFO,
            fetch_default_id=lambda: fetch_kilocode_default_model(backend_http, settings.organization_id),
            fetch_endpoints=lambda model_id: fetch_openrouter_endpoints(public_http, model_id),
            sampling=ROUTER_SAMPLING,
            reasoning_format=ReasoningFormat.OPENROUTER,
        ),
        capabilities=ROUTER_CAPABILITIES,
        cost_policy=CostPolicy.VENDOR,
    )


@register("requesty")
def requesty_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    api_key = settings.require_api_key()
    base = settings.base_url or REQUESTY_BASE_URL
    http = _client("requesty", settings, services, base, {**ROUTER_HEADERS, **_bearer(api_key)})

    def trace(_model: ResolvedModel, metadata: RequestMetadata | None) -> dict[str, Any]:
        if metadata is None:
            return {}
        return {"requesty": {"trace_id": metadata.task_id, "extra": {"mode": metadata.mode}}}

    return ChatProvider(
        "requesty",
        http=http,
        shaper=OpenAIChatShaper(OpenAIChatOptions(body_extras=trace)),
        translator_factory=_translators(_usage.REQUESTY_USAGE),
        auth=StaticKeyAuth(),
        resolver=RouterModelResolver(
            settings,
            services.catalog,
            _router_key("requesty", settings, base),
            lambda: fetch_requesty_models(http),
            default_id=_data.REQUESTY_DEFAULT_MODEL_ID,
            default_info=_data.ROUTER_DEFAULT_INFO,
        ),
        capabilities=ROUTER_CAPABILITIES,
    )


def unbound_wire_id(model_id: str) -> str:
    """Unbound ids are ``vendor/model``; the API wants just the model part."""
    _, sep, rest = model_id.partition("/")
    return rest if sep else model_id


@register("unbound")
def unbound_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    api_key = settings.require_api_key()
    base = settings.base_url or UNBOUND_BASE_URL
    labels = {"labels": [{"key": "app", "value": UNBOUND_ORIGIN_APP}]}
    headers = {"X-Unbound-Metadata": json.dumps(labels), **_bearer(api_key)}
    http = _client("unbound", settings, services, base, headers)

    def metadata_body(_model: ResolvedModel, metadata: RequestMetadata | None) -> dict[str, Any]:
        return {"unbound_metadata": {
            "originApp": UNBOUND_ORIGIN_APP,
            "taskId": metadata.task_id if metadata else None,
            "mode": metadata.mode if metadata else None,
        }}

    return ChatProvider(
        "unbound",
        http=http,
        shaper=OpenAIChatShaper(OpenAIChatOptions(
            send_max_tokens=_prefixed("anthropic/"),
            cache_breakpoints=_prefixed("anthropic/", "google/"),
            wire_model_id=unbound_wire_id,
            body_extras=metadata_body,
        )),
        translator_factory=_translators(_usage.ANTHROPIC_PROXY_USAGE),
        auth=StaticKeyAuth(),
        resolver=RouterModelResolver(
            settings,
            services.catalog,
            _router_key("unbound", settings, base),
            lambda: fetch_unbound_models(http),
            default_id=_data.UNBOUND_DEFAULT_MODEL_ID,
            default_info=_data.ROUTER_DEFAULT_INFO,
        ),
        capabilities=ROUTER_CAPABILITIES,
    )


@register("litellm")
def litellm_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    base = settings.base_url or LITELLM_BASE_URL
    http = _client("litellm", settings, services, base, _bearer(settings.api_key))
    return ChatProvider(
        "litellm",
        http=http,
        shaper=OpenAIChatShaper(OpenAIChatOptions(
            max_tokens_field="max_completion_tokens",
            cache_breakpoints=lambda _model: settings.use_prompt_cache,
        )),
        translator_factory=_translators(_usage.ANTHROPIC_PROXY_USAGE),
        auth=StaticKeyAuth(),
        resolver=RouterModelResolver(
            settings,
            services.catalog,
            _router_key("litellm", settings, base),
            lambda: fetch_litellm_models(http),
            default_id=_data.LITELLM_DEFAULT_MODEL_ID,
            default_info=_data.ROUTER_DEFAULT_INFO,
        ),
        capabilities=ROUTER_CAPABILITIES,
    )


@register("vercel-ai-gateway")
def vercel_ai_gateway_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    api_key = settings.require_api_key()
    base = settings.base_url or VERCEL_AI_GATEWAY_BASE_URL
    http = _client("vercel-ai-gateway", settings, services, base, {**ROUTER_HEADERS, **_bearer(api_key)})
    return ChatProvider(
        "vercel-ai-gateway",
        http=http,
        shaper=OpenAIChatShaper(OpenAIChatOptions(
            max_tokens_field="max_completion_tokens",
            cache_breakpoints=lambda m: m.id in _data.VERCEL_AI_GATEWAY_PROMPT_CACHING_MODELS,
        )),
        translator_factory=_translators(_usage.VERCEL_AI_GATEWAY_USAGE),
        auth=StaticKeyAuth(),
        resolver=RouterModelResolver(
            settings,
            services.catalog,
            _router_key("vercel-ai-gateway", settings, base),
            lambda: fetch_vercel_ai_gateway_models(http),
            default_id=_data.VERCEL_AI_GATEWAY_DEFAULT_MODEL_ID,
            default_info=_data.ROUTER_DEFAULT_INFO,
        ),
        capabilities=ROUTER_CAPABILITIES,
        cost_policy=CostPolicy.VENDOR,
    )


# ---------------------------------------------------------------------------
# Google
# ---------------------------------------------------------------------------


@register("gemini")
def gemini_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    api_key = settings.require_api_key()
    shaper = GeminiShaper(settings)
    return ChatProvider(
        "gemini",
        http=_client(
            "gemini", settings, services, settings.base_url or GEMINI_BASE_URL, {"x-goog-api-key": api_key}
        ),
        shaper=shaper,
        translator_factory=lambda _model: GeminiTranslator(),
        auth=StaticKeyAuth(),
        resolver=StaticModelResolver(
            settings,
            _data.GEMINI_MODELS,
            _data.GEMINI_DEFAULT_MODEL_ID,
            reasoning_format=ReasoningFormat.GEMINI,
        ),
        capabilities=CHAT_CAPABILITIES | {Capability.TOKEN_COUNTING},
        token_counter=shaper,
    )


def _oauth(
    name: str,
    settings: ProviderSettings,
    services: ProviderServices,
    default_path: str,
    make_exchange: Callable[[HttpClient], Any],
    *,
    base_url_for: Callable[[Credentials], str | None] | None = None,
) -> AuthStrategy:
    token_http = _client(name, settings, services, "")
    manager = CredentialManager(
        CredentialFile(settings.oauth_path or default_path),
        make_exchange(token_http),
    )
    return OAuthAuth(manager, base_url_for=base_url_for)


@register("gemini-cli")
def gemini_cli_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    """Gemini through Code Assist, signed in with the Gemini CLI's OAuth credentials."""
    auth = _oauth(
        "gemini-cli",
        settings,
        services,
        GEMINI_CREDENTIALS_PATH,
        lambda http: google_exchange(http, settings.oauth_client_id, settings.oauth_client_secret),
    )
    http = _client("gemini-cli", settings, services, settings.base_url or CODE_ASSIST_BASE_URL)
    projects = CodeAssistProjectResolver(http, settings, sleep=services.sleep)
    return ChatProvider(
        "gemini-cli",
        http=http,
        shaper=CodeAssistShaper(projects),
        translator_factory=lambda _model: CodeAssistTranslator(),
        auth=auth,
        resolver=StaticModelResolver(
            settings,
            _data.GEMINI_CLI_MODELS,
            _data.GEMINI_CLI_DEFAULT_MODEL_ID,
            sampling=SamplingDefaults(temperature=CODE_ASSIST_TEMPERATURE),
            reasoning_format=ReasoningFormat.GEMINI,
        ),
        capabilities=CHAT_CAPABILITIES,
        cost_policy=CostPolicy.FREE,
    )


# ---------------------------------------------------------------------------
# Qwen
# ---------------------------------------------------------------------------


def qwen_base_url(credentials: Credentials) -> str:
    """API base from the credentials' ``resource_url``, with scheme and ``/v1``."""
    url = credentials.resource_url or QWEN_DEFAULT_BASE_URL
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    url = url.rstrip("/")
    return url if url.endswith("/v1") else f"{url}/v1"


@register("qwen-code")
def qwen_code_provider(settings: ProviderSettings, services: ProviderServices) -> ChatProvider:
    """Qwen Code, signed in with the Qwen CLI's OAuth credentials."""
    auth = _oauth(
        "qwen-code",
        settings,
        services,
        QWEN_CREDENTIALS_PATH,
        qwen_exchange,
        base_url_for=qwen_base_url,
    )
    return ChatProvider(
        "qwen-code",
        http=_client("qwen-code", settings, services, ""),
        shaper=OpenAIChatShaper(OpenAIChatOptions(max_tokens_field="max_completion_tokens")),
        translator_factory=_translators(think_tags=True, cumulative=True),
        auth=auth,
        resolver=StaticModelResolver(settings, _data.QWEN_CODE_MODELS, _data.QWEN_CODE_DEFAULT_MODEL_ID),
        capabilities=CHAT_CAPABILITIES,
        cost_policy=CostPolicy.FREE,
    )


def provider_names() -> list[str]:
    return sorted(PROVIDER_FACTORIES)


def get_factory(name: str) -> ProviderFactory:
    try:
        return PROVIDER_FACTORIES[name]
    except KeyError:
        known = ", ".join(provider_names())
        raise ConfigurationError(f"Unknown provider '{name}'. Known providers: {known}") from None


__all__ = [
    "PROVIDER_FACTORIES",
    "ProviderFactory",
    "get_factory",
    "kilocode_base_url",
    "provider_names",
    "qwen_base_url",
    "register",
    "unbound_wire_id",
]
