"""Gemini Code Assist endpoint, as used with Gemini CLI OAuth credentials."""
from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from llm_bridge._http import HttpClient
from llm_bridge.auth.strategies import RequestAuth
from llm_bridge.errors import AuthenticationError, ConfigurationError, SDKError
from llm_bridge.providers.base import HttpRequestSpec, ResolvedModel
from llm_bridge.providers.gemini import (
    GeminiTranslator,
    completion_text,
    generation_config,
    to_gemini_contents,
)
from llm_bridge.types.config import ProviderSettings
from llm_bridge.types.messages import Message
from llm_bridge.types.request import RequestMetadata

logger = logging.getLogger(__name__)

CODE_ASSIST_BASE_URL = "https://cloudcode-pa.googleapis.com"
CODE_ASSIST_API_VERSION = "v1internal"
GEMINI_ENV_FILE = "~/.gemini/.env"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 8192

ONBOARD_POLL_INTERVAL = 2.0
ONBOARD_MAX_POLLS = 30


def _method(name: str) -> str:
    # Leading slash keeps httpx from reading "v1internal:" as a URL scheme.
    return f"/{CODE_ASSIST_API_VERSION}:{name}"


def read_env_file(path: str | os.PathLike[str]) -> dict[str, str]:
    """Parse a ``KEY=VALUE`` dotenv file; a missing file yields ``{}``."""
    try:
        text = Path(path).expanduser().read_text(encoding="utf-8")
    except OSError:
        return {}
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip().removeprefix("export ").strip()
        values[key] = value.strip().strip("'\"")
    return values


class CodeAssistProjectResolver:
    """Finds the Google Cloud project Code Assist requests are billed to.

    Order: explicit setting, ``GOOGLE_CLOUD_PROJECT`` in ``~/.gemini/.env``,
    then discovery through ``loadCodeAssist`` and, for new accounts,
    ``onboardUser`` polling. The answer is cached for the process.
    """

    def __init__(
        self,
        http: HttpClient,
        settings: ProviderSettings,
        *,
        env_file: str = GEMINI_ENV_FILE,
        environ: Mapping[str, str] | None = None,
        sleep: Callable[[float], None],
        poll_interval: float = ONBOARD_POLL_INTERVAL,
        max_polls: int = ONBOARD_MAX_POLLS,
    ) -> None:
        self._http = http
        self._settings = settings
        self._env_file = env_file
        self._environ = os.environ if environ is None else environ
        self._sleep = sleep
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._lock = threading.Lock()
        self._project_id: str | None = settings.project_id

    def project_id(self, auth: RequestAuth) -> str:
        with self._lock:
            if self._project_id:
                return self._project_id
            from_file = read_env_file(self._env_file).get("GOOGLE_CLOUD_PROJECT")
            self._project_id = from_file or self._discover(dict(auth.headers))
            return self._project_id

    def _discover(self, headers: dict[str, str]) -> str:
        initial = self._environ.get("GOOGLE_CLOUD_PROJECT") or "default"
        metadata = {
            "ideType": "IDE_UNSPECIFIED",
            "platform": "PLATFORM_UNSPECIFIED",
            "pluginType": "GEMINI",
            "duetProject": initial,
        }
        try:
            loaded = self._http.post_json(
                _method("loadCodeAssist"),
                {"cloudaicompanionProject": initial, "metadata": metadata},
                headers=headers,
            ).body or {}
            if loaded.get("cloudaicompanionProject"):
                return str(loaded["cloudaicompanionProject"])

            default_tier = next(
                (t for t in loaded.get("allowedTiers") or [] if t.get("isDefault")), {}
            )
            onboard = {
                "tierId": default_tier.get("id") or "free-tier",
                "cloudaicompanionProject": initial,
                "metadata": metadata,
            }
            operation = self._http.post_json(_method("onboardUser"), onboard, headers=headers).body or {}
            polls = 0
            while not operation.get("done") and polls < self._max_polls:
                self._sleep(self._poll_interval)
                operation = self._http.post_json(_method("onboardUser"), onboard, headers=headers).body or {}
                polls += 1
        except AuthenticationError:
            raise
        except SDKError as exc:
            raise ConfigurationError(f"Gemini Code Assist project discovery failed: {exc}", cause=exc) from exc

        if not operation.get("done"):
            raise ConfigurationError("Gemini Code Assist onboarding did not finish in time")
        project = ((operation.get("response") or {}).get("cloudaicompanionProject") or {}).get("id")
        discovered = project or initial
        logger.info("Using Gemini Code Assist project %s", discovered)
        return discovered


class CodeAssistShaper:
    """Wraps Gemini requests in the Code Assist ``{model, project, request}`` envelope.

    The system prompt is sent as the first user turn; Code Assist has no
    separate system instruction.
    """

    def __init__(self, projects: CodeAssistProjectResolver) -> None:
        self._projects = projects

    def _envelope(self, model: ResolvedModel, contents: list[dict[str, Any]], auth: RequestAuth) -> dict[str, Any]:
        config = generation_config(model, default_temperature=DEFAULT_TEMPERATURE)
        config.setdefault("maxOutputTokens", DEFAULT_MAX_OUTPUT_TOKENS)
        return {
            "model": model.id,
            "project": self._projects.project_id(auth),
            "request": {"contents": contents, "generationConfig": config},
        }

    def stream_request(
        self,
        model: ResolvedModel,
        system_prompt: str,
        messages: Sequence[Message],
        metadata: RequestMetadata | None,
        auth: RequestAuth,
    ) -> HttpRequestSpec:
        contents = to_gemini_contents(messages)
        if system_prompt:
            contents.insert(0, {"role": "user", "parts": [{"text": system_prompt}]})
        return HttpRequestSpec(
            _method("streamGenerateContent"),
            self._envelope(model, contents, auth),
            params={"alt": "sse"},
        )

    def single_shot_request(self, model: ResolvedModel, prompt: str, auth: RequestAuth) -> HttpRequestSpec:
        contents = [{"role": "user", "parts": [{"text": prompt}]}]
        return HttpRequestSpec(_method("generateContent"), self._envelope(model, contents, auth))

    def parse_completion(self, body: Any) -> str:
        if isinstance(body, dict) and isinstance(body.get("response"), dict):
            body = body["response"]
        return completion_text(body)


class CodeAssistTranslator(GeminiTranslator):
    """Gemini stream translation for chunks wrapped in ``{"response": ...}``."""

    def __init__(self) -> None:
        super().__init__(unwrap=True)
