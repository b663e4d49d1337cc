"""OAuth credentials and the on-disk file vendor CLIs share."""
from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from llm_bridge.errors import AuthLoadError

logger = logging.getLogger(__name__)

EXPIRY_MARGIN_SECONDS = 30.0

QWEN_CREDENTIALS_PATH = "~/.qwen/oauth_creds.json"
GEMINI_CREDENTIALS_PATH = "~/.gemini/oauth_creds.json"

_KNOWN_FIELDS = ("access_token", "refresh_token", "token_type", "expiry_date", "resource_url")


@dataclass(frozen=True)
class Credentials:
    """An access token and what is needed to renew it.

    ``expires_at`` is in epoch seconds. Fields of the credentials file that
    are not modelled here are kept in ``extra`` and written back unchanged.
    """

    access_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expires_at: float | None = None
    resource_url: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def is_valid(self, now: float | None = None, margin: float = EXPIRY_MARGIN_SECONDS) -> bool:
        """True while the token is usable with *margin* seconds to spare."""
        if not self.access_token:
            return False
        if self.expires_at is None:
            return True
        current = time.time() if now is None else now
        return current < self.expires_at - margin

    @classmethod
    def from_file_dict(cls, data: Mapping[str, Any]) -> Credentials:
        token = data.get("access_token")
        if not isinstance(token, str) or not token:
            raise AuthLoadError("Credentials file has no access_token")
        expiry = data.get("expiry_date")
        return cls(
            access_token=token,
            refresh_token=data.get("refresh_token") or None,
            token_type=data.get("token_type") or "Bearer",
            expires_at=float(expiry) / 1000 if expiry is not None else None,
            resource_url=data.get("resource_url") or None,
            extra={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
        )

    def to_file_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data["access_token"] = self.access_token
        data["token_type"] = self.token_type
        if self.refresh_token is not None:
            data["refresh_token"] = self.refresh_token
        if self.expires_at is not None:
            data["expiry_date"] = int(self.expires_at * 1000)
        if self.resource_url is not None:
            data["resource_url"] = self.resource_url
        return data

    def refreshed(self, token_response: Mapping[str, Any], now: float) -> Credentials:
        """Credentials built from a token-endpoint response.

        The previous refresh token is kept when the vendor does not rotate it.
        """
        access_token = token_response.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("token response has no access_token")
        expires_in = token_response.get("expires_in")
        extra = dict(self.extra)
        for key in ("scope", "id_token"):
            if token_response.get(key):
                extra[key] = token_response[key]
        return Credentials(
            access_token=access_token,
            refresh_token=token_response.get("refresh_token") or self.refresh_token,
            token_type=token_response.get("token_type") or self.token_type,
            expires_at=now + float(expires_in) if expires_in is not None else None,
            resource_url=token_response.get("resource_url") or self.resource_url,
            extra=extra,
        )


class CredentialFile:
    """JSON credentials file, in the format the vendor CLI writes."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> Credentials:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise AuthLoadError(
                f"Credentials not found at {self.path}; sign in with the vendor CLI first",
                cause=exc,
            ) from exc
        except OSError as exc:
            raise AuthLoadError(f"Cannot read credentials at {self.path}: {exc}", cause=exc) from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise AuthLoadError(f"Credentials at {self.path} are not valid JSON", cause=exc) from exc
        if not isinstance(data, dict):
            raise AuthLoadError(f"Credentials at {self.path} are not a JSON object")
        return Credentials.from_file_dict(data)

    def save(self, credentials: Credentials) -> None:
        """Write *credentials*; raises :class:`OSError` on failure."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(credentials.to_file_dict(), indent=2), encoding="utf-8")
        os.chmod(tmp, 0o600)
        os.replace(tmp, self.path)
