"""How a provider attaches credentials to its requests."""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, TypeVar, runtime_checkable

from llm_bridge.auth.credentials import Credentials
from llm_bridge.auth.manager import CredentialManager

T = TypeVar("T")


@dataclass(frozen=True)
class RequestAuth:
    """Headers to send, and a base URL when the credentials dictate one."""

    headers: Mapping[str, str] = field(default_factory=dict)
    base_url: str | None = None


@runtime_checkable
class AuthStrategy(Protocol):
    def call(self, fn: Callable[[RequestAuth], T]) -> T:
        """Run *fn* with request auth, applying the strategy's retry rules."""
        ...


class StaticKeyAuth:
    """Fixed headers; keyed vendors usually carry the key on the client instead."""

    def __init__(self, headers: Mapping[str, str] | None = None) -> None:
        self._auth = RequestAuth(headers=dict(headers or {}))

    def call(self, fn: Callable[[RequestAuth], T]) -> T:
        return fn(self._auth)


class OAuthAuth:
    """Bearer token from a :class:`CredentialManager`, retried once on 401."""

    def __init__(
        self,
        manager: CredentialManager,
        *,
        base_url_for: Callable[[Credentials], str | None] | None = None,
    ) -> None:
        self.manager = manager
        self._base_url_for = base_url_for

    def call(self, fn: Callable[[RequestAuth], T]) -> T:
        def attempt(credentials: Credentials) -> T:
            base_url = self._base_url_for(credentials) if self._base_url_for else None
            return fn(RequestAuth(
                headers={"Authorization": f"Bearer {credentials.access_token}"},
                base_url=base_url,
            ))

        return self.manager.call_with_reauth(attempt)
