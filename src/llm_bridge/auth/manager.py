"""Credential lifecycle: load, validate, refresh once, retry once."""
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from enum import StrEnum
from typing import TypeVar

from llm_bridge._singleflight import SingleFlight
from llm_bridge.auth.credentials import EXPIRY_MARGIN_SECONDS, CredentialFile, Credentials
from llm_bridge.auth.exchange import TokenExchange
from llm_bridge.errors import AuthLoadError, AuthenticationError, AuthRefreshError, SDKError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REFRESH_KEY = "refresh"


class CredentialState(StrEnum):
    UNLOADED = "unloaded"
    VALID = "valid"
    EXPIRING = "expiring"
    REFRESHING = "refreshing"
    FAILED = "failed"


class CredentialManager:
    """Owns one credentials file and keeps its token fresh.

    Concurrent refreshes collapse into a single token exchange. Callers that
    observed a token which has since been replaced get the replacement
    without another exchange.
    """

    def __init__(
        self,
        store: CredentialFile,
        exchange: TokenExchange,
        *,
        clock: Callable[[], float] = time.time,
        margin: float = EXPIRY_MARGIN_SECONDS,
    ) -> None:
        self._store = store
        self._exchange = exchange
        self._clock = clock
        self._margin = margin
        self._lock = threading.Lock()
        self._credentials: Credentials | None = None
        self._failed = False
        self._flight: SingleFlight[Credentials] = SingleFlight()

    @property
    def state(self) -> CredentialState:
        if self._flight.in_flight(_REFRESH_KEY):
            return CredentialState.REFRESHING
        with self._lock:
            if self._failed:
                return CredentialState.FAILED
            if self._credentials is None:
                return CredentialState.UNLOADED
            if self._credentials.is_valid(self._clock(), self._margin):
                return CredentialState.VALID
            return CredentialState.EXPIRING

    @property
    def credentials(self) -> Credentials | None:
        with self._lock:
            return self._credentials

    def load(self) -> Credentials:
        """Read the credentials file, replacing any cached credentials."""
        credentials = self._store.load()
        with self._lock:
            self._credentials = credentials
            self._failed = False
        return credentials

    def ensure_authenticated(self) -> Credentials:
        """Credentials that are valid now, refreshing if needed."""
        credentials = self.credentials or self.load()
        if credentials.is_valid(self._clock(), self._margin):
            return credentials
        logger.info("Access token from %s is expiring; refreshing", self._store.path)
        return self.refresh(stale=credentials)

    def refresh(self, stale: Credentials | None = None) -> Credentials:
        """Run the token exchange, sharing it with concurrent callers.

        When *stale* is given and the cached credentials have already moved
        past it, the cached ones are returned instead of refreshing again.
        """
        return self._flight.do(_REFRESH_KEY, lambda: self._refresh(stale))

    def _refresh(self, stale: Credentials | None) -> Credentials:
        with self._lock:
            current = self._credentials
            if (
                stale is not None
                and current is not None
                and current.access_token != stale.access_token
                and current.is_valid(self._clock(), self._margin)
            ):
                return current

        try:
            if current is None:
                current = self._store.load()
            fresh = self._exchange(current)
        except (AuthLoadError, AuthRefreshError):
            self._mark_failed()
            raise
        except SDKError as exc:
            self._mark_failed()
            raise AuthRefreshError(f"Token refresh failed: {exc}", cause=exc) from exc

        with self._lock:
            self._credentials = fresh
            self._failed = False

        try:
            self._store.save(fresh)
        except OSError as exc:
            logger.warning("Could not persist refreshed credentials to %s: %s", self._store.path, exc)
        logger.info("Refreshed OAuth credentials from %s", self._store.path)
        return fresh

    def _mark_failed(self) -> None:
        with self._lock:
            self._failed = True

    def call_with_reauth(self, fn: Callable[[Credentials], T]) -> T:
        """Call *fn* with valid credentials; on a 401 refresh and retry once.

        A second authentication failure propagates to the caller.
        """
        credentials = self.ensure_authenticated()
        try:
            return fn(credentials)
        except AuthenticationError:
            logger.info("Vendor rejected the access token; refreshing and retrying once")
            credentials = self.refresh(stale=credentials)
            return fn(credentials)
