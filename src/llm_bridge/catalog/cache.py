"""Process-scoped cache of vendor model catalogs."""
from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from llm_bridge._singleflight import SingleFlight
from llm_bridge.catalog.types import ModelInfo

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0

ModelCatalog = Mapping[str, ModelInfo]
_EMPTY: ModelCatalog = MappingProxyType({})


def fingerprint(secret: str | None) -> str | None:
    """Stable, non-reversible identifier for an API key."""
    if not secret:
        return None
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class CatalogKey:
    """Identifies one vendor catalog: same router, URL, key and organization."""

    provider: str
    base_url: str | None = None
    key_fingerprint: str | None = None
    organization_id: str | None = None

    @classmethod
    def create(
        cls,
        provider: str,
        base_url: str | None = None,
        api_key: str | None = None,
        organization_id: str | None = None,
    ) -> CatalogKey:
        return cls(provider, base_url, fingerprint(api_key), organization_id)


@dataclass(frozen=True)
class EndpointKey:
    """Identifies the endpoint listing of one model on one router."""

    catalog: CatalogKey
    model_id: str


@dataclass(frozen=True)
class _Entry:
    value: Any
    fetched_at: float


class ModelCatalogCache:
    """TTL cache for model catalogs, endpoint listings and vendor default models.

    Fetches run outside the cache lock under a per-key single-flight, so
    concurrent callers for the same key share one network call. A failed
    fetch is logged and answered with the previous value (or an empty one);
    it never raises to the caller.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, Hashable], _Entry] = {}
        self._flight: SingleFlight[Any] = SingleFlight()

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def get_models(self, key: CatalogKey, fetch: Callable[[], Mapping[str, ModelInfo]]) -> ModelCatalog:
        return self._get("models", key, lambda: MappingProxyType(dict(fetch())), _EMPTY)

    def peek(self, key: CatalogKey) -> ModelCatalog | None:
        """Cached catalog for *key*, fresh or stale, without any I/O."""
        return self._peek("models", key)

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def get_endpoints(self, key: EndpointKey, fetch: Callable[[], Mapping[str, ModelInfo]]) -> ModelCatalog:
        return self._get("endpoints", key, lambda: MappingProxyType(dict(fetch())), _EMPTY)

    def peek_endpoints(self, key: EndpointKey) -> ModelCatalog | None:
        return self._peek("endpoints", key)

    # ------------------------------------------------------------------
    # Vendor default model
    # ------------------------------------------------------------------

    def get_default_model(self, key: CatalogKey, fetch: Callable[[], str]) -> str | None:
        return self._get("default", key, fetch, None)

    def peek_default_model(self, key: CatalogKey) -> str | None:
        return self._peek("default", key)

    # ------------------------------------------------------------------

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop cached entries for *key*, or everything when *key* is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
                return
            for slot in [s for s in self._entries if s[1] == key]:
                del self._entries[slot]

    def _peek(self, kind: str, key: Hashable) -> Any:
        with self._lock:
            entry = self._entries.get((kind, key))
        return entry.value if entry is not None else None

    def _get(self, kind: str, key: Hashable, fetch: Callable[[], Any], empty: Any) -> Any:
        slot = (kind, key)
        with self._lock:
            entry = self._entries.get(slot)
        if entry is not None and self._clock() - entry.fetched_at < self._ttl:
            return entry.value

        def load() -> Any:
            try:
                value = fetch()
            except Exception as exc:
                logger.warning("Fetching %s for %s failed, serving cached data: %s", kind, key, exc)
                return entry.value if entry is not None else empty
            with self._lock:
                self._entries[slot] = _Entry(value, self._clock())
            return value

        return self._flight.do(slot, load)
