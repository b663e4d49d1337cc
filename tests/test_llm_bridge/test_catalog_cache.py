"""Tests for the model catalog cache."""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from llm_bridge.catalog import CatalogKey, EndpointKey, ModelCatalogCache, ModelInfo
from llm_bridge.catalog.cache import fingerprint

INFO = ModelInfo(context_window=1000, input_price=1.0, output_price=2.0)
OTHER = ModelInfo(context_window=2000)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ModelCatalogCache:
    return ModelCatalogCache(ttl=300, clock=clock)


KEY = CatalogKey.create("openrouter", "https://openrouter.ai/api/v1", "sk-secret")


class TestCatalogKey:
    def test_key_is_fingerprinted(self) -> None:
        assert KEY.key_fingerprint == fingerprint("sk-secret")
        assert "sk-secret" not in repr(KEY)

    def test_different_keys_are_distinct(self) -> None:
        other = CatalogKey.create("openrouter", "https://openrouter.ai/api/v1", "sk-other")
        assert other != KEY
        assert CatalogKey.create("openrouter", "https://openrouter.ai/api/v1", "sk-secret") == KEY

    def test_no_key(self) -> None:
        assert CatalogKey.create("ollama").key_fingerprint is None


class TestExpiry:
    def test_fresh_entry_is_served_without_fetching(self, cache: ModelCatalogCache, clock: FakeClock) -> None:
        calls = []

        def fetch():
            calls.append(1)
            return {"m": INFO}

        assert dict(cache.get_models(KEY, fetch)) == {"m": INFO}
        clock.now = 299
        assert dict(cache.get_models(KEY, fetch)) == {"m": INFO}
        assert len(calls) == 1

    def test_expired_entry_is_refetched(self, cache: ModelCatalogCache, clock: FakeClock) -> None:
        cache.get_models(KEY, lambda: {"m": INFO})
        clock.now = 300
        assert dict(cache.get_models(KEY, lambda: {"n": OTHER})) == {"n": OTHER}
        assert dict(cache.peek(KEY)) == {"n": OTHER}

    def test_catalog_is_read_only(self, cache: ModelCatalogCache) -> None:
        catalog = cache.get_models(KEY, lambda: {"m": INFO})
        with pytest.raises(TypeError):
            catalog["x"] = OTHER  # type: ignore[index]


class TestFailures:
    def test_failure_serves_stale_entry(
        self, cache: ModelCatalogCache, clock: FakeClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        cache.get_models(KEY, lambda: {"m": INFO})
        clock.now = 1000

        def broken():
            raise ConnectionError("down")

        with caplog.at_level(logging.WARNING, logger="llm_bridge.catalog.cache"):
            assert dict(cache.get_models(KEY, broken)) == {"m": INFO}
        assert "down" in caplog.text

    def test_failure_without_entry_gives_empty_catalog(self, cache: ModelCatalogCache) -> None:
        def broken():
            raise ValueError("bad payload")

        assert dict(cache.get_models(KEY, broken)) == {}
        assert cache.peek(KEY) is None

    def test_failure_is_not_cached(self, cache: ModelCatalogCache) -> None:
        def broken():
            raise ValueError("bad payload")

        cache.get_models(KEY, broken)
        assert dict(cache.get_models(KEY, lambda: {"m": INFO})) == {"m": INFO}

    def test_default_model_failure_gives_none(self, cache: ModelCatalogCache) -> None:
        def broken() -> str:
            raise RuntimeError("no defaults")

        assert cache.get_default_model(KEY, broken) is None
        assert cache.get_default_model(KEY, lambda: "x-model") == "x-model"
        assert cache.peek_default_model(KEY) == "x-model"


class TestInvalidate:
    def test_invalidate_one_key(self, cache: ModelCatalogCache) -> None:
        other = CatalogKey.create("requesty")
        cache.get_models(KEY, lambda: {"m": INFO})
        cache.get_default_model(KEY, lambda: "m")
        cache.get_models(other, lambda: {"r": OTHER})
        cache.invalidate(KEY)
        assert cache.peek(KEY) is None
        assert cache.peek_default_model(KEY) is None
        assert cache.peek(other) is not None

    def test_invalidate_everything(self, cache: ModelCatalogCache) -> None:
        cache.get_models(KEY, lambda: {"m": INFO})
        endpoint = EndpointKey(KEY, "anthropic/claude-sonnet-4")
        cache.get_endpoints(endpoint, lambda: {"anthropic": INFO})
        cache.invalidate()
        assert cache.peek(KEY) is None
        assert cache.peek_endpoints(endpoint) is None

    def test_endpoints_are_kept_per_model(self, cache: ModelCatalogCache) -> None:
        a = EndpointKey(KEY, "a")
        b = EndpointKey(KEY, "b")
        cache.get_endpoints(a, lambda: {"x": INFO})
        cache.get_endpoints(b, lambda: {"y": OTHER})
        assert dict(cache.peek_endpoints(a)) == {"x": INFO}
        assert dict(cache.peek_endpoints(b)) == {"y": OTHER}


def test_concurrent_misses_share_one_fetch(cache: ModelCatalogCache) -> None:
    started = threading.Event()
    release = threading.Event()
    arrived = threading.Semaphore(0)
    calls = 0

    def fetch():
        nonlocal calls
        calls += 1
        started.set()
        release.wait(timeout=5)
        return {"m": INFO}

    def get():
        arrived.release()
        return cache.get_models(KEY, fetch)

    with ThreadPoolExecutor(max_workers=6) as pool:
        first = pool.submit(cache.get_models, KEY, fetch)
        assert started.wait(timeout=5)
        rest = [pool.submit(get) for _ in range(5)]
        for _ in range(5):
            assert arrived.acquire(timeout=5)
        time.sleep(0.1)
        release.set()
        results = [first.result(timeout=5)] + [f.result(timeout=5) for f in rest]

    assert calls == 1
    assert all(dict(r) == {"m": INFO} for r in results)
