import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from fitfuel_admin.core.reference_cache import NOT_FOUND, ReferenceCache


def test_hit_does_not_query_again(gateway):
    cache = ReferenceCache(gateway)

    first = cache.resolve("users", "u1")
    second = cache.resolve("users", "u1")

    assert first["name"] == "Aisha Khan"
    assert second == first
    assert len(gateway.calls_of("fetch_one")) == 1
    assert cache.fetches == 1
    assert ("users", "u1") in cache


def test_missing_document_is_cached_as_a_miss(gateway):
    cache = ReferenceCache(gateway)

    for _ in range(3):
        assert cache.resolve("users", "ghost") is None

    assert len(gateway.calls_of("fetch_one")) == 1
    assert cache.peek("users", "ghost") is NOT_FOUND


def test_gateway_error_yields_none_and_is_not_cached(gateway):
    cache = ReferenceCache(gateway)
    gateway.fail_ids.add("u1")

    assert cache.resolve("users", "u1") is None
    assert ("users", "u1") not in cache

    gateway.fail_ids.clear()
    assert cache.resolve("users", "u1")["name"] == "Aisha Khan"
    assert len(gateway.calls_of("fetch_one")) == 2


def test_kinds_are_separate_keys(gateway):
    cache = ReferenceCache(gateway)

    cache.resolve("users", "p1")
    cache.resolve("products", "p1")

    assert len(gateway.calls_of("fetch_one")) == 2
    assert cache.peek("products", "p1")["name"] == "Almonds"


def test_invalidate_and_clear_force_a_refetch(gateway):
    cache = ReferenceCache(gateway)
    cache.resolve("users", "u1")
    cache.resolve("users", "u2")

    cache.invalidate("users", "u1")
    assert ("users", "u1") not in cache
    assert len(cache) == 1

    cache.resolve("users", "u1")
    assert len(gateway.calls_of("fetch_one")) == 3

    cache.clear()
    assert len(cache) == 0
    cache.resolve("users", "u2")
    assert len(gateway.calls_of("fetch_one")) == 4


def test_concurrent_callers_share_one_fetch(gateway):
    started = threading.Event()
    release = threading.Event()
    original = gateway.fetch_one

    def slow_fetch_one(collection, record_id):
        started.set()
        release.wait(timeout=5)
        return original(collection, record_id)

    gateway.fetch_one = slow_fetch_one
    cache = ReferenceCache(gateway)

    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(cache.resolve, "users", "u2") for _ in range(8)]
        assert started.wait(timeout=5)
        release.set()
        results = [f.result(timeout=5) for f in futures]

    assert all(r["displayName"] == "ben" for r in results)
    assert cache.fetches == 1
    assert len(gateway.calls_of("fetch_one")) == 1


def test_unexpected_errors_propagate(gateway):
    def broken(collection, record_id):
        raise RuntimeError("boom")

    gateway.fetch_one = broken
    cache = ReferenceCache(gateway)

    with pytest.raises(RuntimeError):
        cache.resolve("users", "u1")
    assert ("users", "u1") not in cache
