"""Tests du cache de contenu (mémoire borné et Redis)."""

from __future__ import annotations

import json

import pytest
import redis

from prepacds.infra.cache_store import (
    InMemoryCacheStore,
    RedisCacheStore,
    build_cache_store,
)

TTL_S = 1800
EXPECTED_TTL_MS = 1_800_000
MAX_ENTRIES = 2


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_get_returns_stored_data_before_expiry() -> None:
    clock = FakeClock()
    cache = InMemoryCacheStore(clock=clock)
    cache.set("qcm-debutant-management", {"questions": [1]}, TTL_S)

    clock.now += TTL_S - 1

    assert cache.get("qcm-debutant-management") == {"questions": [1]}
    assert cache.stats()["hits"] == 1


def test_expired_entry_is_evicted_on_read() -> None:
    clock = FakeClock()
    cache = InMemoryCacheStore(clock=clock)
    cache.set("k", {"questions": [1]}, TTL_S)

    clock.now += TTL_S

    assert cache.get("k") is None
    assert len(cache) == 0
    assert cache.stats()["misses"] == 1


def test_set_overwrites_and_resets_timestamp() -> None:
    clock = FakeClock()
    cache = InMemoryCacheStore(clock=clock)
    cache.set("k", {"v": 1}, TTL_S)
    clock.now += TTL_S - 1
    cache.set("k", {"v": 2}, TTL_S)
    clock.now += TTL_S - 1

    assert cache.get("k") == {"v": 2}
    assert len(cache) == 1


def test_least_recently_used_entry_is_evicted() -> None:
    cache = InMemoryCacheStore(max_entries=MAX_ENTRIES, clock=FakeClock())
    cache.set("a", 1, TTL_S)
    cache.set("b", 2, TTL_S)
    assert cache.get("a") == 1  # "b" devient la plus ancienne
    cache.set("c", 3, TTL_S)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3
    assert cache.stats()["evictions"] == 1


def test_clear_and_invalid_size() -> None:
    cache = InMemoryCacheStore(clock=FakeClock())
    cache.set("a", 1, TTL_S)
    cache.clear()
    assert len(cache) == 0
    with pytest.raises(ValueError):
        InMemoryCacheStore(max_entries=0)


def test_redis_store_serializes_with_millisecond_ttl(mock_redis_connection) -> None:
    store = RedisCacheStore("redis://localhost:6379/0")
    store.set("qcm-avance-management", {"questions": ["q"]}, TTL_S)

    mock_redis_connection.set.assert_called_once_with(
        "training:content:qcm-avance-management",
        json.dumps({"questions": ["q"]}),
        px=EXPECTED_TTL_MS,
    )


def test_redis_store_get_roundtrip_and_miss(mock_redis_connection) -> None:
    store = RedisCacheStore("redis://localhost:6379/0")
    mock_redis_connection.get.return_value = json.dumps({"questions": ["q"]})
    assert store.get("k") == {"questions": ["q"]}

    mock_redis_connection.get.return_value = None
    assert store.get("k") is None


def test_redis_store_clear_deletes_prefixed_keys(mock_redis_connection) -> None:
    mock_redis_connection.scan_iter.return_value = iter(["training:content:a"])
    RedisCacheStore("redis://localhost:6379/0").clear()
    mock_redis_connection.delete.assert_called_once_with("training:content:a")


def test_build_cache_store_prefers_redis(mock_redis_connection) -> None:
    assert build_cache_store("redis://localhost:6379/0", 10).backend == "redis"
    assert build_cache_store(None, 10).backend == "memory"


def test_build_cache_store_falls_back_when_redis_unreachable(mock_redis_connection) -> None:
    mock_redis_connection.ping.side_effect = redis.ConnectionError("down")

    assert build_cache_store("redis://localhost:6379/0", 10).backend == "memory"
    with pytest.raises(RuntimeError):
        build_cache_store("redis://localhost:6379/0", 10, require_redis=True)


def test_redis_outage_degrades_to_cache_miss(mock_redis_connection) -> None:
    store = RedisCacheStore("redis://localhost:6379/0")
    mock_redis_connection.get.side_effect = redis.ConnectionError("down")
    mock_redis_connection.set.side_effect = redis.ConnectionError("down")
    mock_redis_connection.scan_iter.side_effect = redis.ConnectionError("down")

    assert store.get("k") is None
    store.set("k", {"questions": ["q"]}, TTL_S)
    assert store.stats() == {"entries": -1}
