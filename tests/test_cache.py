"""Tests for TTLCache"""

import pytest

from formwright.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(clock=clock)


def test_get_within_ttl(cache, clock):
    cache.set("api_user", {"name": "Ada"}, ttl=300)
    clock.now += 299

    entry = cache.get("api_user")

    assert entry.data == {"name": "Ada"}
    assert entry.timestamp == 1000.0
    assert "api_user" in cache


def test_expired_entry_is_dropped(cache, clock):
    cache.set("api_user", "value", ttl=300)
    clock.now += 300

    assert cache.get("api_user") is None
    assert len(cache) == 0


def test_missing_key(cache):
    assert cache.get("nope") is None
    assert "nope" not in cache


def test_set_overwrites(cache, clock):
    cache.set("k", 1, ttl=10)
    clock.now += 5
    cache.set("k", 2, ttl=10)
    clock.now += 8

    assert cache.get("k").data == 2


def test_clear_all(cache):
    cache.set("a", 1, ttl=10)
    cache.set("b", 2, ttl=10)

    assert cache.clear() == 2
    assert len(cache) == 0


def test_clear_by_pattern(cache):
    cache.set("api__/users/1_", 1, ttl=10)
    cache.set("api__/users/2_", 2, ttl=10)
    cache.set("api__/orders/1_", 3, ttl=10)

    assert cache.clear("/users/") == 2
    assert cache.stats() == {"size": 1, "keys": ["api__/orders/1_"]}
