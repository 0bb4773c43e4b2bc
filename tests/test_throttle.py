"""Tests for the in-memory and Redis-backed sliding window throttles."""

from __future__ import annotations

import time

import fakeredis
import pytest

from account_service.domain.errors import RateLimited
from account_service.security.throttle import RedisSlidingWindowThrottle, SlidingWindowThrottle, enforce


@pytest.fixture()
def redis_client() -> fakeredis.FakeStrictRedis:
    client = fakeredis.FakeStrictRedis()
    client.flushall()
    return client


def test_memory_throttle_blocks_after_threshold():
    throttle = SlidingWindowThrottle(max_requests=2, window_seconds=60)

    assert throttle.check("login:a@x.com") == 0
    assert throttle.check("login:a@x.com") == 0
    wait = throttle.check("login:a@x.com")

    assert 59 < wait <= 60
    assert throttle.check("login:b@x.com") == 0


def test_memory_throttle_frees_slots_after_window():
    throttle = SlidingWindowThrottle(max_requests=1, window_seconds=1)

    assert throttle.check("k") == 0
    assert throttle.check("k") > 0
    time.sleep(1.1)
    assert throttle.check("k") == 0


def test_redis_throttle_allows_within_threshold(redis_client):
    throttle = RedisSlidingWindowThrottle(redis_client, max_requests=3, window_seconds=1, key_prefix="test")

    assert [throttle.check("login:a@x.com") for _ in range(3)] == [0, 0, 0]


def test_redis_throttle_reports_wait(redis_client):
    throttle = RedisSlidingWindowThrottle(redis_client, max_requests=2, window_seconds=5, key_prefix="test")

    throttle.check("k")
    throttle.check("k")
    wait = throttle.check("k")

    assert 0 < wait <= 5


def test_redis_throttle_expires_entries(redis_client):
    throttle = RedisSlidingWindowThrottle(redis_client, max_requests=1, window_seconds=1, key_prefix="test")

    assert throttle.check("k") == 0
    assert throttle.check("k") > 0
    time.sleep(1.1)
    assert throttle.check("k") == 0


def test_enforce_raises_with_retry_after():
    throttle = SlidingWindowThrottle(max_requests=1, window_seconds=30)
    enforce(throttle, "create:a@x.com")

    with pytest.raises(RateLimited) as excinfo:
        enforce(throttle, "create:a@x.com")

    assert excinfo.value.status_code == 429
    assert excinfo.value.retry_after == 30


def test_memory_throttle_evicts_idle_keys(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(time, "time", lambda: clock[0])
    throttle = SlidingWindowThrottle(max_requests=1, window_seconds=60)

    for n in range(5000):
        throttle.check(f"login:user{n}@x.com")
    assert len(throttle._attempts) == 5000

    clock[0] += 61
    assert throttle.check("login:late@x.com") == 0
    assert list(throttle._attempts) == ["login:late@x.com"]


def test_memory_throttle_keeps_keys_inside_their_window(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(time, "time", lambda: clock[0])
    throttle = SlidingWindowThrottle(max_requests=1, window_seconds=60)

    throttle.check("old")
    clock[0] += 30
    throttle.check("recent")
    clock[0] += 31

    assert throttle.check("old") == 0
    assert set(throttle._attempts) == {"old", "recent"}
    assert throttle.check("recent") > 0
