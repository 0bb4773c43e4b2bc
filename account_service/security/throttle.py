"""Sliding window throttles guarding the credential endpoints."""

from __future__ import annotations

import math
import time
from collections import OrderedDict, deque
from threading import Lock
from typing import Deque, Final, Protocol

from redis import Redis
from redis.exceptions import ResponseError

from ..domain.errors import RateLimited


class Throttle(Protocol):
    def check(self, key: str) -> float:
        """Record an attempt; return 0 when allowed, else seconds until the next slot frees."""
        ...


class SlidingWindowThrottle:
    """Thread-safe in-process sliding window throttle.

    Keys are kept in order of their latest recorded attempt so idle keys can be
    evicted from the front once their window has passed.
    """

    def __init__(self, max_requests: int, window_seconds: int) -> None:
        self._max_requests = max_requests
        self._window = window_seconds
        self._attempts: OrderedDict[str, Deque[float]] = OrderedDict()
        self._lock = Lock()

    def check(self, key: str) -> float:
        now = time.time()
        with self._lock:
            self._evict_idle(now)
            attempts = self._attempts.get(key)
            if attempts is None:
                attempts = deque()
            while attempts and now - attempts[0] > self._window:
                attempts.popleft()
            if len(attempts) >= self._max_requests:
                return max(self._window - (now - attempts[0]), 0.001)
            attempts.append(now)
            self._attempts[key] = attempts
            self._attempts.move_to_end(key)
            return 0.0

    def _evict_idle(self, now: float) -> None:
        while self._attempts:
            key, attempts = next(iter(self._attempts.items()))
            if now - attempts[-1] <= self._window:
                break
            del self._attempts[key]


class RedisSlidingWindowThrottle:
    """Throttle shared by every worker process, stored as Redis sorted sets."""

    _LUA_SCRIPT: Final[str] = """
    local key = KEYS[1]
    local window_ms = tonumber(ARGV[1])
    local max_requests = tonumber(ARGV[2])
    local now_ms = tonumber(ARGV[3])

    redis.call('ZREMRANGEBYSCORE', key, 0, now_ms - window_ms)
    if redis.call('ZCARD', key) >= max_requests then
        local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
        return tonumber(oldest[2]) + window_ms - now_ms
    end
    local seq = redis.call('INCR', key .. ':seq')
    redis.call('PEXPIRE', key .. ':seq', window_ms)
    redis.call('ZADD', key, now_ms, tostring(now_ms) .. ':' .. tostring(seq))
    redis.call('PEXPIRE', key, window_ms)
    return 0
    """

    def __init__(
        self,
        client: Redis,
        *,
        max_requests: int,
        window_seconds: int,
        key_prefix: str = "throttle",
    ) -> None:
        self._client = client
        self._max_requests = max_requests
        self._window_ms = window_seconds * 1000
        self._key_prefix = key_prefix
        self._script = client.register_script(self._LUA_SCRIPT)

    def check(self, key: str) -> float:
        now_ms = int(time.time() * 1000)
        redis_key = f"{self._key_prefix}:{key}"
        try:
            wait_ms = int(self._script(keys=[redis_key], args=[self._window_ms, self._max_requests, now_ms]))
        except ResponseError as exc:
            message = str(exc).lower()
            if "unknown command" not in message or "eval" not in message:
                raise
            wait_ms = self._check_without_lua(redis_key, now_ms)
        return max(wait_ms, 1) / 1000 if wait_ms > 0 else 0.0

    def _check_without_lua(self, redis_key: str, now_ms: int) -> int:
        self._client.zremrangebyscore(redis_key, 0, now_ms - self._window_ms)
        if self._client.zcard(redis_key) >= self._max_requests:
            oldest = self._client.zrange(redis_key, 0, 0, withscores=True)
            return int(oldest[0][1]) + self._window_ms - now_ms if oldest else self._window_ms
        seq = self._client.incr(f"{redis_key}:seq")
        self._client.pexpire(f"{redis_key}:seq", self._window_ms)
        self._client.zadd(redis_key, {f"{now_ms}:{seq}": now_ms})
        self._client.pexpire(redis_key, self._window_ms)
        return 0


def enforce(throttle: Throttle, key: str) -> None:
    """Raise ``RateLimited`` when ``key`` has exhausted its window."""
    wait = throttle.check(key)
    if wait > 0:
        raise RateLimited(retry_after=math.ceil(wait))
