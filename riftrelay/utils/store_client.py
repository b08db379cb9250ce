"""Store client abstraction - Redis or in-memory fallback.

Exposes the small key-value + sorted-set surface the game needs. Every Redis
failure (connection, timeout, protocol) is surfaced as StoreUnavailableError
so callers can treat it as a retryable I/O failure.
"""
from functools import wraps
from threading import Lock
from typing import Optional
import logging
import time

import redis
from redis.exceptions import RedisError

from riftrelay.utils.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def _translate_redis_errors(func):
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except RedisError as e:
            logger.error(f"Store operation {func.__name__} failed: {e}")
            raise StoreUnavailableError(f"store_unavailable: {func.__name__}") from e
    return wrapper


class StoreClient:
    """Abstraction for game storage - uses Redis if available, else in-memory."""

    def __init__(self, redis_url: Optional[str] = None, timeout_seconds: float = 2.0):
        self.backend = "memory"
        self.redis = None
        self._memory_values: dict[str, tuple[str, Optional[float]]] = {}
        self._memory_sorted_sets: dict[str, dict[str, float]] = {}
        self._memory_lock = Lock()

        if redis_url:
            try:
                client = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_timeout=timeout_seconds,
                    socket_connect_timeout=timeout_seconds,
                )
                client.ping()
                self.redis = client
                self.backend = "redis"
                logger.info("Using Redis for game storage")
            except RedisError as e:
                logger.warning(f"Redis not available, using in-memory storage: {e}")
        else:
            logger.info("Using in-memory storage (Redis URL not provided)")

    # ------------------------------------------------------------------
    # Memory backend helpers
    # ------------------------------------------------------------------

    def _memory_read(self, key: str) -> Optional[str]:
        """Return a live value, evicting it if its TTL has passed. Caller holds the lock."""
        entry = self._memory_values.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._memory_values[key]
            return None
        return value

    @staticmethod
    def _expiry(ttl_seconds: Optional[int]) -> Optional[float]:
        return time.monotonic() + ttl_seconds if ttl_seconds else None

    def _memory_ranking(self, key: str) -> list[tuple[str, float]]:
        """Members ordered like ZREVRANGE: score desc, then member desc."""
        members = self._memory_sorted_sets.get(key, {})
        return sorted(members.items(), key=lambda item: (item[1], item[0]), reverse=True)

    # ------------------------------------------------------------------
    # Key-value operations
    # ------------------------------------------------------------------

    @_translate_redis_errors
    def ping(self) -> bool:
        if self.backend == "redis":
            return bool(self.redis.ping())
        return True

    @_translate_redis_errors
    def get(self, key: str) -> Optional[str]:
        if self.backend == "redis":
            return self.redis.get(key)
        with self._memory_lock:
            return self._memory_read(key)

    @_translate_redis_errors
    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        if self.backend == "redis":
            self.redis.set(key, value, ex=ttl_seconds)
            return
        with self._memory_lock:
            self._memory_values[key] = (value, self._expiry(ttl_seconds))

    @_translate_redis_errors
    def delete(self, key: str) -> bool:
        """Delete a key. Returns True if something was removed."""
        if self.backend == "redis":
            return self.redis.delete(key) > 0
        with self._memory_lock:
            present = self._memory_read(key) is not None
            self._memory_values.pop(key, None)
            return present

    @_translate_redis_errors
    def acquire(self, key: str, ttl_seconds: int) -> bool:
        """Atomically create ``key`` if absent (SET NX EX).

        Exactly one concurrent caller gets True; the key disappears on its own
        after ``ttl_seconds`` if never released.
        """
        if self.backend == "redis":
            return bool(self.redis.set(key, "1", nx=True, ex=ttl_seconds))
        with self._memory_lock:
            if self._memory_read(key) is not None:
                return False
            self._memory_values[key] = ("1", self._expiry(ttl_seconds))
            return True

    def release(self, key: str) -> None:
        self.delete(key)

    # ------------------------------------------------------------------
    # Sorted-set operations
    # ------------------------------------------------------------------

    @_translate_redis_errors
    def zadd_max(self, key: str, member: str, score: float) -> float:
        """Merge ``score`` into ``member`` keeping the maximum. Returns the stored best."""
        if self.backend == "redis":
            pipe = self.redis.pipeline(transaction=True)
            pipe.zadd(key, {member: score}, gt=True)
            pipe.zscore(key, member)
            _, stored = pipe.execute()
            return float(stored)
        with self._memory_lock:
            members = self._memory_sorted_sets.setdefault(key, {})
            current = members.get(member)
            if current is None or score > current:
                members[member] = float(score)
            return members[member]

    @_translate_redis_errors
    def zscore(self, key: str, member: str) -> Optional[float]:
        if self.backend == "redis":
            result = self.redis.zscore(key, member)
            return float(result) if result is not None else None
        with self._memory_lock:
            return self._memory_sorted_sets.get(key, {}).get(member)

    @_translate_redis_errors
    def zrevrange(self, key: str, start: int, stop: int) -> list[tuple[str, float]]:
        """Members with scores from highest to lowest, ``stop`` inclusive."""
        if self.backend == "redis":
            rows = self.redis.zrevrange(key, start, stop, withscores=True)
            return [(member, float(score)) for member, score in rows]
        with self._memory_lock:
            ranking = self._memory_ranking(key)
        end = None if stop == -1 else stop + 1
        return ranking[start:end]

    @_translate_redis_errors
    def zrevrank(self, key: str, member: str) -> Optional[int]:
        """Zero-based rank from the top, or None if the member is absent."""
        if self.backend == "redis":
            return self.redis.zrevrank(key, member)
        with self._memory_lock:
            ranking = self._memory_ranking(key)
        for index, (name, _) in enumerate(ranking):
            if name == member:
                return index
        return None

    @_translate_redis_errors
    def zcard(self, key: str) -> int:
        if self.backend == "redis":
            return int(self.redis.zcard(key))
        with self._memory_lock:
            return len(self._memory_sorted_sets.get(key, {}))

    def clear(self) -> None:
        """Drop all in-memory data. Used by tests; a no-op for Redis."""
        if self.backend != "memory":
            return
        with self._memory_lock:
            self._memory_values.clear()
            self._memory_sorted_sets.clear()


class StoreKeys:
    """Key layout. Every key is partitioned by the post scope."""

    @staticmethod
    def progression(scope: str, username: str) -> str:
        return f"meta:{scope}:{username}"

    @staticmethod
    def state(scope: str, username: str) -> str:
        return f"state:{scope}:{username}"

    @staticmethod
    def run_session(scope: str, username: str, ticket: str) -> str:
        return f"run:{scope}:{username}:{ticket}"

    @staticmethod
    def run_claim(scope: str, username: str, ticket: str) -> str:
        return f"run-claim:{scope}:{username}:{ticket}"

    @staticmethod
    def leaderboard(scope: str) -> str:
        return f"lb:{scope}"

    @staticmethod
    def challenge_leaderboard(scope: str, mode: str, cycle_key: str) -> str:
        return f"lb:{scope}:{mode}:{cycle_key}"
