"""
app/cache/backends.py

Key/value backends behind the snapshot cache.

Both backends store already-serialized JSON strings and expose the same
minimal contract:

    get(key)                      -> str | None
    set(key, value, ttl_seconds)  -> None   (whole-value overwrite)
    delete(key)                   -> int    (number of keys removed)
    delete_prefix(prefix)         -> int
    ping()                        -> bool

Any backend-side failure is raised as :class:`CacheUnavailableError`. Backends
never swallow errors themselves; :class:`app.cache.snapshot_cache.SnapshotCache`
decides how each failure degrades.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable

import redis
from redis import Redis

logger = logging.getLogger(__name__)

_SCAN_BATCH_SIZE = 100


class CacheUnavailableError(RuntimeError):
    """
    Raised when the cache backend cannot complete an operation.
    """


class CacheBackend(ABC):
    """
    Contract for string-keyed, TTL-bounded value stores.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or ``None`` on miss or expiry."""

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> int:
        """Remove *key*; return 1 if it existed, else 0."""

    @abstractmethod
    def delete_prefix(self, prefix: str) -> int:
        """Remove every key starting with *prefix*; return the count removed."""

    def ping(self) -> bool:
        return True


class RedisCacheBackend(CacheBackend):
    """
    Redis-backed cache using ``SET key value EX ttl`` and ``SCAN`` for
    prefix deletion.
    """

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout_seconds: float = 2.0) -> "RedisCacheBackend":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout_seconds,
            socket_connect_timeout=socket_timeout_seconds,
        )
        return cls(client)

    def get(self, key: str) -> str | None:
        try:
            return self._client.get(key)
        except redis.RedisError as exc:
            raise CacheUnavailableError(f"Redis GET failed for {key!r}: {exc}") from exc

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._client.set(key, value, ex=max(1, int(ttl_seconds)))
        except redis.RedisError as exc:
            raise CacheUnavailableError(f"Redis SET failed for {key!r}: {exc}") from exc

    def delete(self, key: str) -> int:
        try:
            return int(self._client.delete(key))
        except redis.RedisError as exc:
            raise CacheUnavailableError(f"Redis DEL failed for {key!r}: {exc}") from exc

    def delete_prefix(self, prefix: str) -> int:
        deleted = 0
        batch: list[str] = []
        try:
            for key in self._client.scan_iter(match=f"{prefix}*", count=_SCAN_BATCH_SIZE):
                batch.append(key)
                if len(batch) >= _SCAN_BATCH_SIZE:
                    deleted += int(self._client.delete(*batch))
                    batch = []
            if batch:
                deleted += int(self._client.delete(*batch))
        except redis.RedisError as exc:
            raise CacheUnavailableError(f"Redis SCAN/DEL failed for prefix {prefix!r}: {exc}") from exc
        return deleted

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError as exc:
            raise CacheUnavailableError(f"Redis PING failed: {exc}") from exc


class InMemoryCacheBackend(CacheBackend):
    """
    Process-local cache with monotonic-clock expiry.

    Values are replaced whole under a lock, so readers see either the old or
    the new value. Expired entries are dropped on read, and every
    ``sweep_every`` writes a full pass drops the rest, so keys that are never
    read again do not accumulate.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 100,
    ) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()
        self._sweep_every = max(1, sweep_every)
        self._writes_since_sweep = 0

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self._clock()
        expires_at = now + max(1, int(ttl_seconds))
        with self._lock:
            self._writes_since_sweep += 1
            if self._writes_since_sweep >= self._sweep_every:
                self._purge_expired(now)
            self._entries[key] = (value, expires_at)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._writes_since_sweep = 0
        if expired:
            logger.debug("In-memory cache swept %d expired entries", len(expired))

    def delete(self, key: str) -> int:
        with self._lock:
            return 1 if self._entries.pop(key, None) is not None else 0

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def keys(self) -> list[str]:
        """Live keys, for diagnostics and tests."""
        now = self._clock()
        with self._lock:
            return [key for key, (_, expires_at) in self._entries.items() if expires_at > now]

    def stored_count(self) -> int:
        """Stored entries, expired or not."""
        with self._lock:
            return len(self._entries)
