"""
app/cache/snapshot_cache.py

Best-effort, TTL-bounded snapshot cache.

SnapshotCache is the only component that writes cached bytes. It serializes
payloads to JSON, hands whole values to a :class:`CacheBackend`, and turns
every :class:`CacheUnavailableError` into a graceful outcome:

    get         backend failure → miss (``None``)
    set         backend failure → logged, returns ``False``
    invalidate  backend failure → logged, returns ``0``

A cache problem therefore never fails the surrounding request; callers fall
through to the source of truth.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any

from app.cache.backends import (
    CacheBackend,
    CacheUnavailableError,
    InMemoryCacheBackend,
    RedisCacheBackend,
)
from app.config import get_cache_settings
from app.logging_utils import log_event

logger = logging.getLogger(__name__)


def _serialize(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


class SnapshotCache:
    """
    JSON snapshot cache over a pluggable backend.

    Parameters
    ----------
    backend:
        Redis or in-memory backend. The caller controls its lifecycle.
    """

    def __init__(self, backend: CacheBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    def get(self, key: str) -> Any | None:
        """
        Return the cached payload for *key*, or ``None`` on miss.

        A hit is returned as stored; freshness is bounded by the backend TTL
        alone. Undecodable entries are treated as a miss.
        """
        try:
            raw = self._backend.get(key)
        except CacheUnavailableError as exc:
            log_event(logger, logging.WARNING, "cache_get_failed", key=key, error=str(exc))
            return None

        if raw is None:
            log_event(logger, logging.DEBUG, "cache_miss", key=key)
            return None

        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as exc:
            log_event(logger, logging.WARNING, "cache_decode_failed", key=key, error=str(exc))
            return None

        log_event(logger, logging.DEBUG, "cache_hit", key=key)
        return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """
        Store *value* under *key* for *ttl_seconds*, replacing any prior value.

        Returns ``False`` when the value could not be written.
        """
        try:
            payload = _serialize(value)
        except (TypeError, ValueError) as exc:
            log_event(logger, logging.ERROR, "cache_encode_failed", key=key, error=str(exc))
            return False

        try:
            self._backend.set(key, payload, ttl_seconds)
        except CacheUnavailableError as exc:
            log_event(logger, logging.WARNING, "cache_set_failed", key=key, error=str(exc))
            return False

        log_event(logger, logging.DEBUG, "cache_set", key=key, ttl_seconds=ttl_seconds, size=len(payload))
        return True

    def invalidate(self, key: str) -> int:
        """Delete one key. Deleting a missing key is a no-op returning 0."""
        try:
            deleted = self._backend.delete(key)
        except CacheUnavailableError as exc:
            log_event(logger, logging.WARNING, "cache_invalidate_failed", key=key, error=str(exc))
            return 0
        log_event(logger, logging.DEBUG, "cache_invalidated", key=key, deleted=deleted)
        return deleted

    def invalidate_prefix(self, prefix: str) -> int:
        """Delete every key beginning with *prefix*."""
        try:
            deleted = self._backend.delete_prefix(prefix)
        except CacheUnavailableError as exc:
            log_event(logger, logging.WARNING, "cache_invalidate_failed", prefix=prefix, error=str(exc))
            return 0
        log_event(logger, logging.DEBUG, "cache_invalidated", prefix=prefix, deleted=deleted)
        return deleted

    def ping(self) -> bool:
        try:
            return self._backend.ping()
        except CacheUnavailableError as exc:
            log_event(logger, logging.WARNING, "cache_ping_failed", error=str(exc))
            return False


def build_cache_backend() -> CacheBackend:
    """Create the backend selected by ``CACHE_BACKEND``."""
    settings = get_cache_settings()
    if settings.backend == "memory":
        return InMemoryCacheBackend()
    return RedisCacheBackend.from_url(
        settings.redis_url,
        socket_timeout_seconds=settings.socket_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_snapshot_cache() -> SnapshotCache:
    """Process-wide snapshot cache (FastAPI dependency)."""
    return SnapshotCache(build_cache_backend())
