"""Key-value store used for the permission cache.

Two interchangeable backends: Redis (shared between instances) and an
in-process dict (single instance only, for development and tests).
Entries written without a TTL live until they are deleted.
"""

import fnmatch
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import redis

from partner_crm.core.config import settings

logger = logging.getLogger("partner_crm")


class KeyValueStore(ABC):
    """Minimal string key-value interface with optional TTLs."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def invalidate_pattern(self, pattern: str) -> None:
        """Delete all keys matching a glob pattern."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        ...

    def get_json(self, key: str) -> Optional[Any]:
        """Get and parse a JSON cached value."""
        raw = self.get(key)
        if raw:
            return json.loads(raw)
        return None

    def set_json(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """Serialize and cache a JSON value."""
        self.set(key, json.dumps(value, default=str), ttl_seconds)


class RedisCache(KeyValueStore):
    """Redis-backed store. Connection failures behave as cache misses."""

    def __init__(self, url: str):
        self.url = url
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(
                self.url,
                decode_responses=True,
                max_connections=100,
            )
        return self._client

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.ConnectionError:
            return None

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            if ttl_seconds:
                self.client.setex(key, ttl_seconds, value)
            else:
                self.client.set(key, value)
        except redis.ConnectionError:
            logger.debug("Redis unavailable, not caching %s", key)

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.ConnectionError:
            logger.warning("Redis unavailable, could not delete %s", key)

    def invalidate_pattern(self, pattern: str) -> None:
        try:
            keys = list(self.client.scan_iter(match=pattern))
            if keys:
                self.client.delete(*keys)
        except redis.ConnectionError:
            logger.warning("Redis unavailable, could not invalidate %s", pattern)

    def health_check(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.ConnectionError:
            return False


class MemoryCache(KeyValueStore):
    """Process-local store. Not shared between workers or instances."""

    def __init__(self):
        # key -> (value, monotonic deadline or None)
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at < time.monotonic():
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = time.monotonic() + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._data[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def invalidate_pattern(self, pattern: str) -> None:
        with self._lock:
            for key in [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]:
                del self._data[key]

    def health_check(self) -> bool:
        return True


def build_cache(backend: str = settings.CACHE_BACKEND) -> KeyValueStore:
    if backend == "memory":
        return MemoryCache()
    return RedisCache(settings.REDIS_URL)


cache_service = build_cache()
