"""
Redis cache with expiration, pattern invalidation and hit/miss accounting.

The cache is best-effort and never a source of truth: when Redis is unreachable
every operation degrades to a miss / False / 0 and the caller carries on against
the database.
"""
import json
import logging
import threading
from typing import Any

import redis

logger = logging.getLogger(__name__)

_DELETE_BATCH = 500


class RedisCache:
    def __init__(self, client: redis.Redis, default_ttl: int = 900):
        self.client = client
        self.default_ttl = default_ttl
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._errors = 0

    def _count(self, attr: str) -> None:
        with self._lock:
            setattr(self, attr, getattr(self, attr) + 1)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on miss / undecodable value / backend failure."""
        try:
            raw = self.client.get(key)
        except redis.RedisError as exc:
            self._count("_errors")
            self._count("_misses")
            logger.warning("Cache get failed for %s: %s", key, exc)
            return None

        if raw is None:
            self._count("_misses")
            return None
        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            self._count("_misses")
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

        self._count("_hits")
        return value

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        try:
            payload = json.dumps(value, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            logger.warning("Value for %s is not serializable, not caching", key)
            return False
        try:
            self.client.setex(key, ttl_seconds or self.default_ttl, payload)
            return True
        except redis.RedisError as exc:
            self._count("_errors")
            logger.warning("Cache set failed for %s: %s", key, exc)
            return False

    def delete(self, key: str) -> bool:
        try:
            self.client.delete(key)
            return True
        except redis.RedisError as exc:
            self._count("_errors")
            logger.warning("Cache delete failed for %s: %s", key, exc)
            return False

    def delete_by_pattern(self, pattern: str) -> int:
        """Delete every key matching a Redis glob pattern. Returns the number removed."""
        removed = 0
        batch: list[str] = []
        try:
            for key in self.client.scan_iter(match=pattern, count=_DELETE_BATCH):
                batch.append(key)
                if len(batch) >= _DELETE_BATCH:
                    removed += self.client.delete(*batch)
                    batch.clear()
            if batch:
                removed += self.client.delete(*batch)
        except redis.RedisError as exc:
            self._count("_errors")
            logger.warning("Cache pattern delete failed for %s: %s", pattern, exc)
        return removed

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"hits": self._hits, "misses": self._misses, "errors": self._errors}
