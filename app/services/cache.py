"""Redis-backed cache with prefix namespaces.

Keys look like ``<CACHE_KEY_PREFIX><prefix>:<part>:<part>``. The cache is a
no-op when ``REDIS_URL`` is empty, and Redis errors never reach callers.
"""

import json
import logging
from collections.abc import Callable
from typing import Any

import redis

from app.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    PREFIX_DASHBOARD = "dashboard"
    PREFIX_LETTERS = "letters"
    PREFIX_OUTGOING_LETTERS = "outgoing_letters"
    PREFIX_INCOMING_LETTERS = "incoming_letters"
    PREFIX_ARCHIVES = "archives"
    PREFIX_TEMPLATES = "templates"
    PREFIX_DISPOSITIONS = "dispositions"
    PREFIX_VERIFICATION = "verification"

    KNOWN_PREFIXES = (
        PREFIX_DASHBOARD,
        PREFIX_LETTERS,
        PREFIX_OUTGOING_LETTERS,
        PREFIX_INCOMING_LETTERS,
        PREFIX_ARCHIVES,
        PREFIX_TEMPLATES,
        PREFIX_DISPOSITIONS,
        PREFIX_VERIFICATION,
    )

    SCAN_BATCH = 500

    def __init__(self, url: str | None = None):
        self._url = settings.redis_url if url is None else url
        self._client: redis.Redis | None = None

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    def _get_client(self) -> redis.Redis | None:
        if not self.enabled:
            return None
        if self._client is None:
            self._client = redis.Redis.from_url(self._url, decode_responses=True)
            logger.info("Redis cache connection established")
        return self._client

    @staticmethod
    def build_key(prefix: str, *parts: Any) -> str:
        key = ":".join([prefix, *(str(part) for part in parts)])
        return f"{settings.cache_key_prefix}{key}"

    def get(self, key: str) -> Any | None:
        client = self._get_client()
        if client is None:
            return None
        try:
            raw = client.get(key)
        except redis.RedisError as exc:
            logger.warning("Cache error (get %s): %s", key, exc)
            return None
        if raw is None:
            logger.debug("Cache MISS: %s", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        client = self._get_client()
        if client is None:
            return False
        try:
            client.setex(
                key, ttl or settings.cache_default_ttl, json.dumps(value, default=str)
            )
            return True
        except redis.RedisError as exc:
            logger.warning("Cache error (set %s): %s", key, exc)
            return False

    def remember(self, key: str, producer: Callable[[], Any], ttl: int | None = None):
        cached = self.get(key)
        if cached is not None:
            return cached
        value = producer()
        self.set(key, value, ttl)
        return value

    def forget(self, key: str) -> bool:
        client = self._get_client()
        if client is None:
            return False
        try:
            return bool(client.delete(key))
        except redis.RedisError as exc:
            logger.warning("Cache error (forget %s): %s", key, exc)
            return False

    def keys(self, pattern: str = "*", limit: int | None = None) -> list[str]:
        client = self._get_client()
        if client is None:
            return []
        found: list[str] = []
        try:
            for key in client.scan_iter(
                match=f"{settings.cache_key_prefix}{pattern}", count=self.SCAN_BATCH
            ):
                found.append(key)
                if limit is not None and len(found) >= limit:
                    break
        except redis.RedisError as exc:
            logger.warning("Cache error (keys %s): %s", pattern, exc)
        return sorted(found)

    def forget_by_prefix(self, prefix: str) -> int:
        client = self._get_client()
        if client is None:
            return 0
        deleted = 0
        batch: list[str] = []
        try:
            for key in client.scan_iter(
                match=f"{settings.cache_key_prefix}{prefix}:*", count=self.SCAN_BATCH
            ):
                batch.append(key)
                if len(batch) >= self.SCAN_BATCH:
                    deleted += client.delete(*batch)
                    batch = []
            if batch:
                deleted += client.delete(*batch)
        except redis.RedisError as exc:
            logger.warning("Cache error (forget_by_prefix %s): %s", prefix, exc)
        logger.info("Cleared %d cache keys with prefix %s", deleted, prefix)
        return deleted

    def clear_archive_cache(self) -> int:
        return self.forget_by_prefix(self.PREFIX_ARCHIVES) + self.forget_by_prefix(
            self.PREFIX_DASHBOARD
        )

    def flush_all(self) -> int:
        total = 0
        for prefix in self.KNOWN_PREFIXES:
            total += self.forget_by_prefix(prefix)
        return total

    def stats(self) -> dict:
        client = self._get_client()
        if client is None:
            return {"enabled": False}
        try:
            info = client.info()
            by_prefix = {
                prefix: len(self.keys(f"{prefix}:*")) for prefix in self.KNOWN_PREFIXES
            }
        except redis.RedisError as exc:
            logger.warning("Cache error (stats): %s", exc)
            return {"enabled": True, "error": str(exc)}
        return {
            "enabled": True,
            "redis_version": info.get("redis_version"),
            "used_memory_human": info.get("used_memory_human"),
            "connected_clients": info.get("connected_clients"),
            "keyspace_hits": info.get("keyspace_hits"),
            "keyspace_misses": info.get("keyspace_misses"),
            "total_keys": sum(by_prefix.values()),
            "by_prefix": by_prefix,
        }


cache = CacheService()
