"""
Redis cache for dashboard aggregates.

Values are JSON documents stored under {prefix}:{namespace}:{key} with a TTL.
Every Redis failure degrades to a cache miss; the dashboard then reads from
the database directly.
"""

import logging
import json
from typing import Any, Optional

import redis
from redis.exceptions import RedisError
from flask import Flask

logger = logging.getLogger(__name__)


class CacheService:
    """JSON values in Redis, namespaced and expiring."""

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self.prefix = 'salesboard'
        self.default_ttl = 60

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Connect when CACHE_ENABLED; stay disconnected (all misses) otherwise."""
        self.prefix = app.config.get('CACHE_KEY_PREFIX', self.prefix)
        self.default_ttl = app.config.get('CACHE_DEFAULT_TTL', self.default_ttl)

        if not app.config.get('CACHE_ENABLED', True):
            logger.info("[CACHE] Disabled by configuration")
            return

        redis_url = app.config.get('REDIS_URL', 'redis://localhost:6379/0')
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            health_check_interval=30
        )
        try:
            client.ping()
        except RedisError as e:
            logger.warning(f"[CACHE] Redis unreachable at {redis_url}: {e}. Serving without cache.")
            return

        self.client = client
        logger.info(f"[CACHE] Connected to {redis_url}")

    def is_available(self) -> bool:
        if self.client is None:
            return False
        try:
            return bool(self.client.ping())
        except RedisError:
            return False

    def key(self, namespace: str, key: str) -> str:
        return f"{self.prefix}:{namespace}:{key}"

    def get(self, namespace: str, key: str) -> Optional[Any]:
        """Cached value, or None on a miss or any Redis error."""
        if self.client is None:
            return None
        try:
            raw = self.client.get(self.key(namespace, key))
        except RedisError as e:
            logger.warning(f"[CACHE] Read failed for {namespace}:{key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"[CACHE] Discarding unreadable entry {namespace}:{key}")
            return None

    def set(self, namespace: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a JSON-serializable value. Returns False when nothing was written."""
        if self.client is None:
            return False
        try:
            self.client.setex(self.key(namespace, key), ttl or self.default_ttl, json.dumps(value))
        except (RedisError, TypeError) as e:
            logger.warning(f"[CACHE] Write failed for {namespace}:{key}: {e}")
            return False
        return True


_cache_service: Optional[CacheService] = None


def init_cache(app: Flask) -> None:
    """Create the process-wide cache for an app."""
    global _cache_service
    _cache_service = CacheService(app)
    app.extensions['cache'] = _cache_service


def get_cache() -> CacheService:
    if _cache_service is None:
        raise RuntimeError("Cache not initialized.")
    return _cache_service
