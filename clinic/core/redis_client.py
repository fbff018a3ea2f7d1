"""Redis client and the read-through cache used for doctor listings."""

import json
from typing import Any, cast

import redis
import structlog

from clinic.config import settings

logger = structlog.get_logger()

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Get or create the shared Redis client.

    The connection is opened lazily on first command.
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """Return True when Redis answers PING."""
    try:
        get_redis_client().ping()
        return True
    except Exception:
        return False


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheManager:
    """
    JSON cache on top of Redis.

    Every operation fails open: a Redis outage degrades to cache misses and
    never fails the request. Booking decisions never read from this cache.
    """

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        """Return the decoded value for ``key`` or None on miss or error."""
        try:
            value = cast(str | None, self.redis.get(key))
            return json.loads(value) if value else None
        except Exception as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store ``value`` as JSON.

        Args:
            key: Cache key
            value: JSON-serialisable value (dates and UUIDs are stringified)
            ttl: Time to live in seconds

        Returns:
            True if stored
        """
        try:
            payload = json.dumps(value, default=str)
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
            return True
        except Exception as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False

    def delete(self, *keys: str) -> bool:
        """Drop one or more keys."""
        try:
            if keys:
                self.redis.delete(*keys)
            return True
        except Exception as e:
            logger.warning("cache_delete_failed", keys=list(keys), error=str(e))
            return False


def get_cache_manager() -> CacheManager | None:
    """Dependency returning the cache manager."""
    return CacheManager(get_redis_client())
