"""Redis caching for TMDB detail lookups.

The cache is optional: without ``REDIS_URL`` (or when Redis is down) every
operation is a miss and callers go straight to TMDB. Addon documents are
never cached.
"""

import hashlib
import json
from collections.abc import Callable
from datetime import timedelta
from functools import wraps
from typing import Any, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from src.config import get_settings
from src.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

F = TypeVar("F", bound=Callable[..., Any])

CACHE_TTL_SHORT = timedelta(minutes=15)  # Search results
CACHE_TTL_MEDIUM = timedelta(hours=6)  # Metadata details


class RedisCache:
    """Async Redis cache client with JSON serialization."""

    def __init__(self) -> None:
        self._client: redis.Redis | None = None
        self._connected = False

    @property
    def enabled(self) -> bool:
        return settings.redis_url is not None

    @property
    def connected(self) -> bool:
        return self._connected

    async def _get_client(self) -> redis.Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = redis.from_url(
                str(settings.redis_url),
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def connect(self) -> bool:
        """Test Redis connection."""
        if not self.enabled:
            return False
        try:
            client = await self._get_client()
            await client.ping()
            self._connected = True
        except RedisError as e:
            logger.warning(f"Redis cache unavailable: {e}")
            self._connected = False
        return self._connected

    async def ping(self) -> bool:
        """Ping Redis to check connection health."""
        client = await self._get_client()
        return await client.ping()

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._connected = False

    async def get(self, key: str) -> Any | None:
        """Get value from cache (None if missing, expired or unavailable)."""
        if not self._connected:
            return None

        try:
            client = await self._get_client()
            data = await client.get(key)
            return json.loads(data) if data else None
        except (RedisError, ValueError) as e:
            logger.debug(f"Cache get error for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: timedelta | None = None) -> bool:
        """Set a JSON-serializable value with a TTL (default: 6 hours)."""
        if not self._connected:
            return False

        try:
            client = await self._get_client()
            expire_seconds = int((ttl or CACHE_TTL_MEDIUM).total_seconds())
            await client.setex(key, expire_seconds, json.dumps(value, default=str))
            return True
        except (RedisError, TypeError) as e:
            logger.debug(f"Cache set error for {key}: {e}")
            return False


# Global cache instance
cache = RedisCache()


def make_cache_key(namespace: str, *args: Any, **kwargs: Any) -> str:
    """Build ``namespace:arg1:arg2:key=value`` (hashed when too long)."""
    parts = [namespace]
    parts.extend(str(arg) for arg in args if arg is not None)
    parts.extend(f"{key}={value}" for key, value in sorted(kwargs.items()) if value is not None)

    key_str = ":".join(parts)
    if len(key_str) > 200:
        hash_suffix = hashlib.md5(key_str.encode()).hexdigest()[:12]
        key_str = f"{namespace}:{hash_suffix}"
    return key_str


def cached(namespace: str, ttl: timedelta | None = None) -> Callable[[F], F]:
    """Cache the result of an async method in Redis.

    The first positional argument (``self``) is not part of the key.
    ``None`` results are not cached.

    Example:
        @cached("tmdb:movie", ttl=CACHE_TTL_MEDIUM)
        async def get_movie_details(self, tmdb_id: str): ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            cache_key = make_cache_key(namespace, *args[1:], **kwargs)

            cached_value = await cache.get(cache_key)
            if cached_value is not None:
                logger.debug(f"Cache HIT: {cache_key}")
                return cached_value

            logger.debug(f"Cache MISS: {cache_key}")
            result = await func(*args, **kwargs)
            if result is not None:
                await cache.set(cache_key, result, ttl or CACHE_TTL_MEDIUM)
            return result

        return wrapper  # type: ignore

    return decorator
