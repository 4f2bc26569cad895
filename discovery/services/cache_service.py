"""
Redis-based caching service for search backend responses

Identical searches against the same backend within the TTL are answered from
Redis instead of hitting Solr, Summon or WorldCat again.
"""

import json
import logging
import hashlib
from typing import Optional, Dict, Any
from datetime import timedelta

import redis.asyncio as redis
from redis.asyncio import Redis

from discovery.core.config import settings


logger = logging.getLogger(__name__)


class CacheService:
    """Redis-based caching service for search responses"""

    CACHE_KEY_PREFIX = "discovery:search"
    STATS_KEY_PREFIX = "discovery:search_stats"

    def __init__(self):
        """Initialize Redis connection"""
        self._redis: Optional[Redis] = None
        self._connection_pool = None

    async def initialize(self) -> bool:
        """Initialize Redis connection with fallback handling"""
        try:
            self._connection_pool = redis.ConnectionPool.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                max_connections=50,
                retry_on_timeout=True,
                socket_connect_timeout=2,
                socket_timeout=3,
                socket_keepalive=True,
            )

            self._redis = redis.Redis(connection_pool=self._connection_pool)

            # Test connection
            await self._redis.ping()
            logger.info("Redis cache service initialized successfully")
            return True

        except Exception as e:
            logger.error(f"Failed to initialize Redis cache: {str(e)}")
            self._redis = None
            return False

    async def close(self):
        """Close Redis connection and cleanup resources"""
        if self._redis:
            await self._redis.close()
        if self._connection_pool:
            await self._connection_pool.disconnect()
        logger.info("Redis cache service closed")

    @classmethod
    def generate_cache_key(cls, backend: str, params: Any) -> str:
        """Generate cache key for a backend request"""
        encoded = json.dumps(params, sort_keys=True, default=str)
        params_hash = hashlib.sha256(f"{backend}:{encoded}".encode()).hexdigest()
        return f"{cls.CACHE_KEY_PREFIX}:{backend.lower()}:{params_hash}"

    def _generate_stats_key(self, metric: str) -> str:
        """Generate cache key for statistics"""
        return f"{self.STATS_KEY_PREFIX}:{metric}"

    async def get_cached_response(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a cached backend response

        Args:
            cache_key: Key from generate_cache_key()

        Returns:
            Decoded response if found in cache, None otherwise
        """
        if not self._redis:
            return None

        try:
            cached_data = await self._redis.get(cache_key)

            if cached_data:
                await self._update_stats("hits")
                logger.debug(f"Cache hit for key: {cache_key}")
                return json.loads(cached_data)

            await self._update_stats("misses")
            logger.debug(f"Cache miss for key: {cache_key}")
            return None

        except Exception as e:
            logger.error(f"Error retrieving from cache: {str(e)}")
            return None

    async def cache_response(
        self,
        cache_key: str,
        payload: Dict[str, Any],
        ttl_seconds: Optional[int] = None
    ) -> bool:
        """
        Cache a backend response

        Args:
            cache_key: Key from generate_cache_key()
            payload: JSON-serializable response
            ttl_seconds: Custom TTL, SEARCH_CACHE_TTL_SECONDS if None

        Returns:
            True if successfully cached, False otherwise
        """
        if not self._redis:
            return False

        try:
            ttl = timedelta(seconds=ttl_seconds or settings.SEARCH_CACHE_TTL_SECONDS)
            await self._redis.setex(cache_key, ttl, json.dumps(payload, default=str))
            logger.debug(f"Cached response for key: {cache_key} (TTL: {ttl.total_seconds()}s)")
            return True

        except Exception as e:
            logger.error(f"Error caching response: {str(e)}")
            return False

    async def invalidate_backend(self, backend: str) -> int:
        """
        Invalidate all cached responses of one backend

        Returns:
            Number of keys deleted
        """
        if not self._redis:
            return 0

        pattern = f"{self.CACHE_KEY_PREFIX}:{backend.lower()}:*"
        try:
            keys = await self._redis.keys(pattern)

            if keys:
                deleted_count = await self._redis.delete(*keys)
                logger.info(f"Invalidated {deleted_count} cache entries matching pattern: {pattern}")
                return deleted_count

            return 0

        except Exception as e:
            logger.error(f"Error invalidating cache: {str(e)}")
            return 0

    async def get_cache_statistics(self) -> Dict[str, Any]:
        """Get cache statistics"""
        if not self._redis:
            return {"error": "Redis not available"}

        try:
            redis_info = await self._redis.info()
            cache_keys = await self._redis.keys(f"{self.CACHE_KEY_PREFIX}:*")

            hit_count = await self._redis.get(self._generate_stats_key("hits")) or "0"
            miss_count = await self._redis.get(self._generate_stats_key("misses")) or "0"

            total_requests = int(hit_count) + int(miss_count)
            hit_ratio = (int(hit_count) / total_requests * 100) if total_requests > 0 else 0

            return {
                "redis_status": "connected",
                "total_cache_entries": len(cache_keys),
                "cache_hits": int(hit_count),
                "cache_misses": int(miss_count),
                "hit_ratio_percent": round(hit_ratio, 2),
                "memory_usage_mb": round(redis_info.get("used_memory", 0) / (1024 * 1024), 2),
                "connected_clients": redis_info.get("connected_clients", 0),
            }

        except Exception as e:
            logger.error(f"Error getting cache statistics: {str(e)}")
            return {"error": str(e)}

    async def _update_stats(self, metric: str):
        """Count cache hits and misses"""
        try:
            stats_key = self._generate_stats_key(metric)
            await self._redis.incr(stats_key)
            await self._redis.expire(stats_key, timedelta(days=30))

        except Exception as e:
            logger.error(f"Error updating cache stats: {str(e)}")

    async def is_available(self) -> bool:
        """Check if Redis cache is available"""
        if not self._redis:
            return False

        try:
            await self._redis.ping()
            return True
        except Exception:
            return False


# Create singleton instance
cache_service = CacheService()


# Fallback mechanism when Redis is unavailable
class NoOpCacheService:
    """No-operation cache service for fallback when Redis is unavailable"""

    async def initialize(self) -> bool:
        return False

    async def close(self):
        pass

    async def get_cached_response(self, cache_key: str) -> Optional[Dict[str, Any]]:
        return None

    async def cache_response(self, cache_key: str, payload: Dict[str, Any], ttl_seconds: Optional[int] = None) -> bool:
        return False

    async def invalidate_backend(self, backend: str) -> int:
        return 0

    async def get_cache_statistics(self) -> Dict[str, Any]:
        return {"error": "Cache not available"}

    async def is_available(self) -> bool:
        return False


# Fallback instance
noop_cache_service = NoOpCacheService()


async def get_cache_service():
    """Get an initialized cache service, or the no-op fallback when Redis is down"""
    if await cache_service.is_available():
        return cache_service
    if await cache_service.initialize():
        return cache_service
    logger.warning("Redis unavailable, search responses will not be cached")
    return noop_cache_service
