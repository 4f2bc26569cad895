"""
Unit tests for CacheService

Tests for Redis-based caching of search backend responses.
"""

import pytest
from unittest.mock import AsyncMock, patch
from datetime import timedelta
import json

from discovery.services.cache_service import CacheService, NoOpCacheService


class TestCacheService:
    """Test cases for CacheService"""

    @pytest.fixture
    def mock_redis(self):
        """Mock Redis client for testing"""
        mock_redis = AsyncMock()
        mock_redis.ping.return_value = True
        return mock_redis

    @pytest.fixture
    def cache_service_instance(self, mock_redis):
        """Create CacheService instance with mocked Redis"""
        service = CacheService()
        service._redis = mock_redis
        return service

    @pytest.fixture
    def sample_result(self):
        return {"backend": "Solr", "total": 1, "records": [{"id": "1"}], "facets": {}}

    async def test_initialize_success(self):
        """Test successful Redis initialization"""
        with patch('redis.asyncio.ConnectionPool.from_url'), \
             patch('redis.asyncio.Redis') as mock_redis_class:

            mock_redis_instance = AsyncMock()
            mock_redis_instance.ping.return_value = True
            mock_redis_class.return_value = mock_redis_instance

            service = CacheService()
            result = await service.initialize()

            assert result is True
            assert service._redis is not None
            mock_redis_instance.ping.assert_called_once()

    async def test_initialize_failure(self):
        """Test Redis initialization failure"""
        with patch('redis.asyncio.ConnectionPool.from_url') as mock_pool:
            mock_pool.side_effect = Exception("Connection failed")

            service = CacheService()
            result = await service.initialize()

            assert result is False
            assert service._redis is None

    def test_generate_cache_key(self):
        """Test cache key generation"""
        key1 = CacheService.generate_cache_key("Solr", {"q": ["foo"], "rows": ["20"]})
        key2 = CacheService.generate_cache_key("Solr", {"rows": ["20"], "q": ["foo"]})
        key3 = CacheService.generate_cache_key("Solr", {"q": ["bar"], "rows": ["20"]})
        key4 = CacheService.generate_cache_key("Summon", {"q": ["foo"], "rows": ["20"]})

        # Parameter order does not matter
        assert key1 == key2

        assert key1 != key3
        assert key1 != key4

        assert key1.startswith("discovery:search:solr:")
        assert key4.startswith("discovery:search:summon:")

    async def test_cache_miss(self, cache_service_instance, mock_redis):
        """Test cache miss scenario"""
        mock_redis.get.return_value = None

        result = await cache_service_instance.get_cached_response("discovery:search:solr:abc")

        assert result is None
        mock_redis.get.assert_called_once_with("discovery:search:solr:abc")
        mock_redis.incr.assert_called_once_with("discovery:search_stats:misses")

    async def test_cache_hit(self, cache_service_instance, mock_redis, sample_result):
        """Test cache hit scenario"""
        mock_redis.get.return_value = json.dumps(sample_result)

        result = await cache_service_instance.get_cached_response("discovery:search:solr:abc")

        assert result == sample_result
        mock_redis.incr.assert_called_once_with("discovery:search_stats:hits")

    async def test_cache_response(self, cache_service_instance, mock_redis, sample_result):
        """Test caching a backend response"""
        mock_redis.setex.return_value = True

        result = await cache_service_instance.cache_response("discovery:search:solr:abc", sample_result)

        assert result is True
        cache_key, ttl, cached_data = mock_redis.setex.call_args[0]
        assert cache_key == "discovery:search:solr:abc"
        assert ttl == timedelta(seconds=300)
        assert json.loads(cached_data) == sample_result

    async def test_cache_response_custom_ttl(self, cache_service_instance, mock_redis, sample_result):
        await cache_service_instance.cache_response("key", sample_result, ttl_seconds=60)

        assert mock_redis.setex.call_args[0][1] == timedelta(seconds=60)

    async def test_invalidate_backend(self, cache_service_instance, mock_redis):
        """Test cache invalidation of one backend"""
        mock_redis.keys.return_value = ["key1", "key2", "key3"]
        mock_redis.delete.return_value = 3

        result = await cache_service_instance.invalidate_backend("Solr")

        assert result == 3
        mock_redis.keys.assert_called_once_with("discovery:search:solr:*")
        mock_redis.delete.assert_called_once_with("key1", "key2", "key3")

    async def test_cache_statistics(self, cache_service_instance, mock_redis):
        """Test cache statistics retrieval"""
        mock_redis.info.return_value = {
            "used_memory": 1024 * 1024 * 5,  # 5MB
            "connected_clients": 3,
        }
        mock_redis.keys.return_value = ["cache:1", "cache:2", "cache:3"]
        mock_redis.get.side_effect = ["150", "50"]  # hits, misses

        stats = await cache_service_instance.get_cache_statistics()

        assert stats["redis_status"] == "connected"
        assert stats["total_cache_entries"] == 3
        assert stats["cache_hits"] == 150
        assert stats["cache_misses"] == 50
        assert stats["hit_ratio_percent"] == 75.0
        assert stats["memory_usage_mb"] == 5.0
        assert stats["connected_clients"] == 3

    async def test_is_available(self, cache_service_instance, mock_redis):
        """Test cache availability check"""
        mock_redis.ping.return_value = True
        assert await cache_service_instance.is_available() is True

        mock_redis.ping.side_effect = Exception("Connection failed")
        assert await cache_service_instance.is_available() is False

    async def test_cache_error_handling(self, cache_service_instance, mock_redis, sample_result):
        """Test error handling in cache operations"""
        mock_redis.get.side_effect = Exception("Redis error")
        assert await cache_service_instance.get_cached_response("key") is None

        mock_redis.setex.side_effect = Exception("Redis error")
        assert await cache_service_instance.cache_response("key", sample_result) is False

    async def test_without_redis(self, sample_result):
        service = CacheService()

        assert await service.get_cached_response("key") is None
        assert await service.cache_response("key", sample_result) is False
        assert await service.invalidate_backend("Solr") == 0
        assert await service.is_available() is False


class TestNoOpCacheService:
    """Test cases for NoOpCacheService fallback"""

    @pytest.fixture
    def noop_service(self):
        return NoOpCacheService()

    async def test_noop_operations(self, noop_service):
        """Test that all NoOp operations return expected values"""
        assert await noop_service.initialize() is False
        assert await noop_service.get_cached_response("key") is None
        assert await noop_service.cache_response("key", {}) is False
        assert await noop_service.invalidate_backend("Solr") == 0
        assert await noop_service.is_available() is False

        stats = await noop_service.get_cache_statistics()
        assert "error" in stats
