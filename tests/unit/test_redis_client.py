"""Unit tests for Redis client management."""
import pytest
from unittest.mock import AsyncMock, Mock, patch


class TestRedisClient:
    """Unit tests for the async Redis client singleton."""

    @patch('jobworker.core.redis.AsyncRedis.from_url')
    def test_get_async_redis_creates_singleton(self, mock_from_url):
        """Test get_async_redis creates singleton instance."""
        from jobworker.core.redis import get_async_redis

        mock_from_url.return_value = Mock()

        client1 = get_async_redis()
        client2 = get_async_redis()

        assert client1 is client2
        assert mock_from_url.call_count == 1

    @patch('jobworker.core.redis.AsyncRedis.from_url')
    def test_get_async_redis_uses_given_url(self, mock_from_url):
        from jobworker.core.redis import get_async_redis

        get_async_redis("redis://other:6379/3")

        assert mock_from_url.call_args.args[0] == "redis://other:6379/3"
        assert mock_from_url.call_args.kwargs["decode_responses"] is True

    @pytest.mark.asyncio
    @patch('jobworker.core.redis.AsyncRedis.from_url')
    async def test_close_async_redis(self, mock_from_url):
        """Test close_async_redis closes connection and clears singleton."""
        from jobworker.core import redis as redis_module
        from jobworker.core.redis import close_async_redis, get_async_redis

        mock_client = Mock()
        mock_client.aclose = AsyncMock()
        mock_from_url.return_value = mock_client

        get_async_redis()
        await close_async_redis()

        mock_client.aclose.assert_awaited_once()
        assert redis_module._async_redis_client is None

    @pytest.mark.asyncio
    async def test_close_without_client_is_noop(self):
        from jobworker.core.redis import close_async_redis

        await close_async_redis()
