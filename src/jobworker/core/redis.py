"""Redis connection management for jobworker."""
from typing import Optional
from redis.asyncio import Redis as AsyncRedis
from jobworker.config import get_settings

# Async Redis client (singleton)
_async_redis_client: Optional[AsyncRedis] = None


def get_async_redis(url: Optional[str] = None) -> AsyncRedis:
    """
    Get async Redis client (singleton).

    Args:
        url: Redis URL, defaults to the REDIS_URL setting

    Returns:
        AsyncRedis: Async Redis client instance

    Example:
        >>> redis = get_async_redis()
        >>> await redis.set('key', 'value')
        >>> await redis.get('key')
        'value'
    """
    global _async_redis_client
    if _async_redis_client is None:
        _async_redis_client = AsyncRedis.from_url(
            url or get_settings().REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )
    return _async_redis_client


async def close_async_redis() -> None:
    """
    Close async Redis connection.

    Closes the connection and clears the singleton.
    Should be called on worker shutdown.
    """
    global _async_redis_client
    if _async_redis_client is not None:
        await _async_redis_client.aclose()
        _async_redis_client = None
