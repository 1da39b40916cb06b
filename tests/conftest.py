"""Shared pytest fixtures for all tests."""
import asyncio
import pytest
import pytest_asyncio
from tests.fakes import FakeRedis

NAMESPACE = "test:"


@pytest.fixture(autouse=True)
def reset_redis_clients():
    """
    Reset the Redis client singleton before each test.

    Async clients are bound to the event loop that created them.
    """
    from jobworker.core import redis as redis_module

    redis_module._async_redis_client = None

    yield

    redis_module._async_redis_client = None


@pytest.fixture
def namespace():
    return NAMESPACE


@pytest.fixture
def fake_redis():
    """Provide an in-memory Redis double."""
    return FakeRedis()


@pytest.fixture
def store_pool(fake_redis):
    """Provide a store pool over the in-memory Redis double."""
    from jobworker.core.pool import StorePool

    return StorePool(fake_redis, max_connections=4, acquire_timeout=0.05)


@pytest.fixture
def registry():
    from jobworker.worker.handler_registry import HandlerRegistry

    return HandlerRegistry()


@pytest_asyncio.fixture
async def redis_client():
    """
    Provide a real async Redis client for integration tests.

    Skips when no server is reachable. Flushes the database before and
    after each test for isolation.
    """
    from redis.exceptions import RedisError
    from jobworker.core.redis import close_async_redis, get_async_redis

    client = get_async_redis()
    try:
        await asyncio.wait_for(client.ping(), timeout=2)
    except (RedisError, OSError, asyncio.TimeoutError):
        await close_async_redis()
        pytest.skip("Redis server not reachable")

    # Flush before test
    await client.flushdb()

    yield client

    # Flush after test
    await client.flushdb()
    await close_async_redis()
