"""Bounded pool lending single-use, pipelined store connections."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List
from redis.asyncio import Redis as AsyncRedis
from jobworker.core.exceptions import ConnectionUnavailableError

logger = logging.getLogger(__name__)


class StoreConnection:
    """
    A borrowed store handle with buffered commands and an explicit flush.

    Commands are queued on a non-transactional redis pipeline and only
    sent when ``flush()`` is awaited, as one round trip.
    """

    def __init__(self, pipeline, pool: "StorePool"):
        self._pipeline = pipeline
        self._pool = pool

    @property
    def pipeline(self):
        """The underlying pipeline, for issuing buffered commands."""
        return self._pipeline

    def __len__(self) -> int:
        return len(self._pipeline)

    async def flush(self) -> List[Any]:
        """
        Send every buffered command in one round trip.

        Returns:
            List[Any]: Replies, in command order

        Raises:
            redis.exceptions.RedisError: If the store rejects the exchange
        """
        if not len(self._pipeline):
            return []
        return await self._pipeline.execute()


class StorePool:
    """
    Lends at most ``max_connections`` store connections at a time.

    Connections are never cached by borrowers; each logical step
    acquires its own and releases it straight after.
    """

    def __init__(
        self,
        redis: AsyncRedis,
        max_connections: int = 10,
        acquire_timeout: float = 5.0,
    ):
        """
        Initialize store pool.

        Args:
            redis: Async Redis client the connections pipeline through
            max_connections: Maximum connections lent at once
            acquire_timeout: Seconds to wait for a free connection
        """
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self.redis = redis
        self.max_connections = max_connections
        self.acquire_timeout = acquire_timeout
        self._slots = asyncio.Semaphore(max_connections)
        self._in_use = 0
        self._closed = False

    @property
    def in_use(self) -> int:
        """Number of connections currently lent out."""
        return self._in_use

    async def acquire(self) -> StoreConnection:
        """
        Borrow a connection.

        Returns:
            StoreConnection: Connection to hand back with ``release``

        Raises:
            ConnectionUnavailableError: If the pool is closed or exhausted
                for longer than ``acquire_timeout``
        """
        if self._closed:
            raise ConnectionUnavailableError("store pool is closed")
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError as e:
            raise ConnectionUnavailableError(
                f"no store connection free after {self.acquire_timeout}s"
            ) from e
        self._in_use += 1
        return StoreConnection(self.redis.pipeline(transaction=False), self)

    def release(self, conn: StoreConnection) -> None:
        """
        Return a borrowed connection, discarding any unflushed commands.

        Args:
            conn: Connection obtained from ``acquire``
        """
        if conn._pool is not self:
            raise ValueError("connection was not acquired from this pool")
        if len(conn):
            logger.warning(f"Discarding {len(conn)} unflushed store commands")
        conn._pool = None
        self._in_use -= 1
        self._slots.release()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[StoreConnection]:
        """
        Borrow a connection for the duration of a ``with`` block.

        Example:
            >>> async with pool.connection() as conn:
            >>>     conn.pipeline.incr("counter")
            >>>     await conn.flush()
        """
        conn = await self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def close(self) -> None:
        """Refuse any further acquisitions."""
        self._closed = True
