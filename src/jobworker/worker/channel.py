"""Job intake channel and pool-wide completion tracker."""
import asyncio
from typing import Optional
from jobworker.core.exceptions import ChannelClosedError
from jobworker.worker.models import Job

_CLOSED = object()


class JobChannel:
    """
    Async-iterable stream of jobs, closed exactly once by its producer.

    Any number of workers may iterate the same channel; each job goes to
    exactly one of them. Iteration ends for everyone once the channel is
    closed and the jobs put before closing have been taken.
    """

    def __init__(self, maxsize: int = 0):
        """
        Initialize job channel.

        Args:
            maxsize: Maximum buffered jobs, 0 for unbounded
        """
        self._queue: asyncio.Queue = asyncio.Queue(maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, job: Job) -> None:
        """
        Deliver a job, waiting for room if the channel is bounded.

        Raises:
            ChannelClosedError: If the channel was closed
        """
        if self._closed:
            raise ChannelClosedError("put on closed job channel")
        await self._queue.put(job)

    async def close(self) -> None:
        """
        Close the channel; consumers finish the buffered jobs, then stop.

        Raises:
            ChannelClosedError: If the channel was already closed
        """
        if self._closed:
            raise ChannelClosedError("job channel closed twice")
        self._closed = True
        await self._queue.put(_CLOSED)

    async def get(self) -> Optional[Job]:
        """
        Take the next job, waiting until one arrives.

        Returns:
            Optional[Job]: Next job, or None once the channel is closed
        """
        item = await self._queue.get()
        if item is _CLOSED:
            # Hand the marker on so every other consumer wakes up too
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> Job:
        job = await self.get()
        if job is None:
            raise StopAsyncIteration
        return job


class CompletionTracker:
    """
    Counts pending worker loops; ``wait()`` returns once none remain.
    """

    def __init__(self):
        self._pending = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def pending(self) -> int:
        return self._pending

    def add(self, n: int = 1) -> None:
        """
        Adjust the pending count by ``n``.

        Raises:
            ValueError: If the count would go negative
        """
        if self._pending + n < 0:
            raise ValueError("completion tracker count went negative")
        self._pending += n
        if self._pending == 0:
            self._idle.set()
        else:
            self._idle.clear()

    def done(self) -> None:
        """Mark one pending unit finished."""
        self.add(-1)

    async def wait(self) -> None:
        """Wait until the pending count is zero."""
        await self._idle.wait()
