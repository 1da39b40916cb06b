"""Poller feeding jobs from Redis queues into a job channel."""
import asyncio
import logging
from typing import List
from redis.exceptions import RedisError
from jobworker.observability import metrics
from jobworker.services.redis_queue import RedisQueue
from jobworker.worker.channel import JobChannel

logger = logging.getLogger(__name__)


class Poller:
    """
    Moves jobs from Redis queues onto a channel until stopped.

    Polls again immediately after a hit and sleeps ``poll_interval``
    after a miss. The poller owns the channel's write end and closes it
    when it stops.
    """

    def __init__(
        self,
        queue: RedisQueue,
        queues: List[str],
        poll_interval: float = 5.0,
    ):
        """
        Initialize poller.

        Args:
            queue: Redis queue to pop from
            queues: Queue names, checked in this order on every poll
            poll_interval: Seconds to sleep when all queues are empty
        """
        if not queues:
            raise ValueError("Poller needs at least one queue")
        self.queue = queue
        self.queues = list(queues)
        self.poll_interval = poll_interval
        self._stop_event = asyncio.Event()

    def stop(self) -> None:
        """Ask the poll loop to finish after its current step."""
        self._stop_event.set()

    async def poll(self, jobs: JobChannel) -> None:
        """
        Poll until stopped, then close ``jobs``.

        Args:
            jobs: Channel to deliver jobs to
        """
        logger.info(f"Polling queues {self.queues}")
        try:
            while not self._stop_event.is_set():
                try:
                    job = await self.queue.dequeue(self.queues)
                except RedisError as e:
                    logger.error(f"Error polling queues: {e}")
                    job = None

                if job is not None:
                    metrics.record_queue_dequeue(job.queue)
                    logger.debug(f"Polled {job}")
                    await jobs.put(job)
                    continue

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            await jobs.close()
            logger.info("Poller stopped")
