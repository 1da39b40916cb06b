"""Redis list queues in the Resque layout."""
import json
import logging
from typing import Iterable, List, Optional
from redis.asyncio import Redis as AsyncRedis
from jobworker.worker.keys import StoreKeys
from jobworker.worker.models import Job

logger = logging.getLogger(__name__)


class RedisQueue:
    """
    Resque-compatible job queues.

    Each queue is a Redis list ``<ns>queue:<name>`` of JSON payloads
    ``{"class": ..., "args": [...]}``; queue names are tracked in the
    ``<ns>queues`` set.
    """

    def __init__(self, redis: AsyncRedis, namespace: str = "resque:"):
        """
        Initialize Redis queue.

        Args:
            redis: Async Redis client instance
            namespace: Prefix for every store key
        """
        self.redis = redis
        self.keys = StoreKeys(namespace)

    async def enqueue(self, job: Job) -> None:
        """
        Append a job to the tail of its queue.

        Args:
            job: Job to enqueue
        """
        async with self.redis.pipeline(transaction=False) as pipe:
            pipe.sadd(self.keys.queues, job.queue)
            pipe.rpush(self.keys.queue(job.queue), json.dumps(job.payload))
            await pipe.execute()

    async def dequeue(self, queues: Iterable[str]) -> Optional[Job]:
        """
        Pop the head job of the first non-empty queue, checked in order.

        Payloads that are not valid jobs are logged and dropped.

        Args:
            queues: Queue names in the order to check them

        Returns:
            Optional[Job]: Job if available, None if all queues are empty
        """
        for name in queues:
            raw = await self.redis.lpop(self.keys.queue(name))
            if raw is None:
                continue
            try:
                return Job.from_payload(name, json.loads(raw))
            except (ValueError, TypeError, AttributeError) as e:
                logger.error(f"Dropping malformed payload from queue {name}: {e}")
        return None

    async def get_queue_length(self, name: str) -> int:
        """
        Get number of jobs in a queue.

        Returns:
            int: Number of jobs in queue
        """
        return await self.redis.llen(self.keys.queue(name))

    async def list_queues(self) -> List[str]:
        """Names of every queue a job was ever enqueued to."""
        return sorted(await self.redis.smembers(self.keys.queues))

    async def get_failed_count(self) -> int:
        """Number of entries in the shared failure list."""
        return await self.redis.llen(self.keys.failed)

    async def purge(self, name: str) -> None:
        """Delete all jobs from a queue."""
        await self.redis.delete(self.keys.queue(name))
