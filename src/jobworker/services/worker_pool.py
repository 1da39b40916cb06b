"""Runs a set of workers over one shared job channel."""
import asyncio
import logging
from typing import List, Optional
from jobworker.core.pool import StorePool
from jobworker.services.poller import Poller
from jobworker.worker.channel import CompletionTracker, JobChannel
from jobworker.worker.handler_registry import HandlerRegistry
from jobworker.worker.worker import Worker, new_worker

logger = logging.getLogger(__name__)


class WorkerPool:
    """
    Starts ``concurrency`` workers draining one channel fed by a poller.

    Workers are named ``<base_id>-<n>``. ``stop()`` stops the poller,
    which closes the channel; ``run()`` returns once every worker has
    drained and reported shutdown.
    """

    def __init__(
        self,
        base_id: str,
        queues: List[str],
        pool: StorePool,
        handler_registry: HandlerRegistry,
        poller: Poller,
        concurrency: int = 5,
        namespace: str = "resque:",
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.base_id = base_id
        self.queues = list(queues)
        self.pool = pool
        self.handler_registry = handler_registry
        self.poller = poller
        self.concurrency = concurrency
        self.namespace = namespace
        self.channel = JobChannel(maxsize=concurrency)
        self.monitor = CompletionTracker()
        self.workers: List[Worker] = []
        self._poll_task: Optional[asyncio.Task] = None

    async def run(self) -> None:
        """Start all workers and the poller, and wait for the workers to drain."""
        for n in range(self.concurrency):
            worker = new_worker(
                f"{self.base_id}-{n}",
                self.queues,
                self.pool,
                self.handler_registry,
                namespace=self.namespace,
            )
            if await worker.work(self.channel, self.monitor) is not None:
                self.workers.append(worker)

        if not self.workers:
            logger.critical("No worker could be started, giving up")
            self.poller.stop()
            await self.channel.close()
            return

        logger.info(f"Started {len(self.workers)} workers")
        self._poll_task = asyncio.create_task(self.poller.poll(self.channel))
        try:
            await self.monitor.wait()
        finally:
            self.poller.stop()
            await self._poll_task

    def stop(self) -> None:
        """Begin graceful shutdown; running jobs are allowed to finish."""
        logger.info("Stopping worker pool...")
        self.poller.stop()
