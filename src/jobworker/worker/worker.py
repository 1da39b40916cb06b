"""Worker loop draining a job channel one job at a time."""
import asyncio
import logging
from typing import Iterable, Optional
from redis.exceptions import RedisError
from jobworker.core.exceptions import ConnectionUnavailableError, NoHandlerError
from jobworker.core.pool import StorePool
from jobworker.observability import metrics
from jobworker.worker.channel import CompletionTracker, JobChannel
from jobworker.worker.handler_registry import HandlerRegistry
from jobworker.worker.job_executor import JobExecutor
from jobworker.worker.models import Job, WorkerIdentity
from jobworker.worker.status_reporter import StatusReporter

logger = logging.getLogger(__name__)


class Worker:
    """
    Pulls jobs from a channel and executes them strictly in order.

    Construction does no store I/O. ``work()`` announces the worker,
    registers it with the completion tracker and starts draining in a
    background task; the task ends only when the channel is closed.
    """

    def __init__(
        self,
        identity: WorkerIdentity,
        pool: StorePool,
        handler_registry: HandlerRegistry,
        namespace: str = "resque:",
    ):
        """
        Initialize worker.

        Args:
            identity: Unique worker identity
            pool: Pool to borrow store connections from
            handler_registry: Work functions by work type
            namespace: Prefix for every store key
        """
        self.identity = identity
        self.pool = pool
        self.handler_registry = handler_registry
        self.reporter = StatusReporter(identity, namespace)
        self.executor = JobExecutor(pool, self.reporter)
        self._drain_task: Optional[asyncio.Task] = None

    def __str__(self) -> str:
        return str(self.identity)

    def __repr__(self) -> str:
        return f"<Worker {self.identity}>"

    @property
    def is_running(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    async def work(
        self,
        jobs: JobChannel,
        monitor: CompletionTracker,
    ) -> Optional[asyncio.Task]:
        """
        Start draining ``jobs`` in the background.

        If the worker cannot be announced, nothing is started and the
        tracker is left untouched.

        Args:
            jobs: Channel to drain; never closed by the worker
            monitor: Tracker counting one pending unit while draining

        Returns:
            Optional[asyncio.Task]: The drain task, or None if not started
        """
        try:
            conn = await self.pool.acquire()
        except ConnectionUnavailableError as e:
            metrics.record_connection_error("open")
            logger.critical(f"Error on getting connection in worker {self}: {e}")
            return None
        try:
            await self.reporter.open(conn)
        except RedisError as e:
            logger.critical(f"Error announcing worker {self}: {e}")
            return None
        finally:
            self.pool.release(conn)

        monitor.add(1)
        self._drain_task = asyncio.create_task(
            self._drain(jobs, monitor), name=f"worker-{self.identity}"
        )
        logger.info(f"Worker started: {self.identity.to_dict()}")
        return self._drain_task

    async def _drain(self, jobs: JobChannel, monitor: CompletionTracker) -> None:
        metrics.workers_active.inc()
        try:
            async for job in jobs:
                await self.process(job)
        finally:
            metrics.workers_active.dec()
            try:
                await self._close()
            finally:
                monitor.done()

    async def process(self, job: Job) -> None:
        """
        Execute one job, or report it failed if its work type is unknown.

        Args:
            job: Job taken from the channel
        """
        handler = self.handler_registry.find_handler(job.work_type)
        if handler is not None:
            await self.executor.run(job, handler)
            logger.debug(f"done: ({job})")
            return

        message = f"No worker for {job.work_type} in queue {job.queue} with args {list(job.args)}"
        logger.critical(message)
        metrics.record_job_unhandled()
        await self.executor.finish(job, NoHandlerError(message))

    async def _close(self) -> None:
        try:
            conn = await self.pool.acquire()
        except ConnectionUnavailableError as e:
            metrics.record_connection_error("close")
            logger.critical(f"Error on getting connection in worker {self}: {e}")
            return
        try:
            await self.reporter.close(conn)
            logger.info(f"Worker {self} stopped")
        except RedisError as e:
            logger.error(f"Error announcing shutdown of worker {self}: {e}")
        finally:
            self.pool.release(conn)


def new_worker(
    worker_id: str,
    queues: Iterable[str],
    pool: StorePool,
    handler_registry: HandlerRegistry,
    namespace: str = "resque:",
) -> Worker:
    """
    Build a worker for the given queues.

    Raises:
        ValueError: If worker_id is empty
    """
    identity = WorkerIdentity(id=worker_id, queues=tuple(queues))
    return Worker(identity, pool, handler_registry, namespace=namespace)
