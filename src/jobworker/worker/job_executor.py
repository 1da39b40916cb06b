"""Job executor running one work function behind a fault boundary."""
import asyncio
import inspect
import logging
import time
import traceback
from typing import Optional
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from jobworker.core.exceptions import (
    ConnectionUnavailableError,
    JobFailed,
    JobWorkerException,
    WorkerError,
)
from jobworker.core.pool import StorePool
from jobworker.observability import metrics
from jobworker.worker.handler_registry import WorkFunction
from jobworker.worker.models import Job
from jobworker.worker.status_reporter import StatusReporter

logger = logging.getLogger(__name__)


class JobExecutor:
    """
    Runs jobs for one worker and routes every outcome to the reporter.

    ``run`` never raises for anything a job does: successes, deliberate
    failures and crashes all end in ``StatusReporter.finish``.
    """

    def __init__(self, pool: StorePool, reporter: StatusReporter):
        """
        Initialize job executor.

        Args:
            pool: Pool to borrow store connections from
            reporter: Reporter for the owning worker
        """
        self.pool = pool
        self.reporter = reporter

    @property
    def identity(self):
        return self.reporter.identity

    async def run(self, job: Job, handler: WorkFunction) -> None:
        """
        Execute a job using its work function.

        If no connection is available to announce the job, or the store
        cannot be reached to take the announcement, the job is dropped
        without running or being reported.

        Args:
            job: Job to execute
            handler: Work function registered for the job's work type
        """
        try:
            conn = await self.pool.acquire()
        except ConnectionUnavailableError as e:
            metrics.record_connection_error("start")
            logger.critical(f"Error on getting connection in worker on start {self.identity}: {e}")
            return
        try:
            self.reporter.announce_start(conn, job)
            await conn.flush()
        except RedisConnectionError as e:
            metrics.record_connection_error("start")
            logger.critical(f"Store unreachable in worker on start {self.identity}: {e}")
            return
        except (JobWorkerException, RedisError) as e:
            logger.error(f"Error announcing {job} on worker {self.identity}: {e}")
        finally:
            self.pool.release(conn)

        started = time.monotonic()
        error: Optional[BaseException] = None
        try:
            await self._invoke(handler, job)
        except JobFailed as e:
            error = e
        except Exception as e:
            # Capture here, while the handler's frames are still on the traceback
            error = WorkerError(str(e) or type(e).__name__, traceback.format_exc().splitlines())
            logger.error(f"Job {job} crashed on worker {self.identity}: {error}")

        duration = time.monotonic() - started
        if error is None:
            metrics.record_job_succeeded(job.work_type, duration)
        else:
            metrics.record_job_failed(job.work_type, duration)

        await self.finish(job, error)

    async def finish(self, job: Job, error: Optional[BaseException] = None) -> None:
        """
        Report a job's terminal outcome on a freshly acquired connection.

        Failures to acquire or to write are logged; the outcome is then lost.

        Args:
            job: Job that finished
            error: What the job failed with, None on success
        """
        try:
            conn = await self.pool.acquire()
        except ConnectionUnavailableError as e:
            metrics.record_connection_error("finish")
            logger.critical(f"Error on getting connection in worker on finish {self.identity}: {e}")
            return
        try:
            await self.reporter.finish(conn, job, error)
        except (JobWorkerException, RedisError) as e:
            logger.error(f"Error reporting outcome of {job} on worker {self.identity}: {e}")
        finally:
            self.pool.release(conn)

    @staticmethod
    async def _invoke(handler: WorkFunction, job: Job) -> None:
        if inspect.iscoroutinefunction(handler):
            await handler(job.queue, *job.args)
        else:
            # Plain functions run in a thread, off the event loop
            result = await asyncio.to_thread(handler, job.queue, *job.args)
            if inspect.isawaitable(result):
                await result
