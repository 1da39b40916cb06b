"""Writes worker presence and job outcomes to the store."""
import logging
from typing import Optional
from jobworker.core.exceptions import SerializationError, WorkerError
from jobworker.core.pool import StoreConnection
from jobworker.worker.keys import StoreKeys
from jobworker.worker.models import FailureRecord, Job, WorkerIdentity, WorkRecord, utcnow

logger = logging.getLogger(__name__)

# Failures are not classified further than this
EXCEPTION_KIND = "Error"


class StatusReporter:
    """
    Buffers the store commands describing one worker's state.

    Every method takes a connection the caller has acquired and will
    release. Only ``open``, ``close`` and ``finish`` flush; everything
    else only queues commands.
    """

    def __init__(self, identity: WorkerIdentity, namespace: str = "resque:"):
        """
        Initialize status reporter.

        Args:
            identity: Worker the reports are about
            namespace: Prefix for every store key
        """
        self.identity = identity
        self.keys = StoreKeys(namespace)

    async def open(self, conn: StoreConnection) -> None:
        """Announce the worker as alive, resetting its counters."""
        pipe = conn.pipeline
        pipe.sadd(self.keys.workers, str(self.identity))
        pipe.set(self.keys.started(self.identity), utcnow().isoformat())
        pipe.set(self.keys.processed_by(self.identity), 0)
        pipe.set(self.keys.failed_by(self.identity), 0)
        await conn.flush()

    async def close(self, conn: StoreConnection) -> None:
        """Announce the worker as gone. Its counters are left in place."""
        pipe = conn.pipeline
        pipe.srem(self.keys.workers, str(self.identity))
        pipe.delete(self.keys.started(self.identity))
        await conn.flush()

    def announce_start(self, conn: StoreConnection, job: Job) -> None:
        """
        Queue the heartbeat write for a job about to run.

        Overwrites whatever the heartbeat key held. The caller flushes.

        Raises:
            SerializationError: If the job's payload is not JSON-encodable
        """
        record = WorkRecord(queue=job.queue, payload=job.payload)
        conn.pipeline.set(self.keys.heartbeat(self.identity), self._dump(record))
        logger.debug(f"Processing {job.queue} since {record.run_at} [{job.work_type}]")

    def report_failure(self, conn: StoreConnection, job: Job, error: BaseException) -> None:
        """
        Queue a failure record for the job plus the failure counters.

        Raises:
            SerializationError: If the record is not JSON-encodable
        """
        backtrace = error.backtrace if isinstance(error, WorkerError) else []
        record = FailureRecord(
            payload=job.payload,
            exception=EXCEPTION_KIND,
            error=str(error),
            backtrace=backtrace,
            worker=str(self.identity),
            queue=job.queue,
        )
        conn.pipeline.rpush(self.keys.failed, self._dump(record))
        self._mark_failed(conn)

    def report_success(self, conn: StoreConnection, job: Job) -> None:
        """Queue the processed-counter increments."""
        conn.pipeline.incr(self.keys.processed)
        conn.pipeline.incr(self.keys.processed_by(self.identity))

    async def finish(
        self,
        conn: StoreConnection,
        job: Job,
        error: Optional[BaseException] = None,
    ) -> None:
        """
        Record a job's terminal outcome in a single flush.

        The heartbeat delete is always sent, even when the failure
        record cannot be built; the SerializationError is raised after.

        Args:
            conn: Connection owned by the caller
            job: Job that finished
            error: What the job failed with, None on success
        """
        try:
            if error is not None:
                self.report_failure(conn, job, error)
            else:
                self.report_success(conn, job)
        finally:
            conn.pipeline.delete(self.keys.heartbeat(self.identity))
            await conn.flush()

    def _mark_failed(self, conn: StoreConnection) -> None:
        conn.pipeline.incr(self.keys.failed_count)
        conn.pipeline.incr(self.keys.failed_by(self.identity))

    @staticmethod
    def _dump(record) -> str:
        try:
            return record.model_dump_json()
        except ValueError as e:
            raise SerializationError(f"Cannot encode {type(record).__name__}: {e}") from e
