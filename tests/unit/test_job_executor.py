"""Unit tests for the job executor."""
import json
import threading
import pytest
from unittest.mock import AsyncMock, patch


@pytest.fixture
def executor(store_pool):
    from jobworker.worker.job_executor import JobExecutor
    from jobworker.worker.models import WorkerIdentity
    from jobworker.worker.status_reporter import StatusReporter

    reporter = StatusReporter(WorkerIdentity("w1"), namespace="test:")
    return JobExecutor(store_pool, reporter)


@pytest.fixture
def job():
    from jobworker.worker.models import Job

    return Job("default", "Echo", ("hi", 3))


def failures(fake_redis):
    return [json.loads(item) for item in fake_redis.items("test:failed")]


@pytest.mark.asyncio
class TestJobExecutor:
    """Unit tests for JobExecutor.run and JobExecutor.finish."""

    async def test_async_handler_called_with_queue_and_args(self, executor, job, fake_redis):
        """Test handler receives the queue name then the job args."""
        calls = []

        async def handler(queue, *args):
            calls.append((queue, args))

        await executor.run(job, handler)

        assert calls == [("default", ("hi", 3))]
        assert fake_redis.counter("test:stat:processed") == 1
        assert fake_redis.counter("test:stat:processed:w1") == 1

    async def test_heartbeat_present_while_running(self, executor, job, fake_redis):
        """Test the heartbeat exists during the handler and is gone after."""
        seen = {}

        async def handler(queue, *args):
            seen["record"] = json.loads(fake_redis.value("test:worker:w1"))

        await executor.run(job, handler)

        assert seen["record"]["payload"] == {"class": "Echo", "args": ["hi", 3]}
        assert fake_redis.value("test:worker:w1") is None

    async def test_sync_handler_runs_off_the_event_loop(self, executor, job, fake_redis):
        """Test plain functions run in a worker thread."""
        threads = []

        def handler(queue, *args):
            threads.append(threading.current_thread())

        await executor.run(job, handler)

        assert threads and threads[0] is not threading.main_thread()
        assert fake_redis.counter("test:stat:processed") == 1

    async def test_job_failed_reported_without_backtrace(self, executor, job, fake_redis):
        """Test a deliberate failure keeps its message and an empty backtrace."""
        from jobworker.core.exceptions import JobFailed

        async def handler(queue, *args):
            raise JobFailed("not today")

        await executor.run(job, handler)

        [failure] = failures(fake_redis)
        assert failure["error"] == "not today"
        assert failure["backtrace"] == []
        assert fake_redis.counter("test:stat:processed") == 0
        assert fake_redis.value("test:worker:w1") is None

    async def test_crash_is_recovered_with_backtrace(self, executor, job, fake_redis):
        """Test an unexpected exception becomes a failure with a traceback."""

        async def exploding_handler(queue, *args):
            raise RuntimeError("kaboom")

        await executor.run(job, exploding_handler)

        [failure] = failures(fake_redis)
        assert failure["error"] == "kaboom"
        assert failure["exception"] == "Error"
        assert failure["backtrace"]
        assert any("exploding_handler" in line for line in failure["backtrace"])
        assert fake_redis.value("test:worker:w1") is None

    async def test_sync_crash_is_recovered(self, executor, job, fake_redis):
        def handler(queue, *args):
            raise KeyError("missing")

        await executor.run(job, handler)

        [failure] = failures(fake_redis)
        assert failure["error"] == "'missing'"
        assert any("KeyError" in line for line in failure["backtrace"])

    async def test_crash_without_message_uses_type_name(self, executor, job, fake_redis):
        async def handler(queue, *args):
            raise ZeroDivisionError()

        await executor.run(job, handler)

        assert failures(fake_redis)[0]["error"] == "ZeroDivisionError"

    async def test_connections_released(self, executor, job, store_pool):
        """Test no connection is held after run, whatever the outcome."""

        async def handler(queue, *args):
            raise RuntimeError("boom")

        await executor.run(job, handler)

        assert store_pool.in_use == 0

    async def test_no_connection_at_start_drops_job(self, executor, job, store_pool, fake_redis, caplog):
        """Test the job is neither run nor reported without a connection."""
        from jobworker.core.exceptions import ConnectionUnavailableError

        handler = AsyncMock()

        with patch.object(store_pool, "acquire", AsyncMock(side_effect=ConnectionUnavailableError("down"))):
            await executor.run(job, handler)

        handler.assert_not_called()
        assert fake_redis.flushes == []
        assert "Error on getting connection in worker on start w1: down" in caplog.text

    async def test_no_connection_at_finish_is_logged(self, executor, job, store_pool, fake_redis, caplog):
        """Test a lost outcome is logged critically, not raised."""
        from jobworker.core.exceptions import ConnectionUnavailableError

        real_acquire = store_pool.acquire
        acquire = AsyncMock(side_effect=[await real_acquire(), ConnectionUnavailableError("down")])
        handler = AsyncMock()

        with patch.object(store_pool, "acquire", acquire):
            await executor.run(job, handler)

        handler.assert_awaited_once_with("default", "hi", 3)
        assert fake_redis.counter("test:stat:processed") == 0
        assert fake_redis.value("test:worker:w1") is not None
        assert "on finish w1: down" in caplog.text
        critical = [r for r in caplog.records if r.levelname == "CRITICAL"]
        assert len(critical) == 1

    async def test_store_error_on_finish_is_logged(self, executor, job, fake_redis, caplog):
        """Test a failed finish flush does not escape run."""

        async def handler(queue, *args):
            fake_redis.fail_flush = True

        await executor.run(job, handler)

        assert "Error reporting outcome" in caplog.text

    async def test_unreachable_store_at_start_drops_job(self, executor, job, store_pool, fake_redis, caplog):
        """Test a job is not run when the store cannot take its heartbeat."""
        fake_redis.fail_flush = True
        handler = AsyncMock()

        await executor.run(job, handler)

        handler.assert_not_called()
        assert store_pool.in_use == 0
        assert fake_redis.flushes == [["set"]]
        critical = [r for r in caplog.records if r.levelname == "CRITICAL"]
        assert len(critical) == 1
        assert "Store unreachable in worker on start w1" in critical[0].getMessage()

    async def test_other_store_error_at_start_still_runs_job(self, executor, job, fake_redis, caplog):
        """Test a rejected heartbeat write is logged and the job still runs."""
        from redis.exceptions import ResponseError

        fake_redis.flush_error = ResponseError("READONLY You can't write against a read only replica.")
        handler = AsyncMock()

        await executor.run(job, handler)

        handler.assert_awaited_once_with("default", "hi", 3)
        assert "Error announcing" in caplog.text

    async def test_finish_with_error(self, executor, job, fake_redis):
        """Test finish reports a given error directly."""
        from jobworker.core.exceptions import NoHandlerError

        await executor.finish(job, NoHandlerError("nobody home"))

        assert failures(fake_redis)[0]["error"] == "nobody home"
