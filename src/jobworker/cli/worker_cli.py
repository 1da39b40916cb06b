"""CLI entry point for running a pool of workers."""
import asyncio
import logging
import os
import signal
import socket
import sys
from prometheus_client import start_http_server
from jobworker.config import Settings, get_settings
from jobworker.core.pool import StorePool
from jobworker.core.redis import close_async_redis, get_async_redis
from jobworker.observability.metrics import init_system_info
from jobworker.services.poller import Poller
from jobworker.services.redis_queue import RedisQueue
from jobworker.services.worker_pool import WorkerPool
from jobworker.worker.handler_registry import HandlerRegistry

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def setup_handlers(registry: HandlerRegistry) -> None:
    """
    Register example work functions.

    Args:
        registry: Handler registry to register handlers with
    """
    from jobworker.worker.handlers.echo_handler import echo_handler
    from jobworker.worker.handlers.sleep_handler import sleep_handler
    from jobworker.worker.handlers.fail_handler import crash_handler, fail_handler

    registry.register_handler("Echo", echo_handler)
    registry.register_handler("Sleep", sleep_handler)
    registry.register_handler("Fail", fail_handler)
    registry.register_handler("Crash", crash_handler)

    logger.info(f"Registered handlers: {', '.join(registry.list_handlers())}")


async def run_worker(settings: Settings, registry: HandlerRegistry) -> None:
    """
    Run a worker pool until SIGINT or SIGTERM.

    Args:
        settings: Loaded settings
        registry: Work functions to serve
    """
    base_id = settings.WORKER_ID or f"{socket.gethostname()}:{os.getpid()}"
    logger.info(f"Starting worker pool: {base_id}")

    redis_client = get_async_redis(settings.REDIS_URL)
    pool = StorePool(
        redis_client,
        max_connections=settings.POOL_MAX_CONNECTIONS,
        acquire_timeout=settings.POOL_ACQUIRE_TIMEOUT,
    )
    poller = Poller(
        RedisQueue(redis_client, namespace=settings.NAMESPACE),
        settings.QUEUES,
        poll_interval=settings.POLL_INTERVAL,
    )
    worker_pool = WorkerPool(
        base_id,
        settings.QUEUES,
        pool,
        registry,
        poller,
        concurrency=settings.CONCURRENCY,
        namespace=settings.NAMESPACE,
    )

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, worker_pool.stop)

    try:
        await worker_pool.run()
    finally:
        pool.close()
        await close_async_redis()
        logger.info("Worker pool stopped")


def main():
    """Main entry point."""
    settings = get_settings()
    setup_logging(settings)

    registry = HandlerRegistry()
    setup_handlers(registry)

    if settings.METRICS_PORT:
        start_http_server(settings.METRICS_PORT)
        logger.info(f"Serving metrics on port {settings.METRICS_PORT}")
    init_system_info(settings.APP_VERSION)

    try:
        asyncio.run(run_worker(settings, registry))
    except KeyboardInterrupt:
        logger.info("Worker interrupted")
    except Exception as e:
        logger.error(f"Worker error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
