"""Sleep handler - sleeps for specified duration then succeeds."""
import asyncio


async def sleep_handler(queue: str, duration: float = 1, *args) -> None:
    """
    Sleep handler that sleeps for a duration then succeeds.

    Useful for testing how long-running jobs hold a worker.

    Args:
        queue: Queue the job came from
        duration: Seconds to sleep (default: 1 second)
    """
    await asyncio.sleep(float(duration))
