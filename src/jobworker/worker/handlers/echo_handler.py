"""Echo handler - logs its arguments and succeeds."""
import logging
from typing import Any

logger = logging.getLogger(__name__)


async def echo_handler(queue: str, *args: Any) -> None:
    """
    Echo handler that logs the job's arguments.

    Useful for testing job execution without side effects.
    """
    logger.info(f"echo from {queue}: {list(args)}")
