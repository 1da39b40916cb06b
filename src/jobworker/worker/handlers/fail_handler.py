"""Fail and crash handlers - always end their job in failure."""
from jobworker.core.exceptions import JobFailed


async def fail_handler(queue: str, error_message: str = "Simulated job failure", *args) -> None:
    """
    Fail handler that always fails its job deliberately.

    Reported with an empty backtrace.

    Raises:
        JobFailed: Always
    """
    raise JobFailed(error_message)


def crash_handler(queue: str, error_message: str = "Simulated crash", *args) -> None:
    """
    Crash handler that always raises an unexpected error.

    Reported with the captured backtrace. Runs as a plain function so
    the thread-offloaded path gets exercised too.

    Raises:
        RuntimeError: Always
    """
    raise RuntimeError(error_message)
