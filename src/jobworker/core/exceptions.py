"""Custom exceptions for jobworker."""
from typing import List, Optional


class JobWorkerException(Exception):
    """Base exception for all jobworker-specific exceptions."""

    pass


class ConnectionUnavailableError(JobWorkerException):
    """Raised when no store connection can be acquired from the pool."""

    pass


class ChannelClosedError(JobWorkerException):
    """Raised when putting to, or closing, an already closed job channel."""

    pass


class SerializationError(JobWorkerException):
    """Raised when a work or failure record cannot be encoded as JSON."""

    pass


class NoHandlerError(JobWorkerException):
    """Raised when a job names a work type with no registered handler."""

    pass


class JobFailed(JobWorkerException):
    """
    Raised by a handler to fail its job deliberately.

    Reported with the exception message and an empty backtrace, unlike
    any other exception escaping a handler.
    """

    pass


class WorkerError(JobWorkerException):
    """
    A handler crash normalised into a message plus a captured backtrace.

    Args:
        message: Human-readable description of the crash
        backtrace: Traceback lines captured where the crash was caught
    """

    def __init__(self, message: str, backtrace: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.backtrace = list(backtrace or [])

    def __str__(self) -> str:
        return self.message
