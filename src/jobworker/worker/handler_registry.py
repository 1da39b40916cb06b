"""Handler registry for work type to work function mapping."""
from typing import Awaitable, Callable, Dict, List, Optional, Union

# A work function receives the queue name and the job's arguments.
# It may be a coroutine function or a plain function.
WorkFunction = Callable[..., Union[None, Awaitable[None]]]


class HandlerRegistry:
    """
    Registry for mapping work types to work functions.

    Provides a simple dictionary-based registry for registering
    and retrieving work functions by the work type named in a job's
    payload ("class" in Resque terms).
    """

    def __init__(self):
        """Initialize empty handler registry."""
        self._handlers: Dict[str, WorkFunction] = {}

    def register_handler(self, work_type: str, handler: WorkFunction) -> None:
        """
        Register a work function for a work type.

        Args:
            work_type: The work type identifier
            handler: Callable invoked as ``handler(queue, *args)`` (sync or async)

        Raises:
            ValueError: If a handler for this work type is already registered
            TypeError: If handler is not callable
        """
        if not callable(handler):
            raise TypeError(f"Handler for work type '{work_type}' is not callable")
        if work_type in self._handlers:
            raise ValueError(f"Handler for work type '{work_type}' already registered")

        self._handlers[work_type] = handler

    def register(self, work_type: str) -> Callable[[WorkFunction], WorkFunction]:
        """
        Decorator for registering a work function.

        Args:
            work_type: The work type identifier

        Returns:
            Callable: Decorator function

        Example:
            >>> registry = HandlerRegistry()
            >>> @registry.register("Echo")
            >>> async def echo(queue, *args):
            >>>     print(queue, args)
        """

        def decorator(handler: WorkFunction) -> WorkFunction:
            self.register_handler(work_type, handler)
            return handler

        return decorator

    def get_handler(self, work_type: str) -> WorkFunction:
        """
        Get the work function for a work type.

        Raises:
            KeyError: If no handler registered for this work type
        """
        if work_type not in self._handlers:
            raise KeyError(f"No handler registered for work type: {work_type}")

        return self._handlers[work_type]

    def find_handler(self, work_type: str) -> Optional[WorkFunction]:
        """Get the work function for a work type, or None if unregistered."""
        return self._handlers.get(work_type)

    def has_handler(self, work_type: str) -> bool:
        """Check if a handler is registered for a work type."""
        return work_type in self._handlers

    def list_handlers(self) -> List[str]:
        """
        List all registered work types.

        Returns:
            List[str]: List of registered work types
        """
        return list(self._handlers.keys())

    def __len__(self) -> int:
        return len(self._handlers)
