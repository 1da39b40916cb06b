"""Store key layout, prefixed by a configurable namespace."""
from dataclasses import dataclass


@dataclass(frozen=True)
class StoreKeys:
    """
    Builds every store key used by workers and queues.

    Example:
        >>> keys = StoreKeys("resque:")
        >>> keys.heartbeat("w1")
        'resque:worker:w1'
    """

    namespace: str = "resque:"

    @property
    def failed(self) -> str:
        return f"{self.namespace}failed"

    @property
    def workers(self) -> str:
        return f"{self.namespace}workers"

    @property
    def queues(self) -> str:
        return f"{self.namespace}queues"

    @property
    def processed(self) -> str:
        return f"{self.namespace}stat:processed"

    @property
    def failed_count(self) -> str:
        return f"{self.namespace}stat:failed"

    def heartbeat(self, identity) -> str:
        return f"{self.namespace}worker:{identity}"

    def started(self, identity) -> str:
        return f"{self.namespace}worker:{identity}:started"

    def processed_by(self, identity) -> str:
        return f"{self.namespace}stat:processed:{identity}"

    def failed_by(self, identity) -> str:
        return f"{self.namespace}stat:failed:{identity}"

    def queue(self, name: str) -> str:
        return f"{self.namespace}queue:{name}"
