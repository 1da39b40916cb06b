"""Worker data models: jobs, identities and the records written to the store."""
import os
import socket
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple
from pydantic import BaseModel, Field


@dataclass(frozen=True)
class Job:
    """
    One unit of work pulled off a queue.

    Immutable once built; ``payload`` gives the Resque-shaped
    ``{"class": ..., "args": [...]}`` view stored alongside records.
    """

    queue: str
    work_type: str
    args: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))

    @property
    def payload(self) -> Dict[str, Any]:
        return {"class": self.work_type, "args": list(self.args)}

    @classmethod
    def from_payload(cls, queue: str, payload: Dict[str, Any]) -> "Job":
        """
        Build a job from a decoded queue payload.

        Args:
            queue: Queue the payload was read from
            payload: Mapping with "class" and optional "args"

        Returns:
            Job: Job descriptor

        Raises:
            ValueError: If the payload has no "class"
        """
        if not payload.get("class"):
            raise ValueError(f"Job payload from queue {queue} has no class: {payload}")
        return cls(queue=queue, work_type=payload["class"], args=payload.get("args") or ())

    def __str__(self) -> str:
        return f"Job{{{self.queue}}} | {self.work_type} | {list(self.args)}"


@dataclass(frozen=True)
class WorkerIdentity:
    """
    Who a worker is.

    Only ``id`` takes part in store keys and in ``str()``; hostname,
    pid and queues are informational.
    """

    id: str
    queues: Tuple[str, ...] = ()
    hostname: str = field(default_factory=socket.gethostname)
    pid: int = field(default_factory=os.getpid)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Worker identity must not be empty")
        object.__setattr__(self, "queues", tuple(self.queues))

    def __str__(self) -> str:
        return self.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "hostname": self.hostname,
            "pid": self.pid,
            "queues": list(self.queues),
        }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkRecord(BaseModel):
    """What a worker is doing right now, kept under its heartbeat key."""

    queue: str
    run_at: datetime = Field(default_factory=utcnow)
    payload: Dict[str, Any]


class FailureRecord(BaseModel):
    """One entry of the shared failure list."""

    failed_at: datetime = Field(default_factory=utcnow)
    payload: Dict[str, Any]
    exception: str = "Error"
    error: str
    backtrace: List[str] = Field(default_factory=list)
    worker: str
    queue: str
