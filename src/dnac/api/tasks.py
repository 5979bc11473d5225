#!/usr/bin/env python3
"""Asynchronous task polling for controller write operations.

Write endpoints answer with `{"response": {"taskId": ..., "url": ...}}`
and carry on in the background. The task (and any sub-tasks it spawns)
is followed by polling `<url>/tree` until every task in the tree reports
an end time.

State machine:
    PENDING  -- first poll -->  RUNNING | SUCCEEDED | FAILED
    RUNNING  -- next poll  -->  RUNNING | SUCCEEDED | FAILED

    SUCCEEDED: every task has endTime, none has isError
    FAILED:    every task has endTime, at least one has isError

Example:
    handle = await client.post("/dna/intent/api/v1/network-device", body)
    tasks = await TaskPoller(client).await_completion(handle, timeout=600)
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from .exceptions import TaskFailure, TaskTimeoutError

if TYPE_CHECKING:
    from .client import DNACClient

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0


# ============================================
# Data Types
# ============================================

@dataclass(frozen=True)
class TaskHandle:
    """Reference to a background task returned by a write operation."""
    task_id: str
    url: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskHandle":
        return cls(task_id=data["taskId"], url=data["url"])

    @property
    def status_url(self) -> str:
        """Status endpoint that reports the whole task tree."""
        return f"{self.url.rstrip('/')}/tree"


@dataclass
class Task:
    """One node of a task tree as reported by the task API."""
    id: str
    parent_id: Optional[str] = None
    root_id: Optional[str] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    last_update: Optional[int] = None
    is_error: bool = False
    error_code: Optional[str] = None
    error_key: Optional[str] = None
    failure_reason: Optional[str] = None
    progress: Optional[str] = None
    service_type: Optional[str] = None
    data: Optional[str] = None
    additional_status_url: Optional[str] = None
    operation_id_list: Any = None
    instance_tenant_id: Optional[str] = None
    username: Optional[str] = None
    version: Optional[int] = None
    raw_data: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Create from API response dict."""
        return cls(
            id=data["id"],
            parent_id=data.get("parentId"),
            root_id=data.get("rootId"),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            last_update=data.get("lastUpdate"),
            is_error=bool(data.get("isError", False)),
            error_code=data.get("errorCode"),
            error_key=data.get("errorKey"),
            failure_reason=data.get("failureReason"),
            progress=data.get("progress"),
            service_type=data.get("serviceType"),
            data=data.get("data"),
            additional_status_url=data.get("additionalStatusURL"),
            operation_id_list=data.get("operationIdList"),
            instance_tenant_id=data.get("instanceTenantId"),
            username=data.get("username"),
            version=data.get("version"),
            raw_data=dict(data),
        )

    @property
    def is_finished(self) -> bool:
        return self.end_time is not None


class TaskState(str, Enum):
    """Lifecycle of a polled task tree."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.SUCCEEDED, TaskState.FAILED)


def evaluate_task_tree(tasks: list[Task]) -> TaskState:
    """Classify one observation of a task tree.

    An empty tree has nothing left to wait on and counts as SUCCEEDED.
    """
    if not all(t.is_finished for t in tasks):
        return TaskState.RUNNING
    if any(t.is_error for t in tasks):
        return TaskState.FAILED
    return TaskState.SUCCEEDED


# ============================================
# TaskPoller
# ============================================

class TaskPoller:
    """Poll a task tree until it reaches a terminal state.

    Polls are strictly sequential with a fixed delay in between. Transport
    errors from a poll are not retried; they propagate to the caller.

    Attributes:
        client: DNACClient used for status requests
        poll_interval: Seconds between polls
    """

    def __init__(self, client: "DNACClient", poll_interval: float = DEFAULT_POLL_INTERVAL):
        self.client = client
        self.poll_interval = poll_interval

    async def get_task_tree(self, handle: TaskHandle) -> list[Task]:
        """Fetch the current task tree (single task or whole tree)."""
        envelope = await self.client.get_envelope(handle.status_url, parser=Task.from_dict)
        return envelope.items

    async def await_completion(
        self,
        handle: TaskHandle,
        *,
        timeout: Optional[float] = None,
    ) -> list[Task]:
        """Wait for the task tree to finish.

        Args:
            handle: Handle returned by the write operation
            timeout: Optional deadline in seconds (None polls indefinitely)

        Returns:
            The final task tree on success

        Raises:
            TaskFailure: If the tree finished with an errored task
            TaskTimeoutError: If the deadline passed first
            TransportError / ApiError: If a status request fails
        """
        last_seen: list[Task] = []

        async def _poll() -> list[Task]:
            nonlocal last_seen
            state = TaskState.PENDING
            logger.debug(f"Polling task {handle.task_id} at {handle.status_url}")

            while True:
                tasks = await self.get_task_tree(handle)
                last_seen = tasks
                state = evaluate_task_tree(tasks)

                if state is TaskState.SUCCEEDED:
                    logger.info(f"Task {handle.task_id} completed ({len(tasks)} task(s))")
                    return tasks

                if state is TaskState.FAILED:
                    for task in tasks:
                        if task.is_error:
                            logger.error(f"Task {task.id} failed: {task.failure_reason or task.progress}")
                    raise TaskFailure(handle.task_id, tasks)

                logger.debug(
                    f"Task {handle.task_id} is {state.value.lower()}, "
                    f"sleep for {self.poll_interval} sec"
                )
                await asyncio.sleep(self.poll_interval)

        if timeout is None:
            return await _poll()

        try:
            return await asyncio.wait_for(_poll(), timeout)
        except asyncio.TimeoutError as e:
            raise TaskTimeoutError(handle.task_id, timeout, tasks=last_seen, cause=e)


__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "Task",
    "TaskHandle",
    "TaskPoller",
    "TaskState",
    "evaluate_task_tree",
]
