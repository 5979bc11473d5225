#!/usr/bin/env python3
"""Unit tests for asynchronous task polling.

Tests cover:
    - Task handle and task tree parsing
    - Task tree classification
    - Polling to success, failure and timeout

Note: These tests mock DNACClient rather than making real API calls.
"""
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

sys.path.insert(0, str(__file__).rsplit("/tests", 1)[0])
from src.dnac.api.client import DNACClient
from src.dnac.api.envelope import Many
from src.dnac.api.exceptions import TaskFailure, TaskTimeoutError
from src.dnac.api.tasks import (
    Task,
    TaskHandle,
    TaskPoller,
    TaskState,
    evaluate_task_tree,
)

HANDLE = TaskHandle(task_id="t-1", url="/dna/intent/api/v1/task/t-1")


def task(id="t-1", end_time=None, is_error=False, failure_reason=None) -> Task:
    return Task(id=id, end_time=end_time, is_error=is_error, failure_reason=failure_reason)


def mock_client(*trees) -> MagicMock:
    """Mock DNACClient whose get_envelope returns the given task trees in order."""
    client = MagicMock(spec=DNACClient)
    client.get_envelope = AsyncMock(side_effect=[Many(list(tree)) for tree in trees])
    return client


# ============================================
# Data Type Tests
# ============================================

class TestTaskHandle:

    def test_from_dict(self):
        handle = TaskHandle.from_dict({"taskId": "abc", "url": "/dna/intent/api/v1/task/abc"})
        assert handle.task_id == "abc"
        assert handle.url == "/dna/intent/api/v1/task/abc"

    def test_status_url_targets_tree(self):
        assert HANDLE.status_url == "/dna/intent/api/v1/task/t-1/tree"

    def test_status_url_with_trailing_slash(self):
        handle = TaskHandle(task_id="x", url="/dna/intent/api/v1/task/x/")
        assert handle.status_url == "/dna/intent/api/v1/task/x/tree"

    def test_from_dict_requires_task_id(self):
        with pytest.raises(KeyError):
            TaskHandle.from_dict({"url": "/x"})


class TestTask:

    def test_from_dict_maps_fields(self):
        t = Task.from_dict({
            "id": "t-2",
            "parentId": "t-1",
            "rootId": "t-1",
            "startTime": 1000,
            "endTime": 2000,
            "isError": True,
            "failureReason": "Device unreachable",
            "progress": "Failed",
            "serviceType": "Inventory service",
            "additionalStatusURL": "/x",
        })

        assert t.parent_id == "t-1"
        assert t.end_time == 2000
        assert t.is_error
        assert t.failure_reason == "Device unreachable"
        assert t.additional_status_url == "/x"
        assert t.is_finished

    def test_from_dict_defaults(self):
        t = Task.from_dict({"id": "t-3"})
        assert not t.is_error
        assert not t.is_finished

    def test_from_dict_requires_id(self):
        with pytest.raises(KeyError):
            Task.from_dict({"isError": False})


class TestEvaluateTaskTree:

    def test_all_finished_without_error(self):
        tree = [task("a", end_time=1), task("b", end_time=2)]
        assert evaluate_task_tree(tree) is TaskState.SUCCEEDED

    def test_finished_with_error(self):
        tree = [task("a", end_time=1), task("b", end_time=2, is_error=True)]
        assert evaluate_task_tree(tree) is TaskState.FAILED

    def test_unfinished_task_means_running(self):
        tree = [task("a", end_time=1), task("b")]
        assert evaluate_task_tree(tree) is TaskState.RUNNING

    def test_error_on_unfinished_tree_still_running(self):
        tree = [task("a", end_time=1, is_error=True), task("b")]
        assert evaluate_task_tree(tree) is TaskState.RUNNING

    def test_empty_tree_is_succeeded(self):
        assert evaluate_task_tree([]) is TaskState.SUCCEEDED

    def test_terminal_states(self):
        assert TaskState.SUCCEEDED.is_terminal
        assert TaskState.FAILED.is_terminal
        assert not TaskState.RUNNING.is_terminal
        assert not TaskState.PENDING.is_terminal


# ============================================
# TaskPoller Tests
# ============================================

class TestTaskPoller:

    @pytest.mark.asyncio
    async def test_success_on_first_poll(self):
        client = mock_client([task(end_time=1)])
        poller = TaskPoller(client, poll_interval=0)

        tasks = await poller.await_completion(HANDLE)

        assert [t.id for t in tasks] == ["t-1"]
        client.get_envelope.assert_awaited_once()
        assert client.get_envelope.call_args.args[0] == HANDLE.status_url

    @pytest.mark.asyncio
    async def test_empty_tree_completes(self):
        client = mock_client([])
        poller = TaskPoller(client, poll_interval=0)

        tasks = await poller.await_completion(HANDLE, timeout=0.5)

        assert tasks == []
        client.get_envelope.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_polls_until_finished(self):
        client = mock_client(
            [task()],
            [task(end_time=1), task("t-2")],
            [task(end_time=1), task("t-2", end_time=2)],
        )
        poller = TaskPoller(client, poll_interval=0)

        tasks = await poller.await_completion(HANDLE)

        assert len(tasks) == 2
        assert client.get_envelope.await_count == 3

    @pytest.mark.asyncio
    async def test_failure_carries_task_tree(self):
        client = mock_client([
            task(end_time=1),
            task("t-2", end_time=2, is_error=True, failure_reason="Bad credentials"),
        ])
        poller = TaskPoller(client, poll_interval=0)

        with pytest.raises(TaskFailure) as exc:
            await poller.await_completion(HANDLE)

        assert exc.value.task_id == "t-1"
        assert len(exc.value.tasks) == 2
        assert [t.id for t in exc.value.failed_tasks] == ["t-2"]
        assert exc.value.details["failure_reasons"] == ["Bad credentials"]

    @pytest.mark.asyncio
    async def test_timeout(self):
        client = MagicMock(spec=DNACClient)
        client.get_envelope = AsyncMock(return_value=Many([task()]))
        poller = TaskPoller(client, poll_interval=0.01)

        with pytest.raises(TaskTimeoutError) as exc:
            await poller.await_completion(HANDLE, timeout=0.05)

        assert exc.value.task_id == "t-1"
        assert [t.id for t in exc.value.tasks] == ["t-1"]

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        client = MagicMock(spec=DNACClient)
        client.get_envelope = AsyncMock(side_effect=RuntimeError("network down"))
        poller = TaskPoller(client, poll_interval=0)

        with pytest.raises(RuntimeError, match="network down"):
            await poller.await_completion(HANDLE)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
