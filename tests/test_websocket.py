"""Tests for task event fan-out over WebSocket."""

from datetime import datetime
from typing import Any

import pytest
from fastapi.testclient import TestClient

from mission_control.api.models import Task, TaskEventType, TaskPriority, TaskStatus
from mission_control.websocket.connection_manager import ConnectionManager

API = "/api/v1"


class FakeWebSocket:
    """Records sent text; optionally fails every send."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.accepted = False
        self.sent: list[str] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(data)


def _task() -> Task:
    now = datetime(2026, 1, 1, 12, 0)
    return Task(
        id="T1",
        title="Fix bug",
        description=None,
        status=TaskStatus.NEW,
        priority=TaskPriority.MEDIUM,
        assignee=None,
        category=None,
        due_date=None,
        created_at=now,
        updated_at=now,
        completed_at=None,
    )


@pytest.mark.asyncio
async def test_broadcast_without_subscribers_is_noop() -> None:
    """Test an event with zero subscribers neither raises nor blocks."""
    manager = ConnectionManager()

    await manager.broadcast_task_event(TaskEventType.CREATED, _task())

    assert manager.active_connections == []


@pytest.mark.asyncio
async def test_broadcast_reaches_every_subscriber_and_drops_dead_ones() -> None:
    manager = ConnectionManager()
    alive: Any = FakeWebSocket()
    dead: Any = FakeWebSocket(fail=True)
    await manager.connect(alive)
    await manager.connect(dead)

    await manager.broadcast_task_event(TaskEventType.STATUS_CHANGED, _task())
    await manager.broadcast_task_event(TaskEventType.UPDATED, _task())

    assert len(alive.sent) == 2
    assert '"type": "status_changed"' in alive.sent[0]
    assert manager.active_connections == [alive]


def test_websocket_receives_task_events(test_client: TestClient) -> None:
    """Test every mutation is pushed as {type, task} to a connected client."""
    with test_client.websocket_connect("/ws") as websocket:
        test_client.post(f"{API}/tasks", json={"id": "T1", "title": "Fix bug"})
        test_client.patch(f"{API}/tasks/T1", json={"status": "IN_PROGRESS"})
        test_client.patch(f"{API}/tasks/T1", json={"assignee": "olex"})
        test_client.delete(f"{API}/tasks/T1")

        events = [websocket.receive_json() for _ in range(4)]

    assert [event["type"] for event in events] == [
        "created",
        "status_changed",
        "updated",
        "deleted",
    ]
    assert events[1]["task"]["status"] == "IN_PROGRESS"
    assert events[2]["task"]["assignee"] == "olex"
    assert events[3]["task"]["status"] == "ARCHIVED"


def test_websocket_ping_pong(test_client: TestClient) -> None:
    with test_client.websocket_connect("/ws") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_text() == "pong"


def test_file_side_channels_do_not_publish(test_client: TestClient) -> None:
    """Test mirror and agent writes are not pushed to subscribers."""
    with test_client.websocket_connect("/ws") as websocket:
        test_client.post(f"{API}/sync/tasks/update", json={"id": "T001", "status": "BLOCKED"})
        test_client.patch(f"{API}/agents/olex", json={"state": "offline"})
        test_client.post(f"{API}/tasks", json={"id": "T2", "title": "Marker"})

        event = websocket.receive_json()

    assert event["type"] == "created"
    assert event["task"]["id"] == "T2"
