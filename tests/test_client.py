"""Tests for the typed client and optimistic task board."""

import pytest
from fastapi.testclient import TestClient

from mission_control.api.models import TaskStatus
from mission_control.client import ApiError, MissionControlClient, TaskBoard


@pytest.fixture
def api(test_client: TestClient) -> MissionControlClient:
    return MissionControlClient(test_client)


def test_client_round_trip(api: MissionControlClient) -> None:
    api.create_task("T1", "Fix bug", assignee="olex")

    task = api.update_task("T1", status=TaskStatus.ASSIGNED)

    assert task.status == TaskStatus.ASSIGNED
    assert [t.id for t in api.list_tasks(assignee="olex")] == ["T1"]
    assert api.archive_task("T1").status == TaskStatus.ARCHIVED


def test_client_raises_api_error(api: MissionControlClient) -> None:
    with pytest.raises(ApiError) as excinfo:
        api.get_task("T404")

    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Task not found: T404"


def test_client_agents_and_queue(api: MissionControlClient) -> None:
    names = [agent.name for agent in api.list_agents()]
    assert names == ["olex", "ruv"]

    agent = api.update_agent("olex", state="busy", current_task="T002")
    assert agent.current_task == "T002"

    assert api.read_task_queue().count == 2


def test_board_move_success(api: MissionControlClient) -> None:
    api.create_task("T1", "Fix bug")
    board = TaskBoard(api)
    board.refresh()

    result = board.move("T1", TaskStatus.IN_PROGRESS)

    assert result.success
    assert board.status_of("T1") == TaskStatus.IN_PROGRESS
    assert board.pending == {}
    assert [t.id for t in board.columns()[TaskStatus.IN_PROGRESS]] == ["T1"]


def test_board_move_rolls_back_on_error(
    api: MissionControlClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test a rejected update leaves the last confirmed status in place."""
    api.create_task("T1", "Fix bug")
    board = TaskBoard(api)
    board.refresh()

    seen_during_request: list[TaskStatus] = []

    def failing_update(task_id: str, **fields: object) -> None:
        seen_during_request.append(board.status_of(task_id))
        raise ApiError(500, "database is locked")

    monkeypatch.setattr(api, "update_task", failing_update)

    result = board.move("T1", TaskStatus.COMPLETED)

    assert seen_during_request == [TaskStatus.COMPLETED]
    assert not result.success
    assert result.error == "database is locked"
    assert board.status_of("T1") == TaskStatus.NEW
    assert board.pending == {}


def test_board_applies_push_events(api: MissionControlClient) -> None:
    board = TaskBoard(api)
    created = api.create_task("T1", "Fix bug")

    board.apply_event({"type": "created", "task": created.model_dump(mode="json")})
    assert "T1" in board.tasks

    archived = api.archive_task("T1")
    event = board.apply_event({"type": "deleted", "task": archived.model_dump(mode="json")})

    assert event.type.value == "deleted"
    assert "T1" not in board.tasks
