"""Tests for TaskStore."""

import pytest

from mission_control.api.models import TaskPriority, TaskStatus
from mission_control.errors import ConflictError, NotFoundError
from mission_control.store.database import Database
from mission_control.store.task_store import TaskStore


def test_insert_and_get(task_store: TaskStore) -> None:
    task_store.insert_task(
        {"id": "T1", "title": "Fix bug", "priority": TaskPriority.HIGH, "category": "backend"}
    )

    task = task_store.get_task("T1")

    assert task.title == "Fix bug"
    assert task.priority == TaskPriority.HIGH
    assert task.category == "backend"
    assert task.status == TaskStatus.NEW


def test_insert_duplicate(task_store: TaskStore) -> None:
    task_store.insert_task({"id": "T1", "title": "Fix bug"})

    with pytest.raises(ConflictError):
        task_store.insert_task({"id": "T1", "title": "Again"})


def test_get_missing(task_store: TaskStore) -> None:
    with pytest.raises(NotFoundError):
        task_store.get_task("T404")


def test_update_returns_previous_status(task_store: TaskStore) -> None:
    """Test the previous status is read in the same transaction as the write."""
    task_store.insert_task({"id": "T1", "title": "Fix bug"})

    previous, task = task_store.update_task("T1", {"status": TaskStatus.ASSIGNED})

    assert previous == TaskStatus.NEW
    assert task.status == TaskStatus.ASSIGNED


def test_archive_keeps_record(task_store: TaskStore) -> None:
    task_store.insert_task({"id": "T1", "title": "Fix bug"})

    task_store.archive_task("T1")

    assert task_store.get_task("T1").status == TaskStatus.ARCHIVED
    assert [t.id for t in task_store.list_tasks(status=TaskStatus.ARCHIVED)] == ["T1"]


def test_data_survives_reopen(database: Database) -> None:
    """Test tasks persist across Database instances on the same URL."""
    TaskStore(database).insert_task({"id": "T1", "title": "Fix bug"})

    other = Database(database.url)
    try:
        other.create_schema()
        assert TaskStore(other).get_task("T1").title == "Fix bug"
    finally:
        other.dispose()


def test_dependency_edges(task_store: TaskStore) -> None:
    task_store.insert_task({"id": "T1", "title": "A"})
    task_store.insert_task({"id": "T2", "title": "B"})

    task_store.insert_dependency("T1", "T2")

    assert [(e.task_id, e.depends_on) for e in task_store.list_dependencies("T2")] == [
        ("T1", "T2")
    ]
    with pytest.raises(ConflictError):
        task_store.insert_dependency("T1", "T2")


def test_count_active_tasks(task_store: TaskStore) -> None:
    """Test completed and archived tasks are not counted as active."""
    for task_id in ("T1", "T2", "T3", "T4"):
        task_store.insert_task({"id": task_id, "title": f"Task {task_id}"})
    task_store.update_task("T2", {"status": TaskStatus.BLOCKED})
    task_store.update_task("T3", {"status": TaskStatus.COMPLETED})
    task_store.archive_task("T4")

    assert task_store.count_active_tasks() == 2


def test_table_counts(task_store: TaskStore) -> None:
    task_store.insert_task({"id": "T1", "title": "A"})
    task_store.insert_task({"id": "T2", "title": "B"})
    task_store.insert_dependency("T1", "T2")
    task_store.insert_link("T1", "file", "docs/plan.md", None)
    task_store.insert_link("T1", "agent", "olex", "Owner")

    assert task_store.table_counts() == {"tasks": 2, "task_dependencies": 1, "task_links": 2}
