"""Test fixtures for Mission Control."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from mission_control.api.models import Task, TaskEventType
from mission_control.config import Config
from mission_control.factory import create_app
from mission_control.store.database import Database
from mission_control.store.task_store import TaskStore
from mission_control.tasks.service import TaskService

TASK_QUEUE = """# Task Queue

Shared queue, edited by hand and through the API.

| ID | Title | Assignee | Status | Notes |
|----|-------|----------|--------|-------|
| T001 | Fix bug | olex | IN_PROGRESS | urgent |
| T002 | Write docs | ruv | NEW | after release |
| T003 | Too short | ruv |  |  |

Last reviewed by hand.
| T999 | Outside the table | olex | NEW | ignored |
"""

AGENT_CARD = """# Olex

**Role:** Backend
**State:** busy
**Current Task:** T001 - Fix bug

## Notes
Prefers small PRs.
"""


class RecordingPublisher:
    """Collects task events instead of pushing them."""

    def __init__(self) -> None:
        self.events: list[tuple[TaskEventType, Task]] = []

    async def broadcast_task_event(self, event_type: TaskEventType, task: Task) -> None:
        self.events.append((event_type, task))

    @property
    def types(self) -> list[TaskEventType]:
        return [event_type for event_type, _ in self.events]


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create temporary shared workspace with task queue and agent cards."""
    workspace = tmp_path / "workspace-shared"
    agents_dir = workspace / "agents"
    agents_dir.mkdir(parents=True)

    (workspace / "TASK-QUEUE.md").write_text(TASK_QUEUE)
    (agents_dir / "olex.md").write_text(AGENT_CARD)
    (agents_dir / "ruv.md").write_text("# Ruv\n\nNo markers here yet.\n")
    return workspace


@pytest.fixture
def test_config(tmp_path: Path, workspace: Path) -> Config:
    """Config pointing at temporary database and workspace."""
    return Config(
        database_url=f"sqlite:///{tmp_path / 'db' / 'mission-control.db'}",
        task_queue_path=str(workspace / "TASK-QUEUE.md"),
        agents_dir=str(workspace / "agents"),
    )


@pytest.fixture
def database(test_config: Config) -> Iterator[Database]:
    db = Database(test_config.database_url)
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def task_store(database: Database) -> TaskStore:
    return TaskStore(database)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def task_service(task_store: TaskStore, publisher: RecordingPublisher) -> TaskService:
    return TaskService(task_store, publisher)


@pytest.fixture
def test_client(test_config: Config) -> Iterator[TestClient]:
    """Create test client for an app wired to the temporary workspace."""
    app = create_app(test_config)
    with TestClient(app) as client:
        yield client
