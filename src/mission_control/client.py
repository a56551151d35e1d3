"""Typed HTTP client and optimistic task board for dashboard views."""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from mission_control.api.models import (
    AgentListResponse,
    AgentResponse,
    QueueListResponse,
    TaskEvent,
    TaskEventType,
    TaskListResponse,
    TaskResponse,
    TaskStatus,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error response from the API, carrying its ``error`` message."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class MissionControlClient:
    """Thin typed wrapper over the REST API.

    The caller owns the ``httpx.Client`` (base URL, timeouts, lifetime).
    """

    def __init__(self, http: httpx.Client, api_prefix: str = "/api/v1") -> None:
        self._http = http
        self._prefix = api_prefix

    def list_tasks(
        self,
        status: TaskStatus | None = None,
        priority: str | None = None,
        assignee: str | None = None,
        category: str | None = None,
    ) -> list[TaskResponse]:
        params = {
            "status": status.value if status else None,
            "priority": priority,
            "assignee": assignee,
            "category": category,
        }
        data = self._request(
            "GET", "/tasks", params={k: v for k, v in params.items() if v is not None}
        )
        return TaskListResponse.model_validate(data).items

    def get_task(self, task_id: str) -> TaskResponse:
        return TaskResponse.model_validate(self._request("GET", f"/tasks/{task_id}"))

    def create_task(self, task_id: str, title: str, **fields: Any) -> TaskResponse:
        body = {"id": task_id, "title": title, **fields}
        return TaskResponse.model_validate(self._request("POST", "/tasks", json=body))

    def update_task(self, task_id: str, **fields: Any) -> TaskResponse:
        body = {k: v.value if isinstance(v, TaskStatus) else v for k, v in fields.items()}
        return TaskResponse.model_validate(
            self._request("PATCH", f"/tasks/{task_id}", json=body)
        )

    def archive_task(self, task_id: str) -> TaskResponse:
        return TaskResponse.model_validate(self._request("DELETE", f"/tasks/{task_id}"))

    def list_agents(self) -> list[AgentResponse]:
        return AgentListResponse.model_validate(self._request("GET", "/agents")).items

    def update_agent(self, name: str, **fields: Any) -> AgentResponse:
        return AgentResponse.model_validate(
            self._request("PATCH", f"/agents/{name}", json=fields)
        )

    def read_task_queue(self) -> QueueListResponse:
        return QueueListResponse.model_validate(self._request("GET", "/sync/tasks"))

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._http.request(method, f"{self._prefix}{path}", **kwargs)
        if response.is_error:
            try:
                message = response.json().get("error", response.text)
            except ValueError:
                message = response.text
            raise ApiError(response.status_code, message)
        return response.json()


@dataclass
class MoveResult:
    """Outcome of an optimistic status change."""

    success: bool
    task: TaskResponse | None = None
    error: str | None = None


@dataclass
class TaskBoard:
    """Local view of tasks with optimistic status overrides.

    ``move`` shows the new status immediately and rolls it back if the
    server rejects the update. Push events keep the view current.
    """

    client: MissionControlClient
    tasks: dict[str, TaskResponse] = field(default_factory=dict)
    pending: dict[str, TaskStatus] = field(default_factory=dict)

    def refresh(self, **filters: Any) -> None:
        """Poll the server and replace the local view."""
        self.tasks = {task.id: task for task in self.client.list_tasks(**filters)}

    def status_of(self, task_id: str) -> TaskStatus:
        """Optimistic status if an update is in flight, else the known one."""
        if task_id in self.pending:
            return self.pending[task_id]
        return self.tasks[task_id].status

    def move(self, task_id: str, status: TaskStatus) -> MoveResult:
        """Change a task's status, optimistically."""
        self.pending[task_id] = status
        try:
            task = self.client.update_task(task_id, status=status)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning(f"[TaskBoard] Rolling back {task_id} -> {status.value}: {e}")
            return MoveResult(success=False, error=str(e) or "Failed to update task status")
        finally:
            self.pending.pop(task_id, None)

        self.tasks[task.id] = task
        return MoveResult(success=True, task=task)

    def apply_event(self, message: dict[str, Any]) -> TaskEvent:
        """Apply a ``{type, task}`` push message to the local view."""
        event = TaskEvent.model_validate(message)
        if event.type is TaskEventType.DELETED:
            self.tasks.pop(event.task.id, None)
        else:
            self.tasks[event.task.id] = event.task
        return event

    def columns(self) -> dict[TaskStatus, list[TaskResponse]]:
        """Group visible tasks by (optimistic) status, archived tasks hidden."""
        grouped: dict[TaskStatus, list[TaskResponse]] = {
            status: [] for status in TaskStatus if status is not TaskStatus.ARCHIVED
        }
        for task in self.tasks.values():
            status = self.status_of(task.id)
            if status in grouped:
                grouped[status].append(task)
        return grouped
