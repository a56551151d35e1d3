"""API models for Mission Control."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Task lifecycle states."""

    NEW = "NEW"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class TaskPriority(str, Enum):
    """Task priority levels."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class TaskEventType(str, Enum):
    """Lifecycle events pushed to live subscribers."""

    CREATED = "created"
    UPDATED = "updated"
    STATUS_CHANGED = "status_changed"
    DELETED = "deleted"


class AgentState(str, Enum):
    """States accepted when writing an agent card."""

    AVAILABLE = "available"
    BUSY = "busy"
    STANDBY = "standby"
    OFFLINE = "offline"


@dataclass
class Task:
    """Task row from the task store."""

    id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    assignee: str | None
    category: str | None
    due_date: datetime | None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None


@dataclass
class TaskDependency:
    """Edge in the task dependency graph: task_id depends on depends_on."""

    task_id: str
    depends_on: str


@dataclass
class QueueEntry:
    """Row of the TASK-QUEUE.md table."""

    id: str
    title: str
    assignee: str
    status: str
    notes: str


@dataclass
class Agent:
    """Agent parsed from its card."""

    name: str
    state: str  # Free text on read, "unknown" when the marker is missing
    current_task: str | None
    card_path: str
    last_modified: datetime


class TaskCreateRequest(BaseModel):
    """Request model for creating a task."""

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee: str | None = None
    category: str | None = None
    due_date: datetime | None = None


class TaskUpdateRequest(BaseModel):
    """Request model for a partial task update.

    Only fields present in the request body are applied.
    """

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee: str | None = None
    category: str | None = None
    due_date: datetime | None = None


class TaskResponse(BaseModel):
    """API response model for tasks."""

    id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    assignee: str | None
    category: str | None
    due_date: datetime | None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None


class TaskListResponse(BaseModel):
    """API response model for task lists."""

    items: list[TaskResponse]
    count: int


class TaskEvent(BaseModel):
    """Message pushed over the WebSocket on every task mutation."""

    type: TaskEventType
    task: TaskResponse


class DependencyCreateRequest(BaseModel):
    """Request model for adding a dependency edge."""

    depends_on: str = Field(min_length=1)


class DependencyResponse(BaseModel):
    """API response model for a dependency edge."""

    task_id: str
    depends_on: str


class RelationshipsResponse(BaseModel):
    """API response model for the dependency edges touching a task."""

    dependencies: list[DependencyResponse]
    count: int


class LinkCreateRequest(BaseModel):
    """Request model for attaching a link to a task."""

    link_type: str = Field(min_length=1)  # file, agent, decision, ...
    link_url: str = Field(min_length=1)
    link_text: str | None = None


class LinkCreatedResponse(BaseModel):
    """API response model for a created link."""

    id: int
    task_id: str


class AgentResponse(BaseModel):
    """API response model for agents."""

    name: str
    state: str
    current_task: str | None
    card_path: str
    last_modified: datetime


class AgentListResponse(BaseModel):
    """API response model for agent lists."""

    items: list[AgentResponse]
    count: int


class AgentCardResponse(BaseModel):
    """API response model for a raw agent card."""

    name: str
    card: str
    card_path: str
    last_modified: datetime


class AgentUpdateRequest(BaseModel):
    """Request model for updating an agent card.

    ``current_task`` sent as null clears the task (written as ``none``).
    """

    state: AgentState | None = None
    current_task: str | None = None


class QueueEntryResponse(BaseModel):
    """API response model for a TASK-QUEUE.md row."""

    id: str
    title: str
    assignee: str
    status: str
    notes: str


class QueueListResponse(BaseModel):
    """API response model for the parsed TASK-QUEUE.md file."""

    file: str
    items: list[QueueEntryResponse]
    count: int
    last_modified: datetime


class QueueUpdateRequest(BaseModel):
    """Request model for updating a TASK-QUEUE.md row."""

    id: str = Field(min_length=1)
    status: TaskStatus | None = None
    notes: str | None = None


class FieldConflict(BaseModel):
    """A field whose mirror value differs from the store value."""

    id: str
    field: str
    mirror: str | None
    store: str | None


class ReconcileReport(BaseModel):
    """Diff between TASK-QUEUE.md and the task store."""

    only_in_mirror: list[str]
    only_in_store: list[str]
    conflicts: list[FieldConflict]
    in_sync: bool


class ActiveTasks(BaseModel):
    active: int


class SystemStatusResponse(BaseModel):
    """Quick overview of open work."""

    timestamp: datetime
    tasks: ActiveTasks


class SystemMetricsResponse(BaseModel):
    """Row counts per store table."""

    timestamp: datetime
    tables: dict[str, int]
    total_tables: int


def task_to_response(task: Task) -> TaskResponse:
    """Convert Task to TaskResponse."""
    return TaskResponse(
        id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        assignee=task.assignee,
        category=task.category,
        due_date=task.due_date,
        created_at=task.created_at,
        updated_at=task.updated_at,
        completed_at=task.completed_at,
    )


def agent_to_response(agent: Agent) -> AgentResponse:
    """Convert Agent to AgentResponse."""
    return AgentResponse(
        name=agent.name,
        state=agent.state,
        current_task=agent.current_task,
        card_path=agent.card_path,
        last_modified=agent.last_modified,
    )
