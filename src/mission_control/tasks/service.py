"""Task lifecycle service."""

import asyncio
import logging
from enum import Enum
from typing import Any, Protocol, TypeVar

from mission_control.api.models import (
    Task,
    TaskDependency,
    TaskEventType,
    TaskPriority,
    TaskStatus,
)
from mission_control.errors import BadRequestError, NotFoundError
from mission_control.store.task_store import TaskStore

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

UPDATABLE_FIELDS = frozenset(
    {"title", "description", "status", "priority", "assignee", "category", "due_date"}
)
# Fields that may be omitted from an update but never set to null
NON_NULLABLE_FIELDS = frozenset({"title", "status", "priority"})


class TaskEventPublisher(Protocol):
    """Protocol for pushing task events to live subscribers."""

    async def broadcast_task_event(self, event_type: TaskEventType, task: Task) -> None:
        """Push an event to every connected subscriber."""
        ...


class TaskService:
    """Applies task mutations to the store and announces them.

    Store access is blocking and runs in a worker thread.
    """

    def __init__(
        self,
        store: TaskStore,
        publisher: TaskEventPublisher,
        allow_dependency_cycles: bool = True,
    ) -> None:
        """Initialize service with its store and event publisher."""
        self._store = store
        self._publisher = publisher
        self._allow_dependency_cycles = allow_dependency_cycles

    async def list_tasks(
        self,
        status: TaskStatus | str | None = None,
        priority: TaskPriority | str | None = None,
        assignee: str | None = None,
        category: str | None = None,
    ) -> list[Task]:
        """List tasks matching all supplied filters, newest first.

        Empty filters are treated as omitted.

        Raises:
            BadRequestError: If status or priority is not a known value
        """
        return await asyncio.to_thread(
            self._store.list_tasks,
            status=coerce_enum(TaskStatus, status or None, "status"),
            priority=coerce_enum(TaskPriority, priority or None, "priority"),
            assignee=assignee or None,
            category=category or None,
        )

    async def get_task(self, task_id: str) -> Task:
        return await asyncio.to_thread(self._store.get_task, task_id)

    async def create_task(self, fields: dict[str, Any]) -> Task:
        """Create a task with a caller-supplied id and announce it.

        Raises:
            BadRequestError: If id or title is missing or empty
            ConflictError: If the id is taken
        """
        for required in ("id", "title"):
            value = fields.get(required)
            if not isinstance(value, str) or not value.strip():
                raise BadRequestError(f"Field '{required}' is required")

        priority = coerce_enum(TaskPriority, fields.get("priority"), "priority")
        fields = {**fields, "priority": priority}
        task = await asyncio.to_thread(self._store.insert_task, fields)
        logger.info(f"[TaskService] Created task {task.id}")
        await self._publish(TaskEventType.CREATED, task)
        return task

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> Task:
        """Apply only the supplied fields and announce the change.

        Emits ``status_changed`` when the status differs from the stored one,
        ``updated`` otherwise.

        Raises:
            BadRequestError: If no fields are supplied or a required field is null
            NotFoundError: If the task does not exist
        """
        if not fields:
            raise BadRequestError("No updates provided")

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise BadRequestError(f"Unknown fields: {', '.join(sorted(unknown))}")

        for name in NON_NULLABLE_FIELDS & set(fields):
            if fields[name] is None:
                raise BadRequestError(f"Field '{name}' cannot be null")

        fields = dict(fields)
        if "status" in fields:
            fields["status"] = coerce_enum(TaskStatus, fields["status"], "status")
        if "priority" in fields:
            fields["priority"] = coerce_enum(TaskPriority, fields["priority"], "priority")

        previous_status, task = await asyncio.to_thread(
            self._store.update_task, task_id, fields
        )

        if previous_status != task.status:
            logger.info(
                f"[TaskService] Task {task_id} status "
                f"{previous_status.value} -> {task.status.value}"
            )
            await self._publish(TaskEventType.STATUS_CHANGED, task)
        else:
            logger.info(f"[TaskService] Updated task {task_id}: {', '.join(sorted(fields))}")
            await self._publish(TaskEventType.UPDATED, task)
        return task

    async def archive_task(self, task_id: str) -> Task:
        """Soft-delete: set status to ARCHIVED and announce ``deleted``.

        Archiving an already archived task succeeds again.
        """
        task = await asyncio.to_thread(self._store.archive_task, task_id)
        logger.info(f"[TaskService] Archived task {task_id}")
        await self._publish(TaskEventType.DELETED, task)
        return task

    async def relationships(self, task_id: str) -> list[TaskDependency]:
        return await asyncio.to_thread(self._store.list_dependencies, task_id)

    async def add_dependency(self, task_id: str, depends_on: str) -> TaskDependency:
        """Store the edge task_id -> depends_on.

        Self-references and cycles are rejected only when cycles are disallowed.

        Raises:
            NotFoundError: If either task does not exist
            BadRequestError: If the edge would form a disallowed cycle
            ConflictError: If the edge already exists
        """
        for required in (task_id, depends_on):
            if not await asyncio.to_thread(self._store.task_exists, required):
                raise NotFoundError(f"Task not found: {required}")

        if not self._allow_dependency_cycles:
            edges = await asyncio.to_thread(self._store.all_dependencies)
            if creates_cycle(edges, task_id, depends_on):
                raise BadRequestError(f"Dependency {task_id} -> {depends_on} would create a cycle")

        edge = await asyncio.to_thread(self._store.insert_dependency, task_id, depends_on)
        logger.info(f"[TaskService] Task {task_id} now depends on {depends_on}")
        return edge

    async def add_link(
        self, task_id: str, link_type: str, link_url: str, link_text: str | None = None
    ) -> int:
        """Attach a link to a task and return the new link id."""
        if not await asyncio.to_thread(self._store.task_exists, task_id):
            raise NotFoundError(f"Task not found: {task_id}")
        link_id = await asyncio.to_thread(
            self._store.insert_link, task_id, link_type, link_url, link_text
        )
        logger.info(f"[TaskService] Linked {link_type} to task {task_id} (link {link_id})")
        return link_id

    async def active_task_count(self) -> int:
        return await asyncio.to_thread(self._store.count_active_tasks)

    async def table_counts(self) -> dict[str, int]:
        return await asyncio.to_thread(self._store.table_counts)

    async def _publish(self, event_type: TaskEventType, task: Task) -> None:
        """Fire-and-forget push; never fails the calling mutation."""
        try:
            await self._publisher.broadcast_task_event(event_type, task)
        except Exception as e:
            logger.error(
                f"[TaskService] Failed to publish {event_type.value} for {task.id}: {e}",
                exc_info=True,
            )


def coerce_enum(enum_cls: type[E], value: Any, name: str) -> E | None:
    """Convert a raw value to enum_cls; None passes through.

    Raises:
        BadRequestError: If the value is not a member
    """
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        raise BadRequestError(f"Invalid {name}: {value}") from e


def creates_cycle(edges: list[TaskDependency], task_id: str, depends_on: str) -> bool:
    """Whether adding task_id -> depends_on closes a cycle in the graph.

    True when depends_on already reaches task_id (or they are the same task).
    """
    if task_id == depends_on:
        return True

    graph: dict[str, list[str]] = {}
    for edge in edges:
        graph.setdefault(edge.task_id, []).append(edge.depends_on)

    stack = [depends_on]
    seen: set[str] = set()
    while stack:
        node = stack.pop()
        if node == task_id:
            return True
        if node in seen:
            continue
        seen.add(node)
        stack.extend(graph.get(node, []))
    return False
