"""Task store backed by SQLAlchemy."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from mission_control.api.models import Task, TaskDependency, TaskPriority, TaskStatus
from mission_control.errors import ConflictError, NotFoundError
from mission_control.store.database import (
    Database,
    TaskDependencyRecord,
    TaskLinkRecord,
    TaskRecord,
)

logger = logging.getLogger(__name__)

# Statuses that reopen a task and clear completed_at
_OPEN_STATUSES = {
    TaskStatus.NEW,
    TaskStatus.ASSIGNED,
    TaskStatus.IN_PROGRESS,
    TaskStatus.BLOCKED,
}
_CLOSED_STATUSES = (TaskStatus.COMPLETED.value, TaskStatus.ARCHIVED.value)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite round-trips."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc(value: Any) -> Any:
    """Convert aware datetimes to naive UTC. Naive values are taken as UTC."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TaskStore:
    """Reads and writes tasks, dependency edges and links.

    Every public method runs in its own transaction.
    """

    def __init__(self, database: Database) -> None:
        """Initialize store with an owned database handle."""
        self._db = database

    def list_tasks(
        self,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        assignee: str | None = None,
        category: str | None = None,
    ) -> list[Task]:
        """List tasks matching all supplied filters, newest first."""
        query = select(TaskRecord)
        if status is not None:
            query = query.where(TaskRecord.status == status.value)
        if priority is not None:
            query = query.where(TaskRecord.priority == priority.value)
        if assignee is not None:
            query = query.where(TaskRecord.assignee == assignee)
        if category is not None:
            query = query.where(TaskRecord.category == category)
        query = query.order_by(TaskRecord.created_at.desc())

        with self._db.session() as session:
            return [_to_task(row) for row in session.scalars(query)]

    def get_task(self, task_id: str) -> Task:
        """Read a task by id."""
        with self._db.session() as session:
            row = session.get(TaskRecord, task_id)
            if row is None:
                raise NotFoundError(f"Task not found: {task_id}")
            return _to_task(row)

    def task_exists(self, task_id: str) -> bool:
        with self._db.session() as session:
            return session.get(TaskRecord, task_id) is not None

    def insert_task(self, fields: dict[str, Any]) -> Task:
        """Insert a new task with caller-supplied id.

        Raises:
            ConflictError: If a task with the same id already exists
        """
        now = utcnow()
        task_id = fields["id"]
        try:
            with self._db.session() as session:
                if session.get(TaskRecord, task_id) is not None:
                    raise ConflictError(f"Task already exists: {task_id}")
                row = TaskRecord(
                    id=task_id,
                    title=fields["title"],
                    description=fields.get("description"),
                    status=TaskStatus.NEW.value,
                    priority=_enum_value(fields.get("priority") or TaskPriority.MEDIUM),
                    assignee=fields.get("assignee"),
                    category=fields.get("category"),
                    due_date=to_utc(fields.get("due_date")),
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
                session.flush()
                session.refresh(row)
                return _to_task(row)
        except IntegrityError as e:
            # Lost a race with a concurrent insert of the same id
            raise ConflictError(f"Task already exists: {task_id}") from e

    def update_task(self, task_id: str, fields: dict[str, Any]) -> tuple[TaskStatus, Task]:
        """Apply a partial update and return (previous status, updated task).

        The read of the previous status and the write share one transaction.
        """
        with self._db.session() as session:
            row = session.get(TaskRecord, task_id)
            if row is None:
                raise NotFoundError(f"Task not found: {task_id}")

            previous = TaskStatus(row.status)
            now = utcnow()
            for name, value in fields.items():
                setattr(row, name, to_utc(_enum_value(value)))

            if "status" in fields:
                current = TaskStatus(row.status)
                if current is TaskStatus.COMPLETED and previous is not TaskStatus.COMPLETED:
                    row.completed_at = now
                elif current in _OPEN_STATUSES:
                    row.completed_at = None

            row.updated_at = now
            session.flush()
            session.refresh(row)
            return previous, _to_task(row)

    def archive_task(self, task_id: str) -> Task:
        """Set status to ARCHIVED regardless of the current status."""
        with self._db.session() as session:
            row = session.get(TaskRecord, task_id)
            if row is None:
                raise NotFoundError(f"Task not found: {task_id}")
            row.status = TaskStatus.ARCHIVED.value
            row.updated_at = utcnow()
            session.flush()
            session.refresh(row)
            return _to_task(row)

    def list_dependencies(self, task_id: str) -> list[TaskDependency]:
        """Edges where the task is either the dependent or the target."""
        query = select(TaskDependencyRecord).where(
            or_(
                TaskDependencyRecord.task_id == task_id,
                TaskDependencyRecord.depends_on == task_id,
            )
        )
        with self._db.session() as session:
            return [
                TaskDependency(task_id=row.task_id, depends_on=row.depends_on)
                for row in session.scalars(query)
            ]

    def all_dependencies(self) -> list[TaskDependency]:
        with self._db.session() as session:
            return [
                TaskDependency(task_id=row.task_id, depends_on=row.depends_on)
                for row in session.scalars(select(TaskDependencyRecord))
            ]

    def insert_dependency(self, task_id: str, depends_on: str) -> TaskDependency:
        """Store a dependency edge.

        Raises:
            ConflictError: If the edge already exists
        """
        try:
            with self._db.session() as session:
                if session.get(TaskDependencyRecord, (task_id, depends_on)) is not None:
                    raise ConflictError(f"Dependency already exists: {task_id} -> {depends_on}")
                session.add(TaskDependencyRecord(task_id=task_id, depends_on=depends_on))
        except IntegrityError as e:
            raise ConflictError(f"Dependency already exists: {task_id} -> {depends_on}") from e
        return TaskDependency(task_id=task_id, depends_on=depends_on)

    def insert_link(
        self, task_id: str, link_type: str, link_url: str, link_text: str | None
    ) -> int:
        """Append a link row and return its generated id."""
        with self._db.session() as session:
            row = TaskLinkRecord(
                task_id=task_id,
                link_type=link_type,
                link_url=link_url,
                link_text=link_text,
                created_at=utcnow(),
            )
            session.add(row)
            session.flush()
            return row.id

    def count_active_tasks(self) -> int:
        """Tasks neither COMPLETED nor ARCHIVED."""
        query = (
            select(func.count())
            .select_from(TaskRecord)
            .where(TaskRecord.status.not_in(_CLOSED_STATUSES))
        )
        with self._db.session() as session:
            return session.scalar(query) or 0

    def table_counts(self) -> dict[str, int]:
        """Row count per table."""
        with self._db.session() as session:
            return {
                record.__tablename__: session.scalar(select(func.count()).select_from(record)) or 0
                for record in (TaskRecord, TaskDependencyRecord, TaskLinkRecord)
            }


def _enum_value(value: Any) -> Any:
    """Unwrap enum members to their stored string value."""
    if isinstance(value, (TaskStatus, TaskPriority)):
        return value.value
    return value


def _to_task(row: TaskRecord) -> Task:
    """Convert TaskRecord to Task."""
    return Task(
        id=row.id,
        title=row.title,
        description=row.description,
        status=TaskStatus(row.status),
        priority=TaskPriority(row.priority),
        assignee=row.assignee,
        category=row.category,
        due_date=row.due_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
        completed_at=row.completed_at,
    )
