"""Diff TASK-QUEUE.md against the task store.

Reports drift only. Nothing is written to either side.
"""

from mission_control.api.models import (
    FieldConflict,
    QueueEntry,
    ReconcileReport,
    Task,
    TaskStatus,
)


def reconcile(entries: list[QueueEntry], tasks: list[Task]) -> ReconcileReport:
    """Compare mirror rows and store tasks by id.

    Archived tasks are not expected in the mirror. A mirror row whose id
    appears twice is compared on its first occurrence.
    """
    mirror: dict[str, QueueEntry] = {}
    for entry in entries:
        mirror.setdefault(entry.id, entry)
    store = {task.id: task for task in tasks}

    only_in_mirror = sorted(set(mirror) - set(store))
    only_in_store = sorted(
        task_id
        for task_id, task in store.items()
        if task_id not in mirror and task.status is not TaskStatus.ARCHIVED
    )

    conflicts: list[FieldConflict] = []
    for task_id in sorted(set(mirror) & set(store)):
        entry = mirror[task_id]
        task = store[task_id]
        pairs = [
            ("title", entry.title, task.title),
            ("assignee", entry.assignee, task.assignee or ""),
            ("status", entry.status, task.status.value),
        ]
        for field, mirror_value, store_value in pairs:
            if mirror_value != store_value:
                conflicts.append(
                    FieldConflict(id=task_id, field=field, mirror=mirror_value, store=store_value)
                )

    return ReconcileReport(
        only_in_mirror=only_in_mirror,
        only_in_store=only_in_store,
        conflicts=conflicts,
        in_sync=not (only_in_mirror or only_in_store or conflicts),
    )
