"""Sync API endpoints for TASK-QUEUE.md and the agent cards."""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from mission_control.agents.registry import AgentRegistry
from mission_control.api.models import (
    AgentCardResponse,
    AgentListResponse,
    QueueEntry,
    QueueEntryResponse,
    QueueListResponse,
    QueueUpdateRequest,
    ReconcileReport,
    agent_to_response,
)
from mission_control.errors import NotFoundError
from mission_control.factory import get_agent_registry, get_task_queue, get_task_service
from mission_control.sync.reconcile import reconcile
from mission_control.sync.task_queue import TaskQueueMirror
from mission_control.tasks.service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])

QueueDep = Annotated[TaskQueueMirror, Depends(get_task_queue)]
RegistryDep = Annotated[AgentRegistry, Depends(get_agent_registry)]
ServiceDep = Annotated[TaskService, Depends(get_task_service)]


@router.get("/tasks", response_model=QueueListResponse)
async def read_task_queue(queue: QueueDep) -> QueueListResponse:
    """Parse TASK-QUEUE.md.

    Raises:
        HTTPException: 404 if the file does not exist
    """
    try:
        entries = await asyncio.to_thread(queue.read)
        last_modified = await asyncio.to_thread(queue.last_modified)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error reading task queue: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    items = [_entry_to_response(entry) for entry in entries]
    return QueueListResponse(
        file=str(queue.path), items=items, count=len(items), last_modified=last_modified
    )


@router.post("/tasks/update", response_model=QueueEntryResponse)
async def update_task_queue(request: QueueUpdateRequest, queue: QueueDep) -> QueueEntryResponse:
    """Rewrite the status and/or notes of one TASK-QUEUE.md row."""
    status = request.status.value if request.status else None
    try:
        entry = await asyncio.to_thread(queue.update, request.id, status, request.notes)
        return _entry_to_response(entry)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error updating task queue row {request.id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/tasks/reconcile", response_model=ReconcileReport)
async def reconcile_task_queue(queue: QueueDep, service: ServiceDep) -> ReconcileReport:
    """Report drift between TASK-QUEUE.md and the task store. Writes nothing."""
    try:
        entries = await asyncio.to_thread(queue.read)
        tasks = await service.list_tasks()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error reconciling task queue: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    report = reconcile(entries, tasks)
    if not report.in_sync:
        logger.info(
            f"[Sync] Drift: {len(report.only_in_mirror)} mirror-only, "
            f"{len(report.only_in_store)} store-only, {len(report.conflicts)} conflicts"
        )
    return report


@router.get("/agents", response_model=AgentListResponse)
async def read_agents(registry: RegistryDep) -> AgentListResponse:
    """Read all agent cards.

    Raises:
        HTTPException: 404 if the agents directory does not exist
    """
    if not registry.exists():
        raise HTTPException(status_code=404, detail="Agents directory not found")

    try:
        agents = await asyncio.to_thread(registry.list_agents)
    except Exception as e:
        logger.exception(f"Error reading agents: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    items = [agent_to_response(agent) for agent in agents]
    return AgentListResponse(items=items, count=len(items))


@router.get("/agents/{name}", response_model=AgentCardResponse)
async def read_agent(name: str, registry: RegistryDep) -> AgentCardResponse:
    """Read one raw agent card."""
    try:
        card = await asyncio.to_thread(registry.read_card, name)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error reading agent {name}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return AgentCardResponse(
        name=card.name,
        card=card.content,
        card_path=str(card.path),
        last_modified=card.last_modified,
    )


def _entry_to_response(entry: QueueEntry) -> QueueEntryResponse:
    """Convert QueueEntry to QueueEntryResponse."""
    return QueueEntryResponse(
        id=entry.id,
        title=entry.title,
        assignee=entry.assignee,
        status=entry.status,
        notes=entry.notes,
    )
