"""Task API endpoints."""

# FastAPI Depends pattern is safe in function signatures

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from mission_control.api.models import (
    DependencyCreateRequest,
    DependencyResponse,
    LinkCreatedResponse,
    LinkCreateRequest,
    RelationshipsResponse,
    TaskCreateRequest,
    TaskListResponse,
    TaskResponse,
    TaskUpdateRequest,
    task_to_response,
)
from mission_control.errors import BadRequestError, ConflictError, NotFoundError
from mission_control.factory import get_task_service
from mission_control.tasks.service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])

ServiceDep = Annotated[TaskService, Depends(get_task_service)]


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    service: ServiceDep,
    status: str | None = None,
    priority: str | None = None,
    assignee: str | None = None,
    category: str | None = None,
) -> TaskListResponse:
    """List tasks, newest first.

    Args:
        status: Only tasks in this status
        priority: Only tasks with this priority
        assignee: Only tasks assigned to this agent
        category: Only tasks in this category

    Empty filter values are ignored.

    Returns:
        Tasks matching every supplied filter
    """
    try:
        tasks = await service.list_tasks(
            status=status, priority=priority, assignee=assignee, category=category
        )
    except BadRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error listing tasks: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    items = [task_to_response(task) for task in tasks]
    return TaskListResponse(items=items, count=len(items))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, service: ServiceDep) -> TaskResponse:
    """Fetch a single task."""
    try:
        return task_to_response(await service.get_task(task_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error reading task {task_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(request: TaskCreateRequest, service: ServiceDep) -> TaskResponse:
    """Create a task with a caller-supplied id.

    Raises:
        HTTPException: 400 on missing fields, 409 if the id exists
    """
    try:
        task = await service.create_task(request.model_dump())
        return task_to_response(task)
    except BadRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error creating task {request.id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    request: TaskUpdateRequest,
    service: ServiceDep,
) -> TaskResponse:
    """Apply a partial update.

    Only fields present in the body are written; an empty body is rejected.
    """
    fields = request.model_dump(exclude_unset=True)
    try:
        task = await service.update_task(task_id, fields)
        return task_to_response(task)
    except BadRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error updating task {task_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.delete("/{task_id}", response_model=TaskResponse)
async def archive_task(task_id: str, service: ServiceDep) -> TaskResponse:
    """Archive a task. The record is kept with status ARCHIVED."""
    try:
        return task_to_response(await service.archive_task(task_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error archiving task {task_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/{task_id}/relationships", response_model=RelationshipsResponse)
async def get_relationships(task_id: str, service: ServiceDep) -> RelationshipsResponse:
    """Dependency edges where the task is either side."""
    try:
        edges = await service.relationships(task_id)
    except Exception as e:
        logger.exception(f"Error reading relationships for {task_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    dependencies = [
        DependencyResponse(task_id=edge.task_id, depends_on=edge.depends_on) for edge in edges
    ]
    return RelationshipsResponse(dependencies=dependencies, count=len(dependencies))


@router.post("/{task_id}/dependencies", response_model=DependencyResponse, status_code=201)
async def add_dependency(
    task_id: str, request: DependencyCreateRequest, service: ServiceDep
) -> DependencyResponse:
    """Record that the task depends on another task."""
    try:
        edge = await service.add_dependency(task_id, request.depends_on)
        return DependencyResponse(task_id=edge.task_id, depends_on=edge.depends_on)
    except BadRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error adding dependency to {task_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/{task_id}/links", response_model=LinkCreatedResponse, status_code=201)
async def add_link(
    task_id: str, request: LinkCreateRequest, service: ServiceDep
) -> LinkCreatedResponse:
    """Attach a file/agent/decision link to a task."""
    try:
        link_id = await service.add_link(
            task_id, request.link_type, request.link_url, request.link_text
        )
        return LinkCreatedResponse(id=link_id, task_id=task_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error linking to task {task_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
