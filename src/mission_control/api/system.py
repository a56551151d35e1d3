"""System status and store metrics endpoints."""

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from mission_control.api.models import ActiveTasks, SystemMetricsResponse, SystemStatusResponse
from mission_control.factory import get_task_service
from mission_control.tasks.service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["system"])

ServiceDep = Annotated[TaskService, Depends(get_task_service)]


@router.get("/status", response_model=SystemStatusResponse)
async def system_status(service: ServiceDep) -> SystemStatusResponse:
    """Count of tasks that are still open."""
    try:
        active = await service.active_task_count()
    except Exception as e:
        logger.exception(f"Error reading system status: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return SystemStatusResponse(
        timestamp=datetime.now(timezone.utc), tasks=ActiveTasks(active=active)
    )


@router.get("/metrics", response_model=SystemMetricsResponse)
async def system_metrics(service: ServiceDep) -> SystemMetricsResponse:
    try:
        tables = await service.table_counts()
    except Exception as e:
        logger.exception(f"Error reading store metrics: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return SystemMetricsResponse(
        timestamp=datetime.now(timezone.utc), tables=tables, total_tables=len(tables)
    )
