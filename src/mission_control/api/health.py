"""Health check endpoint."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from sqlalchemy import text

from mission_control.factory import API_VERSION, Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

ServicesDep = Annotated[Services, Depends(get_services)]


@router.get("/health")
async def health(services: ServicesDep) -> dict[str, Any]:
    """Report liveness, database reachability and live subscriber count."""
    database = "ok"
    try:
        await asyncio.to_thread(_ping_database, services)
    except Exception as e:
        logger.warning(f"[Health] Database check failed: {e}")
        database = "error"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "version": API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
        "websocket_clients": len(services.connection_manager.active_connections),
    }


def _ping_database(services: Services) -> None:
    with services.database.session() as session:
        session.execute(text("SELECT 1"))
