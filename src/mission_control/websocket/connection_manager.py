"""WebSocket connection management."""

import json
import logging
from typing import Any

from fastapi import WebSocket

from mission_control.api.models import Task, TaskEvent, TaskEventType, task_to_response

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages active WebSocket connections and broadcasts task events."""

    def __init__(self) -> None:
        """Initialize connection manager with empty connection list."""
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        """Accept and register a new WebSocket connection.

        Args:
            websocket: WebSocket connection to register
        """
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"[ConnectionManager] Client connected (total: {len(self.active_connections)})")

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove a WebSocket connection from active list.

        Args:
            websocket: WebSocket connection to remove
        """
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.info(
                f"[ConnectionManager] Client disconnected (total: {len(self.active_connections)})"
            )

    async def broadcast(self, message: dict[str, Any]) -> None:
        """Broadcast message to all connected clients.

        Messages to clients that connect later are not replayed.

        Args:
            message: Dictionary to send as JSON to all clients
        """
        if not self.active_connections:
            logger.debug("[ConnectionManager] No active connections to broadcast to")
            return

        message_json = json.dumps(message)
        # Snapshot: connections may come and go while we await sends
        recipients = list(self.active_connections)
        logger.debug(
            f"[ConnectionManager] Broadcasting to {len(recipients)} clients: {message_json}"
        )

        dead_connections = []
        for connection in recipients:
            try:
                await connection.send_text(message_json)
            except Exception as e:
                logger.warning(f"[ConnectionManager] Failed to send to client: {e}")
                dead_connections.append(connection)

        for connection in dead_connections:
            self.disconnect(connection)

    async def broadcast_task_event(self, event_type: TaskEventType, task: Task) -> None:
        """Broadcast a task lifecycle event as ``{type, task}``."""
        event = TaskEvent(type=event_type, task=task_to_response(task))
        await self.broadcast(event.model_dump(mode="json"))
