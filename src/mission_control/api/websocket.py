"""WebSocket API endpoint for real-time task events."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from mission_control.factory import get_websocket_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """WebSocket endpoint for task lifecycle events.

    Every task mutation is pushed as ``{"type": ..., "task": {...}}``.
    Clients may send ``ping`` and receive ``pong``.

    Args:
        websocket: WebSocket connection
    """
    connection_manager = get_websocket_manager(websocket)

    await connection_manager.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()
            logger.debug(f"[WebSocket] Received from client: {data}")

            if data == "ping":
                await websocket.send_text("pong")

    except WebSocketDisconnect:
        logger.info("[WebSocket] Client disconnected normally")
        connection_manager.disconnect(websocket)
    except Exception as e:
        logger.error(f"[WebSocket] Error: {e}", exc_info=True)
        connection_manager.disconnect(websocket)
