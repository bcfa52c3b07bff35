"""Live notification stream over WebSocket."""

import logging
from uuid import UUID

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from engagements.services.realtime import ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws/notifications")
async def notifications_websocket(websocket: WebSocket, user_id: str):
    """
    Hold a connection open so notifications can be pushed to the user.

    Clients may send "ping" and receive {"type": "pong"}; anything else is
    ignored.
    """
    manager = websocket.app.state.channel
    try:
        user_uuid = UUID(user_id)
    except ValueError:
        await websocket.close(code=4400)
        return
    if not isinstance(manager, ConnectionManager):
        await websocket.close(code=4503)
        return

    await manager.connect(websocket, user_uuid)
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        logger.info("WebSocket disconnected for user %s", user_uuid)
    finally:
        await manager.disconnect(websocket, user_uuid)
